# Copyright 2021 DeepMind Technologies Ltd. All rights reserved.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#      http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS-IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Little endian reads over an in-memory buffer."""

import struct

from bwrep.lib import errors

_U16 = struct.Struct("<H")
_U32 = struct.Struct("<I")


def _truncated(offset, needed, available):
  return errors.TruncatedInput(
      "Needed %d bytes, only %d left" % (needed, available), offset=offset)


class ByteReader(object):
  """A cursor over a bytes buffer.

  Reads past the end raise the error built by `truncated(offset, needed,
  available)`, which defaults to `errors.TruncatedInput`. Stages that need a
  different error (eg the command stream) pass their own factory.
  """
  __slots__ = ("_data", "_offset", "_truncated")

  def __init__(self, data, offset=0, truncated=None):
    self._data = memoryview(data)
    self._offset = offset
    self._truncated = truncated or _truncated

  @property
  def offset(self):
    return self._offset

  @property
  def remaining(self):
    return len(self._data) - self._offset

  def __len__(self):
    return len(self._data)

  def at_end(self):
    return self._offset >= len(self._data)

  def seek(self, offset):
    self._offset = offset

  def _need(self, n):
    if n > self.remaining:
      raise self._truncated(self._offset, n, max(0, self.remaining))

  def read(self, n):
    self._need(n)
    out = self._data[self._offset:self._offset + n].tobytes()
    self._offset += n
    return out

  def skip(self, n):
    self._need(n)
    self._offset += n

  def u8(self):
    self._need(1)
    self._offset += 1
    return self._data[self._offset - 1]

  def u16(self):
    self._need(2)
    value, = _U16.unpack_from(self._data, self._offset)
    self._offset += 2
    return value

  def u32(self):
    self._need(4)
    value, = _U32.unpack_from(self._data, self._offset)
    self._offset += 4
    return value

  def cstring(self):
    """Read up to and including a null byte, returning the bytes before it."""
    end = self._offset
    while end < len(self._data) and self._data[end] != 0:
      end += 1
    if end >= len(self._data):
      raise self._truncated(self._offset, end - self._offset + 1,
                            self.remaining)
    out = self._data[self._offset:end].tobytes()
    self._offset = end + 1
    return out


def u16_at(data, offset):
  return _U16.unpack_from(data, offset)[0]


def u32_at(data, offset):
  return _U32.unpack_from(data, offset)[0]
