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
"""Decompress PKWare Data Compression Library ("implode") streams.

Classic replays compress their chunks with PKWare DCL. The format is a bit
stream read least significant bit first:

  byte 0: 0 for uncoded literals, 1 for Huffman coded literals.
  byte 1: dictionary size in bits, 4, 5 or 6 (1k, 2k or 4k window).
  then a sequence of
    0 + literal (8 raw bits or a literal code), or
    1 + length code + distance code, a copy from the window.
  A length of 519 ends the stream.

Huffman codes are stored bit inverted, and the code tables are fixed, kept here
in run length compacted form: each byte is (count - 1) << 4 | bit length.
"""

import collections

from bwrep.lib import errors

MAX_BITS = 13
END_OF_STREAM = 519

_LITERAL_LENGTHS = (
    11, 124, 8, 7, 28, 7, 188, 13, 76, 4, 10, 8, 12, 10, 12, 10, 8, 23, 8,
    9, 7, 6, 7, 8, 7, 6, 55, 8, 23, 24, 12, 11, 7, 9, 11, 12, 6, 7, 22, 5,
    7, 24, 6, 11, 9, 6, 7, 22, 7, 11, 38, 7, 9, 8, 25, 11, 8, 11, 9, 12,
    8, 12, 5, 38, 5, 38, 5, 11, 7, 5, 6, 21, 6, 10, 53, 8, 7, 24, 10, 27,
    44, 253, 253, 253, 252, 252, 252, 13, 12, 45, 12, 45, 12, 61, 12, 45,
    44, 173)
_LENGTH_LENGTHS = (2, 35, 36, 53, 38, 23)
_DISTANCE_LENGTHS = (2, 20, 53, 230, 247, 151, 248)

_LENGTH_BASE = (3, 2, 4, 5, 6, 7, 8, 9, 10, 12, 16, 24, 40, 72, 136, 264)
_LENGTH_EXTRA = (0, 0, 0, 0, 0, 0, 0, 0, 1, 2, 3, 4, 5, 6, 7, 8)


class Huffman(collections.namedtuple("Huffman", ["count", "symbol"])):
  """Canonical Huffman table: codes per bit length and symbols by code."""
  __slots__ = ()

  @classmethod
  def build(cls, compact):
    lengths = []
    for rep in compact:
      lengths.extend([rep & 15] * ((rep >> 4) + 1))

    count = [0] * (MAX_BITS + 1)
    for length in lengths:
      count[length] += 1

    offsets = [0] * (MAX_BITS + 2)
    for length in range(1, MAX_BITS + 1):
      offsets[length + 1] = offsets[length] + count[length]
    symbol = [0] * len(lengths)
    for sym, length in enumerate(lengths):
      if length:
        symbol[offsets[length]] = sym
        offsets[length] += 1
    return cls(tuple(count), tuple(symbol))


LITERAL_CODE = Huffman.build(_LITERAL_LENGTHS)
LENGTH_CODE = Huffman.build(_LENGTH_LENGTHS)
DISTANCE_CODE = Huffman.build(_DISTANCE_LENGTHS)


class PKWareError(errors.DecodeError):
  """The DCL stream is corrupt or truncated."""
  pass


class _BitStream(object):
  """Least significant bit first reader."""
  __slots__ = ("_data", "_pos", "_buf", "_left")

  def __init__(self, data, pos=0):
    self._data = data
    self._pos = pos
    self._buf = 0
    self._left = 0

  def bits(self, need):
    buf = self._buf
    while self._left < need:
      if self._pos >= len(self._data):
        raise PKWareError("Unexpected end of stream", offset=self._pos)
      buf |= self._data[self._pos] << self._left
      self._pos += 1
      self._left += 8
    self._buf = buf >> need
    self._left -= need
    return buf & ((1 << need) - 1)

  def decode(self, huffman):
    """Decode one symbol, reading the inverted code a bit at a time."""
    code = first = index = 0
    for length in range(1, MAX_BITS + 1):
      code |= self.bits(1) ^ 1
      count = huffman.count[length]
      if code < first + count:
        return huffman.symbol[index + code - first]
      index += count
      first = (first + count) << 1
      code <<= 1
    raise PKWareError("Invalid Huffman code", offset=self._pos)


def explode(data, expected_size=None):
  """Decompress a PKWare DCL stream.

  Args:
    data: The compressed bytes, starting with the 2 byte DCL header.
    expected_size: If given, stop with an error once the output exceeds it.

  Returns:
    The decompressed bytes.

  Raises:
    PKWareError: On a bad header, a bad code or a truncated stream.
  """
  if len(data) < 2:
    raise PKWareError("Stream too short for a header", offset=0)
  coded_literals = data[0]
  dict_bits = data[1]
  if coded_literals > 1:
    raise PKWareError("Bad literal mode %d" % coded_literals, offset=0)
  if not 4 <= dict_bits <= 6:
    raise PKWareError("Bad dictionary size %d" % dict_bits, offset=1)

  stream = _BitStream(data, 2)
  out = bytearray()
  while True:
    if stream.bits(1):
      symbol = stream.decode(LENGTH_CODE)
      length = _LENGTH_BASE[symbol] + stream.bits(_LENGTH_EXTRA[symbol])
      if length == END_OF_STREAM:
        break
      shift = 2 if length == 2 else dict_bits
      dist = (stream.decode(DISTANCE_CODE) << shift) + stream.bits(shift) + 1
      if dist > len(out):
        raise PKWareError("Distance %d reaches before the output" % dist,
                          offset=len(out))
      start = len(out) - dist
      for i in range(length):  # Overlapping copies repeat the window.
        out.append(out[start + i])
    elif coded_literals:
      out.append(stream.decode(LITERAL_CODE))
    else:
      out.append(stream.bits(8))
    if expected_size is not None and len(out) > expected_size:
      raise PKWareError("Output exceeds the expected %d bytes" % expected_size,
                        offset=len(out))
  return bytes(out)
