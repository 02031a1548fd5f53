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
"""Errors raised while decoding a replay.

Every failure is terminal for the decode call. Errors carry a context dict
(byte offset, detected version and compression, section name) which is part of
the message so a single log line is enough to find the problem.
"""

import enum


def _format_value(key, value):
  if isinstance(value, enum.Enum):
    return value.name
  if key.endswith("offset") and isinstance(value, int):
    return "0x%x" % value
  if isinstance(value, bytes):
    return value.hex()
  return str(value)


class DecodeError(Exception):
  """Base class for all replay decode failures."""

  def __init__(self, message, **context):
    self.message = message
    self.context = {k: v for k, v in context.items() if v is not None}
    super(DecodeError, self).__init__(self._describe())

  def _describe(self):
    if not self.context:
      return self.message
    return "%s (%s)" % (self.message, ", ".join(
        "%s=%s" % (k, _format_value(k, v))
        for k, v in sorted(self.context.items())))

  def add_context(self, **context):
    """Add context known only to an outer stage, keeping inner values."""
    for k, v in context.items():
      if v is not None:
        self.context.setdefault(k, v)
    self.args = (self._describe(),)
    return self

  def __str__(self):
    return self._describe()


class TruncatedInput(DecodeError):
  """The buffer ends before a structure it declares."""
  pass


class UnsupportedFormat(DecodeError):
  """The buffer isn't a replay container this decoder knows."""
  pass


class MalformedHeader(DecodeError):
  """The replay header section failed validation."""

  def __init__(self, reason, **context):
    self.reason = reason
    super(MalformedHeader, self).__init__("Malformed header: %s" % reason,
                                          **context)


class NoCompressedPayloadFound(DecodeError):
  """No zlib stream marker inside the search window."""
  pass


class DecompressionFailed(DecodeError):
  """All permitted inflate variants failed or produced implausible data."""

  def __init__(self, section, tried, **context):
    self.section = section
    self.tried = tuple(tried)
    super(DecompressionFailed, self).__init__(
        "Failed to decompress the %s section, tried: %s" % (
            section, ", ".join(self.tried)),
        section=section, **context)


class UnknownOpcode(DecodeError):
  """A command opcode with no entry in the opcode table."""

  def __init__(self, opcode, offset, **context):
    self.opcode = opcode
    self.offset = offset
    super(UnknownOpcode, self).__init__(
        "Unknown command opcode 0x%02x" % opcode, offset=offset, **context)


class TruncatedCommandStream(DecodeError):
  """The command stream ends in the middle of a record."""

  def __init__(self, offset, **context):
    self.offset = offset
    super(TruncatedCommandStream, self).__init__(
        "Command stream ends mid-record", offset=offset, **context)


class InvalidCommandStream(DecodeError):
  """A command violates the stream invariants (frame order, slots, bounds)."""

  def __init__(self, reason, **context):
    self.reason = reason
    super(InvalidCommandStream, self).__init__(
        "Invalid command stream: %s" % reason, **context)


class NoPlayersFound(DecodeError):
  """The slot table holds no populated player slot."""
  pass


class DecodeCancelled(DecodeError):
  """The caller cancelled the decode."""

  def __init__(self, stage, **context):
    self.stage = stage
    super(DecodeCancelled, self).__init__(
        "Decode cancelled before %s" % stage, stage=stage, **context)
