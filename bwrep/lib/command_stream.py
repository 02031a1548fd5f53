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
"""Decode the inflated command stream into a list of `Command`s.

The stream is a run of frame blocks, `u32 frame | u8 size | commands`, where
each command is `u8 player id | u8 opcode | payload` and the payload length
comes from the opcode table.
"""

import collections

from absl import logging

from bwrep.lib import binary
from bwrep.lib import errors
from bwrep.lib import opcodes
from bwrep.lib import stopwatch

sw = stopwatch.sw

BLOCK_HEADER_SIZE = 5
CANCEL_CHECK_BLOCKS = 4096


class Command(collections.namedtuple("Command", [
    "frame", "slot_id", "opcode", "payload"])):
  """One player command, owned by the player with id `slot_id`."""
  __slots__ = ()

  @property
  def name(self):
    return opcodes.opcode_name(self.opcode)

  def to_dict(self):
    return {
        "frame": self.frame,
        "slotId": self.slot_id,
        "opcode": self.opcode,
        "name": self.name,
        "payload": self.payload.hex(),
    }


@sw.decorate
def decode_commands(data, frame_count=None, cancel=None, senders=None):
  """Decode a command stream.

  Args:
    data: The inflated command section.
    frame_count: The header's frame count. Blocks past it are rejected. None
        disables the check.
    cancel: An optional `threading.Event`, polled every few thousand blocks.
    senders: An optional dict of slot table index to player id. Chat names its
        sender by slot table index; with `senders` the index is mapped to a
        player id, falling back to the command's own player byte when the
        index is missing. Without it the index is used as the player id.

  Returns:
    A list of `Command` in non-decreasing frame order.

  Raises:
    errors.UnknownOpcode: An opcode missing from `opcodes.OPCODES`.
    errors.TruncatedCommandStream: A block or command runs past the end of the
        data or of its block.
    errors.InvalidCommandStream: Block frames go backwards or past the end of
        the game.
    errors.DecodeCancelled: `cancel` was set.
  """
  data = memoryview(data)
  commands = []
  skipped = collections.Counter()
  offset = 0
  last_frame = 0
  blocks = 0
  while offset < len(data):
    if len(data) - offset < BLOCK_HEADER_SIZE:
      raise errors.TruncatedCommandStream(offset)
    frame = binary.u32_at(data, offset)
    end = offset + BLOCK_HEADER_SIZE + data[offset + 4]
    if end > len(data):
      raise errors.TruncatedCommandStream(offset)
    if frame < last_frame:
      raise errors.InvalidCommandStream(
          "frame %d follows frame %d" % (frame, last_frame), offset=offset)
    if frame_count is not None and frame > frame_count:
      raise errors.InvalidCommandStream(
          "frame %d is past the last frame %d" % (frame, frame_count),
          offset=offset)
    last_frame = frame

    pos = offset + BLOCK_HEADER_SIZE
    while pos < end:
      if end - pos < 2:
        raise errors.TruncatedCommandStream(pos)
      player, opcode = data[pos], data[pos + 1]
      op = opcodes.OPCODES.get(opcode)
      if op is None:
        raise errors.UnknownOpcode(opcode, pos + 1, frame=frame)
      start = pos + 2
      try:
        size = op.length(data, start, end)
      except opcodes.PayloadTruncated:
        raise errors.TruncatedCommandStream(pos, frame=frame)
      if start + size > end:
        raise errors.TruncatedCommandStream(pos, frame=frame)
      pos = start + size

      if op.skip:
        skipped[op.name] += 1
        continue
      payload = data[start:pos].tobytes()
      if op.sender_in_payload:
        player = (payload[0] if senders is None
                  else senders.get(payload[0], player))
      commands.append(Command(frame, player, opcode, payload))

    offset = end
    blocks += 1
    if cancel is not None and blocks % CANCEL_CHECK_BLOCKS == 0:
      if cancel.is_set():
        raise errors.DecodeCancelled("the end of the command stream",
                                     offset=offset)

  if skipped:
    logging.debug("Skipped commands: %s", dict(skipped))
  logging.debug("Decoded %d commands in %d blocks, last frame %d",
                len(commands), blocks, last_frame)
  return commands
