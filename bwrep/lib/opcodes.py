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
"""The static table of command opcodes and their payload lengths."""

import collections
import enum


class PayloadTruncated(Exception):
  """A length rule needs bytes past the end of its block."""
  pass


def fixed(size):
  """A payload of `size` bytes."""
  def rule(data, start, end):
    del data, start, end
    return size
  rule.size = size
  return rule


def selection(tag_size):
  """A unit count byte followed by that many `tag_size` byte unit tags."""
  def rule(data, start, end):
    if start >= end:
      raise PayloadTruncated()
    return 1 + tag_size * data[start]
  rule.size = None
  return rule


def save_name(data, start, end):
  """A u32 followed by a null terminated file name."""
  null = bytes(data[start + 4:end]).find(b"\0")
  if start + 4 > end or null < 0:
    raise PayloadTruncated()
  return 4 + null + 1
save_name.size = None


class Opcode(collections.namedtuple("Opcode", [
    "id", "name", "length", "meaningful", "skip", "sender_in_payload"])):
  """A command type.

  `length` is a rule `(data, start, end) -> payload size`, where `data[start]`
  is the first payload byte and `end` the end of the enclosing block.
  `meaningful` commands count towards EAPM. `skip` commands are consumed but
  produce no `Command`. `sender_in_payload` means the first payload byte names
  the owning player, not the command's player byte.
  """
  __slots__ = ()

  def __new__(cls, id_, name, length, meaningful=False, skip=False,
              sender_in_payload=False):
    if isinstance(length, int):
      length = fixed(length)
    return super(Opcode, cls).__new__(cls, id_, name, length, meaningful, skip,
                                      sender_in_payload)


KEEP_ALIVE = 0x05
SELECT = 0x09
SHIFT_SELECT = 0x0A
SHIFT_DESELECT = 0x0B
BUILD = 0x0C
HOTKEY = 0x13
RIGHT_CLICK = 0x14
TARGETED_ORDER = 0x15
TRAIN = 0x1F
UNIT_MORPH = 0x23
TECH = 0x30
UPGRADE = 0x32
BUILDING_MORPH = 0x35
SYNC = 0x37
LEAVE_GAME = 0x57
CHAT = 0x5C
RIGHT_CLICK_121 = 0x60
TARGETED_ORDER_121 = 0x61
SELECT_121 = 0x63

_OPCODES = [
    Opcode(KEEP_ALIVE, "Keep Alive", 0),
    Opcode(0x06, "Save Game", save_name),
    Opcode(0x07, "Load Game", save_name),
    Opcode(0x08, "Restart Game", 0),
    Opcode(SELECT, "Select", selection(2)),
    Opcode(SHIFT_SELECT, "Shift Select", selection(2)),
    Opcode(SHIFT_DESELECT, "Shift Deselect", selection(2)),
    Opcode(BUILD, "Build", 7, meaningful=True),
    Opcode(0x0D, "Vision", 2),
    Opcode(0x0E, "Alliance", 4),
    Opcode(0x0F, "Game Speed", 1),
    Opcode(0x10, "Pause", 0),
    Opcode(0x11, "Resume", 0),
    Opcode(0x12, "Cheat", 4),
    Opcode(HOTKEY, "Hotkey", 2),
    Opcode(RIGHT_CLICK, "Right Click", 9, meaningful=True),
    Opcode(TARGETED_ORDER, "Targeted Order", 10, meaningful=True),
    Opcode(0x18, "Cancel Build", 0, meaningful=True),
    Opcode(0x19, "Cancel Morph", 0, meaningful=True),
    Opcode(0x1A, "Stop", 1, meaningful=True),
    Opcode(0x1B, "Carrier Stop", 0, meaningful=True),
    Opcode(0x1C, "Reaver Stop", 0, meaningful=True),
    Opcode(0x1D, "Order Nothing", 0, meaningful=True),
    Opcode(0x1E, "Return Cargo", 1, meaningful=True),
    Opcode(TRAIN, "Train", 2, meaningful=True),
    Opcode(0x20, "Cancel Train", 2, meaningful=True),
    Opcode(0x21, "Cloak", 1, meaningful=True),
    Opcode(0x22, "Decloak", 1, meaningful=True),
    Opcode(UNIT_MORPH, "Unit Morph", 2, meaningful=True),
    Opcode(0x25, "Unsiege", 1, meaningful=True),
    Opcode(0x26, "Siege", 1, meaningful=True),
    Opcode(0x27, "Train Fighter", 0, meaningful=True),
    Opcode(0x28, "Unload All", 1, meaningful=True),
    Opcode(0x29, "Unload", 2, meaningful=True),
    Opcode(0x2A, "Merge Archon", 0, meaningful=True),
    Opcode(0x2B, "Hold Position", 1, meaningful=True),
    Opcode(0x2C, "Burrow", 1, meaningful=True),
    Opcode(0x2D, "Unburrow", 1, meaningful=True),
    Opcode(0x2E, "Cancel Nuke", 0, meaningful=True),
    Opcode(0x2F, "Lift Off", 4, meaningful=True),
    Opcode(TECH, "Tech", 1, meaningful=True),
    Opcode(0x31, "Cancel Tech", 0, meaningful=True),
    Opcode(UPGRADE, "Upgrade", 1, meaningful=True),
    Opcode(0x33, "Cancel Upgrade", 0, meaningful=True),
    Opcode(0x34, "Cancel Addon", 0, meaningful=True),
    Opcode(BUILDING_MORPH, "Building Morph", 2, meaningful=True),
    Opcode(0x36, "Stim", 0, meaningful=True),
    Opcode(SYNC, "Sync", 6, skip=True),
    # Lobby
    Opcode(0x3C, "Start Game", 0),
    Opcode(0x3D, "Download Percentage", 1),
    Opcode(0x3E, "Change Game Slot", 5),
    Opcode(0x3F, "New Net Player", 7),
    Opcode(0x40, "Joined Game", 17),
    Opcode(0x41, "Change Race", 2),
    Opcode(0x42, "Team Game Team", 1),
    Opcode(0x43, "UMS Team", 1),
    Opcode(0x44, "Melee Team", 2),
    Opcode(0x45, "Swap Players", 2),
    Opcode(0x48, "Saved Data", 12, skip=True),
    Opcode(0x54, "Briefing Start", 0),
    Opcode(0x55, "Latency", 1),
    Opcode(0x56, "Replay Speed", 9),
    Opcode(LEAVE_GAME, "Leave Game", 1),
    Opcode(0x58, "Minimap Ping", 4),
    Opcode(0x5A, "Merge Dark Archon", 0, meaningful=True),
    Opcode(0x5B, "Make Game Public", 0),
    Opcode(CHAT, "Chat", 81, sender_in_payload=True),
    # 1.21 variants with 4 byte unit tags.
    Opcode(RIGHT_CLICK_121, "Right Click", 11, meaningful=True),
    Opcode(TARGETED_ORDER_121, "Targeted Order", 12, meaningful=True),
    Opcode(0x62, "Unload", 4, meaningful=True),
    Opcode(SELECT_121, "Select", selection(4)),
    Opcode(0x64, "Shift Select", selection(4)),
    Opcode(0x65, "Shift Deselect", selection(4)),
]

OPCODES = {op.id: op for op in _OPCODES}


def opcode_name(opcode):
  op = OPCODES.get(opcode)
  return op.name if op else "Unknown 0x%02x" % opcode


MEANINGFUL = frozenset(op.id for op in _OPCODES if op.meaningful)


class ActionCategory(enum.Enum):
  """What a command does, for the macro/micro split of a player's actions."""
  MACRO = "macro"
  MICRO = "micro"
  OTHER = "other"


_MACRO = (BUILD, TRAIN, UNIT_MORPH, 0x27, 0x2A, 0x5A, TECH, UPGRADE,
          BUILDING_MORPH, 0x18, 0x19, 0x20, 0x2E, 0x31, 0x33, 0x34, 0x1E, 0x2F,
          HOTKEY, 0x0D, 0x0E)
_MICRO = (RIGHT_CLICK, TARGETED_ORDER, RIGHT_CLICK_121, TARGETED_ORDER_121,
          0x1A, 0x1B, 0x1C, 0x1D, 0x21, 0x22, 0x25, 0x26, 0x28, 0x29, 0x62,
          0x2B, 0x2C, 0x2D, 0x36)

CATEGORIES = dict([(i, ActionCategory.MACRO) for i in _MACRO] +
                  [(i, ActionCategory.MICRO) for i in _MICRO])


def category(opcode):
  return CATEGORIES.get(opcode, ActionCategory.OTHER)
