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
"""Write synthetic `.rep` files, for tests and the gen_test_replay tool.

    header = rep_writer.header_bytes(frame_count=2880, players=[
        rep_writer.PlayerSpec("Flash", race=1),
        rep_writer.PlayerSpec("Bisu", race=2, player_id=1, team=2),
    ])
    cmds = [rep_writer.train(24, 0, units.SCV)]
    data = rep_writer.write_replay(header, rep_writer.encode_commands(cmds))

The output follows the real container layout, so it exercises the whole
decode path: sniffing, every inflate variant, header and command decoding.
"""

import collections
import struct
import zlib

from bwrep.lib import command_stream
from bwrep.lib import header as header_lib
from bwrep.lib import opcodes
from bwrep.lib import pkware
from bwrep.lib import sniffer

CHUNK_SIZE = sniffer.CHUNK_SIZE
MAX_BLOCK = 255

SCV = 7
MARINE = 0
PROBE = 64
ZEALOT = 65
DRONE = 41
SUPPLY_DEPOT = 109
BARRACKS = 111
PYLON = 156
GATEWAY = 160
SPAWNING_POOL = 142


class PlayerSpec(collections.namedtuple("PlayerSpec", [
    "name", "race", "team", "player_id", "type", "color"])):
  """A slot to write. `race` is the header race id (0 Z, 1 T, 2 P, 6 R)."""
  __slots__ = ()

  def __new__(cls, name, race=1, team=1, player_id=0, type=2, color=None):  # pylint: disable=redefined-builtin
    return super(PlayerSpec, cls).__new__(
        cls, name, race, team, player_id, type,
        player_id if color is None else color)


def _put_string(buf, offset, size, text, encoding):
  raw = text.encode(encoding)[:size - 1]
  buf[offset:offset + len(raw)] = raw


def header_bytes(frame_count, players=(), map_name="Fighting Spirit",
                 title="bwrep test", host="host", game_type=0x04, sub_type=1,
                 engine=1, start_time=1577836800, map_size=(128, 128),
                 speed=6, encoding="utf-8"):
  """Build a 0x279 byte header section.

  Args:
    frame_count: The game length in frames.
    players: `PlayerSpec`s, written to the first slots in order.
    map_name: The map name.
    title: The game title.
    host: The host's name.
    game_type: The raw game type, eg 0x04 for One on One.
    sub_type: The raw game sub type.
    engine: 0 for StarCraft, 1 for Brood War.
    start_time: Unix seconds.
    map_size: (width, height) in tiles.
    speed: 0 (slowest) to 6 (fastest).
    encoding: The string encoding, "utf-8" for Remastered, "cp949" Classic.

  Returns:
    The header bytes.
  """
  layout = header_lib.HEADER_LAYOUTS[sniffer.Version.CLASSIC]
  buf = bytearray(header_lib.HEADER_SIZE)
  buf[layout.engine] = engine
  struct.pack_into("<I", buf, layout.frames, frame_count)
  struct.pack_into("<I", buf, layout.start_time, start_time)
  _put_string(buf, layout.title[0], layout.title[1], title, encoding)
  struct.pack_into("<HH", buf, layout.map_width, *map_size)
  buf[layout.speed] = speed
  struct.pack_into("<HH", buf, layout.game_type, game_type, sub_type)
  _put_string(buf, layout.host[0], layout.host[1], host, encoding)
  _put_string(buf, layout.map_name[0], layout.map_name[1], map_name, encoding)

  for i in range(header_lib.SLOT_COUNT):
    base = layout.slots + i * header_lib.SLOT_SIZE
    struct.pack_into("<H", buf, base, i)
    buf[base + 4] = i
  for i, p in enumerate(players):
    base = layout.slots + i * header_lib.SLOT_SIZE
    buf[base + 4] = p.player_id
    buf[base + 8] = p.type
    buf[base + 9] = p.race
    buf[base + 10] = p.team
    _put_string(buf, base + 11, header_lib.SLOT_SIZE - 11, p.name, encoding)
    if i < header_lib.COLOR_COUNT:
      struct.pack_into("<I", buf, layout.colors + 4 * i, p.color)
  return bytes(buf)


def command(frame, player_id, opcode, payload=b""):
  return command_stream.Command(frame, player_id, opcode, bytes(payload))


def build(frame, player_id, unit, x=0, y=0, order=0x1E):
  return command(frame, player_id, opcodes.BUILD,
                 struct.pack("<BHHH", order, x, y, unit))


def train(frame, player_id, unit):
  return command(frame, player_id, opcodes.TRAIN, struct.pack("<H", unit))


def unit_morph(frame, player_id, unit):
  return command(frame, player_id, opcodes.UNIT_MORPH, struct.pack("<H", unit))


def building_morph(frame, player_id, unit):
  return command(frame, player_id, opcodes.BUILDING_MORPH,
                 struct.pack("<H", unit))


def tech(frame, player_id, tech_id):
  return command(frame, player_id, opcodes.TECH, bytes([tech_id]))


def upgrade(frame, player_id, upgrade_id):
  return command(frame, player_id, opcodes.UPGRADE, bytes([upgrade_id]))


def select(frame, player_id, tags):
  return command(frame, player_id, opcodes.SELECT,
                 struct.pack("<B%dH" % len(tags), len(tags), *tags))


def hotkey(frame, player_id, group, assign=False):
  return command(frame, player_id, opcodes.HOTKEY,
                 bytes([0 if assign else 1, group]))


def right_click(frame, player_id, x, y, target=0, unit=0xE4, queued=False):
  return command(frame, player_id, opcodes.RIGHT_CLICK,
                 struct.pack("<HHHHB", x, y, target, unit, int(queued)))


def chat(frame, sender, text, player_id=None):
  raw = text.encode("utf-8")[:79]
  return command(frame, sender if player_id is None else player_id,
                 opcodes.CHAT,
                 bytes([sender]) + raw + b"\0" * (80 - len(raw)))


def leave_game(frame, player_id, reason=1):
  return command(frame, player_id, opcodes.LEAVE_GAME, bytes([reason]))


def encode_commands(commands):
  """Pack commands into frame blocks, in the order given."""
  out = bytearray()
  frame = None
  block = bytearray()

  def flush():
    if frame is not None and block:
      out.extend(struct.pack("<IB", frame, len(block)))
      out.extend(block)

  for cmd in commands:
    record = bytes([cmd.slot_id, cmd.opcode]) + bytes(cmd.payload)
    if cmd.frame != frame or len(block) + len(record) > MAX_BLOCK:
      flush()
      frame = cmd.frame
      block = bytearray()
    block.extend(record)
  flush()
  return bytes(out)


def huffman_codes(huffman):
  """Map each symbol of a `pkware.Huffman` to its (code, bit length)."""
  codes = {}
  first = index = 0
  for length in range(1, pkware.MAX_BITS + 1):
    count = huffman.count[length]
    for i in range(count):
      codes[huffman.symbol[index + i]] = (first + i, length)
    index += count
    first = (first + count) << 1
  return codes


_LENGTH_CODES = huffman_codes(pkware.LENGTH_CODE)


class _BitWriter(object):
  """Least significant bit first writer."""

  def __init__(self):
    self.out = bytearray()
    self._buf = 0
    self._bits = 0

  def write(self, value, bits):
    self._buf |= value << self._bits
    self._bits += bits
    while self._bits >= 8:
      self.out.append(self._buf & 0xFF)
      self._buf >>= 8
      self._bits -= 8

  def write_code(self, code, length):
    for i in reversed(range(length)):  # Huffman codes go inverted, MSB first.
      self.write(((code >> i) & 1) ^ 1, 1)

  def getvalue(self):
    if self._bits:
      return bytes(self.out) + bytes([self._buf & 0xFF])
    return bytes(self.out)


def implode(data, dict_bits=6):
  """A PKWare DCL stream of uncoded literals that `pkware.explode` accepts."""
  writer = _BitWriter()
  for byte in data:
    writer.write(0, 1)
    writer.write(byte, 8)
  # End of stream: the longest length code with all its extra bits set.
  writer.write(1, 1)
  writer.write_code(*_LENGTH_CODES[len(_LENGTH_CODES) - 1])
  writer.write(0xFF, 8)
  return bytes([0, dict_bits]) + writer.getvalue()


def _raw_deflate(data):
  compressor = zlib.compressobj(9, zlib.DEFLATED, -zlib.MAX_WBITS)
  return compressor.compress(data) + compressor.flush()


STORED = "stored"
ZLIB = "zlib"
RAW_DEFLATE = "raw deflate"
PKWARE = "pkware"

COMPRESSORS = {
    STORED: None,
    ZLIB: lambda data: zlib.compress(data, 9),
    RAW_DEFLATE: _raw_deflate,
    PKWARE: implode,
}


def encode_section(data, compression=ZLIB):
  """Encode one section: checksum, chunk count and length prefixed chunks.

  Chunks that compress to exactly their own size are stored, since readers
  take that size to mean an uncompressed chunk.
  """
  compress = COMPRESSORS[compression]
  chunks = [data[i:i + CHUNK_SIZE] for i in range(0, len(data), CHUNK_SIZE)]
  out = bytearray(struct.pack("<II", zlib.crc32(data), len(chunks)))
  for chunk in chunks:
    stored = compress(chunk) if compress else chunk
    if len(stored) == len(chunk):
      stored = chunk
    out.extend(struct.pack("<I", len(stored)))
    out.extend(stored)
  return bytes(out)


def write_replay(header, commands, version=sniffer.Version.REMASTERED,
                 compression=ZLIB, overrides=None, trailer=b"\0" * 64):
  """Build a whole replay.

  Args:
    header: The header section, see `header_bytes`.
    commands: The command section, see `encode_commands`.
    version: Writes "seRS" for Remastered, "reRS" for Classic.
    compression: How to store the header and command sections.
    overrides: A dict of section name ("header", "commands") to the
        compression to use for that section instead.
    trailer: Bytes standing in for the map and later sections.

  Returns:
    The replay bytes.
  """
  overrides = overrides or {}
  magic = (sniffer.REMASTERED_MAGIC if version == sniffer.Version.REMASTERED
           else sniffer.CLASSIC_MAGIC)
  return b"".join([
      encode_section(magic, STORED),
      encode_section(header, overrides.get("header", compression)),
      encode_section(struct.pack("<I", len(commands)), STORED),
      encode_section(commands, overrides.get("commands", compression)),
      encode_section(trailer, STORED) if trailer else b"",
  ])


def random_commands(rng, player_ids, frame_count, count):
  """Generate `count` well formed commands for each player, in frame order.

  Args:
    rng: A `numpy.random.RandomState`.
    player_ids: The players to issue commands for.
    frame_count: Commands fall in frames [0, frame_count].
    count: Commands per player.

  Returns:
    A list of `command_stream.Command`.
  """
  makers = [
      lambda f, p: select(f, p, [int(t) for t in rng.randint(
          0, 0xFFFF, size=rng.randint(1, 13))]),
      lambda f, p: hotkey(f, p, int(rng.randint(0, 10))),
      lambda f, p: right_click(f, p, int(rng.randint(0, 4096)),
                               int(rng.randint(0, 4096))),
      lambda f, p: train(f, p, int(rng.choice([SCV, MARINE, PROBE, ZEALOT]))),
      lambda f, p: build(f, p, int(rng.choice([SUPPLY_DEPOT, BARRACKS, PYLON,
                                                GATEWAY])),
                         int(rng.randint(0, 256)), int(rng.randint(0, 256))),
  ]
  cmds = []
  for player_id in player_ids:
    for frame in rng.randint(0, frame_count + 1, size=count):
      cmds.append(makers[rng.randint(len(makers))](int(frame), player_id))
  cmds.sort(key=lambda c: c.frame)
  return cmds
