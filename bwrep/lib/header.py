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
"""Decode the fixed layout replay header section."""

import collections
import datetime
import enum

from absl import logging

from bwrep.lib import binary
from bwrep.lib import errors
from bwrep.lib import sniffer
from bwrep.lib import stopwatch

sw = stopwatch.sw

HEADER_SIZE = sniffer.HEADER_SIZE
SLOT_COUNT = 12
SLOT_SIZE = 36
COLOR_COUNT = 8
# 24 hours of game time at the classic 24 frames per second.
MAX_FRAMES = 24 * 60 * 60 * 24


class Engine(enum.IntEnum):
  STARCRAFT = 0
  BROOD_WAR = 1


class GameType(enum.IntEnum):
  """Game types as stored in the header."""
  UNKNOWN = 0
  MELEE = 0x02
  FREE_FOR_ALL = 0x03
  ONE_ON_ONE = 0x04
  CAPTURE_THE_FLAG = 0x05
  GREED = 0x06
  SLAUGHTER = 0x07
  SUDDEN_DEATH = 0x08
  LADDER = 0x09
  USE_MAP_SETTINGS = 0x0A
  TEAM_MELEE = 0x0B
  TEAM_FFA = 0x0C
  TEAM_CTF = 0x0D
  TOP_VS_BOTTOM = 0x0F
  IRON_MAN_LADDER = 0x10

  @property
  def display_name(self):
    return _GAME_TYPE_NAMES.get(self, self.name.replace("_", " ").title())


_GAME_TYPE_NAMES = {
    GameType.FREE_FOR_ALL: "Free For All",
    GameType.ONE_ON_ONE: "One on One",
    GameType.TEAM_FFA: "Team FFA",
    GameType.TEAM_CTF: "Team CTF",
    GameType.TOP_VS_BOTTOM: "Top vs Bottom",
}


class GameSpeed(enum.IntEnum):
  UNKNOWN = -1
  SLOWEST = 0
  SLOWER = 1
  SLOW = 2
  NORMAL = 3
  FAST = 4
  FASTER = 5
  FASTEST = 6


def _enum_or(cls, value, default):
  try:
    return cls(value)
  except ValueError:
    return default


class HeaderLayout(collections.namedtuple("HeaderLayout", [
    "engine", "frames", "start_time", "title", "map_width", "map_height",
    "speed", "game_type", "sub_type", "host", "map_name", "slots", "colors",
    "encoding", "fps"])):
  """Where each header field lives, as (offset, size) for strings.

  `encoding` is the list of string codecs to try in order.
  """
  __slots__ = ()


_CLASSIC_LAYOUT = HeaderLayout(
    engine=0x00,
    frames=0x01,
    start_time=0x08,
    title=(0x18, 28),
    map_width=0x34,
    map_height=0x36,
    speed=0x3A,
    game_type=0x3C,
    sub_type=0x3E,
    host=(0x48, 24),
    map_name=(0x61, 26),
    slots=0xA1,
    colors=0x251,
    encoding=("cp949", "latin-1"),
    fps=24.0)

HEADER_LAYOUTS = {
    sniffer.Version.CLASSIC: _CLASSIC_LAYOUT,
    sniffer.Version.REMASTERED: _CLASSIC_LAYOUT._replace(
        encoding=("utf-8",), fps=23.81),
}


def decode_string(raw, encoding):
  """Decode a null terminated string, dropping control (colour) codes."""
  raw = bytes(raw).split(b"\0", 1)[0]
  text = None
  for codec in encoding[:-1]:
    try:
      text = raw.decode(codec)
      break
    except UnicodeDecodeError:
      continue
  if text is None:
    text = raw.decode(encoding[-1], errors="replace")
  return "".join(c for c in text if ord(c) >= 0x20 and ord(c) != 0x7f).strip()


def frames_to_duration(frames, fps):
  """Format a frame count as "m:ss" of game time."""
  seconds = int(round(frames / fps)) if fps else 0
  return "%d:%02d" % divmod(seconds, 60)


class ReplayHeader(collections.namedtuple("ReplayHeader", [
    "version", "engine", "engine_version", "frame_count", "start_time",
    "title", "host", "map_name", "map_width", "map_height", "game_speed",
    "game_type", "sub_type", "frames_per_second"])):
  """The decoded header fields."""
  __slots__ = ()

  @property
  def duration(self):
    return frames_to_duration(self.frame_count, self.frames_per_second)

  def to_dict(self):
    return {
        "mapName": self.map_name,
        "engineVersion": self.engine_version,
        "frameCount": self.frame_count,
        "gameType": self.game_type.display_name,
        "startTime": self.start_time.isoformat(),
        "duration": self.duration,
        "title": self.title,
        "host": self.host,
        "mapWidth": self.map_width,
        "mapHeight": self.map_height,
        "gameSpeed": self.game_speed.name.title(),
        "framesPerSecond": self.frames_per_second,
    }


class SlotRecord(collections.namedtuple("SlotRecord", [
    "index", "player_id", "type", "race", "team", "name", "color"])):
  """One raw 36 byte entry of the header's player slot table."""
  __slots__ = ()


def engine_version(engine, version):
  name = "Brood War" if engine == Engine.BROOD_WAR else "StarCraft"
  if version == sniffer.Version.REMASTERED:
    return name + " 1.21+"
  return name + " pre-1.21"


def _slot_records(data, layout):
  colors = [binary.u32_at(data, layout.colors + 4 * i)
            for i in range(COLOR_COUNT)]
  records = []
  for i in range(SLOT_COUNT):
    base = layout.slots + i * SLOT_SIZE
    records.append(SlotRecord(
        index=binary.u16_at(data, base),
        player_id=data[base + 4],
        type=data[base + 8],
        race=data[base + 9],
        team=data[base + 10],
        name=decode_string(data[base + 11:base + SLOT_SIZE], layout.encoding),
        color=colors[i] if i < COLOR_COUNT else 0))
  return records


@sw.decorate
def decode_header(data, version):
  """Decode the inflated header section.

  Args:
    data: The header section bytes.
    version: The `sniffer.Version` of the replay, selecting the layout.

  Returns:
    A `(ReplayHeader, [SlotRecord])` tuple.

  Raises:
    errors.MalformedHeader: The section is short or a field is out of range.
  """
  if len(data) < HEADER_SIZE:
    raise errors.MalformedHeader(
        "section is %d bytes, need %d" % (len(data), HEADER_SIZE),
        section="header", version=version)
  layout = HEADER_LAYOUTS[version]

  engine = data[layout.engine]
  if engine not in (Engine.STARCRAFT, Engine.BROOD_WAR):
    raise errors.MalformedHeader("engine byte 0x%02x" % engine,
                                 offset=layout.engine, version=version)
  frames = binary.u32_at(data, layout.frames)
  if frames > MAX_FRAMES:
    raise errors.MalformedHeader(
        "frame count %d exceeds %d" % (frames, MAX_FRAMES),
        offset=layout.frames, version=version)

  def text(field):
    offset, size = field
    return decode_string(data[offset:offset + size], layout.encoding)

  engine = Engine(engine)
  header = ReplayHeader(
      version=version,
      engine=engine,
      engine_version=engine_version(engine, version),
      frame_count=frames,
      start_time=datetime.datetime.fromtimestamp(
          binary.u32_at(data, layout.start_time), tz=datetime.timezone.utc),
      title=text(layout.title),
      host=text(layout.host),
      map_name=text(layout.map_name),
      map_width=binary.u16_at(data, layout.map_width),
      map_height=binary.u16_at(data, layout.map_height),
      game_speed=_enum_or(GameSpeed, data[layout.speed], GameSpeed.UNKNOWN),
      game_type=_enum_or(GameType, binary.u16_at(data, layout.game_type),
                         GameType.UNKNOWN),
      sub_type=binary.u16_at(data, layout.sub_type),
      frames_per_second=layout.fps)
  logging.debug("Header: %s on %s, %d frames (%s)", header.game_type.name,
                header.map_name, frames, header.duration)
  return header, _slot_records(data, layout)
