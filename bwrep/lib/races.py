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
"""Resolve the populated player slots and their races."""

import collections
import enum

from absl import logging

from bwrep.lib import errors


class Race(enum.Enum):
  TERRAN = "Terran"
  PROTOSS = "Protoss"
  ZERG = "Zerg"
  RANDOM = "Random"
  UNKNOWN = "Unknown"


class PlayerKind(enum.IntEnum):
  COMPUTER = 1
  HUMAN = 2


# Race ids of the header slot table.
RACE_IDS = {
    0: Race.ZERG,
    1: Race.TERRAN,
    2: Race.PROTOSS,
    6: Race.RANDOM,
}

# Codes seen from other replay tools and older parsers.
RACE_CODES = {
    100: Race.TERRAN,
    101: Race.PROTOSS,
    102: Race.ZERG,
    5: Race.TERRAN,
    6: Race.PROTOSS,
    7: Race.ZERG,
    3: Race.PROTOSS,
    4: Race.ZERG,
}

_RACE_NAMES = {r.value.lower(): r for r in Race if r != Race.UNKNOWN}

_RACE_SUBSTRINGS = (
    ("terr", Race.TERRAN),
    ("prot", Race.PROTOSS),
    ("toss", Race.PROTOSS),
    ("zerg", Race.ZERG),
)

_RACE_LETTERS = {
    "t": Race.TERRAN,
    "p": Race.PROTOSS,
    "z": Race.ZERG,
    "r": Race.RANDOM,
}

COLOR_NAMES = [
    "Red", "Blue", "Teal", "Purple", "Orange", "Brown", "White", "Yellow",
    "Green", "Pale Yellow", "Tan", "Azure",
]


def race_from_text(text):
  """Guess a race from free text, eg "Toss" or "z"."""
  text = text.strip().lower()
  for needle, race in _RACE_SUBSTRINGS:
    if needle in text:
      return race
  return _RACE_LETTERS.get(text)


def resolve_race(race_name=None, race_id=None, text=None, code=None):
  """Pick a race from whatever sources are available.

  Sources are consulted in order of trust, the first that resolves wins.

  Args:
    race_name: A structured race name, eg "Protoss".
    race_id: A header race id, see `RACE_IDS`.
    text: Free text that may mention a race.
    code: A numeric race code from some other scheme, see `RACE_CODES`.

  Returns:
    A `Race`, `Race.UNKNOWN` if nothing resolves.
  """
  if race_name:
    race = _RACE_NAMES.get(race_name.strip().lower())
    if race:
      return race
  if race_id in RACE_IDS:
    return RACE_IDS[race_id]
  if text:
    race = race_from_text(text)
    if race:
      return race
  if code in RACE_CODES:
    return RACE_CODES[code]
  return Race.UNKNOWN


class Player(collections.namedtuple("Player", [
    "slot_id", "name", "race", "team", "color", "kind"])):
  """A populated player slot. Commands refer to players by `slot_id`."""
  __slots__ = ()

  @property
  def color_name(self):
    if 0 <= self.color < len(COLOR_NAMES):
      return COLOR_NAMES[self.color]
    return "Color %d" % self.color

  def to_dict(self):
    return {
        "slotId": self.slot_id,
        "name": self.name,
        "race": self.race.value,
        "team": self.team,
        "color": self.color_name,
        "kind": self.kind.name.title() if self.kind else None,
    }


def resolve_players(records):
  """Turn the header's slot records into `Player`s.

  Args:
    records: `header.SlotRecord`s in slot table order.

  Returns:
    A list of `Player`, one per populated slot.

  Raises:
    errors.NoPlayersFound: No slot holds a human or computer with a name.
  """
  players = []
  seen = set()
  for record in records:
    if record.type not in (PlayerKind.COMPUTER, PlayerKind.HUMAN):
      continue
    if not record.name:
      continue
    if record.player_id in seen:
      logging.warning("Ignoring slot %d, player id %d is already taken by "
                      "another slot", record.index, record.player_id)
      continue
    seen.add(record.player_id)
    players.append(Player(
        slot_id=record.player_id,
        name=record.name,
        race=resolve_race(race_id=record.race, code=record.race),
        team=record.team,
        color=record.color,
        kind=PlayerKind(record.type)))
  if not players:
    raise errors.NoPlayersFound(
        "None of the %d slots holds a player" % len(records))
  logging.debug("Players: %s", ", ".join(
      "%s (%s)" % (p.name, p.race.value) for p in players))
  return players


def matchup(players):
  """The race matchup, eg "TvP" or "PTvZZ".

  Players are grouped by team. When every player is on the same team each one
  is a side of their own.
  """
  teams = collections.OrderedDict()
  for p in sorted(players, key=lambda p: p.team):
    teams.setdefault(p.team, []).append(p)
  sides = list(teams.values())
  if len(sides) < 2:
    sides = [[p] for p in players]
  return "v".join("".join(p.race.value[0] for p in side) for side in sides)
