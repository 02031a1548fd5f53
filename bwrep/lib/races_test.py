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
"""Tests for races."""

from absl.testing import absltest
from absl.testing import parameterized

from bwrep.lib import errors
from bwrep.lib import header
from bwrep.lib import races

Race = races.Race


def _record(index, name, type_=2, race=1, player_id=None, team=1):
  return header.SlotRecord(index=index,
                           player_id=index if player_id is None else player_id,
                           type=type_, race=race, team=team, name=name,
                           color=index)


class ResolveRaceTest(parameterized.TestCase):

  @parameterized.named_parameters(
      ("name_wins", dict(race_name="Zerg", race_id=1, text="toss", code=100),
       Race.ZERG),
      ("name_case", dict(race_name=" protoss "), Race.PROTOSS),
      ("bad_name_falls_through", dict(race_name="Xel'Naga", race_id=2),
       Race.PROTOSS),
      ("id_zerg", dict(race_id=0), Race.ZERG),
      ("id_terran", dict(race_id=1), Race.TERRAN),
      ("id_protoss", dict(race_id=2), Race.PROTOSS),
      ("id_random", dict(race_id=6), Race.RANDOM),
      ("id_beats_text", dict(race_id=1, text="zerg"), Race.TERRAN),
      ("text_terr", dict(text="Terran"), Race.TERRAN),
      ("text_toss", dict(text="Toss player"), Race.PROTOSS),
      ("text_letter", dict(text="z"), Race.ZERG),
      ("text_random", dict(text="R"), Race.RANDOM),
      ("text_beats_code", dict(text="prot", code=102), Race.PROTOSS),
      ("code_100", dict(code=100), Race.TERRAN),
      ("code_101", dict(code=101), Race.PROTOSS),
      ("code_102", dict(code=102), Race.ZERG),
      ("code_5", dict(code=5), Race.TERRAN),
      ("code_3", dict(code=3), Race.PROTOSS),
      ("code_4", dict(code=4), Race.ZERG),
      ("unknown_text", dict(text="xyz"), Race.UNKNOWN),
      ("unknown_code", dict(race_id=9, code=9), Race.UNKNOWN),
      ("nothing", dict(), Race.UNKNOWN),
  )
  def test_resolve_race(self, kwargs, expected):
    self.assertEqual(races.resolve_race(**kwargs), expected)

  def test_header_byte_as_id_and_code(self):
    # 6 is Random as a header id, which outranks Protoss as a code.
    self.assertEqual(races.resolve_race(race_id=6, code=6), Race.RANDOM)
    self.assertEqual(races.resolve_race(race_id=7, code=7), Race.ZERG)


class ResolvePlayersTest(parameterized.TestCase):

  def test_populated_slots(self):
    records = [
        _record(0, "Flash", race=1),
        _record(1, "", race=2),  # Open slot with no name.
        _record(2, "Bisu", race=2, team=2),
        _record(3, "Observer", type_=6),
        _record(4, "Computer", type_=1, race=0, team=2),
    ]
    players = races.resolve_players(records)
    self.assertEqual([p.name for p in players], ["Flash", "Bisu", "Computer"])
    self.assertEqual([p.slot_id for p in players], [0, 2, 4])
    self.assertEqual([p.race for p in players],
                     [Race.TERRAN, Race.PROTOSS, Race.ZERG])
    self.assertEqual(players[2].kind, races.PlayerKind.COMPUTER)
    self.assertEqual(players[1].team, 2)

  def test_slot_id_is_the_player_id(self):
    players = races.resolve_players([_record(0, "Flash", player_id=5)])
    self.assertEqual(players[0].slot_id, 5)

  def test_duplicate_player_id(self):
    players = races.resolve_players([_record(0, "A", player_id=1),
                                     _record(1, "B", player_id=1)])
    self.assertEqual([p.name for p in players], ["A"])

  def test_no_players(self):
    with self.assertRaises(errors.NoPlayersFound):
      races.resolve_players([_record(i, "", type_=0) for i in range(12)])

  def test_unknown_race_is_kept(self):
    players = races.resolve_players([_record(0, "Flash", race=42)])
    self.assertEqual(players[0].race, Race.UNKNOWN)

  def test_to_dict(self):
    player = races.resolve_players([_record(1, "Bisu", race=2)])[0]
    self.assertEqual(player.to_dict(), {
        "slotId": 1, "name": "Bisu", "race": "Protoss", "team": 1,
        "color": "Blue", "kind": "Human"})

  @parameterized.named_parameters(
      ("one_on_one", [(1, Race.TERRAN), (2, Race.PROTOSS)], "TvP"),
      ("same_team", [(1, Race.ZERG), (1, Race.TERRAN)], "ZvT"),
      ("teams", [(2, Race.ZERG), (1, Race.PROTOSS), (2, Race.ZERG),
                 (1, Race.TERRAN)], "PTvZZ"),
      ("unknown", [(1, Race.UNKNOWN), (2, Race.RANDOM)], "UvR"),
      ("single", [(1, Race.TERRAN)], "T"),
  )
  def test_matchup(self, sides, expected):
    players = [races.Player(slot_id=i, name="p%d" % i, race=race, team=team,
                            color=i, kind=races.PlayerKind.HUMAN)
               for i, (team, race) in enumerate(sides)]
    self.assertEqual(races.matchup(players), expected)


if __name__ == "__main__":
  absltest.main()
