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
"""Tests for replay."""

import json

from absl.testing import absltest

from bwrep.lib import build_order
from bwrep.lib import errors
from bwrep.lib import header
from bwrep.lib import metrics
from bwrep.lib import races
from bwrep.lib import rep_writer
from bwrep.lib import replay
from bwrep.lib import sniffer


def _parts(cmds):
  h, records = header.decode_header(
      rep_writer.header_bytes(1440, [
          rep_writer.PlayerSpec("Flash", race=1),
          rep_writer.PlayerSpec("Jaedong", race=0, player_id=1, team=2)]),
      sniffer.Version.CLASSIC)
  players = races.resolve_players(records)
  return (h, players, cmds,
          build_order.extract_build_orders(cmds, players, 24),
          metrics.compute_metrics(cmds, players, 1440, 24))


class AssembleTest(absltest.TestCase):

  def test_assemble(self):
    cmds = [rep_writer.train(10, 0, rep_writer.SCV),
            rep_writer.unit_morph(20, 1, rep_writer.DRONE)]
    result = replay.assemble(*_parts(cmds))
    self.assertFalse(result.partial)
    self.assertIsNone(result.error)
    self.assertIsInstance(result.commands, tuple)
    self.assertIsInstance(result.build_orders[0], tuple)
    self.assertEqual(result.player(1).name, "Jaedong")
    self.assertEqual(result.matchup, "TvZ")
    with self.assertRaises(KeyError):
      result.player(7)

  def test_command_for_missing_slot(self):
    cmds = [rep_writer.train(10, 5, rep_writer.SCV)]
    with self.assertRaises(errors.InvalidCommandStream) as cm:
      replay.assemble(*_parts(cmds))
    self.assertEqual(cm.exception.context["frame"], 10)

  def test_results_for_missing_slot(self):
    h, players, cmds, build_orders, m = _parts([])
    build_orders[9] = []
    with self.assertRaises(errors.InvalidCommandStream):
      replay.assemble(h, players, cmds, build_orders, m)

  def test_to_dict(self):
    cmds = [rep_writer.train(10, 0, rep_writer.SCV)]
    result = replay.assemble(*_parts(cmds))
    d = result.to_dict()
    self.assertCountEqual(
        d.keys(),
        ["header", "players", "matchup", "metrics", "buildOrders", "partial"])
    self.assertEqual(d["matchup"], "TvZ")
    self.assertEqual(d["metrics"]["0"]["actions"]["macro"], 1)
    self.assertEqual(d["metrics"]["1"]["eapmTimeline"], [0])
    self.assertCountEqual(d["metrics"].keys(), ["0", "1"])
    self.assertEqual(d["buildOrders"]["0"][0]["unit"], "SCV")
    self.assertEqual(d["buildOrders"]["1"], [])
    self.assertEqual(d["metrics"]["0"]["apm"], 1)
    self.assertEqual([p["name"] for p in d["players"]], ["Flash", "Jaedong"])
    self.assertNotIn("commands", d)
    json.dumps(d)  # Must be serializable.

    d = result.to_dict(include_commands=True)
    self.assertEqual(d["commands"], [cmds[0].to_dict()])


if __name__ == "__main__":
  absltest.main()
