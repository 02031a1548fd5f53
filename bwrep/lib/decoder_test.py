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
"""Tests for decoder."""

import threading

from absl.testing import absltest
from absl.testing import parameterized

from bwrep.lib import decoder
from bwrep.lib import errors
from bwrep.lib import opcodes
from bwrep.lib import races
from bwrep.lib import rep_writer
from bwrep.lib import sniffer


def _replay(cmds, frame_count=2880, players=None, **kwargs):
  players = players or [
      rep_writer.PlayerSpec("Flash", race=1),
      rep_writer.PlayerSpec("Bisu", race=2, player_id=1, team=2),
  ]
  header = rep_writer.header_bytes(frame_count, players)
  return rep_writer.write_replay(header, rep_writer.encode_commands(cmds),
                                 **kwargs)


class DecoderTest(parameterized.TestCase):

  @parameterized.named_parameters(
      ("remastered", sniffer.Version.REMASTERED, rep_writer.ZLIB),
      ("classic_pkware", sniffer.Version.CLASSIC, rep_writer.PKWARE),
      ("classic_stored", sniffer.Version.CLASSIC, rep_writer.STORED),
  )
  def test_decode(self, version, compression):
    cmds = [
        rep_writer.train(100, 0, rep_writer.SCV),
        rep_writer.train(110, 1, rep_writer.PROBE),
        rep_writer.build(400, 1, rep_writer.PYLON),
        rep_writer.chat(500, 0, "gg"),
    ]
    result = decoder.decode(_replay(cmds, version=version,
                                    compression=compression))
    self.assertEqual(result.header.version, version)
    self.assertEqual(result.header.map_name, "Fighting Spirit")
    self.assertEqual([(p.name, p.race) for p in result.players],
                     [("Flash", races.Race.TERRAN),
                      ("Bisu", races.Race.PROTOSS)])
    self.assertEqual(list(result.commands), cmds)
    self.assertEqual([e.unit for e in result.build_orders[1]],
                     ["Probe", "Pylon"])
    self.assertEqual(result.metrics[0].command_count, 2)

  def test_chat_sender_is_a_slot_index(self):
    players = [
        rep_writer.PlayerSpec("Flash", race=1, player_id=1),
        rep_writer.PlayerSpec("Bisu", race=2, player_id=0, team=2),
    ]
    cmds = [
        rep_writer.chat(100, 0, "gl hf", player_id=0),
        rep_writer.chat(200, 1, "gg", player_id=1),
        rep_writer.chat(300, 7, "?", player_id=0),
    ]
    result = decoder.decode(_replay(cmds, players=players))
    self.assertEqual([c.slot_id for c in result.commands], [1, 0, 0])
    self.assertEqual(result.metrics[1].command_count, 1)

  def test_errors_carry_the_format(self):
    data = _replay([rep_writer.command(10, 0, 0xFF, b"")])
    with self.assertRaises(errors.UnknownOpcode) as cm:
      decoder.decode(data)
    context = cm.exception.context
    self.assertEqual(context["version"], sniffer.Version.REMASTERED)
    self.assertEqual(context["compression"], sniffer.Compression.ZLIB)
    self.assertEqual(context["offset"], 6)
    self.assertIn("version=REMASTERED", str(cm.exception))

  def test_no_players(self):
    data = _replay([], players=[rep_writer.PlayerSpec("", type=0)])
    with self.assertRaises(errors.NoPlayersFound):
      decoder.decode(data)

  def test_command_for_absent_player(self):
    data = _replay([rep_writer.train(10, 4, rep_writer.SCV)])
    with self.assertRaises(errors.InvalidCommandStream):
      decoder.decode(data)

  def test_frame_bound(self):
    data = _replay([rep_writer.train(3000, 0, rep_writer.SCV)])
    with self.assertRaises(errors.InvalidCommandStream):
      decoder.decode(data)
    result = decoder.Decoder(check_frame_bound=False).decode(data)
    self.assertLen(result.commands, 1)

  def test_eapm_window(self):
    cmds = [rep_writer.train(f, 0, rep_writer.SCV) for f in (0, 10)]
    data = _replay(cmds)
    self.assertEqual(decoder.decode(data).metrics[0].effective_count, 1)
    self.assertEqual(
        decoder.Decoder(eapm_window=5).decode(data).metrics[0].effective_count,
        2)

  def test_cancel(self):
    cancel = threading.Event()
    cancel.set()
    with self.assertRaises(errors.DecodeCancelled) as cm:
      decoder.decode(_replay([]), cancel)
    self.assertEqual(cm.exception.stage, "sniffing")

  def test_skipped_opcodes(self):
    cmds = [rep_writer.command(5, 0, opcodes.SYNC, b"\0" * 6),
            rep_writer.train(6, 0, rep_writer.SCV)]
    result = decoder.decode(_replay(cmds))
    self.assertEqual([c.opcode for c in result.commands], [opcodes.TRAIN])

  def test_shared_decoder(self):
    d = decoder.Decoder()
    data = _replay([rep_writer.train(10, 0, rep_writer.SCV)])
    self.assertEqual(d.decode(data), d.decode(data))


if __name__ == "__main__":
  absltest.main()
