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
"""Unit test tools."""

from absl import logging
from absl.testing import parameterized

from bwrep.lib import rep_writer
from bwrep.lib import stopwatch


class TestCase(parameterized.TestCase):
  """A test base class that enables stopwatch profiling."""

  def setUp(self):
    super(TestCase, self).setUp()
    stopwatch.sw.clear()
    stopwatch.sw.enable()

  def tearDown(self):
    super(TestCase, self).tearDown()
    s = str(stopwatch.sw)
    if s:
      logging.info("Stop watch profile:\n%s", s)
    stopwatch.sw.disable()


def terran_vs_protoss(frame_count, cmds, **kwargs):
  """A replay of Flash (Terran, slot 0) against Bisu (Protoss, slot 1)."""
  header = rep_writer.header_bytes(frame_count, [
      rep_writer.PlayerSpec("Flash", race=1, team=1, player_id=0),
      rep_writer.PlayerSpec("Bisu", race=2, team=2, player_id=1),
  ], map_name="Fighting Spirit")
  return rep_writer.write_replay(header, rep_writer.encode_commands(cmds),
                                 **kwargs)
