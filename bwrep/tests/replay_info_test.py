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
"""Tests for the replay_info input checks."""

import os

from absl.testing import absltest
from absl.testing import parameterized

from bwrep.bin import replay_info


class CheckFileTest(parameterized.TestCase):

  @parameterized.named_parameters(
      ("ok", "game.rep", 2048, None),
      ("upper_case", "GAME.REP", 2048, None),
      ("extension", "game.SC2Replay", 2048, "not a .rep file"),
      ("too_small", "tiny.rep", 10, "too small"),
      ("too_large", "huge.rep", 5000, "too large"),
  )
  def test_check_file(self, name, size, problem):
    path = os.path.join(self.create_tempdir().full_path, name)
    with open(path, "wb") as f:
      f.write(b"\0" * size)
    out = replay_info.check_file(path, 1024, 4096)
    if problem is None:
      self.assertIsNone(out)
    else:
      self.assertIn(problem, out)


if __name__ == "__main__":
  absltest.main()
