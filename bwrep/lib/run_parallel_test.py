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
"""Tests for lib.run_parallel."""

import threading
from unittest import mock

from absl.testing import absltest

from bwrep.lib import errors
from bwrep.lib import rep_writer
from bwrep.lib import run_parallel


def _replay(name):
  header = rep_writer.header_bytes(1440, [rep_writer.PlayerSpec(name)])
  return rep_writer.write_replay(
      header,
      rep_writer.encode_commands([rep_writer.train(10, 0, rep_writer.SCV)]))


class _BlockingDecoder(object):
  """Waits for its cancel event, like a decode that takes forever."""

  def __init__(self):
    self.started = threading.Event()

  def decode(self, data, cancel=None):
    del data
    self.started.set()
    cancel.wait(10)
    raise errors.DecodeCancelled("the header")


class _StuckDecoder(object):
  """Ignores its cancel event until `release` is set."""

  def __init__(self):
    self.release = threading.Event()

  def decode(self, data, cancel=None):
    del data, cancel
    self.release.wait(30)
    raise errors.DecodeCancelled("the header")


class RunParallelTest(absltest.TestCase):

  def test_decode_all(self):
    pool = run_parallel.RunParallel(timeout=30, workers=2)
    out = pool.decode_all([_replay("Flash"), b"junk", _replay("Bisu")])
    self.assertLen(out, 3)
    self.assertEqual(out[0].players[0].name, "Flash")
    self.assertIsInstance(out[1], errors.TruncatedInput)
    self.assertEqual(out[2].players[0].name, "Bisu")
    self.assertEqual(pool.decode_all([]), [])
    pool.shutdown()

  def test_decode_all_timeout(self):
    decoder = _BlockingDecoder()
    pool = run_parallel.RunParallel(timeout=0.1)
    out = pool.decode_all([b"a", b"b"], decoder)
    self.assertTrue(decoder.started.is_set())
    self.assertLen(out, 2)
    for result in out:
      self.assertIsInstance(result, errors.DecodeCancelled)
    pool.shutdown()

  @mock.patch.object(run_parallel, "CANCEL_GRACE", 0.1)
  def test_stuck_decodes_do_not_block_the_next_batch(self):
    stuck = _StuckDecoder()
    self.addCleanup(stuck.release.set)
    pool = run_parallel.RunParallel(timeout=2, workers=1)
    self.addCleanup(pool.shutdown, False)
    out = pool.decode_all([b"a"], stuck)
    self.assertIsInstance(out[0], errors.DecodeCancelled)
    out = pool.decode_all([_replay("Flash")])
    self.assertEqual(out[0].players[0].name, "Flash")


if __name__ == "__main__":
  absltest.main()
