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
"""A caller side best effort mode for replays the decoder rejects.

The decoder never guesses. Tools that would rather show something than
nothing wrap it in a `BestEffortPolicy`, which turns a chosen set of failures
into a result flagged as `partial`, with players guessed from the file name.
"""

import os
import re

from absl import logging

from bwrep.lib import decoder as decoder_lib
from bwrep.lib import errors
from bwrep.lib import races
from bwrep.lib import replay

DEFAULT_TRIGGERS = (
    errors.NoPlayersFound,
    errors.DecompressionFailed,
    errors.TruncatedCommandStream,
)

_VERSUS = re.compile(r"[\s_\-]+vs\.?[\s_\-]+", re.IGNORECASE)


def guess_players(filename):
  """Guess players from a file name like "Flash vs Jaedong.rep"."""
  if not filename:
    return []
  stem = os.path.splitext(os.path.basename(filename))[0]
  names = [n.strip(" _-") for n in _VERSUS.split(stem)]
  if len(names) < 2 or not all(names):
    return []
  return [races.Player(slot_id=i, name=name, race=races.Race.UNKNOWN,
                       team=i + 1, color=i, kind=None)
          for i, name in enumerate(names)]


class BestEffortPolicy(object):
  """Decode, falling back to a partial result on listed failures only."""

  def __init__(self, decoder=None, triggers=DEFAULT_TRIGGERS):
    self._decoder = decoder or decoder_lib.Decoder()
    self._triggers = tuple(triggers)

  @property
  def triggers(self):
    return self._triggers

  def decode(self, data, filename=None, cancel=None):
    """Decode `data`, or return a partial result.

    Args:
      data: The replay buffer.
      filename: The replay's file name, the source of guessed players.
      cancel: An optional `threading.Event`, see `Decoder.decode`.

    Returns:
      A `ReplayResult`. It is `partial` if decoding failed with one of the
      trigger errors.

    Raises:
      errors.DecodeError: Any failure not in the trigger set.
    """
    try:
      return self._decoder.decode(data, cancel)
    except self._triggers as e:
      logging.warning("Falling back to a partial result for %s: %s",
                      filename or "replay", e)
      return self.partial(filename, e)

  def partial(self, filename, error):
    players = guess_players(filename)
    return replay.ReplayResult(
        header=None,
        players=players,
        commands=(),
        build_orders={p.slot_id: () for p in players},
        metrics={},
        partial=True,
        error="%s: %s" % (type(error).__name__, error))
