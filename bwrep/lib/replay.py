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
"""The decoded replay and its JSON friendly form."""

import collections

from bwrep.lib import errors
from bwrep.lib import races
from bwrep.lib import stopwatch

sw = stopwatch.sw


class ReplayResult(collections.namedtuple("ReplayResult", [
    "header", "players", "commands", "build_orders", "metrics", "partial",
    "error"])):
  """A decoded replay.

  `build_orders` and `metrics` are keyed by player slot id. A `partial` result
  comes from `fallback.BestEffortPolicy`: its header and commands may be
  missing and `error` describes the failure it stands in for.
  """
  __slots__ = ()

  def __new__(cls, header, players, commands, build_orders, metrics,
              partial=False, error=None):
    return super(ReplayResult, cls).__new__(
        cls, header, tuple(players), tuple(commands), build_orders, metrics,
        partial, error)

  def player(self, slot_id):
    for p in self.players:
      if p.slot_id == slot_id:
        return p
    raise KeyError("No player with slot id %s" % slot_id)

  @property
  def matchup(self):
    return races.matchup(self.players)

  def to_dict(self, include_commands=False):
    """Return a JSON serializable dict, keyed by slot id strings."""
    out = {
        "header": self.header.to_dict() if self.header else None,
        "players": [p.to_dict() for p in self.players],
        "matchup": self.matchup,
        "metrics": {str(k): v.to_dict() for k, v in self.metrics.items()},
        "buildOrders": {str(k): [e.to_dict() for e in v]
                        for k, v in self.build_orders.items()},
        "partial": self.partial,
    }
    if self.error:
      out["error"] = self.error
    if include_commands:
      out["commands"] = [c.to_dict() for c in self.commands]
    return out


@sw.decorate
def assemble(header, players, commands, build_orders, metrics):
  """Check that everything refers to known players and build the result.

  Raises:
    errors.InvalidCommandStream: A command or build order names a slot with no
        player.
  """
  slots = {p.slot_id for p in players}
  for cmd in commands:
    if cmd.slot_id not in slots:
      raise errors.InvalidCommandStream(
          "command %s for slot %d which holds no player" % (
              cmd.name, cmd.slot_id), frame=cmd.frame)
  for slot_id in list(build_orders) + list(metrics):
    if slot_id not in slots:
      raise errors.InvalidCommandStream(
          "results for slot %d which holds no player" % slot_id)
  return ReplayResult(
      header, players, commands,
      {k: tuple(v) for k, v in build_orders.items()}, metrics)
