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
"""Extract per player build orders from the command stream."""

import collections
import enum

from absl import logging
import numpy as np

from bwrep.lib import binary
from bwrep.lib import opcodes
from bwrep.lib import stopwatch
from bwrep.lib import units

sw = stopwatch.sw

# Every race starts with 4 workers.
START_SUPPLY = 4
ZERG_BUILDINGS = range(130, 150)


class Action(enum.Enum):
  BUILD = "Build"
  TRAIN = "Train"
  MORPH = "Morph"
  RESEARCH = "Research"
  UPGRADE = "Upgrade"


class BuildOrderEntry(collections.namedtuple("BuildOrderEntry", [
    "frame", "time", "supply", "unit", "action", "supply_estimated"])):
  """One production command.

  `supply` is the used supply when the command was issued. It is counted from
  the known costs of earlier commands, unless `supply_estimated` is set, in
  which case it is interpolated between the surrounding counted entries.
  """
  __slots__ = ()

  def to_dict(self):
    return {
        "frame": self.frame,
        "time": self.time,
        "supply": self.supply,
        "supplyEstimated": self.supply_estimated,
        "action": self.action.value,
        "unit": self.unit,
    }


def format_time(frame, fps):
  seconds = int(frame / fps) if fps else 0
  return "%02d:%02d" % divmod(seconds, 60)


def _unit_cost(unit_id, morph=False):
  """Supply change of producing `unit_id`, or None if unknown."""
  if morph and unit_id in units.MORPH_SUPPLY:
    return units.MORPH_SUPPLY[unit_id]
  unit = units.UNITS.get(unit_id)
  return unit.supply if unit else None


def _production(cmd):
  """Return (action, name, supply cost or None) for a production command."""
  p = cmd.payload
  if cmd.opcode == opcodes.BUILD:
    unit_id = binary.u16_at(p, 5)
    cost = 0 if unit_id in units.UNITS else None
    if unit_id in ZERG_BUILDINGS and cost is not None:
      cost = -1  # The drone becomes the building.
    return Action.BUILD, units.unit_name(unit_id), cost
  if cmd.opcode == opcodes.TRAIN:
    unit_id = binary.u16_at(p, 0)
    return Action.TRAIN, units.unit_name(unit_id), _unit_cost(unit_id)
  if cmd.opcode == opcodes.UNIT_MORPH:
    unit_id = binary.u16_at(p, 0)
    return Action.MORPH, units.unit_name(unit_id), _unit_cost(unit_id, True)
  if cmd.opcode == opcodes.BUILDING_MORPH:
    unit_id = binary.u16_at(p, 0)
    return Action.MORPH, units.unit_name(unit_id), _unit_cost(unit_id)
  if cmd.opcode == opcodes.TECH:
    return Action.RESEARCH, units.tech_name(p[0]), None
  if cmd.opcode == opcodes.UPGRADE:
    return Action.UPGRADE, units.upgrade_name(p[0]), None
  return None


def build_order(commands, fps):
  """The build order of one player's commands."""
  rows = []
  used = START_SUPPLY
  for cmd in commands:
    production = _production(cmd)
    if production is None:
      continue
    action, name, cost = production
    if cost is None:
      rows.append((cmd.frame, None, name, action))
    else:
      rows.append((cmd.frame, used, name, action))
      used = max(0, used + cost)

  anchors = [(0, START_SUPPLY)] + [(f, s) for f, s, _, _ in rows
                                   if s is not None]
  estimates = np.interp([f for f, _, _, _ in rows],
                        [f for f, _ in anchors], [s for _, s in anchors])
  return [
      BuildOrderEntry(
          frame=frame,
          time=format_time(frame, fps),
          supply=supply if supply is not None else int(round(estimate)),
          unit=name,
          action=action,
          supply_estimated=supply is None)
      for (frame, supply, name, action), estimate in zip(rows, estimates)]


@sw.decorate
def extract_build_orders(commands, players, fps):
  """Return a dict of slot id to the list of `BuildOrderEntry` of each player.

  Every player gets an entry, possibly an empty list.
  """
  by_slot = collections.defaultdict(list)
  for cmd in commands:
    by_slot[cmd.slot_id].append(cmd)
  out = {p.slot_id: build_order(by_slot.get(p.slot_id, []), fps)
         for p in players}
  logging.debug("Build order lengths: %s",
                {k: len(v) for k, v in out.items()})
  return out
