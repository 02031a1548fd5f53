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
"""APM, EAPM and related per player activity metrics."""

import collections
import enum
import math

import numpy as np

from bwrep.lib import opcodes
from bwrep.lib import stopwatch

sw = stopwatch.sw

# A repeat of the previous command within this many frames isn't effective.
EAPM_WINDOW = 24


class IneffKind(enum.Enum):
  EFFECTIVE = 0
  NOT_MEANINGFUL = 1
  FAST_REPETITION = 2


def _percent(part, total):
  return int(round(100 * part / total)) if total else 0


class HotkeyUsage(collections.namedtuple("HotkeyUsage", [
    "total", "distribution", "per_minute"])):
  """Hotkey commands of one player, `distribution` keyed by group number."""
  __slots__ = ()

  def to_dict(self):
    return {
        "total": self.total,
        "distribution": {str(k): v for k, v in sorted(
            self.distribution.items())},
        "actionsPerMinute": self.per_minute,
    }


class ActionDistribution(collections.namedtuple("ActionDistribution", [
    "total", "macro", "micro", "other"])):
  """Commands of one player split by `opcodes.ActionCategory`."""
  __slots__ = ()

  @property
  def macro_percentage(self):
    return _percent(self.macro, self.total)

  @property
  def micro_percentage(self):
    return _percent(self.micro, self.total)

  @property
  def other_percentage(self):
    return _percent(self.other, self.total)

  def to_dict(self):
    return {
        "total": self.total,
        "macro": self.macro,
        "micro": self.micro,
        "other": self.other,
        "macroPercentage": self.macro_percentage,
        "microPercentage": self.micro_percentage,
        "otherPercentage": self.other_percentage,
    }


class Metrics(collections.namedtuple("Metrics", [
    "apm", "eapm", "command_count", "effective_count", "efficiency",
    "apm_timeline", "eapm_timeline", "action_counts", "hotkeys", "actions"])):
  """Activity of one player.

  `apm_timeline` and `eapm_timeline` hold the number of all and of effective
  commands in each game minute. `action_counts` maps command names to how
  often they were issued.
  """
  __slots__ = ()

  def to_dict(self):
    return {
        "apm": self.apm,
        "eapm": self.eapm,
        "commandCount": self.command_count,
        "effectiveCount": self.effective_count,
        "efficiency": self.efficiency,
        "apmTimeline": list(self.apm_timeline),
        "eapmTimeline": list(self.eapm_timeline),
        "actionCounts": dict(self.action_counts),
        "hotkeys": self.hotkeys.to_dict(),
        "actions": self.actions.to_dict(),
    }


def game_minutes(frame_count, fps):
  return frame_count / fps / 60 if fps else 0


def per_minute(count, minutes):
  return int(round(count / minutes)) if minutes > 0 else 0


def classify(commands, window=EAPM_WINDOW):
  """Return an `IneffKind` for each command, in order."""
  previous = {}
  kinds = []
  for cmd in commands:
    last = previous.get(cmd.slot_id)
    previous[cmd.slot_id] = cmd
    if cmd.opcode not in opcodes.MEANINGFUL:
      kinds.append(IneffKind.NOT_MEANINGFUL)
    elif (last is not None and last.opcode == cmd.opcode and
          last.payload == cmd.payload and cmd.frame - last.frame <= window):
      kinds.append(IneffKind.FAST_REPETITION)
    else:
      kinds.append(IneffKind.EFFECTIVE)
  return kinds


def apm_timeline(frames, frame_count, fps):
  """Count the commands at `frames` per game minute."""
  frames_per_minute = fps * 60
  minutes = max(1, int(math.ceil(frame_count / frames_per_minute)))
  if not len(frames):  # pylint: disable=g-explicit-length-test
    return np.zeros(minutes, dtype=np.int64)
  index = np.minimum(
      (np.asarray(frames, dtype=np.float64) / frames_per_minute).astype(
          np.int64), minutes - 1)
  return np.bincount(index, minlength=minutes)


def hotkey_usage(commands, minutes):
  """Count the hotkey commands in `commands` per control group."""
  groups = collections.Counter(
      cmd.payload[1] for cmd in commands
      if cmd.opcode == opcodes.HOTKEY and len(cmd.payload) >= 2)
  total = sum(groups.values())
  return HotkeyUsage(total, dict(groups), per_minute(total, minutes))


def action_distribution(commands):
  counts = collections.Counter(opcodes.category(cmd.opcode)
                               for cmd in commands)
  return ActionDistribution(
      total=len(commands),
      macro=counts[opcodes.ActionCategory.MACRO],
      micro=counts[opcodes.ActionCategory.MICRO],
      other=counts[opcodes.ActionCategory.OTHER])


def _timeline(frames, frame_count, fps):
  return tuple(int(n) for n in apm_timeline(frames, frame_count, fps))


@sw.decorate
def compute_metrics(commands, players, frame_count, fps, window=EAPM_WINDOW):
  """Compute `Metrics` for every player.

  Args:
    commands: All `Command`s of the replay, in frame order.
    players: The `Player`s to report on.
    frame_count: The length of the game in frames.
    fps: Frames per game second for the replay's version.
    window: The EAPM repetition window in frames.

  Returns:
    A dict of slot id to `Metrics`, with an entry for every player.
  """
  kinds = classify(commands, window)
  by_slot = collections.defaultdict(list)
  for cmd, kind in zip(commands, kinds):
    by_slot[cmd.slot_id].append((cmd, kind))

  minutes = game_minutes(frame_count, fps)
  out = {}
  for player in players:
    issued = by_slot.get(player.slot_id, [])
    cmds = [cmd for cmd, _ in issued]
    effective = [cmd.frame for cmd, kind in issued
                 if kind == IneffKind.EFFECTIVE]
    out[player.slot_id] = Metrics(
        apm=per_minute(len(cmds), minutes),
        eapm=per_minute(len(effective), minutes),
        command_count=len(cmds),
        effective_count=len(effective),
        efficiency=_percent(len(effective), len(cmds)),
        apm_timeline=_timeline([cmd.frame for cmd in cmds], frame_count, fps),
        eapm_timeline=_timeline(effective, frame_count, fps),
        action_counts=collections.Counter(cmd.name for cmd in cmds),
        hotkeys=hotkey_usage(cmds, minutes),
        actions=action_distribution(cmds))
  return out
