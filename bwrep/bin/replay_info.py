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
"""Print information about one replay, or a CSV index of a directory of them.

    bwrep_replay_info path/to/game.rep --output=json
    bwrep_replay_info path/to/replays/ --parallel=8 --timeout=20
"""

import json
import os

from absl import app
from absl import flags
from absl import logging

from bwrep.lib import decoder as decoder_lib
from bwrep.lib import errors
from bwrep.lib import fallback
from bwrep.lib import run_parallel
from bwrep.lib import stopwatch

FLAGS = flags.FLAGS
flags.DEFINE_enum("output", "text", ["text", "json", "csv"],
                  "How to print the replay information.")
flags.DEFINE_float("timeout", 30, "Seconds before a decode is cancelled.")
flags.DEFINE_integer("parallel", 4, "How many replays to decode at once.")
flags.DEFINE_bool("best_effort", False,
                  "Print a partial result, with players guessed from the file "
                  "name, for replays that fail to decode.")
flags.DEFINE_bool("commands", False, "Include all commands in json output.")
flags.DEFINE_integer("min_size", 1024, "Smallest replay file size in bytes.")
flags.DEFINE_integer("max_size", 10 * 1024 * 1024,
                     "Largest replay file size in bytes.")
flags.DEFINE_bool("profile", False, "Print timings of the decode stages.")
flags.DEFINE_integer("eapm_window", 24,
                     "Frames within which a repeated command isn't effective.")

REPLAY_EXTENSION = ".rep"


def check_file(path, min_size, max_size):
  """Return why `path` can't be a replay, or None if it may be one."""
  if not path.lower().endswith(REPLAY_EXTENSION):
    return "not a %s file" % REPLAY_EXTENSION
  size = os.path.getsize(path)
  if size < min_size:
    return "too small (%d bytes, need %d)" % (size, min_size)
  if size > max_size:
    return "too large (%d bytes, max %d)" % (size, max_size)
  return None


def _load(path):
  with open(path, "rb") as f:
    return f.read()


def _csv_row(file_name, result):
  out = [file_name]
  if result.header:
    out += [result.header.engine_version, result.header.map_name,
            result.header.duration]
  else:
    out += ["", "", ""]
  out += [len(result.players), result.matchup]
  for player in result.players[:2]:
    m = result.metrics.get(player.slot_id)
    out += [player.name, player.race.value, m.apm if m else "",
            m.eapm if m else ""]
  return ",".join(str(s) for s in out)


_CSV_COLUMNS = (
    "filename",
    "version",
    "map_name",
    "duration",
    "players",
    "matchup",
    "P1-name",
    "P1-race",
    "P1-apm",
    "P1-eapm",
    "P2-name",
    "P2-race",
    "P2-apm",
    "P2-eapm",
)


def _print_text(result):
  """Print a human readable summary."""
  header = result.header
  if header:
    print("Map:", header.map_name)
    print("Version:", header.engine_version)
    print("Type:", header.game_type.display_name)
    print("Started:", header.start_time.isoformat())
    print("Duration: %s (%d frames)" % (header.duration, header.frame_count))
  print("Matchup:", result.matchup)
  if result.partial:
    print("Partial result:", result.error)
  print("-" * 60)
  for player in result.players:
    m = result.metrics.get(player.slot_id)
    print("%-25s %-8s team %d" % (player.name, player.race.value, player.team),
          "APM %d EAPM %d (%d%%)" % (m.apm, m.eapm, m.efficiency) if m else "")
  for player in result.players:
    entries = result.build_orders.get(player.slot_id, ())
    if not entries:
      continue
    print("-" * 60)
    print("Build order of %s:" % player.name)
    for e in entries:
      print("  %s %3d%s %-8s %s" % (e.time, e.supply,
                                    "~" if e.supply_estimated else " ",
                                    e.action.value, e.unit))


def _decoder():
  return decoder_lib.Decoder(eapm_window=FLAGS.eapm_window)


def _replay_info(path):
  """Decode one replay and print it."""
  problem = check_file(path, FLAGS.min_size, FLAGS.max_size)
  if problem:
    print("Must be a replay: %s is %s." % (path, problem))
    return 1

  data = _load(path)
  decoder = _decoder()
  try:
    if FLAGS.best_effort:
      result = fallback.BestEffortPolicy(decoder).decode(data, path)
    else:
      result = decoder.decode(data)
  except errors.DecodeError as e:
    logging.error("Failed to decode %s: %s", path, e)
    return 1

  if FLAGS.output == "json":
    print(json.dumps(result.to_dict(include_commands=FLAGS.commands),
                     indent=2, ensure_ascii=False))
  elif FLAGS.output == "csv":
    print(",".join(_CSV_COLUMNS))
    print(_csv_row(os.path.basename(path), result))
  else:
    _print_text(result)
  return 0


def _replay_index(replay_dir):
  """Print a CSV line for each replay in a directory."""
  print("Checking:", replay_dir)
  paths = []
  bad_replays = []
  for name in sorted(os.listdir(replay_dir)):
    path = os.path.join(replay_dir, name)
    if not os.path.isfile(path):
      continue
    problem = check_file(path, FLAGS.min_size, FLAGS.max_size)
    if problem:
      if name.lower().endswith(REPLAY_EXTENSION):
        bad_replays.append("%s: %s" % (name, problem))
      continue
    paths.append(path)
  print("Found %s replays" % len(paths))

  decoder = _decoder()
  policy = fallback.BestEffortPolicy(decoder)
  pool = run_parallel.RunParallel(timeout=FLAGS.timeout,
                                  workers=FLAGS.parallel)
  try:
    print("-" * 60)
    print(",".join(_CSV_COLUMNS))
    for start in range(0, len(paths), FLAGS.parallel):
      batch = paths[start:start + FLAGS.parallel]
      results = pool.decode_all([_load(p) for p in batch], decoder)
      for path, result in zip(batch, results):
        name = os.path.basename(path)
        if FLAGS.best_effort and isinstance(result, policy.triggers):
          result = policy.partial(path, result)
        if isinstance(result, errors.DecodeError):
          bad_replays.append("%s: %s" % (name, result))
          continue
        print(_csv_row(name, result))
  except KeyboardInterrupt:
    pass
  finally:
    pool.shutdown(wait=False)
    if bad_replays:
      print("\n")
      print("Replays with errors:")
      print("\n".join(bad_replays))
  return 0


def main(argv):
  if len(argv) < 2:
    raise app.UsageError("No replay directory or path specified.")
  if len(argv) > 2:
    raise app.UsageError("Too many arguments provided.")
  path = argv[1]

  if FLAGS.profile:
    stopwatch.sw.enable()
  try:
    if os.path.isdir(path):
      return _replay_index(path)
    return _replay_info(path)
  except KeyboardInterrupt:
    pass
  finally:
    if FLAGS.profile:
      print(stopwatch.sw)


def entry_point():  # Needed so the setup.py scripts work.
  app.run(main)


if __name__ == "__main__":
  app.run(main)
