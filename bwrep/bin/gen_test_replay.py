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
"""Write a synthetic replay, eg for trying out tools without a real game."""

from absl import app
from absl import flags
import numpy as np

from bwrep.lib import races
from bwrep.lib import rep_writer
from bwrep.lib import sniffer

FLAGS = flags.FLAGS
flags.DEFINE_string("output", "test.rep", "Where to write the replay.")
flags.DEFINE_enum("version", "remastered", ["remastered", "classic"],
                  "Which container version to write.")
flags.DEFINE_enum("compression", rep_writer.ZLIB,
                  sorted(rep_writer.COMPRESSORS),
                  "How to compress the header and command sections.")
flags.DEFINE_integer("frames", 24 * 60 * 10, "Game length in frames.")
flags.DEFINE_list("players", ["Flash:T", "Bisu:P"],
                  "Players as name:race, races given as T, P, Z or R.")
flags.DEFINE_integer("commands", 1500, "Commands per player.")
flags.DEFINE_string("map_name", "Fighting Spirit", "The map name.")
flags.DEFINE_integer("seed", 1, "Random seed for the commands.")

_RACE_TO_ID = {race: race_id for race_id, race in races.RACE_IDS.items()}


def parse_player(spec, index):
  """Parse "name:race" into a `rep_writer.PlayerSpec`."""
  name, _, race = spec.partition(":")
  race = races.race_from_text(race) or races.Race.RANDOM
  return rep_writer.PlayerSpec(name, race=_RACE_TO_ID[race], team=index + 1,
                               player_id=index)


def main(argv):
  if len(argv) > 1:
    raise app.UsageError("Too many command-line arguments.")

  players = [parse_player(p, i) for i, p in enumerate(FLAGS.players)]
  version = sniffer.Version[FLAGS.version.upper()]
  header = rep_writer.header_bytes(
      FLAGS.frames, players, map_name=FLAGS.map_name,
      encoding="utf-8" if version == sniffer.Version.REMASTERED else "cp949")
  rng = np.random.RandomState(FLAGS.seed)
  cmds = rep_writer.random_commands(
      rng, [p.player_id for p in players], FLAGS.frames, FLAGS.commands)
  data = rep_writer.write_replay(header, rep_writer.encode_commands(cmds),
                                 version=version,
                                 compression=FLAGS.compression)
  with open(FLAGS.output, "wb") as f:
    f.write(data)
  print("Wrote %d bytes, %d commands to %s" % (len(data), len(cmds),
                                                FLAGS.output))


def entry_point():  # Needed so the setup.py scripts work.
  app.run(main)


if __name__ == "__main__":
  app.run(main)
