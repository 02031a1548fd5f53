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
"""Decode a replay buffer into a `ReplayResult`.

    decoder = Decoder()
    result = decoder.decode(open("game.rep", "rb").read())
    print(result.header.map_name, result.metrics[0].apm)

Every failure raises a subclass of `errors.DecodeError`; nothing is guessed.
See `fallback.BestEffortPolicy` for a caller side best effort mode.
"""

from absl import logging

from bwrep.lib import build_order
from bwrep.lib import command_stream
from bwrep.lib import decompress
from bwrep.lib import errors
from bwrep.lib import header as header_lib
from bwrep.lib import metrics as metrics_lib
from bwrep.lib import races
from bwrep.lib import replay
from bwrep.lib import sniffer
from bwrep.lib import stopwatch

sw = stopwatch.sw


def _check_cancel(cancel, stage):
  if cancel is not None and cancel.is_set():
    raise errors.DecodeCancelled(stage)


class Decoder(object):
  """Decodes replays. Holds only configuration, so it is safe to share."""

  def __init__(self, eapm_window=metrics_lib.EAPM_WINDOW,
               check_frame_bound=True):
    """Create a decoder.

    Args:
      eapm_window: Frames within which a repeated command isn't effective.
      check_frame_bound: Reject command blocks past the header's frame count.
    """
    self._eapm_window = eapm_window
    self._check_frame_bound = check_frame_bound

  @sw.decorate
  def decode(self, data, cancel=None):
    """Decode one replay.

    Args:
      data: The whole `.rep` file as bytes.
      cancel: An optional `threading.Event`. Setting it makes the decode raise
          `errors.DecodeCancelled` at the next stage boundary.

    Returns:
      A `replay.ReplayResult`.

    Raises:
      errors.DecodeError: The replay couldn't be decoded.
    """
    tag = None
    try:
      _check_cancel(cancel, "sniffing")
      tag = sniffer.sniff(data)
      logging.debug("Sniffed %s/%s, payload at 0x%x", tag.version.name,
                    tag.compression.name, tag.payload_offset)

      _check_cancel(cancel, "decompression")
      container = decompress.read_container(data, tag)

      _check_cancel(cancel, "the header")
      header, records = header_lib.decode_header(container.header.data,
                                                 tag.version)
      players = races.resolve_players(records)
      ids = {p.slot_id for p in players}
      senders = {r.index: r.player_id for r in records
                 if r.name and r.player_id in ids}

      _check_cancel(cancel, "the command stream")
      commands = command_stream.decode_commands(
          container.commands.data,
          header.frame_count if self._check_frame_bound else None,
          cancel, senders)

      _check_cancel(cancel, "the metrics")
      fps = header.frames_per_second
      metrics = metrics_lib.compute_metrics(
          commands, players, header.frame_count, fps, self._eapm_window)
      build_orders = build_order.extract_build_orders(commands, players, fps)
      return replay.assemble(header, players, commands, build_orders, metrics)
    except errors.DecodeError as e:
      if tag is not None:
        e.add_context(version=tag.version, compression=tag.compression)
      raise


def decode(data, cancel=None, **kwargs):
  """Decode one replay with a `Decoder(**kwargs)`."""
  return Decoder(**kwargs).decode(data, cancel)
