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
"""A thread pool for decoding many replays in parallel under a time limit."""

import threading

from concurrent import futures

from absl import logging

from bwrep.lib import decoder as decoder_lib
from bwrep.lib import errors

# How long cancelled decodes get to reach their next stage boundary.
CANCEL_GRACE = 5


class RunParallel(object):
  """Run decodes in parallel, cancelling those that outlive the timeout."""

  def __init__(self, timeout=None, workers=None):
    self._timeout = timeout
    self._max_workers = workers
    self._executor = None
    self._workers = 0

  def decode_all(self, buffers, decoder=None):
    """Decode many replays.

    A failed decode doesn't stop the others: its slot in the output holds the
    `errors.DecodeError` instead of a result. Decodes still running when the
    timeout fires are cancelled and report `errors.DecodeCancelled`.

    Args:
      buffers: An iterable of replay buffers.
      decoder: The `decoder.Decoder` to use, a default one if None.

    Returns:
      A list holding a `ReplayResult` or a `DecodeError` per buffer, in order.
    """
    decoder = decoder or decoder_lib.Decoder()
    buffers = list(buffers)
    if not buffers:
      return []
    cancels = [threading.Event() for _ in buffers]

    def decode(data, cancel):
      try:
        return decoder.decode(data, cancel)
      except errors.DecodeError as e:
        return e

    self._grow(len(buffers))
    futs = [self._executor.submit(decode, data, cancel)
            for data, cancel in zip(buffers, cancels)]
    _, not_done = futures.wait(futs, self._timeout)
    if not_done:
      logging.warning("Cancelling %d of %d decodes after %ss", len(not_done),
                      len(futs), self._timeout)
      for f, cancel in zip(futs, cancels):
        if f in not_done:
          cancel.set()
          f.cancel()
      _, stuck = futures.wait(not_done, CANCEL_GRACE)
      if stuck:
        logging.warning("%d decodes ignored cancellation, replacing the pool",
                        len(stuck))
        self.shutdown(False)

    out = []
    for i, f in enumerate(futs):
      if f.cancelled() or not f.done():
        out.append(errors.DecodeCancelled("completion", index=i))
      else:
        out.append(f.result())
    return out

  def _grow(self, n):
    n = min(n, self._max_workers or n)
    if n > self._workers:  # Lazy init and grow as needed.
      self.shutdown()
      self._workers = n
      self._executor = futures.ThreadPoolExecutor(self._workers)

  def shutdown(self, wait=True):
    if self._executor:
      self._executor.shutdown(wait)
      self._executor = None
      self._workers = 0

  def __del__(self):
    self.shutdown()
