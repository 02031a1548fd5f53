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
"""Per-stage timing for the decode pipeline.

The global `sw` is disabled by default, so decorated stages cost one attribute
check. Tools turn it on with `sw.enable()` and print `str(sw)` at the end.
"""

import collections
import functools
import math
import os
import threading
import time


class Stat(object):
  """Running count, total, extremes and deviation of one timing series."""
  __slots__ = ("num", "min", "max", "sum", "sum_sq")

  def __init__(self):
    self.num = 0
    self.min = float("inf")
    self.max = 0
    self.sum = 0
    self.sum_sq = 0

  def add(self, val):
    self.num += 1
    self.min = min(self.min, val)
    self.max = max(self.max, val)
    self.sum += val
    self.sum_sq += val**2

  def merge(self, other):
    self.num += other.num
    self.min = min(self.min, other.min)
    self.max = max(self.max, other.max)
    self.sum += other.sum
    self.sum_sq += other.sum_sq

  @property
  def avg(self):
    return 0 if self.num == 0 else self.sum / self.num

  @property
  def dev(self):
    """Standard deviation."""
    if self.num == 0:
      return 0
    return math.sqrt(max(0, self.sum_sq / self.num - self.avg**2))

  def __str__(self):
    if self.num == 0:
      return "num=0"
    return "sum: %.4f, avg: %.4f, dev: %.4f, min: %.4f, max: %.4f, num: %d" % (
        self.sum, self.avg, self.dev, self.min, self.max, self.num)


class _Timer(object):
  __slots__ = ("_sw", "_start")

  def __init__(self, stopwatch, name):
    self._sw = stopwatch
    self._sw.push(name)

  def __enter__(self):
    self._start = time.time()

  def __exit__(self, unused_exception_type, unused_exc_value, unused_traceback):
    self._sw.add(self._sw.pop(), time.time() - self._start)


class _NoTimer(object):
  __slots__ = ()

  def __enter__(self):
    pass

  def __exit__(self, unused_exception_type, unused_exc_value, unused_traceback):
    pass


_no_timer = _NoTimer()


class StopWatch(object):
  """Tracks call count and latency of named, possibly nested, blocks.

  Usage:
      sw = stopwatch.StopWatch()
      with sw("sniff"):
        sniff()
      @sw.decorate
      def read_container():
        pass
      print(sw)

  Nested blocks are reported as "outer.inner". Stacks are per thread, so one
  stopwatch can time decodes running in parallel.
  """

  def __init__(self, enabled=True):
    self._times = collections.defaultdict(Stat)
    self._lock = threading.Lock()
    self._local = threading.local()
    self.enabled = enabled

  def enable(self):
    self.enabled = True

  def disable(self):
    self.enabled = False

  def __call__(self, name):
    if not self.enabled:
      return _no_timer
    return _Timer(self, name)

  def decorate(self, name_or_func):
    """Time every call of a function, by its own name or an explicit one.

      @sw.decorate
      def func(): ...

      @sw.decorate("name")
      def other_func(): ...

    Setting BWREP_NO_STOPWATCH in the environment skips the wrapping.
    """
    if os.environ.get("BWREP_NO_STOPWATCH"):
      return name_or_func if callable(name_or_func) else lambda func: func

    def decorator(name, func):
      @functools.wraps(func)
      def _stopwatch(*args, **kwargs):
        with self(name):
          return func(*args, **kwargs)
      return _stopwatch
    if callable(name_or_func):
      return decorator(name_or_func.__name__, name_or_func)
    return lambda func: decorator(name_or_func, func)

  def push(self, name):
    try:
      self._local.stack.append(name)
    except AttributeError:
      self._local.stack = [name]

  def pop(self):
    stack = self._local.stack
    name = ".".join(stack)
    stack.pop()
    return name

  def add(self, name, duration):
    with self._lock:
      self._times[name].add(duration)

  def clear(self):
    with self._lock:
      self._times.clear()

  def __getitem__(self, name):
    return self._times[name]

  @property
  def times(self):
    return self._times

  def str(self, threshold=0.1):
    """A table of the timings, skipping rows under `threshold` percent."""
    if not self._times:
      return ""
    total = sum(s.sum for k, s in self._times.items() if "." not in k)
    table = [["", "% total", "sum", "avg", "dev", "min", "max", "num"]]
    for k, v in sorted(self._times.items()):
      percent = 100 * v.sum / (total or 1)
      if percent > threshold:
        table.append([k, "%.2f%%" % percent] +
                     ["%.4f" % x for x in (v.sum, v.avg, v.dev, v.min, v.max)] +
                     ["%d" % v.num])
    widths = [max(len(row[i]) for row in table) for i in range(len(table[0]))]
    lines = []
    for row in table:
      lines.append("  " + row[0].ljust(widths[0]) + "  " + "  ".join(
          val.rjust(width) for val, width in zip(row[1:], widths[1:])))
    return "\n".join(lines) + "\n"

  def __str__(self):
    return self.str()


# Disabled until a tool asks for a profile.
sw = StopWatch(enabled=False)
