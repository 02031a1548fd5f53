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
"""Walk the sectioned replay container and inflate its chunks.

A replay is a run of sections, each `u32 checksum | u32 chunk count | chunks`
with every chunk stored as `u32 length | bytes`. A chunk inflates to at most
`CHUNK_SIZE` bytes, and one whose stored length equals its inflated length is
kept uncompressed.

The scheme the sniffer picked is tried first. The container doesn't describe
the window bits or the wrapping of its deflate streams reliably across game
versions, so when the first attempt fails or looks wrong a fixed, short list
of alternate inflate variants is tried before giving up.
"""

import collections
import zlib

from absl import logging

from bwrep.lib import binary
from bwrep.lib import errors
from bwrep.lib import pkware
from bwrep.lib import sniffer
from bwrep.lib import stopwatch

sw = stopwatch.sw

CHUNK_SIZE = sniffer.CHUNK_SIZE
MAX_NULL_RATIO = 0.98
MIN_PRINTABLE = 2

ZLIB = "zlib"
RAW_DEFLATE = "raw deflate"
PKWARE = "pkware"
STORED = "stored"


def _zlib(wbits):
  """Inflate a deflate stream, refusing to produce more than `size` bytes."""
  def inflate(chunk, size):
    d = zlib.decompressobj(wbits)
    out = d.decompress(chunk, size + 1)
    if len(out) > size or d.unconsumed_tail:
      raise zlib.error("inflates past %d bytes" % size)
    return out
  return inflate


_INFLATE = {
    ZLIB: _zlib(zlib.MAX_WBITS),
    RAW_DEFLATE: _zlib(-zlib.MAX_WBITS),
    PKWARE: pkware.explode,
    STORED: lambda chunk, size: chunk,
}

_PRIMARY = {
    sniffer.Compression.ZLIB: ZLIB,
    sniffer.Compression.PKWARE: PKWARE,
    sniffer.Compression.RAW: STORED,
}

# Never more than two alternates after the primary variant.
_ALTERNATES = (ZLIB, RAW_DEFLATE)


def inflate_variants(compression):
  primary = _PRIMARY[compression]
  return (primary,) + tuple(v for v in _ALTERNATES if v != primary)[:2]


class SectionProfile(collections.namedtuple("SectionProfile", [
    "name", "text_window"])):
  """How to judge the inflated bytes of one kind of section.

  `text_window` is a (start, end) byte range of the first chunk that holds
  text, or None when the section is pure binary.
  """
  __slots__ = ()


REPLAY_ID = SectionProfile("replay id", None)
HEADER = SectionProfile("header", (0x48, 0xA1))  # host and map names
COMMANDS_SIZE = SectionProfile("command size", None)
COMMANDS = SectionProfile("commands", None)


class Section(collections.namedtuple("Section", [
    "name", "data", "offset", "checksum"])):
  __slots__ = ()


class Container(collections.namedtuple("Container", [
    "replay_id", "header", "commands"])):
  """The inflated sections the decoder needs, in container order."""
  __slots__ = ()


def implausibility(out, expected_size, text_window=None):
  """Return why `out` doesn't look like a real chunk, or None if it does."""
  if len(out) != expected_size:
    return "inflated to %d bytes, expected %d" % (len(out), expected_size)
  if len(out) >= 64 and out.count(0) >= MAX_NULL_RATIO * len(out):
    return "almost entirely null bytes"
  if text_window:
    sample = out[text_window[0]:text_window[1]]
    printable = sum(1 for c in sample if c >= 0x20 and c != 0x7f)
    if printable < MIN_PRINTABLE:
      return "only %d printable bytes in the text window" % printable
  return None


class SectionReader(object):
  """Reads sections in order from a replay buffer."""

  def __init__(self, data, tag):
    self._reader = binary.ByteReader(data)
    self._tag = tag
    self._variants = inflate_variants(tag.compression)

  @property
  def offset(self):
    return self._reader.offset

  def read(self, profile, size):
    """Read and inflate the next section, which should hold `size` bytes."""
    start = self._reader.offset
    checksum = self._reader.u32()
    chunks = self._reader.u32()
    if chunks != -(-size // CHUNK_SIZE):
      raise errors.UnsupportedFormat(
          "The %s section declares %d chunks for %d bytes" % (
              profile.name, chunks, size),
          offset=start, version=self._tag.version)

    out = bytearray()
    for i in range(chunks):
      length = self._reader.u32()
      chunk_offset = self._reader.offset
      chunk = self._reader.read(length)
      expected = min(CHUNK_SIZE, size - len(out))
      out += self._inflate(profile, chunk, expected, chunk_offset,
                           profile.text_window if i == 0 else None)
    logging.debug("Read the %s section at 0x%x: %d chunks, %d bytes",
                  profile.name, start, chunks, len(out))
    return Section(profile.name, bytes(out), start, checksum)

  def read_u32(self, profile):
    """Read a section holding a single u32, eg the command stream size."""
    return binary.u32_at(self.read(profile, 4).data, 0)

  def _inflate(self, profile, chunk, expected, offset, text_window):
    if len(chunk) == expected:
      return chunk

    tried = []
    for variant in self._variants:
      try:
        out = _INFLATE[variant](chunk, expected)
      except (zlib.error, pkware.PKWareError) as e:
        logging.debug("%s failed on the %s chunk at 0x%x: %s",
                      variant, profile.name, offset, e)
        tried.append(variant)
        continue
      problem = implausibility(out, expected, text_window)
      if problem is None:
        if tried:
          logging.warning("Inflated the %s chunk at 0x%x with %s after %s "
                          "failed", profile.name, offset, variant,
                          ", ".join(tried))
        return out
      logging.debug("%s output for the %s chunk at 0x%x rejected: %s",
                    variant, profile.name, offset, problem)
      tried.append(variant)
    raise errors.DecompressionFailed(
        profile.name, tried, offset=offset, version=self._tag.version,
        compression=self._tag.compression)


@sw.decorate
def read_container(data, tag):
  """Inflate the replay id, header and command sections of a replay.

  Args:
    data: The whole replay buffer.
    tag: The `sniffer.FormatTag` of `data`.

  Returns:
    A `Container` of the three `Section`s. The map data and any later
    sections are left unread.
  """
  reader = SectionReader(data, tag)
  replay_id = reader.read(REPLAY_ID, 4)
  header = reader.read(HEADER, sniffer.HEADER_SIZE)
  size = reader.read_u32(COMMANDS_SIZE)
  commands = reader.read(COMMANDS, size)
  if reader.offset < len(data):
    logging.debug("Ignoring %d bytes of map and extension sections",
                  len(data) - reader.offset)
  return Container(replay_id, header, commands)
