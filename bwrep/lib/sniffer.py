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
"""Classify a replay buffer by container version and compression scheme."""

import collections
import enum

from bwrep.lib import binary
from bwrep.lib import errors


class Version(enum.Enum):
  CLASSIC = 1     # Up to 1.20, "reRS", PKWare DCL compressed chunks.
  REMASTERED = 2  # 1.21 onwards, "seRS", zlib compressed chunks.


class Compression(enum.Enum):
  RAW = 1
  ZLIB = 2
  PKWARE = 3


class FormatTag(collections.namedtuple("FormatTag", [
    "version", "compression", "payload_offset"])):
  """What the sniffer learned about a buffer, and where the payload starts."""
  __slots__ = ()


REMASTERED_MAGIC = b"seRS"
CLASSIC_MAGIC = b"reRS"
MAGIC_OFFSET = 12
# Checksum, chunk count, chunk length and the 4 byte replay id.
ID_SECTION_SIZE = 16
SEARCH_WINDOW = 128
ZLIB_MARKERS = (b"\x78\x01", b"\x78\x9c", b"\x78\xda", b"\x78\x5e")

CHUNK_SIZE = 8192
HEADER_SIZE = 0x279


def find_zlib_marker(data, start=ID_SECTION_SIZE, end=SEARCH_WINDOW):
  """Return the offset of the first zlib stream marker in [start, end)."""
  window = bytes(data[start:end])
  hits = [i for i in (window.find(m) for m in ZLIB_MARKERS) if i >= 0]
  return start + min(hits) if hits else None


def is_pkware_header(chunk):
  """PKWare DCL streams start with the literal mode (0, 1) and dict bits."""
  return len(chunk) >= 2 and chunk[0] in (0, 1) and 4 <= chunk[1] <= 6


def sniff(data):
  """Return the `FormatTag` of a replay buffer.

  Args:
    data: The whole replay as bytes.

  Returns:
    A `FormatTag`.

  Raises:
    errors.TruncatedInput: The buffer holds no more than the id section.
    errors.NoCompressedPayloadFound: A Remastered buffer without a zlib stream
        in the search window.
    errors.UnsupportedFormat: A Classic buffer with an unrecognisable header
        chunk.
  """
  if len(data) <= ID_SECTION_SIZE:
    raise errors.TruncatedInput(
        "Replay must be longer than %d bytes, got %d" % (
            ID_SECTION_SIZE, len(data)), offset=len(data))

  if bytes(data[MAGIC_OFFSET:MAGIC_OFFSET + 4]) == REMASTERED_MAGIC:
    offset = find_zlib_marker(data)
    if offset is None:
      raise errors.NoCompressedPayloadFound(
          "No zlib stream marker in the first %d bytes" % SEARCH_WINDOW,
          version=Version.REMASTERED, offset=ID_SECTION_SIZE)
    return FormatTag(Version.REMASTERED, Compression.ZLIB, offset)
  return _sniff_classic(data)


def _sniff_classic(data):
  """Walk the replay id section and classify the first header chunk."""
  reader = binary.ByteReader(data)
  reader.skip(4)  # checksum
  chunks = reader.u32()
  if chunks > len(data) // 4:
    raise errors.UnsupportedFormat(
        "Implausible chunk count %d in the replay id section" % chunks,
        version=Version.CLASSIC, offset=4)
  for _ in range(chunks):
    reader.skip(reader.u32())

  reader.skip(4)  # header checksum
  if reader.u32() == 0:
    raise errors.UnsupportedFormat("Header section has no chunks",
                                   version=Version.CLASSIC,
                                   offset=reader.offset - 4)
  length = reader.u32()
  offset = reader.offset
  chunk = bytes(data[offset:offset + 2])

  if length == min(HEADER_SIZE, CHUNK_SIZE):
    compression = Compression.RAW
  elif offset < SEARCH_WINDOW and chunk in ZLIB_MARKERS:
    compression = Compression.ZLIB
  elif is_pkware_header(chunk):
    compression = Compression.PKWARE
  else:
    raise errors.UnsupportedFormat(
        "Unrecognised header chunk starting with %s" % chunk.hex(),
        version=Version.CLASSIC, offset=offset)
  return FormatTag(Version.CLASSIC, compression, offset)
