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
"""Export the bits of lib a caller is likely to need.

Typical use:
  result = decoder.Decoder().decode(replay_bytes)
  print(result.metrics[0].apm)
"""

from bwrep.lib.decoder import Decoder
from bwrep.lib.errors import DecodeError
from bwrep.lib.replay import ReplayResult
