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
"""Module setuptools script."""

from setuptools import setup

description = """bwrep - StarCraft: Brood War replay decoder

bwrep decodes StarCraft: Brood War `.rep` replays, both the Classic (pre 1.21,
PKWare DCL compressed) and Remastered (1.21+, zlib compressed) containers. It
extracts the header, the players and the full command stream, and derives APM,
EAPM and per player build orders from them.

It ships a `bwrep_replay_info` tool that prints a replay as text, JSON or CSV,
or indexes a directory of replays in parallel.
"""

setup(
    name='bwrep',
    version='1.0.0',
    description='StarCraft: Brood War replay decoder and metrics.',
    long_description=description,
    license='Apache License, Version 2.0',
    keywords='StarCraft Brood War replay',
    packages=[
        'bwrep',
        'bwrep.bin',
        'bwrep.lib',
        'bwrep.tests',
    ],
    python_requires='>=3.7',
    install_requires=[
        'absl-py>=0.1.0',
        'numpy>=1.10',
    ],
    extras_require={
        'test': ['pytest'],
    },
    entry_points={
        'console_scripts': [
            'bwrep_replay_info = bwrep.bin.replay_info:entry_point',
            'bwrep_gen_test_replay = bwrep.bin.gen_test_replay:entry_point',
        ],
    },
    classifiers=[
        'Development Status :: 4 - Beta',
        'Environment :: Console',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: Apache Software License',
        'Operating System :: POSIX :: Linux',
        'Operating System :: Microsoft :: Windows',
        'Operating System :: MacOS :: MacOS X',
        'Programming Language :: Python :: 3',
        'Topic :: Games/Entertainment :: Real Time Strategy',
    ],
)
