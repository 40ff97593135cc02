# Copyright 2025 TIER IV, INC. All rights reserved.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Streaming tar archive support.

The archive layer is split into three parts:
1. `walker`: lazily walks filesystem trees and produces `WalkEntry`s.
2. `writer`: serializes a sequence of `WalkEntry`s into a tar stream, strictly
    one entry after another.
3. `reader`: reads a tar stream and hands each entry to a caller provided
    handler, only advancing to the next entry after the handler settles.
"""

from .entry import ContentSource, EntryMeta, EntryType, WalkEntry
from .reader import unpack, unpack_file
from .walker import DEFAULT_WALK_OPTIONS, DirWalker, WalkOptions, rebase_to, walkdir
from .writer import pack_entries, pack_paths

__all__ = [
    "DEFAULT_WALK_OPTIONS",
    "ContentSource",
    "DirWalker",
    "EntryMeta",
    "EntryType",
    "WalkEntry",
    "WalkOptions",
    "pack_entries",
    "pack_paths",
    "rebase_to",
    "unpack",
    "unpack_file",
    "walkdir",
]
