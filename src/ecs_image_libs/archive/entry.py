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

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import IO, Callable, Union

DEFAULT_FILE_MODE = 0o644
DEFAULT_DIR_MODE = 0o755

ContentData = Union[bytes, str, IO[bytes]]
ContentSource = Union[ContentData, Callable[[], ContentData], None]
"""Content of an entry.

Either the data itself(bytes, or an opened readable binary stream), or a
    callable that produces the data when the entry is actually serialized.
For symlink, the content is the link target.
"""


class EntryType(str, Enum):
    file = "file"
    symlink = "symlink"
    directory = "directory"


@dataclass(frozen=True)
class EntryMeta:
    size: int = 0
    mode: int = DEFAULT_FILE_MODE
    mtime: int = 0
    uid: int = 0
    gid: int = 0
    link_target: Union[str, None] = None


@dataclass(frozen=True)
class WalkEntry:
    path: str
    """Path of the entry in the archive, already rebased."""
    kind: EntryType
    meta: EntryMeta
    content: ContentSource = None

    @classmethod
    def from_bytes(
        cls,
        path: str,
        data: bytes | str,
        *,
        mode: int = DEFAULT_FILE_MODE,
        mtime: int = 0,
    ) -> WalkEntry:
        """Create an in-memory regular file entry."""
        if isinstance(data, str):
            data = data.encode("utf-8")
        return cls(
            path=path,
            kind=EntryType.file,
            meta=EntryMeta(size=len(data), mode=mode, mtime=mtime),
            content=data,
        )

    @classmethod
    def dir_entry(
        cls, path: str, *, mode: int = DEFAULT_DIR_MODE, mtime: int = 0
    ) -> WalkEntry:
        return cls(
            path=path,
            kind=EntryType.directory,
            meta=EntryMeta(mode=mode, mtime=mtime),
        )
