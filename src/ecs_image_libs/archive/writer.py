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
"""Serialize `WalkEntry` sequences into a tar stream."""

from __future__ import annotations

import io
import logging
import tarfile
from typing import IO, Iterable, Sequence

from ecs_image_libs.common import StrOrPath
from ecs_image_libs.common.io import DEFAULT_FILE_CHUNK_SIZE, drain_stream
from ecs_image_libs.errors import UnsupportedEntryError

from .entry import ContentSource, EntryType, WalkEntry
from .walker import DEFAULT_WALK_OPTIONS, WalkOptions, walkdir

logger = logging.getLogger(__name__)

TAR_FORMAT = tarfile.PAX_FORMAT


def _resolve_content(content: ContentSource) -> bytes | IO[bytes] | None:
    if callable(content):
        content = content()  # deferred read
    if isinstance(content, str):
        return content.encode("utf-8")
    return content


def _drain_pending(content: ContentSource) -> None:
    """Drain an already opened content stream, so the upstream is not stalled."""
    if content is not None and not callable(content) and hasattr(content, "read"):
        drain_stream(content)  # type: ignore[arg-type]


def _tarinfo(entry: WalkEntry) -> tarfile.TarInfo:
    _meta = entry.meta
    _info = tarfile.TarInfo(entry.path)
    _info.mode = _meta.mode & 0o7777
    _info.mtime = int(_meta.mtime)
    _info.uid = _meta.uid
    _info.gid = _meta.gid
    return _info


def _pack_file(
    tar: tarfile.TarFile, info: tarfile.TarInfo, entry: WalkEntry
) -> None:
    _data = _resolve_content(entry.content)
    info.type = tarfile.REGTYPE
    if _data is None:
        info.size = 0
        tar.addfile(info)
        return

    if isinstance(_data, (bytes, bytearray)):
        info.size = len(_data)
        tar.addfile(info, io.BytesIO(_data))
        return

    # for stream, the size is taken from the entry, tarfile will only copy
    #   exactly <size> bytes and raise if the stream ends earlier.
    info.size = entry.meta.size
    with _data:
        tar.addfile(info, _data)


def _pack_symlink(
    tar: tarfile.TarFile, info: tarfile.TarInfo, entry: WalkEntry
) -> None:
    _target = _resolve_content(entry.content)
    if _target is None:
        _target = entry.meta.link_target
    elif not isinstance(_target, (bytes, bytearray)):
        with _target:
            _target = _target.read()

    if isinstance(_target, (bytes, bytearray)):
        _target = bytes(_target).decode("utf-8", "surrogateescape")
    if not _target:
        raise UnsupportedEntryError(f"symlink without target: {entry.path}")

    info.type = tarfile.SYMTYPE
    info.size = 0
    info.linkname = _target
    tar.addfile(info)


def _pack_entry(tar: tarfile.TarFile, entry: WalkEntry) -> None:
    _info = _tarinfo(entry)
    if entry.kind == EntryType.directory:
        _info.type = tarfile.DIRTYPE
        _info.size = 0
        tar.addfile(_info)
    elif entry.kind == EntryType.symlink:
        _pack_symlink(tar, _info, entry)
    elif entry.kind == EntryType.file:
        _pack_file(tar, _info, entry)
    else:
        _drain_pending(entry.content)
        raise UnsupportedEntryError(
            f"unsupported entry type {entry.kind}: {entry.path}"
        )


def pack_entries(
    sink: IO[bytes],
    entries: Iterable[WalkEntry],
    *,
    bufsize: int = DEFAULT_FILE_CHUNK_SIZE,
) -> int:
    """Pack <entries> as tar stream into <sink>, returns the number of entries packed.

    The entries are written strictly in the order they are produced, one entry
        is fully written before the next one is requested from <entries>.
    NOTE that <sink> is NOT closed by this function.
    """
    _count = 0
    with tarfile.open(
        fileobj=sink, mode="w|", format=TAR_FORMAT, bufsize=bufsize
    ) as tar:
        for _entry in entries:
            _pack_entry(tar, _entry)
            _count += 1
    return _count


def pack_paths(
    dest: StrOrPath,
    sources: Sequence[StrOrPath],
    *,
    options: WalkOptions = DEFAULT_WALK_OPTIONS,
) -> int:
    """Pack the files and directories at <sources> into tar file <dest>."""
    with open(dest, "wb") as _dst:
        return pack_entries(_dst, walkdir(sources, options))
