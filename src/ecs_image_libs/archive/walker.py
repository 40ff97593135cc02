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
"""Lazily walk filesystem trees and produce archive entries."""

from __future__ import annotations

import logging
import os
import stat
from collections import deque
from dataclasses import dataclass
from functools import partial
from pathlib import Path, PurePath
from typing import Callable, Deque, Iterable, Iterator, List, Sequence, Tuple, Union

from ecs_image_libs.common import StrOrPath

from .entry import EntryMeta, EntryType, WalkEntry

logger = logging.getLogger(__name__)

PathTransform = Callable[[str], str]
ChildrenOrder = Callable[[List[os.DirEntry]], Iterable[os.DirEntry]]


def files_first(entries: List[os.DirEntry]) -> List[os.DirEntry]:
    """Order sibling entries with non-directories first, then by name."""
    return sorted(entries, key=lambda _e: (_e.is_dir(follow_symlinks=False), _e.name))


def rebase_to(root: StrOrPath) -> PathTransform:
    """Return a path transform that makes paths relative to <root>.

    <root> itself is rebased to an empty path, which the walker doesn't yield.
    """
    _root = Path(root)

    def _transform(_path: str) -> str:
        _rebased = PurePath(_path).relative_to(_root).as_posix()
        return "" if _rebased == "." else _rebased

    return _transform


@dataclass(frozen=True)
class WalkOptions:
    include_empty_file: bool = True
    include_empty_dir: bool = True
    """Yield entries for directories, not only for files under them."""
    recursive: bool = True
    depth_first: bool = True
    """Descend into a directory before visiting its next sibling."""
    dir_after_children: bool = False
    """Yield a directory after its children instead of before."""
    defer_file_read: bool = True
    """Open regular files only when the entry is actually serialized."""
    path_transform: Union[PathTransform, None] = None
    children_order: ChildrenOrder = files_first


DEFAULT_WALK_OPTIONS = WalkOptions()

# pending work item: (True, WalkEntry) for a directory entry waiting for its
#   children to be yielded first, (False, fpath) for a path to be visited.
_WorkItem = Tuple[bool, Union[str, WalkEntry]]


class _WalkCursor(Iterator[WalkEntry]):
    """Explicit, state-holding cursor over the walk.

    Only the pending siblings of the directories on the current walk path
        are kept in memory, the entries are produced one at a time.
    """

    def __init__(self, paths: Sequence[str], options: WalkOptions) -> None:
        self._options = options
        self._pending: Deque[_WorkItem] = deque((False, _p) for _p in paths)

    def __iter__(self) -> _WalkCursor:
        return self

    def __next__(self) -> WalkEntry:
        while self._pending:
            _is_entry, _item = self._pending.popleft()
            if _is_entry:
                assert isinstance(_item, WalkEntry)
                return _item

            assert isinstance(_item, str)
            if (_entry := self._visit(_item)) is not None:
                return _entry
        raise StopIteration

    def _entry_name(self, fpath: str) -> str:
        if _transform := self._options.path_transform:
            return _transform(fpath)
        return PurePath(fpath).as_posix()

    def _schedule(self, items: List[_WorkItem]) -> None:
        if self._options.depth_first:
            self._pending.extendleft(reversed(items))
        else:
            self._pending.extend(items)

    def _visit(self, fpath: str) -> WalkEntry | None:
        _options = self._options
        _stat = os.lstat(fpath)
        _name = self._entry_name(fpath)
        _meta = EntryMeta(
            size=_stat.st_size,
            mode=stat.S_IMODE(_stat.st_mode),
            mtime=int(_stat.st_mtime),
            uid=_stat.st_uid,
            gid=_stat.st_gid,
        )

        if stat.S_ISREG(_stat.st_mode):
            if _stat.st_size == 0:
                if not _options.include_empty_file:
                    return None
                return WalkEntry(path=_name, kind=EntryType.file, meta=_meta)

            if _options.defer_file_read:
                _content = partial(open, fpath, "rb")
            else:
                _content = open(fpath, "rb")
            return WalkEntry(
                path=_name, kind=EntryType.file, meta=_meta, content=_content
            )

        if stat.S_ISLNK(_stat.st_mode):
            _target = os.readlink(fpath)
            return WalkEntry(
                path=_name,
                kind=EntryType.symlink,
                meta=EntryMeta(
                    mode=_meta.mode,
                    mtime=_meta.mtime,
                    uid=_meta.uid,
                    gid=_meta.gid,
                    link_target=_target,
                ),
                content=_target,
            )

        if stat.S_ISDIR(_stat.st_mode):
            _dir_entry = None
            if _name and _options.include_empty_dir:
                _dir_entry = WalkEntry(
                    path=_name,
                    kind=EntryType.directory,
                    meta=EntryMeta(
                        mode=_meta.mode, mtime=_meta.mtime, uid=_meta.uid, gid=_meta.gid
                    ),
                )

            _items: List[_WorkItem] = []
            if _options.recursive:
                with os.scandir(fpath) as _it:
                    _children = _options.children_order(list(_it))
                _items = [(False, os.path.join(fpath, _c.name)) for _c in _children]

            if _dir_entry is not None and _options.dir_after_children:
                _items.append((True, _dir_entry))
                _dir_entry = None
            self._schedule(_items)
            return _dir_entry

        logger.debug(f"skip unsupported file {fpath}: {stat.filemode(_stat.st_mode)}")
        return None


class DirWalker(Iterable[WalkEntry]):
    """A lazy sequence of `WalkEntry` over <paths>.

    Every call to `iter` starts a new walk from the beginning. A walk is not
        resumable once abandoned. Any filesystem error aborts the walk and is
        raised to the consumer.
    """

    def __init__(
        self, paths: Sequence[StrOrPath], options: WalkOptions = DEFAULT_WALK_OPTIONS
    ) -> None:
        self.paths = [os.path.normpath(_p) for _p in paths]
        self.options = options

    def __iter__(self) -> Iterator[WalkEntry]:
        return _WalkCursor(self.paths, self.options)


def walkdir(
    paths: Sequence[StrOrPath] | StrOrPath,
    options: WalkOptions = DEFAULT_WALK_OPTIONS,
) -> DirWalker:
    if isinstance(paths, (str, os.PathLike)):
        paths = [paths]
    if not paths or not all(isinstance(_p, (str, os.PathLike)) for _p in paths):
        raise ValueError("paths must be a non-empty list of file or directory names")
    return DirWalker(paths, options)
