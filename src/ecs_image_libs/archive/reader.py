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
"""Read a tar stream entry by entry with handler driven backpressure."""

from __future__ import annotations

import io
import logging
import stat
import tarfile
from concurrent.futures import Future
from pathlib import Path
from typing import IO, Any, Callable, Union

from ecs_image_libs.common import StrOrPath

logger = logging.getLogger(__name__)

EntryHandler = Callable[[tarfile.TarInfo, IO[bytes]], Union[Future, Any]]
"""Called with the entry's header and a readable stream of its content.

If the handler returns a `Future`, the reader waits for it to settle before
    advancing to the next entry, a failed future aborts the unpack.
"""


def unpack(source: IO[bytes], handler: EntryHandler) -> int:
    """Read tar stream from <source>, hand each entry to <handler> in order.

    The content stream given to the handler is only valid during the call
        (or until the returned future settles), since the underlying tar
        stream is not seekable.

    Returns the number of entries delivered to <handler>.
    Raises any exception raised by <handler> or set on its returned future.
    """
    _count = 0
    with tarfile.open(fileobj=source, mode="r|*") as tar:
        for _member in tar:
            if _member.isreg() and (_extracted := tar.extractfile(_member)):
                _content: IO[bytes] = _extracted
            else:
                _content = io.BytesIO(b"")

            _res = handler(_member, _content)
            if isinstance(_res, Future):
                _res.result()
            _count += 1
    return _count


def unpack_file(src: StrOrPath, handler: EntryHandler) -> int:
    """Unpack the tar file at <src>, see `unpack` for more details."""
    _src = Path(src)
    _mode = _src.stat().st_mode
    if not (stat.S_ISREG(_mode) or stat.S_ISFIFO(_mode)):
        raise ValueError(f"{_src} is not a regular file or pipe")

    with open(_src, "rb") as _f:
        _count = unpack(_f, handler)
    logger.debug(f"unpacked {_count} entries from {_src}")
    return _count
