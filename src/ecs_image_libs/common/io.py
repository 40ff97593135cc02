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
"""Common shared helper functions for IO."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import IO

logger = logging.getLogger(__name__)

DEFAULT_FILE_CHUNK_SIZE = 1024**2  # 1MiB


def drain_stream(_stream: IO[bytes], chunk_size: int = DEFAULT_FILE_CHUNK_SIZE) -> int:
    """Read <_stream> to its end and close it, return the number of bytes dropped."""
    _dropped = 0
    try:
        while _chunk := _stream.read(chunk_size):
            _dropped += len(_chunk)
    finally:
        _stream.close()
    return _dropped


def cleanup_path(_fpath: Path) -> bool:
    """Remove <_fpath>, report the failure with a warning instead of raising.

    Returns True when <_fpath> no longer exists.
    """
    try:
        if _fpath.is_dir() and not _fpath.is_symlink():
            shutil.rmtree(_fpath)
        else:
            _fpath.unlink(missing_ok=True)
        return True
    except OSError as e:
        logger.warning(f"failed to cleanup {_fpath}: {e!r}")
        return False
