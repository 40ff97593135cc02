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
"""Scaffolding of a new ECS bundle."""

from __future__ import annotations

import logging
import os
import re
import shutil
import sys
from pathlib import Path
from typing import Iterable

from ecs_image_libs.common import StrOrPath
from ecs_image_libs.errors import InvalidInputError
from ecs_image_libs.v1.consts import BUNDLE_CONFIG_FNAME, BUNDLE_ROOTFS_DNAME, ROOTFS_DIRS
from ecs_image_libs.v1.ecsfile import CopyInstruction
from ecs_image_libs.v1.runtime_config.schema import MountConfig, RuntimeConfig

logger = logging.getLogger(__name__)

DEFAULT_STARTUP_SHSTACK = 200000
STARTUP_SCRIPT = "etc/startup.sh"
MAX_BUNDLE_NAME_LEN = 255

JSRE_MOUNTS = (
    MountConfig(destination="/lib", source="/lib", options=["rx"]),
    MountConfig(destination="/bin/javascript", source="/bin/javascript", options=["rx"]),
)
"""Mounts for reusing the JSRE from the container host."""

WIN_RESERVED_CHARS = re.compile(r'[<>:"|?*\x00-\x1f]')
WIN_RESERVED_NAMES = re.compile(r"^(con|prn|aux|nul|com\d|lpt\d)(\..*)?$", re.IGNORECASE)


def validate_bundle_name(name: str) -> str:
    """Check <name> is usable as a bundle directory name.

    Raises:
        InvalidInputError on invalid <name>.
    """
    if not name or name in (".", ".."):
        raise InvalidInputError(f"invalid bundle name: {name!r}")
    if len(name) > MAX_BUNDLE_NAME_LEN:
        raise InvalidInputError(f"bundle name too long: {len(name)} characters")
    if "/" in name or (os.altsep and os.altsep in name) or os.sep in name:
        raise InvalidInputError(f"bundle name must not contain path separator: {name!r}")
    if sys.platform == "win32" and (
        WIN_RESERVED_CHARS.search(name) or WIN_RESERVED_NAMES.match(name)
    ):
        raise InvalidInputError(f"bundle name is reserved on Windows: {name!r}")
    return name


def create_bundle(
    bundle: StrOrPath,
    config: RuntimeConfig,
    *,
    startup_shstack: int | None = DEFAULT_STARTUP_SHSTACK,
    exist_ok: bool = False,
) -> Path:
    """Create the bundle directory layout, and write <config> as its config.json.

    Raises:
        InvalidInputError if <bundle> already exists and <exist_ok> is False.
    """
    _bundle = Path(bundle)
    validate_bundle_name(_bundle.absolute().name)
    if _bundle.exists() and not exist_ok:
        raise InvalidInputError(f"directory {_bundle} already exists")

    _rootfs = _bundle / BUNDLE_ROOTFS_DNAME
    _rootfs.mkdir(parents=True, exist_ok=True)
    for _dname in ROOTFS_DIRS:
        (_rootfs / _dname).mkdir(exist_ok=True)
    logger.info(f"created rootfs at {_rootfs}")

    if startup_shstack is not None:
        _startup = _rootfs / STARTUP_SCRIPT
        _startup.parent.mkdir(parents=True, exist_ok=True)
        _startup.write_text(f"shstack {startup_shstack}\n")
        logger.info(f"created {_startup}")

    _config_f = _bundle / BUNDLE_CONFIG_FNAME
    _config_f.write_text(config.export_config())
    logger.info(f"created {_config_f}")
    return _bundle


def copy_into_rootfs(bundle: StrOrPath, copy_files: Iterable[CopyInstruction]) -> None:
    """Copy files or directory trees into the bundle's rootfs."""
    _rootfs = Path(bundle) / BUNDLE_ROOTFS_DNAME
    for _copy in copy_files:
        _dst = _rootfs / _copy.to.lstrip("/")
        if _copy.from_.is_dir():
            shutil.copytree(_copy.from_, _dst, symlinks=True, dirs_exist_ok=True)
        else:
            if _copy.to.endswith("/") or _dst.is_dir():
                _dst = _dst / _copy.from_.name
            _dst.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(_copy.from_, _dst, follow_symlinks=False)
        logger.info(f"copied {_copy.from_} to {_dst}")
