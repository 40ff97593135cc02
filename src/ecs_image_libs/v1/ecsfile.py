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
"""Ecsfile, the build directives for creating an ECS bundle.

Supported directives:
    ARCH <name>
    MOUNT <dest> <src> <opts...>
    ENV <KEY=VALUE>
    CMD <args...>
    WORKDIR <path>
    ADD|COPY <src> <dst>

Lines starting with `#` are comments, unknown directives are ignored.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from functools import reduce
from pathlib import Path
from typing import Callable, Dict, List, Tuple

from ecs_image_libs.common import StrOrPath
from ecs_image_libs.errors import EcsfileError
from ecs_image_libs.v1.consts import ARCHITECTURES
from ecs_image_libs.v1.runtime_config.schema import MountConfig, RuntimeConfig

logger = logging.getLogger(__name__)

COMMENT_PREFIX = "#"
LINE_SEP_PATTERN = re.compile(r"\r\n|\r|\n")

DEFAULT_MOUNTS = (MountConfig(destination="/etc/lic", source="/etc/lic", options=["rx"]),)


@dataclass(frozen=True)
class CopyInstruction:
    from_: Path
    to: str


@dataclass(frozen=True)
class EcsfileResult:
    config: RuntimeConfig
    copy_files: Tuple[CopyInstruction, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class _Directive:
    cmd: str
    args: List[str]
    lineno: int


DirectiveHandler = Callable[[EcsfileResult, _Directive, Path], EcsfileResult]


def _update_process(config: RuntimeConfig, **kwargs) -> RuntimeConfig:
    return config.model_copy(update={"process": config.process.model_copy(update=kwargs)})


def _arch(_res: EcsfileResult, _d: _Directive, _basedir: Path) -> EcsfileResult:
    _name = _d.args[0] if _d.args else ""
    if _name not in ARCHITECTURES:
        raise EcsfileError(
            EcsfileError.ARCH, f"ARCH name is unsupported: {_name!r}", lineno=_d.lineno
        )
    _config = _res.config
    _platform = _config.platform.model_copy(update={"arch": _name})
    return EcsfileResult(
        config=_config.model_copy(update={"platform": _platform}),
        copy_files=_res.copy_files,
    )


def _mount(_res: EcsfileResult, _d: _Directive, _basedir: Path) -> EcsfileResult:
    if len(_d.args) < 2:
        raise EcsfileError(
            EcsfileError.MOUNT,
            f"MOUNT requires <dest> and <src>: {' '.join(_d.args)!r}",
            lineno=_d.lineno,
        )
    _dest, _src, *_opts = _d.args
    _mounts = [
        *_res.config.mounts,
        MountConfig(destination=_dest, source=_src, options=_opts),
    ]
    return EcsfileResult(
        config=_res.config.model_copy(update={"mounts": _mounts}),
        copy_files=_res.copy_files,
    )


def _env(_res: EcsfileResult, _d: _Directive, _basedir: Path) -> EcsfileResult:
    _expr = " ".join(_d.args)
    _key, _sep, _ = _expr.partition("=")
    if len(_d.args) != 1 or not _sep or not _key or _expr.count("=") != 1:
        raise EcsfileError(
            EcsfileError.ENV, f"ENV expression is invalid: {_expr!r}", lineno=_d.lineno
        )
    _config = _res.config
    return EcsfileResult(
        config=_update_process(_config, env=[*_config.process.env, _expr]),
        copy_files=_res.copy_files,
    )


def _cmd(_res: EcsfileResult, _d: _Directive, _basedir: Path) -> EcsfileResult:
    return EcsfileResult(
        config=_update_process(_res.config, args=list(_d.args)),
        copy_files=_res.copy_files,
    )


def _workdir(_res: EcsfileResult, _d: _Directive, _basedir: Path) -> EcsfileResult:
    return EcsfileResult(
        config=_update_process(_res.config, cwd=_d.args[0] if _d.args else None),
        copy_files=_res.copy_files,
    )


def _copy(_res: EcsfileResult, _d: _Directive, _basedir: Path) -> EcsfileResult:
    if len(_d.args) != 2:
        raise EcsfileError(
            EcsfileError.COPY,
            f"{_d.cmd} requires exactly <src> and <dst>: {' '.join(_d.args)!r}",
            lineno=_d.lineno,
        )
    _src, _dst = _d.args
    _from = Path(os.path.abspath(_basedir / _src))
    return EcsfileResult(
        config=_res.config,
        copy_files=(*_res.copy_files, CopyInstruction(from_=_from, to=_dst)),
    )


DIRECTIVES: Dict[str, DirectiveHandler] = {
    "ARCH": _arch,
    "MOUNT": _mount,
    "ENV": _env,
    "CMD": _cmd,
    "WORKDIR": _workdir,
    "ADD": _copy,
    "COPY": _copy,
}


def parse_directives(text: str) -> List[_Directive]:
    """Split <text> into directives, with 1-based line number."""
    _res: List[_Directive] = []
    for _idx, _line in enumerate(LINE_SEP_PATTERN.split(text), start=1):
        _line = _line.strip()
        if not _line or _line.startswith(COMMENT_PREFIX):
            continue
        _cmd, *_args = _line.split()
        _res.append(_Directive(cmd=_cmd, args=_args, lineno=_idx))
    return _res


def _with_default_mounts(config: RuntimeConfig) -> RuntimeConfig:
    _mounts = list(config.mounts)
    for _mount in DEFAULT_MOUNTS:
        if _mount not in _mounts:
            _mounts.append(_mount)
    return config.model_copy(update={"mounts": _mounts})


def parse_ecsfile(
    text: str, basedir: StrOrPath, template: RuntimeConfig
) -> EcsfileResult:
    """Apply the directives in <text> over <template>.

    <template> is never mutated, each directive produces a new config.
    Relative sources of ADD/COPY are resolved against <basedir>.

    Raises:
        EcsfileError on malformed directive.
    """
    _basedir = Path(basedir)

    def _apply(_res: EcsfileResult, _d: _Directive) -> EcsfileResult:
        _handler = DIRECTIVES.get(_d.cmd)
        if _handler is None:
            logger.debug(f"ignore unknown directive {_d.cmd!r} at line {_d.lineno}")
            return _res
        return _handler(_res, _d, _basedir)

    _res = reduce(_apply, parse_directives(text), EcsfileResult(config=template))
    return EcsfileResult(
        config=_with_default_mounts(_res.config), copy_files=_res.copy_files
    )


def load_ecsfile(fpath: StrOrPath, template: RuntimeConfig) -> EcsfileResult:
    """Parse Ecsfile at <fpath>, relative paths are resolved against its parent dir."""
    _fpath = Path(fpath)
    return parse_ecsfile(
        _fpath.read_text(encoding="utf-8"), _fpath.absolute().parent, template
    )
