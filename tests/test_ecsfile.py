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

from pathlib import Path

import pytest

from ecs_image_libs.errors import EcsfileError
from ecs_image_libs.v1.ecsfile import (
    CopyInstruction,
    load_ecsfile,
    parse_directives,
    parse_ecsfile,
)
from ecs_image_libs.v1.runtime_config.schema import MountConfig, RuntimeConfig

ECSFILE = """\
# build demo app
ARCH arm64

MOUNT /data   /mnt/data rw  rx
ENV LANG=C
CMD /apps/demo --verbose
WORKDIR /apps
COPY build/demo /apps/demo
ADD assets /apps/assets/
HEALTHCHECK none
"""

LIC_MOUNT = MountConfig(destination="/etc/lic", source="/etc/lic", options=["rx"])


class TestParseDirectives:
    def test_skip_comments_and_blank_lines(self):
        _directives = parse_directives("# comment\n\n  ARCH   arm \r\nCMD a  b\r")
        assert [(_d.cmd, _d.args, _d.lineno) for _d in _directives] == [
            ("ARCH", ["arm"], 3),
            ("CMD", ["a", "b"], 4),
        ]


class TestParseEcsfile:
    def test_parse_ecsfile(self, template: RuntimeConfig, tmp_path: Path):
        _res = parse_ecsfile(ECSFILE, tmp_path, template)
        _config = _res.config

        assert _config.arch == "arm64"
        assert _config.mounts == [
            *template.mounts,
            MountConfig(destination="/data", source="/mnt/data", options=["rw", "rx"]),
            LIC_MOUNT,
        ]
        assert _config.process.env == [*template.process.env, "LANG=C"]
        assert _config.process.args == ["/apps/demo", "--verbose"]
        assert _config.process.cwd == "/apps"
        assert _res.copy_files == (
            CopyInstruction(from_=tmp_path / "build" / "demo", to="/apps/demo"),
            CopyInstruction(from_=tmp_path / "assets", to="/apps/assets/"),
        )

    def test_template_not_mutated(self, template: RuntimeConfig, tmp_path: Path):
        _before = template.model_dump()
        parse_ecsfile(ECSFILE, tmp_path, template)
        assert template.model_dump() == _before

    def test_default_mount_not_duplicated(self, template: RuntimeConfig, tmp_path: Path):
        _res = parse_ecsfile("MOUNT /etc/lic /etc/lic rx\n", tmp_path, template)
        assert _res.config.mounts.count(LIC_MOUNT) == 1

    def test_empty_ecsfile(self, template: RuntimeConfig, tmp_path: Path):
        _res = parse_ecsfile("", tmp_path, template)
        assert _res.copy_files == ()
        assert _res.config.mounts == [*template.mounts, LIC_MOUNT]

    def test_load_ecsfile(self, template: RuntimeConfig, tmp_path: Path):
        _ecsfile = tmp_path / "project" / "Ecsfile"
        _ecsfile.parent.mkdir()
        _ecsfile.write_text("COPY bin/app /apps/app\n")

        _res = load_ecsfile(_ecsfile, template)
        assert _res.copy_files[0].from_ == tmp_path / "project" / "bin" / "app"


class TestEcsfileErrors:
    @pytest.mark.parametrize(
        "_text, _code, _lineno",
        (
            ("ARCH sparc\n", EcsfileError.ARCH, 1),
            ("ARCH\n", EcsfileError.ARCH, 1),
            ("ARCH arm\nMOUNT /only_dest\n", EcsfileError.MOUNT, 2),
            ("\n\nENV FOO\n", EcsfileError.ENV, 3),
            ("ENV A=b=c\n", EcsfileError.ENV, 1),
            ("ENV =value\n", EcsfileError.ENV, 1),
            ("ENV A=1 B=2\n", EcsfileError.ENV, 1),
            ("ENV A=hello world\n", EcsfileError.ENV, 1),
            ("# copy\nCOPY only_src\n", EcsfileError.COPY, 2),
            ("ADD a b c\n", EcsfileError.COPY, 1),
        ),
    )
    def test_malformed_directive(
        self, template: RuntimeConfig, tmp_path: Path, _text, _code, _lineno
    ):
        with pytest.raises(EcsfileError) as exc_info:
            parse_ecsfile(_text, tmp_path, template)
        assert exc_info.value.code == _code
        assert exc_info.value.lineno == _lineno
        assert str(exc_info.value).endswith(f"at line {_lineno}")

    def test_ecsfile_error_is_value_error(self, template: RuntimeConfig, tmp_path: Path):
        with pytest.raises(ValueError):
            parse_ecsfile("ARCH sparc", tmp_path, template)
