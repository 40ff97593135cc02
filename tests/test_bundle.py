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

from ecs_image_libs.errors import InvalidInputError
from ecs_image_libs.v1.bundle import (
    JSRE_MOUNTS,
    copy_into_rootfs,
    create_bundle,
    validate_bundle_name,
)
from ecs_image_libs.v1.consts import ROOTFS_DIRS
from ecs_image_libs.v1.ecsfile import CopyInstruction
from ecs_image_libs.v1.runtime_config.schema import RuntimeConfig
from ecs_image_libs.v1.runtime_config.utils import load_runtime_config


class TestValidateBundleName:
    @pytest.mark.parametrize("_name", ("demo", "demo-app_1.0", "x" * 255))
    def test_valid(self, _name):
        assert validate_bundle_name(_name) == _name

    @pytest.mark.parametrize("_name", ("", ".", "..", "a/b", "x" * 256))
    def test_invalid(self, _name):
        with pytest.raises(InvalidInputError):
            validate_bundle_name(_name)


class TestCreateBundle:
    def test_create_bundle(self, template: RuntimeConfig, tmp_path: Path):
        _bundle = create_bundle(tmp_path / "demo", template)

        _rootfs = _bundle / "rootfs"
        for _dname in ROOTFS_DIRS:
            assert (_rootfs / _dname).is_dir()
        assert (_rootfs / "etc" / "startup.sh").read_text() == "shstack 200000\n"
        assert load_runtime_config(_bundle / "config.json") == template

    def test_custom_shstack(self, template: RuntimeConfig, tmp_path: Path):
        _bundle = create_bundle(tmp_path / "demo", template, startup_shstack=4096)
        assert (_bundle / "rootfs/etc/startup.sh").read_text() == "shstack 4096\n"

    def test_without_startup(self, template: RuntimeConfig, tmp_path: Path):
        _bundle = create_bundle(tmp_path / "demo", template, startup_shstack=None)
        assert not (_bundle / "rootfs/etc/startup.sh").exists()

    def test_already_exists(self, template: RuntimeConfig, tmp_path: Path):
        create_bundle(tmp_path / "demo", template)
        with pytest.raises(InvalidInputError):
            create_bundle(tmp_path / "demo", template)
        create_bundle(tmp_path / "demo", template, exist_ok=True)

    def test_jsre_mounts(self, template: RuntimeConfig, tmp_path: Path):
        _config = template.model_copy(update={"mounts": [*template.mounts, *JSRE_MOUNTS]})
        _bundle = create_bundle(tmp_path / "demo", _config)

        _loaded = load_runtime_config(_bundle / "config.json")
        assert [_m.destination for _m in _loaded.mounts][-2:] == ["/lib", "/bin/javascript"]
        assert all(_m.options == ["rx"] for _m in _loaded.mounts[-2:])


class TestCopyIntoRootfs:
    def test_copy_files_and_dirs(self, template: RuntimeConfig, tmp_path: Path):
        _bundle = create_bundle(tmp_path / "demo", template)
        _src = tmp_path / "src"
        (_src / "assets" / "img").mkdir(parents=True)
        (_src / "assets" / "img" / "logo.png").write_bytes(b"png")
        (_src / "demo").write_bytes(b"elf")
        (_src / "tool").write_bytes(b"tool")

        copy_into_rootfs(
            _bundle,
            [
                CopyInstruction(from_=_src / "demo", to="/apps/demo/demo"),
                CopyInstruction(from_=_src / "assets", to="/apps/assets"),
                CopyInstruction(from_=_src / "tool", to="/bin/"),
            ],
        )

        _rootfs = _bundle / "rootfs"
        assert (_rootfs / "apps/demo/demo").read_bytes() == b"elf"
        assert (_rootfs / "apps/assets/img/logo.png").read_bytes() == b"png"
        assert (_rootfs / "bin/tool").read_bytes() == b"tool"

    def test_copy_missing_source(self, template: RuntimeConfig, tmp_path: Path):
        _bundle = create_bundle(tmp_path / "demo", template)
        with pytest.raises(OSError):
            copy_into_rootfs(
                _bundle, [CopyInstruction(from_=tmp_path / "missing", to="/apps/x")]
            )
