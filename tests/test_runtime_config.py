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

import json
from pathlib import Path

import pytest

from ecs_image_libs.errors import InvalidBundleError
from ecs_image_libs.v1.runtime_config.schema import RuntimeConfig
from ecs_image_libs.v1.runtime_config.utils import (
    load_config_template,
    load_runtime_config,
)


class TestConfigTemplate:
    def test_bundled_template(self, template: RuntimeConfig):
        assert template.arch == "noarch"
        assert template.platform.os == "sylixos"
        assert template.root.path == "rootfs"
        assert template.process.cwd is None
        assert template.sylixos.resources["cpu"]["highestPrio"] == 160
        assert template.sylixos.network == {"ftpdEnable": False, "telnetdEnable": False}

    def test_custom_template_json(self, tmp_path: Path):
        _fpath = tmp_path / "template.json"
        _fpath.write_text('{"platform": {"arch": "arm"}, "hostname": "custom"}')

        _template = load_config_template(_fpath)
        assert _template.arch == "arm"
        assert _template.hostname == "custom"
        assert _template.mounts == []

    def test_custom_template_yaml(self, tmp_path: Path):
        _fpath = tmp_path / "template.yml"
        _fpath.write_text("platform:\n  arch: riscv64\n")
        assert load_config_template(_fpath).arch == "riscv64"


class TestRuntimeConfig:
    def test_unknown_fields_preserved(self):
        _config = RuntimeConfig.model_validate(
            {
                "ociVersion": "1.0.0",
                "platform": {"arch": "arm", "variant": "v7"},
                "annotations": {"vendor": "acme"},
            }
        )
        _exported = json.loads(_config.export_config())
        assert _exported["ociVersion"] == "1.0.0"
        assert _exported["platform"] == {"os": "sylixos", "arch": "arm", "variant": "v7"}
        assert _exported["annotations"] == {"vendor": "acme"}

    def test_export_config_is_indented(self, template: RuntimeConfig):
        _exported = template.export_config()
        assert _exported.startswith('{\n  "ociVersion": "1.0.0"')
        assert "cwd" not in json.loads(_exported)["process"]

    def test_export_load_round_trip(self, template: RuntimeConfig, tmp_path: Path):
        _fpath = tmp_path / "config.json"
        _fpath.write_text(template.export_config())
        assert load_runtime_config(_fpath) == template


class TestLoadRuntimeConfig:
    def test_missing(self, tmp_path: Path):
        with pytest.raises(InvalidBundleError):
            load_runtime_config(tmp_path / "config.json")

    def test_invalid_json(self, tmp_path: Path):
        _fpath = tmp_path / "config.json"
        _fpath.write_text("{not json")
        with pytest.raises(InvalidBundleError):
            load_runtime_config(_fpath)

    def test_invalid_field(self, tmp_path: Path):
        _fpath = tmp_path / "config.json"
        _fpath.write_text('{"process": {"user": {"uid": "root"}}}')
        with pytest.raises(InvalidBundleError):
            load_runtime_config(_fpath)

    def test_invalid_bundle_error_is_value_error(self, tmp_path: Path):
        with pytest.raises(ValueError):
            load_runtime_config(tmp_path / "config.json")
