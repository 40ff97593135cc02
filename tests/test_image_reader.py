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

import io
import tarfile
from pathlib import Path

import pytest

from ecs_image_libs.archive import EntryType
from ecs_image_libs.errors import InvalidInputError
from ecs_image_libs.v1.image import pack_image
from ecs_image_libs.v1.image_reader import read_image_archive
from tests.conftest import TEST_CREATED


class TestReadImageArchive:
    def test_read_packed_image(self, demo_bundle: Path, tmp_path: Path):
        _tarball = tmp_path / "demo.tar"
        _packed = pack_image(demo_bundle, _tarball, "demo:v1", created=TEST_CREATED)
        _layer_hex = _packed.layer_digest.digest_hex
        _config_fname = f"{_packed.config_digest.digest_hex}.json"

        _info = read_image_archive(_tarball)

        assert [(_m.name, _m.kind) for _m in _info.members] == [
            (_layer_hex, EntryType.directory),
            (f"{_layer_hex}/layer.tar", EntryType.file),
            (f"{_layer_hex}/VERSION", EntryType.file),
            (f"{_layer_hex}/json", EntryType.file),
            (_config_fname, EntryType.file),
            ("manifest.json", EntryType.file),
            ("repositories", EntryType.file),
        ]
        assert _info.manifest.entries[0].repo_tags == ["demo:v1"]
        assert _info.manifest.entries[0].config == _config_fname
        assert _info.repositories.lookup("demo", "v1") == _layer_hex
        assert _info.layers[_layer_hex].id == _layer_hex
        assert _info.layers[_layer_hex].created == "2025-01-02T03:04:05+00:00"
        assert _info.image_configs[_config_fname].architecture == "arm64"
        assert _info.image_configs[_config_fname].layer_digests == [_packed.layer_digest]
        assert _info.layer_tar_digests == {_layer_hex: _packed.layer_digest}
        assert _info.verify_layers()

    def test_not_a_tar(self, tmp_path: Path):
        _fpath = tmp_path / "not_a.tar"
        _fpath.write_bytes(b"not a tar archive" * 64)
        with pytest.raises(InvalidInputError):
            read_image_archive(_fpath)

    def test_not_an_image(self, tmp_path: Path):
        _fpath = tmp_path / "plain.tar"
        with tarfile.open(_fpath, "w") as _tar:
            _data = b"hello"
            _member = tarfile.TarInfo("hello.txt")
            _member.size = len(_data)
            _tar.addfile(_member, io.BytesIO(_data))

        with pytest.raises(InvalidInputError):
            read_image_archive(_fpath)
