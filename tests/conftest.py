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
"""Shared test fixtures for ecs-image-libs tests."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Union

import pytest

from ecs_image_libs.v1.runtime_config.schema import RuntimeConfig
from ecs_image_libs.v1.runtime_config.utils import load_config_template

TEST_CREATED = datetime(2025, 1, 2, 3, 4, 5, 123456, tzinfo=timezone.utc)


def make_bundle(
    root: Path,
    name: str = "demo",
    *,
    arch: str = "arm64",
    files: Union[Dict[str, bytes], None] = None,
) -> Path:
    """Create a bundle folder at <root>/<name> with <files> in its rootfs."""
    bundle = root / name
    rootfs = bundle / "rootfs"
    rootfs.mkdir(parents=True)
    for _fname, _content in (files or {}).items():
        _fpath = rootfs / _fname
        _fpath.parent.mkdir(parents=True, exist_ok=True)
        _fpath.write_bytes(_content)

    template = load_config_template()
    config = template.model_copy(
        update={"platform": template.platform.model_copy(update={"arch": arch})}
    )
    (bundle / "config.json").write_text(config.export_config())
    return bundle


@pytest.fixture
def temp_dir(tmp_path: Path) -> Path:
    return tmp_path


@pytest.fixture
def template() -> RuntimeConfig:
    return load_config_template()


@pytest.fixture
def demo_bundle(tmp_path: Path) -> Path:
    """The demo bundle holding one file `etc/hello` with content `hi`."""
    return make_bundle(tmp_path, files={"etc/hello": b"hi"})


@pytest.fixture
def empty_bundle(tmp_path: Path) -> Path:
    return make_bundle(tmp_path, "empty")


@pytest.fixture
def sample_tree(tmp_path: Path) -> Path:
    """
    tree/
        b.txt
        c.txt (empty)
        a/
            x.txt
        z/ (empty)
    """
    root = tmp_path / "tree"
    (root / "a").mkdir(parents=True)
    (root / "z").mkdir()
    (root / "b.txt").write_bytes(b"bbb")
    (root / "c.txt").write_bytes(b"")
    (root / "a" / "x.txt").write_bytes(b"xxxx")
    return root
