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
"""The `manifest.json` and the legacy `repositories` file of an image."""

from __future__ import annotations

from typing import Dict, List

from pydantic import ConfigDict, Field, RootModel

from ecs_image_libs.common.digest import Sha256Digest
from ecs_image_libs.common.metafile_base import MetaFileBase, MetaFileMixin
from ecs_image_libs.v1.consts import IMAGE_CONFIG_SUFFIX, LAYER_TAR_FNAME


class ManifestEntry(MetaFileBase):
    config: str = Field(alias="Config")
    repo_tags: List[str] = Field(alias="RepoTags")
    layers: List[str] = Field(alias="Layers")

    @classmethod
    def for_image(
        cls,
        *,
        name: str,
        tag: str,
        config_digest: Sha256Digest,
        layer_digest: Sha256Digest,
    ) -> ManifestEntry:
        return cls(
            config=f"{config_digest.digest_hex}{IMAGE_CONFIG_SUFFIX}",
            repo_tags=[f"{name}:{tag}"],
            layers=[f"{layer_digest.digest_hex}/{LAYER_TAR_FNAME}"],
        )

    @property
    def layer_dirs(self) -> List[str]:
        return [_layer.split("/", maxsplit=1)[0] for _layer in self.layers]


class ImageManifest(MetaFileMixin, RootModel[List[ManifestEntry]]):
    model_config = ConfigDict(frozen=True)

    @property
    def entries(self) -> List[ManifestEntry]:
        return self.root


class Repositories(MetaFileMixin, RootModel[Dict[str, Dict[str, str]]]):
    """Legacy name -> tag -> layer digest lookup table."""

    model_config = ConfigDict(frozen=True)

    @classmethod
    def for_image(cls, *, name: str, tag: str, layer_digest: Sha256Digest) -> Repositories:
        return cls({name: {tag: layer_digest.digest_hex}})

    def lookup(self, name: str, tag: str) -> str | None:
        return self.root.get(name, {}).get(tag)
