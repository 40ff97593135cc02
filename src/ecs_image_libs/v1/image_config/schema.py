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

from typing import Dict, List, Union

from pydantic import Field

from ecs_image_libs.common.digest import Sha256Digest
from ecs_image_libs.common.metafile_base import MetaFileBase
from ecs_image_libs.v1.consts import IMAGE_CREATED_BY, IMAGE_OS, ROOTFS_TYPE


class ImageConfig(MetaFileBase):
    """The image configuration, stored as `<configDigest>.json` in the image."""

    class ContainerConfig(MetaFileBase):
        user: str = Field(alias="User")
        env: List[str] = Field(alias="Env", default_factory=list)
        entrypoint: List[str] = Field(alias="Entrypoint", default_factory=list)
        working_dir: str = Field(alias="WorkingDir")
        labels: Dict[str, str] = Field(alias="Labels", default_factory=dict)

    class RootfsDescriptor(MetaFileBase):
        type: str = ROOTFS_TYPE
        diff_ids: List[Sha256Digest]

    class History(MetaFileBase):
        created: str
        created_by: str = IMAGE_CREATED_BY
        empty_layer: bool = False

    created: str
    architecture: str
    os: str = IMAGE_OS
    container_config: ContainerConfig = Field(alias="config")
    rootfs: RootfsDescriptor
    history: Union[List[History], None] = None

    @property
    def layer_digests(self) -> List[Sha256Digest]:
        return list(self.rootfs.diff_ids)
