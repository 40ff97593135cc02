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
"""Runtime configuration of an ECS bundle, a.k.a the bundle's `config.json`."""

from __future__ import annotations

from typing import Any, Dict, List, Union

from pydantic import BaseModel, ConfigDict, Field

from ecs_image_libs.common.metafile_base import MetaFileMixin
from ecs_image_libs.v1.consts import IMAGE_OS

DEFAULT_ROOT_PATH = "rootfs"


class _ConfigModel(BaseModel):
    # unknown fields are kept as is when re-writing a bundle's config.json
    model_config = ConfigDict(extra="allow", frozen=True, populate_by_name=True)


class PlatformConfig(_ConfigModel):
    os: str = IMAGE_OS
    arch: str = "noarch"


class UserConfig(_ConfigModel):
    uid: int = 0
    gid: int = 0


class ProcessConfig(_ConfigModel):
    args: List[str] = Field(default_factory=list)
    env: List[str] = Field(default_factory=list)
    cwd: Union[str, None] = None
    user: UserConfig = Field(default_factory=UserConfig)


class RootConfig(_ConfigModel):
    path: str = DEFAULT_ROOT_PATH
    readonly: bool = False


class MountConfig(_ConfigModel):
    destination: str
    source: str
    options: List[str] = Field(default_factory=list)


class DeviceConfig(_ConfigModel):
    path: str
    access: str = "rw"


class SylixOSConfig(_ConfigModel):
    devices: List[DeviceConfig] = Field(default_factory=list)
    resources: Dict[str, Any] = Field(default_factory=dict)
    commands: List[str] = Field(default_factory=list)
    network: Dict[str, Any] = Field(default_factory=dict)


class RuntimeConfig(MetaFileMixin, _ConfigModel):
    oci_version: Union[str, None] = Field(alias="ociVersion", default=None)
    platform: PlatformConfig = Field(default_factory=PlatformConfig)
    process: ProcessConfig = Field(default_factory=ProcessConfig)
    root: RootConfig = Field(default_factory=RootConfig)
    hostname: str = ""
    mounts: List[MountConfig] = Field(default_factory=list)
    sylixos: SylixOSConfig = Field(default_factory=SylixOSConfig)

    @property
    def arch(self) -> str:
        return self.platform.arch

    def export_config(self) -> str:
        """Export as human readable JSON, for writing bundle's config.json."""
        return self.model_dump_json(by_alias=True, exclude_none=True, indent=2)
