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
"""Per-layer metadata, stored as `<layerDigest>/json` in the image."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Union

from pydantic import Field

from ecs_image_libs.common.digest import Sha256Digest
from ecs_image_libs.common.metafile_base import MetaFileBase
from ecs_image_libs.v1.consts import IMAGE_OS

# fmt: off
LEGACY_CONTAINER_CONFIG: Dict[str, Any] = {
    "Hostname": "", "Domainname": "", "User": "",
    "AttachStdin": False, "AttachStdout": False, "AttachStderr": False,
    "Tty": False, "OpenStdin": False, "StdinOnce": False,
    "Env": None, "Cmd": None, "Image": "", "Volumes": None,
    "WorkingDir": "", "Entrypoint": None, "OnBuild": None, "Labels": None,
}
# fmt: on


def format_layer_created(_created: datetime) -> str:
    """Timestamp in the layer json, in UTC with seconds precision."""
    return _created.strftime("%Y-%m-%dT%H:%M:%S+00:00")


class LayerRecord(MetaFileBase):
    id: str
    """The layer's digest in lowercase hex, without algorithm prefix."""
    parent: Union[str, None] = None
    created: str
    container_config: Dict[str, Any] = Field(
        default_factory=lambda: dict(LEGACY_CONTAINER_CONFIG)
    )
    os: str = IMAGE_OS

    @classmethod
    def for_layer(
        cls,
        layer_digest: Sha256Digest,
        *,
        created: datetime,
        parent: Sha256Digest | None = None,
    ) -> LayerRecord:
        return cls(
            id=layer_digest.digest_hex,
            parent=parent.digest_hex if parent else None,
            created=format_layer_created(created),
        )

    def export_metafile(self) -> str:
        # the legacy container config keeps its null fields,
        #   only the parent is omitted when not set.
        return self.model_dump_json(
            by_alias=True, exclude={"parent"} if self.parent is None else None
        )
