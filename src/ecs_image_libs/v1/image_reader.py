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
"""Inspect an ECS image archive, without extracting it to disk."""

from __future__ import annotations

import logging
import tarfile
from dataclasses import dataclass, field
from typing import IO, Dict, List

from ecs_image_libs.archive import EntryType, unpack_file
from ecs_image_libs.common import Sha256Digest, StrOrPath
from ecs_image_libs.common.digest import stream_digest
from ecs_image_libs.errors import InvalidInputError
from ecs_image_libs.v1.consts import (
    IMAGE_CONFIG_SUFFIX,
    LAYER_JSON_FNAME,
    LAYER_TAR_FNAME,
    MANIFEST_FNAME,
    REPOSITORIES_FNAME,
)
from ecs_image_libs.v1.image_config.schema import ImageConfig
from ecs_image_libs.v1.layer.schema import LayerRecord
from ecs_image_libs.v1.manifest.schema import ImageManifest, Repositories

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImageMember:
    name: str
    kind: EntryType
    size: int


@dataclass(frozen=True)
class ImageArchiveInfo:
    members: List[ImageMember]
    manifest: ImageManifest
    repositories: Repositories
    image_configs: Dict[str, ImageConfig] = field(default_factory=dict)
    """Image configs, by their file name in the archive."""
    layers: Dict[str, LayerRecord] = field(default_factory=dict)
    """Layer json records, by their layer dir name."""
    layer_tar_digests: Dict[str, Sha256Digest] = field(default_factory=dict)
    """Digests calculated over the layer tars, by their layer dir name."""

    def verify_layers(self) -> bool:
        """Check every layer tar's actual digest matches its layer dir name."""
        return all(
            _digest.digest_hex == _layer_dir
            for _layer_dir, _digest in self.layer_tar_digests.items()
        )


def _member_kind(_info: tarfile.TarInfo) -> EntryType | None:
    if _info.isdir():
        return EntryType.directory
    if _info.issym():
        return EntryType.symlink
    if _info.isreg():
        return EntryType.file


class _ImageCollector:
    def __init__(self) -> None:
        self.members: List[ImageMember] = []
        self.metafiles: Dict[str, bytes] = {}
        self.layer_tar_digests: Dict[str, Sha256Digest] = {}

    def __call__(self, info: tarfile.TarInfo, content: IO[bytes]) -> None:
        _kind = _member_kind(info)
        if _kind is None:
            logger.warning(f"unexpected member {info.name} in image archive")
            return
        self.members.append(ImageMember(name=info.name, kind=_kind, size=info.size))
        if _kind != EntryType.file:
            return

        _name = info.name
        _layer_dir, _, _fname = _name.rpartition("/")
        if _fname == LAYER_TAR_FNAME and _layer_dir:
            self.layer_tar_digests[_layer_dir] = stream_digest(content)
        elif (
            _fname == LAYER_JSON_FNAME
            or (not _layer_dir and _fname.endswith(IMAGE_CONFIG_SUFFIX))
            or _name == REPOSITORIES_FNAME
        ):
            self.metafiles[_name] = content.read()


def read_image_archive(fpath: StrOrPath) -> ImageArchiveInfo:
    """Read the image archive at <fpath>.

    Raises:
        InvalidInputError if <fpath> is not an image archive.
    """
    _collector = _ImageCollector()
    try:
        unpack_file(fpath, _collector)
    except tarfile.TarError as e:
        raise InvalidInputError(f"{fpath} is not a valid tar archive: {e!r}") from e

    _metafiles = _collector.metafiles
    if MANIFEST_FNAME not in _metafiles or REPOSITORIES_FNAME not in _metafiles:
        raise InvalidInputError(
            f"{fpath} is not an image archive: {MANIFEST_FNAME} or {REPOSITORIES_FNAME} not found"
        )

    _manifest = ImageManifest.parse_metafile(_metafiles.pop(MANIFEST_FNAME))
    _repositories = Repositories.parse_metafile(_metafiles.pop(REPOSITORIES_FNAME))
    _image_configs: Dict[str, ImageConfig] = {}
    _layers: Dict[str, LayerRecord] = {}
    for _name, _raw in _metafiles.items():
        _layer_dir, _, _fname = _name.rpartition("/")
        if _layer_dir and _fname == LAYER_JSON_FNAME:
            _layers[_layer_dir] = LayerRecord.parse_metafile(_raw)
        else:
            _image_configs[_name] = ImageConfig.parse_metafile(_raw)

    return ImageArchiveInfo(
        members=_collector.members,
        manifest=_manifest,
        repositories=_repositories,
        image_configs=_image_configs,
        layers=_layers,
        layer_tar_digests=_collector.layer_tar_digests,
    )
