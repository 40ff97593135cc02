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
"""Pack an ECS bundle into an image archive.

One pack run is executed as a fixed sequence of stages, each stage takes the
    current `PackState` and returns a new one. The stages are executed strictly
    one after another, any failure aborts the run and the temporary working
    directory is always cleaned up.

The output image archive has the following layout:
    <layerDigest>/
    <layerDigest>/layer.tar
    <layerDigest>/VERSION
    <layerDigest>/json
    <configDigest>.json
    manifest.json
    repositories
"""

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from functools import partial
from pathlib import Path
from typing import Callable, Iterator, Tuple, Union

from ecs_image_libs.archive import (
    EntryMeta,
    EntryType,
    WalkEntry,
    WalkOptions,
    pack_entries,
    rebase_to,
    walkdir,
)
from ecs_image_libs.common import DigestWriter, Sha256Digest, StrOrPath, tmp_fname
from ecs_image_libs.common.io import cleanup_path
from ecs_image_libs.errors import (
    InvalidBundleError,
    InvalidInputError,
    PackStageError,
)
from ecs_image_libs.v1.consts import (
    BUNDLE_CONFIG_FNAME,
    BUNDLE_ROOTFS_DNAME,
    DEFAULT_TAG,
    IMAGE_CONFIG_SUFFIX,
    LAYER_JSON_FNAME,
    LAYER_TAR_FNAME,
    LAYER_VERSION,
    LAYER_VERSION_FNAME,
    MANIFEST_FNAME,
    REPOSITORIES_FNAME,
    TARBALL_SUFFIX,
)
from ecs_image_libs.v1.image_config.utils import build_image_config
from ecs_image_libs.v1.layer.schema import LayerRecord
from ecs_image_libs.v1.manifest.schema import ImageManifest, ManifestEntry, Repositories
from ecs_image_libs.v1.runtime_config.schema import RuntimeConfig
from ecs_image_libs.v1.runtime_config.utils import load_runtime_config

logger = logging.getLogger(__name__)

WORKDIR_PREFIX = "ecs_image_"
NAME_TAG_SEP = ":"


def bundle_basename(bundle: StrOrPath) -> str:
    return os.path.basename(os.path.abspath(bundle))


def parse_name_tag(name_tag: str | None, *, default_name: str) -> Tuple[str, str]:
    """Parse <name_tag> in `name[:tag]` format.

    Name defaults to <default_name>, tag defaults to `latest`.

    Raises:
        InvalidInputError if <name_tag> contains more than one `:`, or has empty name.
    """
    if not name_tag:
        return default_name, DEFAULT_TAG

    _splitted = name_tag.split(NAME_TAG_SEP)
    if len(_splitted) > 2:
        raise InvalidInputError(f"invalid name:tag {name_tag!r}, too many ':'")

    _name = _splitted[0]
    _tag = _splitted[1] if len(_splitted) == 2 and _splitted[1] else DEFAULT_TAG
    if not _name:
        raise InvalidInputError(f"invalid name:tag {name_tag!r}, empty name")
    return _name, _tag


def resolve_tarball(
    tarball: StrOrPath | None, *, bundle: StrOrPath, arch: str
) -> Path:
    """Get the output tarball path, defaults to `<bundleBaseName>.<arch>.tar`.

    If <tarball> doesn't end with `.tar`, the suffix will be appended.
    """
    if not tarball:
        return Path(f"{bundle_basename(bundle)}.{arch}{TARBALL_SUFFIX}")

    _tarball = str(tarball)
    if not _tarball.endswith(TARBALL_SUFFIX):
        _tarball = f"{_tarball}{TARBALL_SUFFIX}"
    return Path(_tarball)


def validate_bundle(bundle: StrOrPath) -> RuntimeConfig:
    """Check the bundle layout and load its runtime config.

    Raises:
        InvalidBundleError on missing bundle dir, rootfs or unusable config.json.
    """
    _bundle = Path(bundle)
    if not _bundle.is_dir():
        raise InvalidBundleError(f"bundle {_bundle} not found or not a directory")
    if not (_bundle / BUNDLE_ROOTFS_DNAME).is_dir():
        raise InvalidBundleError(f"{BUNDLE_ROOTFS_DNAME} not found in bundle {_bundle}")

    _config_f = _bundle / BUNDLE_CONFIG_FNAME
    if not _config_f.is_file():
        raise InvalidBundleError(f"{BUNDLE_CONFIG_FNAME} not found in bundle {_bundle}")
    return load_runtime_config(_config_f)


@dataclass(frozen=True)
class PackState:
    bundle: Path
    config: RuntimeConfig
    name: str
    tag: str
    output: Path
    workdir: Path
    created: datetime

    layer_tar: Union[Path, None] = None
    layer_size: int = 0
    layer_digest: Union[Sha256Digest, None] = None
    layer_json: bytes = b""
    image_config: bytes = b""
    config_digest: Union[Sha256Digest, None] = None
    manifest: bytes = b""
    repositories: bytes = b""

    @property
    def mtime(self) -> int:
        return int(self.created.timestamp())

    def require_layer(self) -> Tuple[Path, Sha256Digest]:
        if self.layer_tar is None or self.layer_digest is None:
            raise PackStageError("layer tar is not yet built")
        return self.layer_tar, self.layer_digest

    def require_config_digest(self) -> Sha256Digest:
        if self.config_digest is None:
            raise PackStageError("image config is not yet derived")
        return self.config_digest


PackStage = Callable[[PackState], PackState]


def build_layer_tar(state: PackState) -> PackState:
    """Pack the bundle's rootfs into layer tar, digest it while writing."""
    _rootfs = Path(os.path.abspath(state.bundle / BUNDLE_ROOTFS_DNAME))
    _layer_tar = state.workdir / LAYER_TAR_FNAME

    _walker = walkdir(_rootfs, WalkOptions(path_transform=rebase_to(_rootfs)))
    with open(_layer_tar, "wb") as _dst:
        _sink = DigestWriter(_dst)
        _count = pack_entries(_sink, _walker)  # type: ignore[arg-type]
        _sink.flush()

    logger.info(
        f"created layer tar with {_count} entries, "
        f"{_sink.size} bytes, digest={_sink.digest}"
    )
    return replace(
        state, layer_tar=_layer_tar, layer_size=_sink.size, layer_digest=_sink.digest
    )


def derive_layer_record(state: PackState) -> PackState:
    _, _layer_digest = state.require_layer()
    _record = LayerRecord.for_layer(_layer_digest, created=state.created)
    logger.info(f"created layer json for {_layer_digest.digest_hex}")
    return replace(state, layer_json=_record.export_metafile().encode("utf-8"))


def derive_image_config(state: PackState) -> PackState:
    _, _layer_digest = state.require_layer()
    _image_config = build_image_config(
        state.config, _layer_digest, created=state.created
    )
    _contents, _digest = _image_config.export_metafile_with_digest()
    logger.info(f"created image config {_digest.digest_hex}{IMAGE_CONFIG_SUFFIX}")
    return replace(state, image_config=_contents, config_digest=_digest)


def derive_manifest(state: PackState) -> PackState:
    _, _layer_digest = state.require_layer()
    _config_digest = state.require_config_digest()
    _manifest = ImageManifest(
        [
            ManifestEntry.for_image(
                name=state.name,
                tag=state.tag,
                config_digest=_config_digest,
                layer_digest=_layer_digest,
            )
        ]
    )
    _repositories = Repositories.for_image(
        name=state.name, tag=state.tag, layer_digest=_layer_digest
    )
    logger.info(f"created {MANIFEST_FNAME} and {REPOSITORIES_FNAME}")
    return replace(
        state,
        manifest=_manifest.export_metafile().encode("utf-8"),
        repositories=_repositories.export_metafile().encode("utf-8"),
    )


def image_entries(state: PackState) -> Iterator[WalkEntry]:
    """Entries of the output image archive, in the order they are archived."""
    _layer_tar, _layer_digest = state.require_layer()
    _config_digest = state.require_config_digest()
    _mtime = state.mtime
    _layer_dir = _layer_digest.digest_hex

    yield WalkEntry.dir_entry(_layer_dir, mtime=_mtime)
    yield WalkEntry(
        path=f"{_layer_dir}/{LAYER_TAR_FNAME}",
        kind=EntryType.file,
        meta=EntryMeta(size=state.layer_size, mtime=_mtime),
        content=partial(open, _layer_tar, "rb"),
    )
    yield WalkEntry.from_bytes(
        f"{_layer_dir}/{LAYER_VERSION_FNAME}", LAYER_VERSION, mtime=_mtime
    )
    yield WalkEntry.from_bytes(
        f"{_layer_dir}/{LAYER_JSON_FNAME}", state.layer_json, mtime=_mtime
    )
    yield WalkEntry.from_bytes(
        f"{_config_digest.digest_hex}{IMAGE_CONFIG_SUFFIX}",
        state.image_config,
        mtime=_mtime,
    )
    yield WalkEntry.from_bytes(MANIFEST_FNAME, state.manifest, mtime=_mtime)
    yield WalkEntry.from_bytes(REPOSITORIES_FNAME, state.repositories, mtime=_mtime)


def assemble_output(state: PackState) -> PackState:
    """Write the image archive to a temporary file and then rename it to output."""
    _output = state.output
    _tmp_output = _output.parent / tmp_fname(_output.name)
    try:
        with open(_tmp_output, "wb") as _dst:
            pack_entries(_dst, image_entries(state))
        os.replace(_tmp_output, _output)
    except BaseException:
        cleanup_path(_tmp_output)
        raise

    logger.info(f"created image tarball {_output}")
    return state


PACK_STAGES: Tuple[PackStage, ...] = (
    build_layer_tar,
    derive_layer_record,
    derive_image_config,
    derive_manifest,
    assemble_output,
)


@dataclass(frozen=True)
class PackedImage:
    output: Path
    name: str
    tag: str
    layer_digest: Sha256Digest
    config_digest: Sha256Digest


class ImagePacker:
    """Pack a bundle into an image archive.

    All the inputs are validated at init, before any filesystem mutation.
    """

    def __init__(
        self,
        bundle: StrOrPath,
        tarball: StrOrPath | None = None,
        name_tag: str | None = None,
        *,
        tmp_dir: StrOrPath | None = None,
        created: datetime | None = None,
    ) -> None:
        self._bundle = Path(bundle)
        self._name, self._tag = parse_name_tag(
            name_tag, default_name=bundle_basename(bundle)
        )
        self._config = validate_bundle(self._bundle)
        self._output = resolve_tarball(
            tarball, bundle=self._bundle, arch=self._config.arch
        )
        if not self._output.parent.absolute().is_dir():
            raise InvalidInputError(
                f"parent dir of output tarball {self._output} doesn't exist"
            )
        if self._output.is_dir():
            raise InvalidInputError(f"output tarball {self._output} is a directory")

        self._tmp_dir = tmp_dir
        if created is None:
            created = datetime.now(timezone.utc)
        self._created = created.astimezone(timezone.utc)

    @property
    def output(self) -> Path:
        return self._output

    def pack(self) -> PackedImage:
        _workdir = Path(tempfile.mkdtemp(prefix=WORKDIR_PREFIX, dir=self._tmp_dir))
        logger.debug(f"packing {self._bundle} with workdir {_workdir}")

        _state = PackState(
            bundle=self._bundle,
            config=self._config,
            name=self._name,
            tag=self._tag,
            output=self._output,
            workdir=_workdir,
            created=self._created,
        )
        try:
            for _stage in PACK_STAGES:
                _state = _stage(_state)
        finally:
            cleanup_path(_workdir)

        _, _layer_digest = _state.require_layer()
        return PackedImage(
            output=_state.output,
            name=_state.name,
            tag=_state.tag,
            layer_digest=_layer_digest,
            config_digest=_state.require_config_digest(),
        )


def pack_image(
    bundle: StrOrPath,
    tarball: StrOrPath | None = None,
    name_tag: str | None = None,
    *,
    tmp_dir: StrOrPath | None = None,
    created: datetime | None = None,
) -> PackedImage:
    """Pack <bundle> into image archive <tarball>, tagged with <name_tag>."""
    return ImagePacker(
        bundle, tarball, name_tag, tmp_dir=tmp_dir, created=created
    ).pack()
