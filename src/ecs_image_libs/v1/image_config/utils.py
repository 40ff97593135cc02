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
"""Transform a bundle's runtime configuration into the image configuration."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Iterator, Tuple

from ecs_image_libs.common.digest import Sha256Digest
from ecs_image_libs.v1.consts import IMAGE_CREATED_BY, IMAGE_OS
from ecs_image_libs.v1.runtime_config.schema import RuntimeConfig

from .schema import ImageConfig

LABEL_SEP = "."


def _label_value(_value: Any) -> str:
    if _value is None:
        return "null"
    if isinstance(_value, bool):
        return "true" if _value else "false"
    return str(_value)


def _flatten(_prefix: str, _obj: Any) -> Iterator[Tuple[str, str]]:
    if isinstance(_obj, dict):
        for _key, _value in _obj.items():
            yield from _flatten(f"{_prefix}{LABEL_SEP}{_key}", _value)
    elif isinstance(_obj, (list, tuple)):
        for _idx, _value in enumerate(_obj):
            yield from _flatten(f"{_prefix}{LABEL_SEP}{_idx}", _value)
    else:
        yield _prefix, _label_value(_obj)


def flatten_labels(config: RuntimeConfig) -> Dict[str, str]:
    """Flatten the host specific descriptors of <config> into labels.

    Every scalar leaf becomes one label, keyed by its dot-joined path with
        list items indexed by their position, e.g. `mounts.0.destination`.
    """
    _sylixos = config.sylixos.model_dump(by_alias=True, mode="json")
    # fmt: off
    _sources = (
        ("mounts", [_m.model_dump(by_alias=True, mode="json") for _m in config.mounts]),
        ("sylixos.commands", _sylixos.pop("commands", [])),
        ("sylixos.devices", _sylixos.pop("devices", [])),
        ("sylixos.resources", _sylixos.pop("resources", {})),
        ("sylixos.network", _sylixos.pop("network", {})),
    )
    # fmt: on

    _labels = {"hostname": config.hostname}
    for _prefix, _obj in _sources:
        _labels.update(_flatten(_prefix, _obj))
    return _labels


def format_config_created(_created: datetime) -> str:
    """Timestamp in the image config, in UTC with nanoseconds precision."""
    return _created.strftime("%Y-%m-%dT%H:%M:%S.") + f"{_created.microsecond:06d}000Z"


def build_image_config(
    config: RuntimeConfig, layer_digest: Sha256Digest, *, created: datetime
) -> ImageConfig:
    """Build the image configuration from <config> for the single <layer_digest> layer.

    <created> MUST be an UTC datetime.
    """
    _created = format_config_created(created)
    _process = config.process
    return ImageConfig(
        created=_created,
        architecture=config.arch,
        os=IMAGE_OS,
        container_config=ImageConfig.ContainerConfig(
            user=f"{_process.user.uid}:{_process.user.gid}",
            env=list(_process.env),
            entrypoint=list(_process.args),
            working_dir=_process.cwd or f"/{config.root.path}",
            labels=flatten_labels(config),
        ),
        rootfs=ImageConfig.RootfsDescriptor(diff_ids=[layer_digest]),
        history=[
            ImageConfig.History(
                created=_created, created_by=IMAGE_CREATED_BY, empty_layer=False
            )
        ],
    )
