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
"""Loading of the runtime configuration and the bundled template."""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from ecs_image_libs.common import StrOrPath
from ecs_image_libs.errors import InvalidBundleError

from .schema import RuntimeConfig

logger = logging.getLogger(__name__)

CONFIG_TEMPLATE = Path(__file__).parent / "config_template.yaml"


def load_runtime_config(fpath: StrOrPath) -> RuntimeConfig:
    """Load and parse a bundle's config.json at <fpath>.

    Raises:
        InvalidBundleError if <fpath> is not readable or not a valid runtime config.
    """
    _fpath = Path(fpath)
    try:
        return RuntimeConfig.load_metafile(_fpath)
    except (OSError, UnicodeDecodeError) as e:
        raise InvalidBundleError(f"failed to read {_fpath}: {e!r}") from e
    except (ValidationError, yaml.YAMLError) as e:
        raise InvalidBundleError(f"invalid runtime config {_fpath}: {e}") from e


def load_config_template(fpath: StrOrPath | None = None) -> RuntimeConfig:
    """Load the runtime config template at <fpath>, or the bundled default one."""
    _fpath = Path(fpath) if fpath else CONFIG_TEMPLATE
    logger.debug(f"load runtime config template from {_fpath}")
    return load_runtime_config(_fpath)
