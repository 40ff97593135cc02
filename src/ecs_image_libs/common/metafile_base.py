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

from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml
from pydantic import BaseModel, ConfigDict
from typing_extensions import Self

from .digest import Sha256Digest, calculate_digest

YAML_SUFFIXES = (".yaml", ".yml")


class MetaFileMixin:
    """Serialization helpers shared by all metadata files in an ECS image.

    Metadata files are always exported as compact JSON, which is also what
        their digest is calculated over.
    """

    if TYPE_CHECKING:

        def model_dump_json(self, **kwargs: Any) -> str: ...

        @classmethod
        def model_validate_json(cls, json_data: Any) -> Self: ...

        @classmethod
        def model_validate(cls, obj: Any) -> Self: ...

    @classmethod
    def parse_metafile(cls, _input: str | bytes) -> Self:
        return cls.model_validate_json(_input)

    @classmethod
    def load_metafile(cls, fpath: Path) -> Self:
        """Load metafile from <fpath>, YAML is supported for .yaml/.yml files."""
        _raw = fpath.read_text(encoding="utf-8")
        if fpath.suffix in YAML_SUFFIXES:
            return cls.model_validate(yaml.safe_load(_raw))
        return cls.model_validate_json(_raw)

    def export_metafile(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)

    def export_metafile_with_digest(self) -> tuple[bytes, Sha256Digest]:
        """Export this metafile and return the exported bytes with its digest."""
        _contents = self.export_metafile().encode("utf-8")
        return _contents, calculate_digest(_contents)


class MetaFileBase(MetaFileMixin, BaseModel):
    """Base class for an immutable metadata file record."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)
