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
"""Exceptions shared by the ECS image packaging engine."""


class EcsImageError(Exception):
    """Base exception for all ecs-image-libs errors."""


class InvalidInputError(EcsImageError, ValueError):
    """Raised on invalid caller input, before any side effect is made."""


class InvalidBundleError(InvalidInputError):
    """Raised when the bundle directory or its config.json is unusable."""


class UnsupportedEntryError(EcsImageError):
    """Raised when an archive entry of unknown kind is going to be packed."""


class PackStageError(EcsImageError):
    """Raised when a pack stage runs before the stages it depends on."""


class EcsfileError(InvalidInputError):
    """Raised when an Ecsfile directive cannot be applied."""

    ARCH = 1
    MOUNT = 2
    ENV = 3
    COPY = 4

    def __init__(self, code: int, msg: str, *, lineno: int) -> None:
        super().__init__(f"{msg} at line {lineno}")
        self.code = code
        self.lineno = lineno
