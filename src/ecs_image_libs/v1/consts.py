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
"""Consts related to ECS image."""

IMAGE_OS = "sylixos"
IMAGE_CREATED_BY = "ecsc"
ROOTFS_TYPE = "layers"

LAYER_VERSION = "1.0"
LAYER_TAR_FNAME = "layer.tar"
LAYER_JSON_FNAME = "json"
LAYER_VERSION_FNAME = "VERSION"

MANIFEST_FNAME = "manifest.json"
REPOSITORIES_FNAME = "repositories"
IMAGE_CONFIG_SUFFIX = ".json"

BUNDLE_CONFIG_FNAME = "config.json"
BUNDLE_ROOTFS_DNAME = "rootfs"

DEFAULT_TAG = "latest"
TARBALL_SUFFIX = ".tar"

# fmt: off
ARCHITECTURES = (
    "noarch", "x86-64", "arm64", "arm",
    "riscv64", "mips64", "ppc", "loongarch",
)
ROOTFS_DIRS = (
    "apps", "home", "bin", "qt", "boot", "dev", "lib",
    "proc", "root", "sbin", "tmp", "usr", "var",
)
# fmt: on
