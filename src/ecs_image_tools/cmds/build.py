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

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from ecs_image_libs.errors import EcsImageError
from ecs_image_libs.v1.bundle import copy_into_rootfs, create_bundle
from ecs_image_libs.v1.ecsfile import load_ecsfile
from ecs_image_libs.v1.image import bundle_basename, pack_image, parse_name_tag
from ecs_image_libs.v1.runtime_config.utils import load_config_template
from ecs_image_tools._utils import exit_with_err_msg

if TYPE_CHECKING:
    from argparse import ArgumentParser, Namespace, _SubParsersAction


logger = logging.getLogger(__name__)

DEFAULT_ECSFILE = "Ecsfile"


def build_cmd_args(
    sub_arg_parser: _SubParsersAction[ArgumentParser], *parent_parser: ArgumentParser
) -> None:
    build_arg_parser = sub_arg_parser.add_parser(
        name="build",
        help=(_help_txt := "Build a bundle from Ecsfile, and pack it into image tarball"),
        description=_help_txt,
        parents=parent_parser,
    )
    build_arg_parser.add_argument(
        "-f",
        "--file",
        default=DEFAULT_ECSFILE,
        help="The Ecsfile to build from.",
    )
    build_arg_parser.add_argument(
        "-t",
        "--tag",
        default=None,
        help=(
            "Image name and tag in name[:tag] format, the name is also used as "
            "the bundle folder name. Defaults to the Ecsfile's folder name."
        ),
    )
    build_arg_parser.add_argument(
        "--template",
        default=None,
        help="The runtime config template(JSON or YAML), defaults to the bundled one.",
    )
    build_arg_parser.add_argument(
        "-o",
        "--output",
        default=None,
        help="The output image tarball, defaults to <name>.<arch>.tar.",
    )
    build_arg_parser.set_defaults(handler=build_cmd)


def build_cmd(args: Namespace) -> None:
    logger.debug(f"calling {build_cmd.__name__} with {args}")
    ecsfile = Path(args.file)
    if not ecsfile.is_file():
        exit_with_err_msg(f"Ecsfile {ecsfile} not found!")

    try:
        name, tag = parse_name_tag(
            args.tag, default_name=bundle_basename(ecsfile.absolute().parent)
        )
        template = load_config_template(args.template).model_copy(
            update={"mounts": []}
        )
        result = load_ecsfile(ecsfile, template)

        bundle = create_bundle(name, result.config, exist_ok=True)
        copy_into_rootfs(bundle, result.copy_files)
        packed = pack_image(bundle, args.output, f"{name}:{tag}")
    except (EcsImageError, OSError) as e:
        logger.debug(f"failed to build from {ecsfile}", exc_info=e)
        exit_with_err_msg(f"failed to build from {ecsfile}, operation aborted: {e}")

    print(f"Built {packed.name}:{packed.tag} into {packed.output}")
