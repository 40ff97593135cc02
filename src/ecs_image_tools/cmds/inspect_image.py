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

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING

from ecs_image_libs.errors import EcsImageError
from ecs_image_libs.v1.image_reader import read_image_archive
from ecs_image_tools._utils import exit_with_err_msg

if TYPE_CHECKING:
    from argparse import ArgumentParser, Namespace, _SubParsersAction


logger = logging.getLogger(__name__)


def inspect_image_cmd_args(
    sub_arg_parser: _SubParsersAction[ArgumentParser], *parent_parser: ArgumentParser
) -> None:
    inspect_image_arg_parser = sub_arg_parser.add_parser(
        name="inspect",
        help=(_help_txt := "Print out the layout and metadata of an image tarball"),
        description=_help_txt,
        parents=parent_parser,
    )
    inspect_image_arg_parser.add_argument(
        "tarball",
        help="Points to the image tarball.",
    )
    inspect_image_arg_parser.set_defaults(handler=inspect_image_cmd)


def inspect_image_cmd(args: Namespace) -> None:
    logger.debug(f"calling {inspect_image_cmd.__name__} with {args}")
    tarball = Path(args.tarball)
    if not tarball.is_file():
        exit_with_err_msg(f"{tarball} is not a file!")

    try:
        image_info = read_image_archive(tarball)
    except (EcsImageError, OSError, ValueError) as e:
        exit_with_err_msg(f"{tarball} is not a valid image tarball: {e}")

    print("members:")
    for _member in image_info.members:
        print(f"  {_member.kind.value:<9} {_member.size:>12} {_member.name}")

    print("manifest:")
    print(json.dumps(json.loads(image_info.manifest.export_metafile()), indent=2))
    print("repositories:")
    print(json.dumps(json.loads(image_info.repositories.export_metafile()), indent=2))

    if not image_info.verify_layers():
        exit_with_err_msg("layer tar digest doesn't match its layer dir name!")
