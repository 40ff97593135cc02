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
from typing import TYPE_CHECKING

from ecs_image_libs.errors import EcsImageError
from ecs_image_libs.v1.image import pack_image
from ecs_image_tools._utils import exit_with_err_msg

if TYPE_CHECKING:
    from argparse import ArgumentParser, Namespace, _SubParsersAction


logger = logging.getLogger(__name__)


def pack_cmd_args(
    sub_arg_parser: _SubParsersAction[ArgumentParser], *parent_parser: ArgumentParser
) -> None:
    pack_arg_parser = sub_arg_parser.add_parser(
        name="pack",
        help=(_help_txt := "Pack an ECS bundle into an image tarball"),
        description=_help_txt,
        parents=parent_parser,
    )
    pack_arg_parser.add_argument(
        "bundle",
        help="Points to the bundle folder, which holds rootfs and config.json.",
    )
    pack_arg_parser.add_argument(
        "tarball",
        nargs="?",
        default=None,
        help=(
            "The output image tarball, `.tar` suffix will be appended if missing. "
            "Defaults to <bundle_name>.<arch>.tar."
        ),
    )
    pack_arg_parser.add_argument(
        "-t",
        "--tag",
        default=None,
        help="Image name and tag in name[:tag] format, defaults to <bundle_name>:latest.",
    )
    pack_arg_parser.add_argument(
        "--tmp-dir",
        default=None,
        help="The folder to hold temporary files during packing.",
    )
    pack_arg_parser.set_defaults(handler=pack_cmd)


def pack_cmd(args: Namespace) -> None:
    logger.debug(f"calling {pack_cmd.__name__} with {args}")
    try:
        _packed = pack_image(
            args.bundle, args.tarball, args.tag, tmp_dir=args.tmp_dir
        )
    except (EcsImageError, OSError) as e:
        logger.debug(f"failed to pack {args.bundle}", exc_info=e)
        exit_with_err_msg(f"failed to pack {args.bundle}, operation aborted: {e}")

    print(
        f"Packed {_packed.name}:{_packed.tag} into {_packed.output}, "
        f"layer={_packed.layer_digest.digest_hex}, config={_packed.config_digest.digest_hex}"
    )
