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

from ecs_image_libs.errors import EcsImageError, InvalidInputError
from ecs_image_libs.v1.bundle import JSRE_MOUNTS, create_bundle
from ecs_image_libs.v1.consts import ARCHITECTURES
from ecs_image_libs.v1.runtime_config.schema import RuntimeConfig
from ecs_image_libs.v1.runtime_config.utils import load_config_template
from ecs_image_tools._utils import exit_with_err_msg

if TYPE_CHECKING:
    from argparse import ArgumentParser, Namespace, _SubParsersAction


logger = logging.getLogger(__name__)


def create_cmd_args(
    sub_arg_parser: _SubParsersAction[ArgumentParser], *parent_parser: ArgumentParser
) -> None:
    create_arg_parser = sub_arg_parser.add_parser(
        name="create",
        help=(_help_txt := "Create a new ECS bundle with default layout"),
        description=_help_txt,
        parents=parent_parser,
    )
    create_arg_parser.add_argument(
        "bundle",
        help="The bundle folder to create, MUST not exist.",
    )
    create_arg_parser.add_argument(
        "--arch",
        choices=ARCHITECTURES,
        default=None,
        help="The architecture of the bundle, defaults to the one in template.",
    )
    create_arg_parser.add_argument(
        "--jsre",
        action="store_true",
        help="Mount and reuse JSRE from the container host.",
    )
    create_arg_parser.add_argument(
        "--args",
        default=None,
        help="The start parameters(process.args) of the image, separated by spaces.",
    )
    create_arg_parser.add_argument(
        "--template",
        default=None,
        help="The runtime config template(JSON or YAML), defaults to the bundled one.",
    )
    create_arg_parser.set_defaults(handler=create_cmd)


def _customize_config(template: RuntimeConfig, args: Namespace) -> RuntimeConfig:
    _update = {}
    if args.arch:
        _update["platform"] = template.platform.model_copy(update={"arch": args.arch})
    if args.jsre:
        _update["mounts"] = [*template.mounts, *JSRE_MOUNTS]
    if args.args:
        _update["process"] = template.process.model_copy(
            update={"args": args.args.split()}
        )
    return template.model_copy(update=_update)


def create_cmd(args: Namespace) -> None:
    logger.debug(f"calling {create_cmd.__name__} with {args}")
    try:
        template = load_config_template(args.template)
        bundle = create_bundle(args.bundle, _customize_config(template, args))
    except InvalidInputError as e:
        exit_with_err_msg(str(e))
    except (EcsImageError, OSError) as e:
        logger.debug(f"failed to create {args.bundle}", exc_info=e)
        exit_with_err_msg(f"failed to create {args.bundle}, operation aborted: {e}")

    print(f"Created bundle at {bundle}")
