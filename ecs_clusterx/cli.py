# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Console script for ecs_clusterx.
"""

import argparse
import logging
import sys

import yaml
from cfn_flip.yaml_dumper import LongCleanDumper

from ecs_clusterx import __version__
from ecs_clusterx.common.logging import LOG
from ecs_clusterx.common.settings import ClusterXSettings
from ecs_clusterx.ecs_clusterx import render_cluster, render_services_config
from ecs_clusterx.exceptions import ClusterXBaseException


class ArgparseHelper(argparse._HelpAction):
    """
    Used to help print top level '--help' arguments from argparse
    when used with subparsers
    """

    def __call__(self, parser, namespace, values, option_string=None):
        parser.print_help()
        print()
        subparsers_actions = [
            action
            for action in parser._actions
            if isinstance(action, argparse._SubParsersAction)
        ]
        for subparsers_action in subparsers_actions:
            for choice, subparser in list(subparsers_action.choices.items()):
                if choice in [
                    cmd["name"] for cmd in ClusterXSettings.active_commands
                ] or choice in [
                    cmd["name"] for cmd in ClusterXSettings.validation_commands
                ]:
                    print(f"Command '{choice}'")
                    print(subparser.format_usage())
        parser.exit()


def main_parser():
    """
    Console script for ecs_clusterx.
    """
    parser = argparse.ArgumentParser(add_help=False)
    parser.add_argument(
        "-h",
        "--help",
        action=ArgparseHelper,
        help="show this help message and exit",
    )
    cmd_parsers = parser.add_subparsers(
        dest=ClusterXSettings.command_arg, help="Command to execute."
    )
    base_command_parser = argparse.ArgumentParser(add_help=False)
    files_parser = argparse.ArgumentParser(add_help=False)
    files_parser.add_argument(
        "-f",
        "--cluster-file",
        dest=ClusterXSettings.input_file_arg,
        required=True,
        help="Path to the cluster definition file. Repeat to merge files in order",
        action="append",
    )
    files_parser.add_argument(
        "-n",
        "--name",
        help="Name of your stack / cluster",
        required=True,
        type=str,
        dest=ClusterXSettings.name_arg,
    )
    files_parser.add_argument(
        "--loglevel", type=str, help="Log level. Defaults to INFO", required=False
    )
    base_command_parser.add_argument(
        "-d",
        "--output-dir",
        required=False,
        help="Output directory to write the template to.",
        type=str,
        dest=ClusterXSettings.output_dir_arg,
        default=ClusterXSettings.default_output_dir,
    )
    base_command_parser.add_argument(
        "--format",
        help="Defines the format you want to use.",
        type=str,
        dest=ClusterXSettings.format_arg,
        choices=ClusterXSettings.allowed_formats,
        default=ClusterXSettings.default_format,
    )
    base_command_parser.add_argument(
        "--state-file",
        dest=ClusterXSettings.state_file_arg,
        required=False,
        help="JSON file to read and store the clusters resources layout versions",
    )
    base_command_parser.add_argument(
        "--force-upgrade",
        dest=ClusterXSettings.force_upgrade_arg,
        required=False,
        choices=["v2"],
        help="Upgrade the resources layout of a deployed cluster",
    )
    base_command_parser.add_argument(
        "--lookup-stack",
        dest=ClusterXSettings.lookup_stack_arg,
        action="store_true",
        default=False,
        help="Looks up the stack named --name in AWS to get the deployed layout version",
    )
    for command in ClusterXSettings.active_commands:
        cmd_parsers.add_parser(
            name=command["name"],
            help=command["help"],
            parents=[files_parser, base_command_parser],
        )
    for command in ClusterXSettings.validation_commands:
        cmd_parsers.add_parser(
            name=command["name"], help=command["help"], parents=[files_parser]
        )
    for command in ClusterXSettings.neutral_commands:
        cmd_parsers.add_parser(name=command["name"], help=command["help"])
    return parser


def set_loglevel(loglevel: str) -> None:
    valid_levels = [
        "FATAL",
        "CRITICAL",
        "ERROR",
        "WARNING",
        "WARN",
        "INFO",
        "DEBUG",
    ]
    if loglevel.upper() in valid_levels:
        LOG.setLevel(logging.getLevelName(loglevel.upper()))
    else:
        print(f"Log level value {loglevel} is invalid. Must me one of {valid_levels}")


def main(argv: list = None):
    """
    Main entry point for CLI
    :return: status code
    """
    parser = main_parser()
    argv = sys.argv[1:] if argv is None else argv
    if not argv:
        parser.print_help()
        return 0
    args = parser.parse_args(argv)
    command = getattr(args, ClusterXSettings.command_arg)
    if command == ClusterXSettings.version_arg:
        print(__version__)
        return 0
    if getattr(args, "loglevel", None):
        set_loglevel(args.loglevel)
    LOG.debug(args)
    try:
        settings = ClusterXSettings(**vars(args))
        if command == ClusterXSettings.config_render_arg:
            print(
                yaml.dump(
                    render_services_config(settings),
                    Dumper=LongCleanDumper,
                    sort_keys=False,
                )
            )
            return 0
        render_cluster(settings)
    except ClusterXBaseException as error:
        LOG.error(error)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())  # pragma: no cover
