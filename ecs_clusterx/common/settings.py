# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Module for the ClusterXSettings class
"""

from __future__ import annotations

import json
from copy import deepcopy
from datetime import datetime as dt
from os import path

import boto3
import yaml
from compose_x_common.compose_x_common import keyisset, set_else_none

from ecs_clusterx.common import logical_name, merge_definitions
from ecs_clusterx.common.aws import get_deployed_cluster_versions
from ecs_clusterx.common.logging import LOG
from ecs_clusterx.exceptions import ConfigurationError
from ecs_clusterx.specs import INPUT_SPEC, validate_definition

CLUSTER_KEY = "x-cluster"
SERVICES_KEY = "services"


def load_files(files: list) -> dict:
    """
    Loads the YAML/JSON files and merges them in order, the latter files overriding the former ones.

    :param list[str] files:
    :rtype: dict
    """
    content = {}
    for file_path in files:
        if not path.exists(file_path):
            raise FileNotFoundError(f"No file found at {file_path}")
        with open(file_path) as file_fd:
            file_content = yaml.safe_load(file_fd.read())
        if file_content is None:
            LOG.warning(f"{file_path} is empty. Skipping")
            continue
        if not isinstance(file_content, dict):
            raise ConfigurationError(
                f"{file_path} must define a mapping. Got", type(file_content).__name__
            )
        content = merge_definitions(content, file_content)
    return content


class ClusterXSettings:
    """
    Class to handle the settings to use for ECS Cluster-X: input content, output and versions state.

    :ivar str name: name of the cluster / stack
    :ivar dict content: the merged and validated input content
    :ivar dict versions: resources layout versions of the clusters previously deployed
    """

    name_arg = "Name"
    command_arg = "command"

    render_arg = "render"
    config_render_arg = "config"
    version_arg = "version"

    input_file_arg = "ClusterXFile"
    output_dir_arg = "OutputDirectory"
    format_arg = "TemplateFormat"
    state_file_arg = "StateFile"
    force_upgrade_arg = "ForceUpgrade"
    lookup_stack_arg = "LookupStack"
    default_format = "json"
    allowed_formats = ["json", "yaml"]

    default_output_dir = f"/tmp/{dt.now().strftime('%s')}"

    active_commands = [
        {
            "name": render_arg,
            "help": "Generates the CFN template of the cluster and its services locally",
        },
    ]
    validation_commands = [
        {
            "name": config_render_arg,
            "help": "Merges and validates the input files and prints the normalized services settings",
        }
    ]
    neutral_commands = [
        {"name": version_arg, "help": "ECS Cluster-X Version"},
    ]
    all_commands = active_commands + validation_commands + neutral_commands

    def __init__(self, content: dict = None, session=None, profile_name=None, **kwargs):
        """
        :param dict content: the input content. Read from the input files if not set
        :param boto3.session.Session session: session to use for the stack lookup
        :param str profile_name: AWS profile to use for the stack lookup
        """
        self.session = session
        self.profile_name = profile_name
        self.name = set_else_none(self.name_arg, kwargs)
        self.command = set_else_none(self.command_arg, kwargs, alt_value=self.render_arg)
        self.input_files = set_else_none(self.input_file_arg, kwargs, alt_value=[])
        self.state_file = set_else_none(self.state_file_arg, kwargs)
        self.force_upgrade = set_else_none(self.force_upgrade_arg, kwargs)
        self.lookup_stack = keyisset(self.lookup_stack_arg, kwargs)
        self.output_dir = self.default_output_dir
        self.format = self.default_format
        self.content = {}
        self.versions = {}
        self.set_output_settings(kwargs)
        self.set_content(content)
        self.load_versions()

    def __repr__(self):
        return f"{self.name}: {self.input_files}"

    def set_output_settings(self, kwargs: dict) -> None:
        """
        Method to set the output settings based on kwargs
        """
        if (
            keyisset(self.format_arg, kwargs)
            and kwargs[self.format_arg] in self.allowed_formats
        ):
            self.format = kwargs[self.format_arg]
        self.output_dir = set_else_none(
            self.output_dir_arg, kwargs, alt_value=self.default_output_dir
        )

    def set_content(self, content: dict = None) -> None:
        """
        Method to initialize the input content from the files or given content, and validates it.
        """
        if content is None:
            LOG.debug(f"Input files: {self.input_files}")
            content = load_files(self.input_files)
        self.content = deepcopy(content)
        LOG.info(f"Validating against input schema {INPUT_SPEC}")
        validate_definition(self.plain_content, INPUT_SPEC, self.name or "input")

    @property
    def plain_content(self) -> dict:
        """
        The content without the transform hooks, which may be callables when set from Python.
        """
        content = deepcopy(
            {key: value for key, value in self.content.items() if key != SERVICES_KEY}
        )
        if keyisset(CLUSTER_KEY, content):
            content[CLUSTER_KEY].pop("transform", None)
        if keyisset(SERVICES_KEY, self.content):
            content[SERVICES_KEY] = {
                name: {
                    key: value
                    for key, value in (definition or {}).items()
                    if key != "transform"
                }
                for name, definition in self.content[SERVICES_KEY].items()
            }
        return content

    @property
    def cluster_definition(self) -> dict:
        return self.content[CLUSTER_KEY]

    @property
    def cluster_name(self) -> str:
        """
        Name of the cluster, from x-cluster.name, or the name given to the settings.
        """
        name = set_else_none("name", self.cluster_definition, alt_value=self.name)
        if not name:
            raise ConfigurationError(
                f"{CLUSTER_KEY}.name must be set when no name is given"
            )
        return name

    @property
    def force_upgrade_value(self) -> str:
        """
        Force upgrade from the command line, or from x-cluster.forceUpgrade
        """
        return self.force_upgrade or set_else_none(
            "forceUpgrade", self.cluster_definition
        )

    @property
    def services_definitions(self) -> dict:
        return set_else_none(SERVICES_KEY, self.content, alt_value={})

    def get_session(self):
        if self.session is None:
            self.session = boto3.session.Session(profile_name=self.profile_name)
        return self.session

    def load_versions(self) -> None:
        """
        Loads the previously deployed versions from the state file, then from the deployed stack if lookup is enabled.
        """
        if self.state_file and path.exists(self.state_file):
            with open(self.state_file) as state_fd:
                state = json.loads(state_fd.read())
            self.versions.update(set_else_none("versions", state, alt_value={}))
            LOG.debug(f"Loaded versions {self.versions} from {self.state_file}")
        if self.lookup_stack and self.name:
            self.versions.update(
                get_deployed_cluster_versions(self.get_session(), self.name)
            )

    def previous_version(self, cluster_name: str):
        """
        :param str cluster_name:
        :return: the layout version the cluster was deployed with, None if never deployed
        :rtype: int
        """
        for key in (cluster_name, logical_name(cluster_name)):
            if key in self.versions:
                return int(self.versions[key])
        return None

    def set_version(self, cluster_name: str, version: int) -> None:
        if logical_name(cluster_name) != cluster_name:
            self.versions.pop(logical_name(cluster_name), None)
        self.versions[cluster_name] = version

    def write_state(self) -> None:
        """
        Writes the versions to the state file, if set.
        """
        if not self.state_file:
            return
        with open(self.state_file, "w") as state_fd:
            state_fd.write(json.dumps({"versions": self.versions}, indent=2))
        LOG.info(f"Versions state written to {self.state_file}")
