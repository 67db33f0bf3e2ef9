# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Normalization of the containers of a service, either from the `containers` list
or synthesized from the top-level properties of the service.
"""

from __future__ import annotations

from copy import deepcopy

from compose_x_common.compose_x_common import keyisset, keypresent, set_else_none

from ecs_clusterx.common.logging import LOG
from ecs_clusterx.ecs.docker_tools import cpu_to_units, duration_to_seconds, gb_to_mb
from ecs_clusterx.ecs.ecs_params import (
    CONTAINER_HEALTH_DEFAULTS,
    CONTAINER_HEALTH_RANGES,
    DEFAULT_LOG_RETENTION,
    LOG_RETENTION,
)
from ecs_clusterx.exceptions import (
    ConfigurationError,
    ConflictingTopLevelAndContainers,
    DuplicateContainerName,
    InvalidHealthCheck,
)

from .volumes import define_volumes

TOP_LEVEL_CONTAINER_KEYS = [
    "image",
    "command",
    "entrypoint",
    "environment",
    "ssm",
    "volumes",
    "health",
]

_UNSET = object()


def environment_value(value) -> str:
    """
    Environment values are strings. Booleans are rendered as in YAML, i.e. `true`
    """
    if isinstance(value, bool):
        return str(value).lower()
    return str(value)


def _lookup(key_path: str, definition: dict):
    value = definition
    for key in key_path.split("."):
        if not isinstance(value, dict) or not keypresent(key, value):
            return _UNSET
        value = value[key]
    return value


def resolve_setting(
    key_path: str, container_definition: dict, service_definition: dict, default=None
):
    """
    Resolves a setting with the precedence

    1. the container definition
    2. the service (top-level) definition
    3. the default value

    A value explicitly set to None is considered unset.

    :param str key_path: the path to the setting, dot separated, i.e. `logging.retention`
    :param dict container_definition:
    :param dict service_definition:
    :param default:
    """
    for source in (container_definition, service_definition):
        value = _lookup(key_path, source or {})
        if value is not _UNSET and value is not None:
            return value
    return default


class ContainerImage:
    """
    The image of a container, either a pre-built image URI or the build instructions.

    :ivar str uri: the image URI when pre-built
    :ivar dict build: context, dockerfile, args and tags when the image is to be built
    """

    def __init__(self, definition=None):
        self.uri = None
        self.build = None
        if isinstance(definition, str):
            self.uri = definition
        else:
            definition = definition or {}
            self.build = {
                "context": set_else_none("context", definition, alt_value="."),
                "dockerfile": set_else_none(
                    "dockerfile", definition, alt_value="Dockerfile"
                ),
                "args": set_else_none("args", definition, alt_value={}),
                "tags": set_else_none("tags", definition, alt_value=[]),
            }

    @property
    def is_built(self) -> bool:
        return self.build is not None

    def to_dict(self):
        return self.uri if self.uri else deepcopy(self.build)


class ContainerHealthCheck:
    """
    ECS health check of the container (docker HEALTHCHECK)
    """

    def __init__(self, container_name: str, definition: dict):
        self.command = list(definition["command"])
        if not self.command or self.command[0] not in ["CMD", "CMD-SHELL"]:
            raise InvalidHealthCheck(
                f"{container_name} - health.command must start with CMD or CMD-SHELL. Got",
                self.command,
            )
        self.start_period = self.import_value(container_name, definition, "startPeriod")
        self.timeout = self.import_value(container_name, definition, "timeout")
        self.interval = self.import_value(container_name, definition, "interval")
        self.retries = self.import_value(container_name, definition, "retries")

    @staticmethod
    def import_value(container_name: str, definition: dict, key: str) -> int:
        value = set_else_none(
            key, definition, CONTAINER_HEALTH_DEFAULTS[key], eval_bool=True
        )
        if isinstance(value, str):
            value = duration_to_seconds(value)
        low, high = CONTAINER_HEALTH_RANGES[key]
        if not low <= value <= high:
            raise InvalidHealthCheck(
                f"{container_name} - health.{key} must be between {low} and {high}. Got",
                value,
            )
        return value

    def to_dict(self) -> dict:
        return {
            "command": self.command,
            "startPeriod": f"{self.start_period} seconds",
            "timeout": f"{self.timeout} seconds",
            "interval": f"{self.interval} seconds",
            "retries": self.retries,
        }


class ContainerSettings:
    """
    Normalized definition of a container of the service

    :ivar str name:
    :ivar ContainerImage image:
    :ivar list command:
    :ivar list entrypoint:
    :ivar dict environment:
    :ivar dict ssm: environment variable name to SSM parameter / Secret ARN
    :ivar str log_retention: retention label
    :ivar list[VolumeMount] volumes:
    :ivar ContainerHealthCheck health:
    :ivar int cpu_units: CPU units when set for the container
    :ivar int memory_mb: Memory in MB when set for the container
    :ivar dict dev: settings for dev mode, inert once deployed
    """

    def __init__(
        self, name: str, definition: dict, service_definition: dict = None
    ):
        self.name = name
        self.definition = definition
        self.image = ContainerImage(set_else_none("image", definition))
        self.command = set_else_none("command", definition)
        self.entrypoint = set_else_none("entrypoint", definition)
        self.environment = {
            key: environment_value(value)
            for key, value in set_else_none(
                "environment", definition, alt_value={}
            ).items()
        }
        self.ssm = dict(set_else_none("ssm", definition, alt_value={}))
        self.log_retention = resolve_setting(
            "logging.retention",
            definition,
            service_definition,
            DEFAULT_LOG_RETENTION,
        )
        if self.log_retention not in LOG_RETENTION:
            raise ConfigurationError(
                f"{name} - logging.retention {self.log_retention} is not valid. Valid values",
                list(LOG_RETENTION.keys()),
            )
        self.volumes = define_volumes(name, set_else_none("volumes", definition))
        self.health = (
            ContainerHealthCheck(name, definition["health"])
            if keyisset("health", definition)
            else None
        )
        self.cpu = set_else_none("cpu", definition)
        self.cpu_units = cpu_to_units(self.cpu) if self.cpu else None
        self.memory = set_else_none("memory", definition)
        self.memory_mb = gb_to_mb(self.memory) if self.memory else None
        self.dev = set_else_none("dev", definition)

    def __repr__(self):
        return self.name

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "image": self.image.to_dict(),
            "command": self.command,
            "entrypoint": self.entrypoint,
            "environment": self.environment,
            "ssm": self.ssm,
            "logging": {"retention": self.log_retention},
            "volumes": [volume.to_dict() for volume in self.volumes],
            "health": self.health.to_dict() if self.health else None,
            "cpu": self.cpu,
            "memory": self.memory,
        }


def define_containers(service_name: str, definition: dict) -> list:
    """
    Defines the containers of the service. When `containers` is not set, a single
    container named after the service is created from the top-level properties.

    :param str service_name:
    :param dict definition: the service definition
    :rtype: list[ContainerSettings]
    :raises ConflictingTopLevelAndContainers: containers and top-level container properties are both set
    :raises DuplicateContainerName:
    """
    if not keyisset("containers", definition):
        LOG.debug(f"{service_name} - Using top-level definition for single container")
        container_definition = {
            key: definition[key]
            for key in TOP_LEVEL_CONTAINER_KEYS
            if keypresent(key, definition)
        }
        return [ContainerSettings(service_name, container_definition, definition)]
    conflicting = [
        key for key in TOP_LEVEL_CONTAINER_KEYS if keypresent(key, definition)
    ]
    if conflicting:
        raise ConflictingTopLevelAndContainers(
            f"{service_name} - containers is set. You cannot set at the top-level",
            conflicting,
        )
    names = [container_def["name"] for container_def in definition["containers"]]
    duplicates = sorted({name for name in names if names.count(name) > 1})
    if duplicates:
        raise DuplicateContainerName(
            f"{service_name} - container names must be unique. Duplicates", duplicates
        )
    return [
        ContainerSettings(container_def["name"], container_def, definition)
        for container_def in definition["containers"]
    ]
