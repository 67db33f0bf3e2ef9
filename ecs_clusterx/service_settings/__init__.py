# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Validation and normalization of the services definitions.

:func:`normalize_service` is the single entry point. It takes the definition as set by the user and returns
the fully resolved :class:`ServiceSettings` (defaults applied, shorthand forms expanded), or raises a
:class:`ecs_clusterx.exceptions.ConfigurationError`. The input definition is never modified.
"""

from __future__ import annotations

from copy import deepcopy

from compose_x_common.compose_x_common import keyisset, set_else_none

from ecs_clusterx.common.logging import LOG
from ecs_clusterx.ecs.ecs_params import DEFAULT_ARCHITECTURE
from ecs_clusterx.exceptions import ConfigurationError
from ecs_clusterx.specs import SERVICE_SPEC, validate_definition

from .compute import define_task_size, validate_containers_allocation
from .containers import ContainerSettings, define_containers, resolve_setting
from .ports import LoadBalancerSettings, define_load_balancer, set_target_container
from .scaling import ScalingSettings


class ServiceRegistry:
    """
    CloudMap SRV registration of the service, i.e. for API Gateway VPC links

    :ivar int port:
    :ivar str container:
    """

    def __init__(self, service_name: str, definition: dict, container_names: list):
        self.port = definition["port"]
        self.container = set_target_container(
            service_name, container_names, set_else_none("container", definition)
        )

    def to_dict(self) -> dict:
        return {"port": self.port, "container": self.container}


class ServiceSettings:
    """
    Fully resolved settings of a service.

    :ivar str name:
    :ivar str architecture:
    :ivar ecs_clusterx.service_settings.compute.TaskSize size:
    :ivar list[ContainerSettings] containers:
    :ivar LoadBalancerSettings load_balancer: None when no load balancer is used
    :ivar ScalingSettings scaling:
    :ivar ServiceRegistry service_registry:
    :ivar str task_role: existing IAM role to use as the task role
    :ivar str execution_role: existing IAM role to use as the execution role
    :ivar list link: resources to grant the task role permissions to
    :ivar list permissions: additional IAM permissions of the task role
    :ivar dev: dev mode settings, not used at deploy time
    :ivar dict transform: hooks to apply to the resources properties
    """

    def __init__(
        self,
        name: str,
        architecture: str,
        size,
        containers: list,
        load_balancer: LoadBalancerSettings | None,
        scaling: ScalingSettings,
        service_registry: ServiceRegistry | None,
        task_role: str = None,
        execution_role: str = None,
        link: list = None,
        permissions: list = None,
        dev=None,
        transform: dict = None,
    ):
        self.name = name
        self.architecture = architecture
        self.size = size
        self.containers = containers
        self.load_balancer = load_balancer
        self.scaling = scaling
        self.service_registry = service_registry
        self.task_role = task_role
        self.execution_role = execution_role
        self.link = link or []
        self.permissions = permissions or []
        self.dev = dev
        self.transform = transform or {}

    def __repr__(self):
        return f"{self.name}({self.size!r}, {[c.name for c in self.containers]})"

    @property
    def container_names(self) -> list:
        return [container.name for container in self.containers]

    def get_container(self, name: str) -> ContainerSettings:
        for container in self.containers:
            if container.name == name:
                return container
        raise KeyError(f"{self.name} - No container named {name}")

    def to_dict(self) -> dict:
        """
        Returns the resolved settings with the same keys as the input definition.
        """
        return {
            "architecture": self.architecture,
            **self.size.to_dict(),
            "containers": [container.to_dict() for container in self.containers],
            "loadBalancer": self.load_balancer.to_dict()
            if self.load_balancer
            else None,
            "scaling": self.scaling.to_dict(),
            "serviceRegistry": self.service_registry.to_dict()
            if self.service_registry
            else None,
            "taskRole": self.task_role,
            "executionRole": self.execution_role,
            "permissions": self.permissions,
        }


def normalize_service(name: str, definition: dict = None) -> ServiceSettings:
    """
    Validates and normalizes the definition of a service.

    :param str name: the service name
    :param dict definition: the service definition
    :return: the resolved settings
    :rtype: ServiceSettings
    :raises ConfigurationError: when the definition is invalid
    """
    if not name:
        raise ConfigurationError("The service name must be set")
    definition = dict(definition) if definition else {}
    transform = definition.pop("transform", None) or {}
    definition = deepcopy(definition)
    # hooks are opaque, only their keys are validated
    validate_definition(
        {
            **definition,
            "transform": {key: None for key in transform}
            if isinstance(transform, dict)
            else transform,
        },
        SERVICE_SPEC,
        name,
    )

    containers = define_containers(name, definition)
    container_names = [container.name for container in containers]
    size = define_task_size(definition)
    validate_containers_allocation(name, size, containers)
    load_balancer = define_load_balancer(name, definition, container_names)
    scaling = ScalingSettings(name, set_else_none("scaling", definition))
    service_registry = (
        ServiceRegistry(name, definition["serviceRegistry"], container_names)
        if keyisset("serviceRegistry", definition)
        else None
    )
    settings = ServiceSettings(
        name,
        set_else_none("architecture", definition, alt_value=DEFAULT_ARCHITECTURE),
        size,
        containers,
        load_balancer,
        scaling,
        service_registry,
        task_role=set_else_none("taskRole", definition),
        execution_role=set_else_none("executionRole", definition),
        link=set_else_none("link", definition, alt_value=[]),
        permissions=set_else_none("permissions", definition, alt_value=[]),
        dev=set_else_none("dev", definition, eval_bool=True),
        transform=transform,
    )
    LOG.debug(f"{name} - Normalized settings {settings!r}")
    return settings


__all__ = [
    "ServiceSettings",
    "ServiceRegistry",
    "normalize_service",
    "resolve_setting",
]
