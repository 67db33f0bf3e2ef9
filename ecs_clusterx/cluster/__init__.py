# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

"""
The ECS Cluster, owner of the VPC settings and of the template the services are added to.

.. code-block:: python

    cluster = Cluster("prod", vpc={...})
    web = cluster.add_service("web", {"image": "nginx", "loadBalancer": {"ports": [{"listen": "80/http"}]}})
    print(cluster.template.to_json())
"""

from __future__ import annotations

from copy import deepcopy
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ecs_clusterx.common.settings import ClusterXSettings
    from ecs_clusterx.iam.link import LinkResolver

from troposphere import GetAtt, Output, Ref, Template
from troposphere.ecs import Cluster as EcsCluster
from troposphere.ecs import (
    ClusterConfiguration,
    ClusterSetting,
    ExecuteCommandConfiguration,
)

from ecs_clusterx import __version__ as version
from ecs_clusterx.common import logical_name
from ecs_clusterx.common.logging import LOG
from ecs_clusterx.common.troposphere_tools import add_outputs, build_resource
from ecs_clusterx.ecs import metadata as ecs_metadata
from ecs_clusterx.ecs.ecs_params import CLUSTER_T, LAYOUT_VERSION, LAYOUT_VERSION_T
from ecs_clusterx.exceptions import ConfigurationError
from ecs_clusterx.service_settings import normalize_service

from .cluster_service import Service
from .versioning import check_layout_version
from .vpc import ClusterVpc

FORCE_UPGRADE_VALUES = [f"v{LAYOUT_VERSION}"]


class Cluster:
    """
    ECS Cluster for Fargate services.

    :ivar str name:
    :ivar ClusterVpc vpc:
    :ivar dict transform: hooks applied to the cluster resource properties
    :ivar troposphere.Template template: the template all resources are added to
    :ivar int layout_version: the resources layout version applied
    :ivar troposphere.ecs.Cluster ecs_cluster:
    :ivar dict[str, Service] services:
    """

    def __init__(
        self,
        name: str,
        vpc,
        transform: dict = None,
        force_upgrade: str = None,
        settings: ClusterXSettings = None,
        template: Template = None,
        permissions_resolver: LinkResolver = None,
    ):
        """
        :param str name: name of the cluster
        :param vpc: the VPC settings, as a mapping or ClusterVpc
        :param dict transform: `{"cluster": hook}`
        :param str force_upgrade: opt-in to upgrade the resources layout of a deployed cluster, i.e. `v2`
        :param ClusterXSettings settings: settings holding the previously deployed versions
        :param troposphere.Template template: template to add the resources to. A new one is created if not set
        :param permissions_resolver: resolves the resources of `link` into IAM permissions
        :raises ConfigurationError: invalid name, VPC or force_upgrade
        :raises BreakingVersionChange: the deployed layout version is different and not opted in
        """
        if not name or not logical_name(name):
            raise ConfigurationError("The cluster name must be set and alphanumerical")
        if force_upgrade is not None and force_upgrade not in FORCE_UPGRADE_VALUES:
            raise ConfigurationError(
                f"{name} - forceUpgrade {force_upgrade} is invalid. Valid values",
                FORCE_UPGRADE_VALUES,
            )
        self.name = name
        self.logical_name = logical_name(name)
        self.vpc = vpc if isinstance(vpc, ClusterVpc) else ClusterVpc(vpc)
        self.transform = transform or {}
        self.force_upgrade = force_upgrade
        self.settings = settings
        self.permissions_resolver = permissions_resolver
        self.services = {}
        previous_version = settings.previous_version(name) if settings else None
        self.layout_version = check_layout_version(
            name, previous_version, LAYOUT_VERSION, force_upgrade
        )
        self.template = (
            template
            if template is not None
            else Template(Description=f"ECS Cluster-X {version} - {name}")
        )
        self.ecs_cluster = build_resource(
            EcsCluster,
            f"{self.logical_name}{CLUSTER_T}",
            {
                "ClusterName": name,
                "ClusterSettings": [
                    ClusterSetting(Name="containerInsights", Value="enabled")
                ],
                "Configuration": ClusterConfiguration(
                    ExecuteCommandConfiguration=ExecuteCommandConfiguration(
                        Logging="DEFAULT"
                    )
                ),
                "CapacityProviders": ["FARGATE", "FARGATE_SPOT"],
                "Metadata": self.metadata,
            },
            self.template,
            self.transform.get("cluster"),
        )
        add_outputs(
            self.template,
            [
                Output(f"{self.logical_name}Name", Value=Ref(self.ecs_cluster)),
                Output(f"{self.logical_name}Arn", Value=GetAtt(self.ecs_cluster, "Arn")),
                Output(
                    f"{self.logical_name}{LAYOUT_VERSION_T}",
                    Value=str(self.layout_version),
                ),
            ],
        )
        if settings:
            settings.set_version(name, self.layout_version)
        LOG.info(f"Cluster {name} - resources layout v{self.layout_version}")

    def __repr__(self):
        return self.name

    @property
    def metadata(self) -> dict:
        """
        Metadata of the cluster resource, with the resources layout version applied.
        """
        cluster_metadata = deepcopy(ecs_metadata)
        cluster_metadata["Properties"]["LayoutVersion"] = self.layout_version
        return cluster_metadata

    @property
    def cluster_name(self):
        return Ref(self.ecs_cluster)

    @property
    def cluster_arn(self):
        return GetAtt(self.ecs_cluster, "Arn")

    @property
    def nodes(self) -> dict:
        """
        The underlying resources of the cluster.
        """
        return {"cluster": self.ecs_cluster}

    def add_service(self, name: str, definition: dict = None) -> Service:
        """
        Adds a service to the cluster. The definition is validated and normalized before any
        resource gets added to the template.

        :param str name: name of the service
        :param dict definition: the service definition
        :rtype: Service
        :raises ConfigurationError: if the definition is not valid
        """
        settings = normalize_service(name, definition)
        service = Service(self, settings)
        for existing in self.services.values():
            if existing.logical_name == service.logical_name:
                raise ConfigurationError(
                    f"{self.name} - service {name} conflicts with service {existing.name}. "
                    "Names must be unique once non alphanumerical characters are removed"
                )
        service.plan()
        service.compose()
        self.services[name] = service
        return service


__all__ = ["Cluster", "ClusterVpc", "Service"]
