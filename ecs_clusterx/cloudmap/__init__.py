# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Registration of the services into the cluster CloudMap namespace
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ecs_clusterx.cluster import Service

from troposphere import GetAtt, NoValue, Sub
from troposphere.ecs import ServiceRegistry
from troposphere.servicediscovery import DnsConfig, DnsRecord, HealthCheckCustomConfig
from troposphere.servicediscovery import Service as SdService

from ecs_clusterx.common.troposphere_tools import build_resource

CLOUDMAP_SERVICE_T = "CloudMapService"
DNS_TTL = "15"


class EcsDiscoveryService:
    """
    Manages the CloudMap Service Discovery service of an ECS service. Always registers an A record,
    and a SRV record when the service registry port is set.
    """

    def __init__(self, service: Service):
        self.service = service
        self.registry = service.settings.service_registry
        records = [DnsRecord(TTL=DNS_TTL, Type="A")]
        if self.registry:
            records.append(DnsRecord(TTL=DNS_TTL, Type="SRV"))
        self.cfn_resource = build_resource(
            SdService,
            f"{service.logical_name}{CLOUDMAP_SERVICE_T}",
            {
                "Name": service.name,
                "Description": Sub(
                    f"{service.name} service in ${{{service.cluster.ecs_cluster.title}}}"
                ),
                "NamespaceId": service.cluster.vpc.cloudmap_namespace_id,
                "HealthCheckCustomConfig": HealthCheckCustomConfig(FailureThreshold=1.0),
                "DnsConfig": DnsConfig(
                    RoutingPolicy="MULTIVALUE",
                    NamespaceId=NoValue,
                    DnsRecords=records,
                ),
            },
            service.template,
        )

    @property
    def hostname(self) -> str:
        return f"{self.service.name}.{self.service.cluster.vpc.cloudmap_namespace_name}"

    @property
    def arn(self):
        return GetAtt(self.cfn_resource, "Arn")

    @property
    def ecs_service_registry(self) -> ServiceRegistry:
        if self.registry:
            return ServiceRegistry(
                RegistryArn=self.arn,
                ContainerName=self.registry.container,
                ContainerPort=self.registry.port,
            )
        return ServiceRegistry(RegistryArn=self.arn)
