# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Module to build the ECS Service Definition
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ecs_clusterx.cluster import Service

from troposphere import NoValue, Ref
from troposphere.ecs import (
    AwsvpcConfiguration,
    CapacityProviderStrategyItem,
    DeploymentCircuitBreaker,
    DeploymentConfiguration,
    DeploymentController,
    NetworkConfiguration,
)
from troposphere.ecs import Service as EcsService

from ecs_clusterx.common.troposphere_tools import build_resource
from ecs_clusterx.ecs.ecs_params import SERVICE_T

HEALTH_CHECK_GRACE_PERIOD = 120


def define_network_configuration(service: Service) -> NetworkConfiguration:
    vpc = service.cluster.vpc
    return NetworkConfiguration(
        AwsvpcConfiguration=AwsvpcConfiguration(
            AssignPublicIp="ENABLED" if vpc.assign_public_ip else "DISABLED",
            Subnets=list(vpc.service_subnets),
            SecurityGroups=list(vpc.security_groups),
        )
    )


def define_ecs_service(service: Service) -> EcsService:
    """
    Function to generate the Service definition.
    This is the last step in defining the service, after all other resources have been created.
    The service depends on the listeners, as ECS rejects target groups not yet attached to a load balancer.
    """
    load_balancers = (
        service.load_balancer.ecs_load_balancers if service.load_balancer else []
    )
    props = {
        "ServiceName": service.name,
        "Cluster": Ref(service.cluster.ecs_cluster),
        "TaskDefinition": Ref(service.task_definition),
        "DesiredCount": service.settings.scaling.min,
        "CapacityProviderStrategy": [
            CapacityProviderStrategyItem(CapacityProvider="FARGATE", Weight=1)
        ],
        "DeploymentController": DeploymentController(Type="ECS"),
        "DeploymentConfiguration": DeploymentConfiguration(
            DeploymentCircuitBreaker=DeploymentCircuitBreaker(
                Enable=True, Rollback=True
            ),
        ),
        "EnableExecuteCommand": True,
        "EnableECSManagedTags": True,
        "PropagateTags": "SERVICE",
        "NetworkConfiguration": define_network_configuration(service),
        "LoadBalancers": load_balancers if load_balancers else NoValue,
        "HealthCheckGracePeriodSeconds": HEALTH_CHECK_GRACE_PERIOD
        if load_balancers
        else NoValue,
        "ServiceRegistries": [service.cloudmap_service.ecs_service_registry],
    }
    if service.load_balancer:
        props["DependsOn"] = [
            listener.title for listener in service.load_balancer.listeners.values()
        ] + [rule.title for rule in service.load_balancer.listener_rules]
    return build_resource(
        EcsService,
        f"{service.logical_name}{SERVICE_T}",
        props,
        service.template,
        service.settings.transform.get("service"),
    )
