# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ecs_clusterx.cluster import Service
    from ecs_clusterx.service_settings.containers import ContainerSettings

from troposphere import NoValue, Ref, Region
from troposphere.ecs import LogConfiguration
from troposphere.logs import LogGroup

from ecs_clusterx.common import logical_name
from ecs_clusterx.common.troposphere_tools import build_resource
from ecs_clusterx.ecs.ecs_params import LOG_GROUP_T, LOG_RETENTION


def log_group_name(cluster_name: str, service_name: str, container_name: str) -> str:
    return f"/ecs/cluster/{cluster_name}/{service_name}/{container_name}"


def create_log_group(service: Service, container: ContainerSettings) -> LogGroup:
    """
    Function to create the Log Group of a container of the service.
    A retention of `forever` does not set RetentionInDays.
    """
    retention = LOG_RETENTION[container.log_retention]
    props = {
        "LogGroupName": log_group_name(
            service.cluster.name, service.name, container.name
        ),
        "RetentionInDays": retention if retention else NoValue,
    }
    return build_resource(
        LogGroup,
        f"{service.logical_name}{logical_name(container.name)}{LOG_GROUP_T}",
        props,
        service.template,
        service.settings.transform.get("logGroup"),
    )


def define_log_groups(service: Service) -> dict:
    """
    :return: the log groups, indexed by container name
    :rtype: dict[str, LogGroup]
    """
    return {
        container.name: create_log_group(service, container)
        for container in service.settings.containers
    }


def container_log_configuration(
    log_group: LogGroup, stream_prefix: str
) -> LogConfiguration:
    return LogConfiguration(
        LogDriver="awslogs",
        Options={
            "awslogs-group": Ref(log_group),
            "awslogs-region": Region,
            "awslogs-stream-prefix": stream_prefix,
        },
    )
