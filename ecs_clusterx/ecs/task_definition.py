# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Containers definitions and Task Definition of a service.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ecs_clusterx.cluster import Service
    from ecs_clusterx.service_settings.containers import ContainerSettings

from troposphere import NoValue, Parameter, Ref
from troposphere.ecs import (
    AuthorizationConfig,
    ContainerDefinition,
    EFSVolumeConfiguration,
    Environment,
    EphemeralStorage,
    HealthCheck,
    MountPoint,
    PortMapping,
    RuntimePlatform,
    Secret,
    TaskDefinition,
    Volume,
)

from ecs_clusterx.common import logical_name
from ecs_clusterx.common.logging import LOG
from ecs_clusterx.common.troposphere_tools import (
    add_parameters,
    apply_transform,
    build_resource,
)
from ecs_clusterx.ecs.ecs_params import (
    ARCHITECTURES,
    IMAGE_URI_T,
    MIN_STORAGE_GB,
    TASK_T,
)
from ecs_clusterx.ecs.task_logging import container_log_configuration

IMAGES_METADATA_KEY = "ecs-cluster-x::images"

CONTAINER_PROTOCOLS = {
    "http": ["tcp"],
    "https": ["tcp"],
    "tcp": ["tcp"],
    "tls": ["tcp"],
    "udp": ["udp"],
    "tcp_udp": ["tcp", "udp"],
}


def define_image(service: Service, container: ContainerSettings):
    """
    Returns the image to use for the container. For images to build, a template parameter
    is added to pass the image URI in, and the build settings are kept in the template Metadata.

    :return: the image URI or Ref() to the image parameter
    """
    if not container.image.is_built:
        return container.image.uri
    title = f"{logical_name(service.name, container.name)}{IMAGE_URI_T}"
    props = apply_transform(
        {
            "Type": "String",
            "Description": f"Image URI of {service.name}/{container.name}, "
            f"built from {container.image.build['context']}",
        },
        title,
        service.settings.transform.get("image"),
    )
    parameter = Parameter(title, **props)
    add_parameters(service.template, [parameter])
    images = service.template.metadata.setdefault(IMAGES_METADATA_KEY, {})
    images[parameter.title] = {
        "service": service.name,
        "container": container.name,
        **container.image.to_dict(),
    }
    LOG.info(
        f"{service.name}.{container.name} - image to build. Set {parameter.title} at deploy time"
    )
    return Ref(parameter)


def define_container_ports(service: Service, container: ContainerSettings) -> list:
    """
    Lists the ports the container receives traffic on, from the load balancer and the service registry.
    `tcp_udp` ports open the port for both protocols.

    :rtype: list[troposphere.ecs.PortMapping]
    """
    ports = []
    settings = service.settings
    if settings.load_balancer:
        for port in settings.load_balancer.ports:
            if port.container == container.name:
                ports.append((port.forward_port, port.forward_protocol))
    if (
        settings.service_registry
        and settings.service_registry.container == container.name
    ):
        ports.append((settings.service_registry.port, "tcp"))
    mappings = []
    for port, protocol in ports:
        for container_protocol in CONTAINER_PROTOCOLS[protocol]:
            if (port, container_protocol) not in mappings:
                mappings.append((port, container_protocol))
    return [
        PortMapping(ContainerPort=port, Protocol=protocol)
        for port, protocol in mappings
    ]


def define_container_health(container: ContainerSettings):
    if not container.health:
        return NoValue
    return HealthCheck(
        Command=container.health.command,
        StartPeriod=container.health.start_period,
        Timeout=container.health.timeout,
        Interval=container.health.interval,
        Retries=container.health.retries,
    )


def define_container_definition(
    service: Service, container: ContainerSettings, log_group
) -> ContainerDefinition:
    return ContainerDefinition(
        Name=container.name,
        Image=define_image(service, container),
        Essential=True,
        Command=container.command if container.command else NoValue,
        EntryPoint=container.entrypoint if container.entrypoint else NoValue,
        Environment=[
            Environment(Name=name, Value=value)
            for name, value in container.environment.items()
        ],
        Secrets=[
            Secret(Name=name, ValueFrom=value) for name, value in container.ssm.items()
        ],
        LogConfiguration=container_log_configuration(log_group, container.name),
        MountPoints=[
            MountPoint(
                ContainerPath=volume.path,
                SourceVolume=volume.volume_name,
                ReadOnly=False,
            )
            for volume in container.volumes
        ],
        HealthCheck=define_container_health(container),
        PortMappings=define_container_ports(service, container),
        Cpu=container.cpu_units if container.cpu_units else NoValue,
        Memory=container.memory_mb if container.memory_mb else NoValue,
    )


def define_task_volumes(service: Service) -> list:
    """
    EFS volumes of the task, one per file system/access point, shared across the containers mounting it.

    :rtype: list[troposphere.ecs.Volume]
    """
    volumes = {}
    for container in service.settings.containers:
        for mount in container.volumes:
            if mount.volume_name in volumes:
                continue
            efs_config = {
                "FilesystemId": mount.file_system,
                "TransitEncryption": "ENABLED",
            }
            if mount.access_point:
                efs_config["AuthorizationConfig"] = AuthorizationConfig(
                    AccessPointId=mount.access_point, IAM="ENABLED"
                )
            volumes[mount.volume_name] = Volume(
                Name=mount.volume_name,
                EFSVolumeConfiguration=EFSVolumeConfiguration(**efs_config),
            )
    return list(volumes.values())


def define_task_definition(service: Service) -> TaskDefinition:
    """
    Function to create the Fargate Task Definition of the service, with all its containers.
    Requires the log groups and IAM roles to be defined already.
    """
    size = service.settings.size
    props = {
        "Family": f"{service.cluster.name}-{service.name}",
        "Cpu": str(size.cpu_units),
        "Memory": str(size.memory_mb),
        "NetworkMode": "awsvpc",
        "RequiresCompatibilities": ["FARGATE"],
        "EphemeralStorage": EphemeralStorage(SizeInGiB=size.storage_gb)
        if size.storage_gb > MIN_STORAGE_GB
        else NoValue,
        "RuntimePlatform": RuntimePlatform(
            CpuArchitecture=ARCHITECTURES[service.settings.architecture],
            OperatingSystemFamily="LINUX",
        ),
        "ExecutionRoleArn": service.execution_role.arn,
        "TaskRoleArn": service.task_role.arn,
        "Volumes": define_task_volumes(service),
        "ContainerDefinitions": [
            define_container_definition(
                service, container, service.log_groups[container.name]
            )
            for container in service.settings.containers
        ],
    }
    return build_resource(
        TaskDefinition,
        f"{service.logical_name}{TASK_T}",
        props,
        service.template,
        service.settings.transform.get("taskDefinition"),
    )
