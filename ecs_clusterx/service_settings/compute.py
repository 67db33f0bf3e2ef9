# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Resolution of the service CPU, Memory and Storage against the AWS Fargate supported configurations.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .containers import ContainerSettings

from ecs_clusterx.common.logging import LOG
from ecs_clusterx.ecs.docker_tools import gb_value
from ecs_clusterx.ecs.ecs_params import (
    DEFAULT_CPU,
    DEFAULT_STORAGE,
    MAX_STORAGE_GB,
    MIN_STORAGE_GB,
    SUPPORTED_CPUS,
    SUPPORTED_MEMORIES,
)
from ecs_clusterx.exceptions import (
    InvalidSizeCombination,
    OverAllocatedContainerResources,
)


class TaskSize:
    """
    Class to represent the resolved Task CPU/RAM/Storage settings.
    The labels are kept as they were defined, the units are those ECS expects.

    :ivar str cpu: CPU label, i.e. `1 vCPU`
    :ivar int cpu_units: CPU units, i.e. 1024
    :ivar str memory: Memory label, i.e. `2 GB`
    :ivar int memory_mb: Memory in MB
    :ivar str storage: Storage label
    :ivar int storage_gb: Storage in GiB
    """

    def __init__(self, cpu: str, memory: str, storage: str):
        self.cpu = cpu
        self.cpu_units = SUPPORTED_CPUS[cpu]
        self.memory = memory
        self.memory_mb = SUPPORTED_MEMORIES[cpu][memory]
        self.storage = storage
        self.storage_gb = gb_value(storage)

    def __repr__(self):
        return f"{self.cpu}/{self.memory}/{self.storage}"

    def to_dict(self) -> dict:
        return {"cpu": self.cpu, "memory": self.memory, "storage": self.storage}


def resolve_cpu_memory(cpu: str = None, memory: str = None) -> tuple:
    """
    Looks up the CPU tier and validates the memory is valid for it. If memory is not set,
    uses the smallest memory supported for the CPU tier.

    :param str cpu: CPU label, defaults to `0.25 vCPU`
    :param str memory: Memory label, i.e. `2 GB`
    :return: the cpu and memory labels
    :rtype: tuple[str, str]
    :raises InvalidSizeCombination: if the CPU/Memory is not supported
    """
    if cpu is None:
        cpu = DEFAULT_CPU
    if cpu not in SUPPORTED_CPUS:
        raise InvalidSizeCombination(
            f"CPU {cpu} is not supported. Valid values are", list(SUPPORTED_CPUS.keys())
        )
    tier_memories = SUPPORTED_MEMORIES[cpu]
    if memory is None:
        memory = list(tier_memories.keys())[0]
        LOG.debug(f"No memory set for {cpu}. Using {memory}")
    elif memory not in tier_memories:
        raise InvalidSizeCombination(
            f"Memory {memory} is not supported with CPU {cpu}. Valid values are",
            list(tier_memories.keys()),
        )
    return cpu, memory


def resolve_storage(storage: str = None) -> str:
    """
    Validates the ephemeral storage is within the range supported by Fargate.
    """
    if storage is None:
        return DEFAULT_STORAGE
    size = gb_value(storage)
    if not MIN_STORAGE_GB <= size <= MAX_STORAGE_GB:
        raise InvalidSizeCombination(
            f"Storage {storage} must be between {MIN_STORAGE_GB} GB and {MAX_STORAGE_GB} GB"
        )
    return storage


def define_task_size(definition: dict) -> TaskSize:
    cpu, memory = resolve_cpu_memory(definition.get("cpu"), definition.get("memory"))
    return TaskSize(cpu, memory, resolve_storage(definition.get("storage")))


def validate_containers_allocation(
    service_name: str, size: TaskSize, containers: list[ContainerSettings]
) -> None:
    """
    Ensures that the sum of the CPU and Memory explicitly set on the containers fit in the task size.

    :raises OverAllocatedContainerResources:
    """
    containers_cpu = sum(
        container.cpu_units for container in containers if container.cpu_units
    )
    containers_ram = sum(
        container.memory_mb for container in containers if container.memory_mb
    )
    if containers_cpu > size.cpu_units:
        raise OverAllocatedContainerResources(
            f"{service_name} - Containers use {containers_cpu} CPU units "
            f"which is more than the service {size.cpu} ({size.cpu_units})"
        )
    if containers_ram > size.memory_mb:
        raise OverAllocatedContainerResources(
            f"{service_name} - Containers use {containers_ram}MB "
            f"which is more than the service {size.memory} ({size.memory_mb}MB)"
        )
