# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

"""
EFS volumes mounted into the containers
"""

from __future__ import annotations

from compose_x_common.compose_x_common import set_else_none

from ecs_clusterx.common import logical_name
from ecs_clusterx.exceptions import ConfigurationError


class VolumeMount:
    """
    An EFS file system (and its access point) mounted at `path` into a container

    :ivar str file_system: the EFS FileSystem ID
    :ivar str access_point: the EFS AccessPoint ID
    :ivar str path: the mount path in the container
    """

    def __init__(self, definition: dict):
        efs = definition["efs"]
        self.file_system = efs["fileSystem"]
        self.access_point = set_else_none("accessPoint", efs)
        self.path = definition["path"]

    @property
    def volume_name(self) -> str:
        """
        Name of the volume in the task definition. The same file system and access point
        mounted in several containers share one task volume.
        """
        return logical_name(self.file_system, self.access_point or "")

    def to_dict(self) -> dict:
        return {
            "efs": {"fileSystem": self.file_system, "accessPoint": self.access_point},
            "path": self.path,
        }


def define_volumes(container_name: str, definitions: list) -> list:
    """
    :param str container_name:
    :param list definitions:
    :rtype: list[VolumeMount]
    :raises ConfigurationError: if two volumes are mounted on the same path
    """
    volumes = [VolumeMount(definition) for definition in definitions or []]
    paths = [volume.path for volume in volumes]
    if len(paths) != len(set(paths)):
        raise ConfigurationError(
            f"{container_name} - More than one volume mounted on the same path", paths
        )
    return volumes
