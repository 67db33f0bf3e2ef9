# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

from __future__ import annotations

from compose_x_common.compose_x_common import keyisset, set_else_none

from ecs_clusterx.exceptions import InvalidClusterVpc

SUBNETS_KEYS = ["loadBalancerSubnets", "serviceSubnets"]
REQUIRED_KEYS = ["id", "cloudmapNamespaceId", "cloudmapNamespaceName"]


class ClusterVpc:
    """
    The VPC settings of the cluster, shared by all its services. Read-only once created.

    :ivar str id: the VPC ID
    :ivar tuple load_balancer_subnets:
    :ivar tuple service_subnets:
    :ivar tuple security_groups: security groups of the services
    :ivar str cloudmap_namespace_id:
    :ivar str cloudmap_namespace_name:
    :ivar bool assign_public_ip: whether the services tasks get a public IP
    """

    def __init__(self, definition: dict):
        if not isinstance(definition, dict):
            raise InvalidClusterVpc(
                "vpc must be a mapping. Got", type(definition).__name__
            )
        missing = [key for key in REQUIRED_KEYS if not keyisset(key, definition)]
        missing += [key for key in SUBNETS_KEYS if not keyisset(key, definition)]
        if missing:
            raise InvalidClusterVpc("vpc is missing settings", missing)
        self._id = definition["id"]
        self._load_balancer_subnets = tuple(definition["loadBalancerSubnets"])
        self._service_subnets = tuple(definition["serviceSubnets"])
        self._security_groups = tuple(
            set_else_none("securityGroups", definition, alt_value=[])
        )
        self._cloudmap_namespace_id = definition["cloudmapNamespaceId"]
        self._cloudmap_namespace_name = definition["cloudmapNamespaceName"]
        self._assign_public_ip = set_else_none(
            "assignPublicIp", definition, alt_value=True, eval_bool=True
        )

    def __repr__(self):
        return self._id

    @property
    def id(self) -> str:
        return self._id

    @property
    def load_balancer_subnets(self) -> tuple:
        return self._load_balancer_subnets

    @property
    def service_subnets(self) -> tuple:
        return self._service_subnets

    @property
    def security_groups(self) -> tuple:
        return self._security_groups

    @property
    def cloudmap_namespace_id(self) -> str:
        return self._cloudmap_namespace_id

    @property
    def cloudmap_namespace_name(self) -> str:
        return self._cloudmap_namespace_name

    @property
    def assign_public_ip(self) -> bool:
        return self._assign_public_ip

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "loadBalancerSubnets": list(self.load_balancer_subnets),
            "serviceSubnets": list(self.service_subnets),
            "securityGroups": list(self.security_groups),
            "cloudmapNamespaceId": self.cloudmap_namespace_id,
            "cloudmapNamespaceName": self.cloudmap_namespace_name,
            "assignPublicIp": self.assign_public_ip,
        }
