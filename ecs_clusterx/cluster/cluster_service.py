# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Service of the cluster: composes all the resources of a service from its normalized settings.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ecs_clusterx.cluster import Cluster
    from ecs_clusterx.service_settings import ServiceSettings

from troposphere import GetAtt, Output

from ecs_clusterx.cloudmap import EcsDiscoveryService
from ecs_clusterx.common import logical_name
from ecs_clusterx.common.logging import LOG
from ecs_clusterx.common.troposphere_tools import add_outputs
from ecs_clusterx.ecs.ecs_service import define_ecs_service
from ecs_clusterx.ecs.task_definition import define_task_definition
from ecs_clusterx.ecs.task_iam import define_execution_role, define_task_role
from ecs_clusterx.ecs.task_logging import define_log_groups
from ecs_clusterx.elbv2 import ServiceLoadBalancer
from ecs_clusterx.elbv2.elbv2_params import LB_URL_T
from ecs_clusterx.iam import define_role_arn, permission_to_statement
from ecs_clusterx.iam.link import resolve_link_statements
from ecs_clusterx.service_scaling import ServiceScaling


class Service:
    """
    A service deployed onto the cluster.

    :ivar Cluster cluster: the cluster the service belongs to
    :ivar ServiceSettings settings: the normalized settings
    :ivar dict log_groups: the log groups, indexed by container name
    :ivar ecs_clusterx.ecs.task_iam.EcsRole execution_role:
    :ivar ecs_clusterx.ecs.task_iam.EcsRole task_role:
    :ivar troposphere.ecs.TaskDefinition task_definition:
    :ivar ServiceLoadBalancer load_balancer: None when the service has no load balancer
    :ivar EcsDiscoveryService cloudmap_service:
    :ivar troposphere.ecs.Service ecs_service:
    :ivar ServiceScaling scaling:
    """

    def __init__(self, cluster: Cluster, settings: ServiceSettings):
        self.cluster = cluster
        self.settings = settings
        self.name = settings.name
        self.logical_name = logical_name(settings.name)
        self.template = cluster.template
        self.policy_statements = []
        self.log_groups = {}
        self.execution_role = None
        self.task_role = None
        self.task_definition = None
        self.load_balancer = None
        self.cloudmap_service = None
        self.ecs_service = None
        self.scaling = None

    def __repr__(self):
        return f"{self.cluster.name}.{self.name}"

    def plan(self) -> None:
        """
        Resolves the settings which depend on collaborators (linked resources, existing IAM roles) before
        any resource is created, so that errors do not leave the template half-updated.
        """
        self.policy_statements = [
            permission_to_statement(permission)
            for permission in self.settings.permissions
        ]
        self.policy_statements += resolve_link_statements(
            self.name, self.settings.link, self.cluster.permissions_resolver
        )
        for role in (self.settings.task_role, self.settings.execution_role):
            if role:
                define_role_arn(role)

    def compose(self) -> None:
        """
        Adds all the resources of the service to the cluster template, in dependency order.
        """
        self.log_groups = define_log_groups(self)
        self.execution_role = define_execution_role(self)
        self.task_role = define_task_role(self, self.policy_statements)
        self.task_definition = define_task_definition(self)
        if self.settings.load_balancer:
            self.load_balancer = ServiceLoadBalancer(self)
            self.load_balancer.create()
        self.cloudmap_service = EcsDiscoveryService(self)
        self.ecs_service = define_ecs_service(self)
        self.scaling = ServiceScaling(self)
        self.scaling.create_scalable_target()
        self.scaling.add_target_scaling()
        self.add_outputs()
        LOG.info(f"{self.cluster.name} - Service {self.name} added")

    def add_outputs(self) -> None:
        outputs = [
            Output(
                f"{self.logical_name}ServiceName",
                Value=GetAtt(self.ecs_service, "Name"),
            ),
            Output(
                f"{self.logical_name}CloudMapServiceArn",
                Value=self.cloudmap_service.arn,
            ),
        ]
        if self.load_balancer:
            outputs.append(
                Output(f"{self.logical_name}{LB_URL_T}", Value=self.load_balancer.url)
            )
        add_outputs(self.template, outputs)

    @property
    def url(self):
        """
        The URL of the load balancer of the service, None when it has no load balancer.
        """
        if not self.load_balancer:
            return None
        return self.load_balancer.url

    @property
    def nodes(self) -> dict:
        """
        The underlying resources of the service.
        """
        nodes = {
            "logGroups": self.log_groups,
            "executionRole": self.execution_role.cfn_resource
            if self.execution_role
            else None,
            "taskRole": self.task_role.cfn_resource if self.task_role else None,
            "taskDefinition": self.task_definition,
            "service": self.ecs_service,
            "cloudmapService": self.cloudmap_service.cfn_resource
            if self.cloudmap_service
            else None,
            "autoScalingTarget": self.scaling.scalable_target if self.scaling else None,
            "scalingPolicies": self.scaling.scaling_policies if self.scaling else [],
            "loadBalancer": None,
            "loadBalancerSecurityGroup": None,
            "listeners": [],
            "listenerRules": [],
            "targetGroups": [],
        }
        if self.load_balancer:
            lb_nodes = self.load_balancer.nodes
            nodes.update(
                {
                    "loadBalancer": lb_nodes["loadBalancer"],
                    "loadBalancerSecurityGroup": lb_nodes["securityGroup"],
                    "listeners": lb_nodes["listeners"],
                    "listenerRules": lb_nodes["listenerRules"],
                    "targetGroups": lb_nodes["targetGroups"],
                }
            )
        return nodes
