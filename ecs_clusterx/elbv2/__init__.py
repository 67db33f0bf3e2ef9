# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Load balancer of a service: security group, load balancer, target groups, listeners and rules.

Ports are grouped by listen port, each giving one Listener. The port without path (if any) sets
the default action of the listener, the ports with a path are routed with ListenerRules.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ecs_clusterx.cluster import Service
    from ecs_clusterx.service_settings.ports import PortMapping

from troposphere import GetAtt, NoValue, Ref, Sub
from troposphere.ec2 import SecurityGroup, SecurityGroupRule
from troposphere.ecs import LoadBalancer as EcsLoadBalancer
from troposphere.elasticloadbalancingv2 import (
    Certificate,
    Listener,
    ListenerRule,
    LoadBalancer,
    TargetGroup,
)

from ecs_clusterx.common import logical_name
from ecs_clusterx.common.logging import LOG
from ecs_clusterx.common.troposphere_tools import build_resource
from ecs_clusterx.ecs.docker_tools import parse_port

from .elbv2_params import (
    ELBV2_PROTOCOLS,
    INGRESS_PROTOCOLS,
    LB_SG_T,
    LB_T,
    LISTENER_RULE_T,
    LISTENER_T,
    TARGET_GROUP_T,
)
from .target_helpers import (
    forbidden_action,
    forward_action,
    path_conditions,
    redirect_action,
    target_group_props,
)


class ServiceLoadBalancer:
    """
    Class to manage the load balancing resources of a service.

    :ivar Service service:
    :ivar ecs_clusterx.service_settings.ports.LoadBalancerSettings settings:
    :ivar troposphere.ec2.SecurityGroup security_group:
    :ivar troposphere.elasticloadbalancingv2.LoadBalancer cfn_resource:
    :ivar dict target_groups: target groups indexed by (container, forward port)
    :ivar dict listeners: listeners indexed by listen port
    :ivar list listener_rules:
    """

    def __init__(self, service: Service):
        self.service = service
        self.settings = service.settings.load_balancer
        self.logical_name = f"{service.logical_name}{LB_T}"
        self.security_group = None
        self.cfn_resource = None
        self.target_groups = {}
        self.listeners = {}
        self.listener_rules = []

    @property
    def transform(self) -> dict:
        return self.service.settings.transform

    @property
    def is_public(self) -> bool:
        return self.settings.public

    def create(self):
        """
        Creates all the load balancing resources in order.
        """
        self.define_security_group()
        self.define_load_balancer()
        self.define_target_groups()
        self.define_listeners()

    def define_security_group(self):
        ingress = []
        for port in self.settings.ports:
            for protocol in INGRESS_PROTOCOLS[port.listen_protocol]:
                rule = (port.listen_port, protocol)
                if rule not in ingress:
                    ingress.append(rule)
        props = {
            "GroupDescription": Sub(
                f"{self.service.name} load balancer in ${{{self.service.cluster.ecs_cluster.title}}}"
            ),
            "VpcId": self.service.cluster.vpc.id,
            "SecurityGroupIngress": [
                SecurityGroupRule(
                    IpProtocol=protocol,
                    FromPort=port,
                    ToPort=port,
                    CidrIp="0.0.0.0/0",
                    Description=f"{port}/{protocol} to {self.service.name}",
                )
                for port, protocol in ingress
            ],
        }
        self.security_group = build_resource(
            SecurityGroup,
            f"{self.service.logical_name}{LB_SG_T}",
            props,
            self.service.template,
            self.transform.get("loadBalancerSecurityGroup"),
        )

    def define_load_balancer(self):
        props = {
            "Type": self.settings.type,
            "Scheme": "internet-facing" if self.is_public else "internal",
            "Subnets": list(self.service.cluster.vpc.load_balancer_subnets),
            "SecurityGroups": [GetAtt(self.security_group, "GroupId")],
        }
        self.cfn_resource = build_resource(
            LoadBalancer,
            self.logical_name,
            props,
            self.service.template,
            self.transform.get("loadBalancer"),
        )

    def define_target_groups(self):
        """
        One target group per container and forward port. Ports which only redirect do not need one.
        """
        for port in self.settings.ports:
            if port.redirect:
                continue
            key = (port.container, port.forward)
            if key in self.target_groups:
                continue
            title = (
                f"{self.service.logical_name}{logical_name(port.container)}"
                f"{port.forward_port}{ELBV2_PROTOCOLS[port.forward_protocol].replace('_', '')}"
                f"{TARGET_GROUP_T}"
            )
            self.target_groups[key] = build_resource(
                TargetGroup,
                title,
                target_group_props(
                    port,
                    self.settings.health[port.forward],
                    self.service.cluster.vpc.id,
                ),
                self.service.template,
                self.transform.get("target"),
            )
            LOG.debug(f"{self.service.name} - Target group {title} for {port!r}")

    def get_action(self, port: PortMapping, rule_action: bool = False):
        if port.redirect:
            return redirect_action(port, rule_action)
        return forward_action(
            self.target_groups[(port.container, port.forward)], rule_action
        )

    def define_listeners(self):
        for listen_port in [port.listen_port for port in self.settings.ports]:
            if listen_port in self.listeners:
                continue
            ports = [port for port in self.settings.ports if port.listen_port == listen_port]
            self.define_listener(listen_port, ports)

    def define_listener(self, listen_port: int, ports: list):
        """
        Creates the listener for the listen port. When all the ports for it have a path,
        the requests matching none of them get a 403 response.

        :param int listen_port:
        :param list[PortMapping] ports: the port mappings listening on the same port
        """
        protocol = ports[0].listen_protocol
        default_port = next((port for port in ports if not port.path), None)
        title = (
            f"{self.service.logical_name}{listen_port}"
            f"{ELBV2_PROTOCOLS[protocol].replace('_', '')}{LISTENER_T}"
        )
        domain = self.settings.domain
        props = {
            "LoadBalancerArn": Ref(self.cfn_resource),
            "Port": listen_port,
            "Protocol": ELBV2_PROTOCOLS[protocol],
            "Certificates": [Certificate(CertificateArn=domain.cert)]
            if protocol in ["https", "tls"]
            else NoValue,
            "DefaultActions": [
                self.get_action(default_port) if default_port else forbidden_action()
            ],
        }
        listener = build_resource(
            Listener,
            title,
            props,
            self.service.template,
            self.transform.get("listener"),
        )
        self.listeners[listen_port] = listener
        for priority, port in enumerate(
            [port for port in ports if port.path], start=1
        ):
            self.listener_rules.append(
                build_resource(
                    ListenerRule,
                    f"{title}{LISTENER_RULE_T}{priority}",
                    {
                        "ListenerArn": Ref(listener),
                        "Priority": priority,
                        "Conditions": path_conditions(port.path),
                        "Actions": [self.get_action(port, True)],
                    },
                    self.service.template,
                )
            )

    @property
    def ecs_load_balancers(self) -> list:
        """
        The target groups bindings to set in the ECS Service

        :rtype: list[troposphere.ecs.LoadBalancer]
        """
        return [
            EcsLoadBalancer(
                ContainerName=container,
                ContainerPort=parse_port(forward)[0],
                TargetGroupArn=Ref(self.target_groups[(container, forward)]),
            )
            for container, forward in self.target_groups
        ]

    @property
    def url(self):
        """
        URL of the service, using the domain name when set, the load balancer DNS name otherwise.
        """
        if self.settings.type == "network":
            scheme = ""
        elif any(port.listen_protocol == "https" for port in self.settings.ports):
            scheme = "https://"
        else:
            scheme = "http://"
        if self.settings.domain:
            return f"{scheme}{self.settings.domain.name}"
        return Sub(f"{scheme}${{{self.cfn_resource.title}.DNSName}}")

    @property
    def nodes(self) -> dict:
        return {
            "loadBalancer": self.cfn_resource,
            "securityGroup": self.security_group,
            "listeners": list(self.listeners.values()),
            "listenerRules": self.listener_rules,
            "targetGroups": list(self.target_groups.values()),
        }
