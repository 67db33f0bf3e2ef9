# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Functions to define the target groups, actions and conditions of the listeners.
"""

from __future__ import annotations

from troposphere import NoValue, Ref
from troposphere.elasticloadbalancingv2 import (
    Action,
    Condition,
    FixedResponseConfig,
    ListenerRuleAction,
    Matcher,
    PathPatternConfig,
    RedirectConfig,
    TargetGroupAttribute,
)

from ecs_clusterx.service_settings.health import TargetHealthCheck
from ecs_clusterx.service_settings.ports import PortMapping

from .elbv2_params import (
    DEREGISTRATION_DELAY,
    ELBV2_PROTOCOLS,
    FORBIDDEN_STATUS_CODE,
    REDIRECT_STATUS_CODE,
)


def target_group_props(
    port: PortMapping, health: TargetHealthCheck, vpc_id: str
) -> dict:
    """
    Properties of the target group forwarding traffic to the container port.
    Network target groups health checks use TCP, application ones the protocol of the target.

    :rtype: dict
    """
    is_http = health.path is not None
    props = {
        "Port": port.forward_port,
        "Protocol": ELBV2_PROTOCOLS[port.forward_protocol],
        "TargetType": "ip",
        "VpcId": vpc_id,
        "HealthCheckEnabled": True,
        "HealthCheckProtocol": ELBV2_PROTOCOLS[port.forward_protocol]
        if is_http
        else "TCP",
        "HealthCheckIntervalSeconds": health.interval,
        "HealthCheckTimeoutSeconds": health.timeout,
        "HealthyThresholdCount": health.healthy_threshold,
        "UnhealthyThresholdCount": health.unhealthy_threshold,
        "HealthCheckPath": health.path if is_http else NoValue,
        "Matcher": Matcher(HttpCode=health.success_codes) if is_http else NoValue,
        "TargetGroupAttributes": [
            TargetGroupAttribute(
                Key="deregistration_delay.timeout_seconds", Value=DEREGISTRATION_DELAY
            )
        ],
    }
    return props


def redirect_action(port: PortMapping, rule_action: bool = False):
    """
    Redirects the request to the same host and path on the redirect port
    """
    action_class = ListenerRuleAction if rule_action else Action
    return action_class(
        Type="redirect",
        RedirectConfig=RedirectConfig(
            Protocol=ELBV2_PROTOCOLS[port.redirect_protocol],
            Port=str(port.redirect_port),
            Host="#{host}",
            Path="/#{path}",
            Query="#{query}",
            StatusCode=REDIRECT_STATUS_CODE,
        ),
    )


def forward_action(target_group, rule_action: bool = False):
    action_class = ListenerRuleAction if rule_action else Action
    return action_class(Type="forward", TargetGroupArn=Ref(target_group))


def forbidden_action() -> Action:
    """
    Default action of listeners which only route specific paths
    """
    return Action(
        Type="fixed-response",
        FixedResponseConfig=FixedResponseConfig(
            ContentType="text/plain",
            MessageBody="Forbidden",
            StatusCode=FORBIDDEN_STATUS_CODE,
        ),
    )


def path_conditions(path: str) -> list:
    return [
        Condition(
            Field="path-pattern",
            PathPatternConfig=PathPatternConfig(Values=[path]),
        )
    ]
