# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Load balancer target groups health checks, with defaults depending on the protocol family.
"""

from __future__ import annotations

from compose_x_common.compose_x_common import keypresent, set_else_none

from ecs_clusterx.ecs.docker_tools import duration_to_seconds
from ecs_clusterx.exceptions import InvalidHealthCheck

APPLICATION_PROTOCOLS = ["http", "https"]
NETWORK_PROTOCOLS = ["tcp", "udp", "tcp_udp", "tls"]

HTTP_HEALTH_DEFAULTS = {
    "path": "/",
    "healthyThreshold": 5,
    "unhealthyThreshold": 2,
    "interval": "30 seconds",
    "timeout": "5 seconds",
    "successCodes": "200",
}
TCP_HEALTH_DEFAULTS = {
    "healthyThreshold": 5,
    "unhealthyThreshold": 2,
    "interval": "30 seconds",
    "timeout": "6 seconds",
}
HEALTH_RANGES = {
    "interval": (5, 300),
    "timeout": (2, 120),
    "healthyThreshold": (2, 10),
    "unhealthyThreshold": (2, 10),
}


def protocol_family(protocol: str) -> str:
    """
    :param str protocol:
    :return: `application` for http/https, `network` for tcp/udp/tcp_udp/tls
    """
    if protocol in APPLICATION_PROTOCOLS:
        return "application"
    elif protocol in NETWORK_PROTOCOLS:
        return "network"
    raise ValueError(
        f"Protocol {protocol} is not valid. Expected one of",
        APPLICATION_PROTOCOLS + NETWORK_PROTOCOLS,
    )


class TargetHealthCheck:
    """
    Health check the load balancer runs against the containers of a target group

    :ivar str port: the forward port, `{port}/{protocol}`, it applies to
    :ivar str path: HTTP path, None for network protocols
    :ivar int interval: seconds
    :ivar int timeout: seconds
    :ivar int healthy_threshold:
    :ivar int unhealthy_threshold:
    :ivar str success_codes: HTTP codes, None for network protocols
    """

    def __init__(self, port: str, protocol: str, definition: dict = None):
        definition = definition or {}
        self.port = port
        self.protocol = protocol
        is_http = protocol_family(protocol) == "application"
        if not is_http:
            for http_only in ("path", "successCodes"):
                if keypresent(http_only, definition):
                    raise InvalidHealthCheck(
                        f"{port} - {http_only} is only valid for http and https ports"
                    )
        defaults = HTTP_HEALTH_DEFAULTS if is_http else TCP_HEALTH_DEFAULTS
        self.path = set_else_none("path", definition, defaults.get("path"))
        self.success_codes = set_else_none(
            "successCodes", definition, defaults.get("successCodes")
        )
        self.interval = self.import_value(definition, defaults, "interval")
        self.timeout = self.import_value(definition, defaults, "timeout")
        self.healthy_threshold = self.import_value(
            definition, defaults, "healthyThreshold"
        )
        self.unhealthy_threshold = self.import_value(
            definition, defaults, "unhealthyThreshold"
        )

    def import_value(self, definition: dict, defaults: dict, key: str) -> int:
        value = set_else_none(key, definition, defaults[key], eval_bool=True)
        if isinstance(value, str):
            value = duration_to_seconds(value)
        low, high = HEALTH_RANGES[key]
        if not low <= value <= high:
            raise InvalidHealthCheck(
                f"{self.port} - {key} must be between {low} and {high}. Got", value
            )
        return value

    def to_dict(self) -> dict:
        health = {
            "interval": f"{self.interval} seconds",
            "timeout": f"{self.timeout} seconds",
            "healthyThreshold": self.healthy_threshold,
            "unhealthyThreshold": self.unhealthy_threshold,
        }
        if self.path:
            health["path"] = self.path
        if self.success_codes:
            health["successCodes"] = self.success_codes
        return health


def define_target_health_checks(health_definition: dict, forward_ports: list) -> dict:
    """
    Defines the health check of each forward port. Ports without health settings get the defaults
    of their protocol.

    :param dict health_definition: the health check settings, indexed by `{port}/{protocol}`
    :param list[str] forward_ports: The forward ports `{port}/{protocol}` of the load balancer
    :return: health checks indexed by forward port
    :rtype: dict[str, TargetHealthCheck]
    """
    health_definition = health_definition or {}
    unknown = [port for port in health_definition if port not in forward_ports]
    if unknown:
        raise InvalidHealthCheck(
            "Health checks defined for ports that are not forwarded to",
            unknown,
            "Forward ports",
            forward_ports,
        )
    return {
        port: TargetHealthCheck(
            port, port.split("/")[-1], set_else_none(port, health_definition)
        )
        for port in forward_ports
    }
