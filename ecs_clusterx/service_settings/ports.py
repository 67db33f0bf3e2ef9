# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Normalization of the load balancer settings and its ports mappings.
"""

from __future__ import annotations

from compose_x_common.compose_x_common import keyisset, set_else_none

from ecs_clusterx.common.logging import LOG
from ecs_clusterx.ecs.docker_tools import parse_port
from ecs_clusterx.exceptions import (
    AmbiguousContainerTarget,
    ConfigurationError,
    ConflictingLoadBalancerSettings,
    DuplicateListener,
    MissingCertificate,
    MixedProtocolFamily,
    RedirectWithForward,
    UnknownContainer,
)

from .health import define_target_health_checks, protocol_family

CERTIFICATE_PROTOCOLS = ["https", "tls"]


def set_target_container(
    service_name: str, container_names: list, container: str = None
) -> str:
    """
    Returns the container to send the traffic to. If not set, only valid if the service has a single container.

    :raises AmbiguousContainerTarget: more than one container and none set
    :raises UnknownContainer: the container set is not one of the service
    """
    if container is None:
        if len(container_names) > 1:
            raise AmbiguousContainerTarget(
                f"{service_name} - container must be set when the service has more than one container",
                container_names,
            )
        return container_names[0]
    if container not in container_names:
        raise UnknownContainer(
            f"{service_name} - container {container} is not defined. Defined containers",
            container_names,
        )
    return container


class PortMapping:
    """
    A port the load balancer listens to, and where the traffic goes to.

    :ivar str listen: `{port}/{protocol}` of the listener
    :ivar str forward: `{port}/{protocol}` of the container. None for redirects
    :ivar str redirect: `{port}/{protocol}` to redirect to.
    :ivar str path: path pattern to route to the forward port
    :ivar str container: the container name to forward to
    """

    def __init__(self, service_name: str, definition: dict, container_names: list):
        self.listen = definition["listen"]
        self.listen_port, self.listen_protocol = parse_port(self.listen)
        self.redirect = set_else_none("redirect", definition)
        self.path = set_else_none("path", definition)
        self.forward = None
        self.forward_port = None
        self.forward_protocol = None
        self.container = None
        if self.redirect:
            if keyisset("forward", definition):
                raise RedirectWithForward(
                    f"{service_name} - {self.listen} cannot set both redirect and forward"
                )
            self.redirect_port, self.redirect_protocol = parse_port(self.redirect)
        else:
            self.forward = set_else_none("forward", definition, alt_value=self.listen)
            self.forward_port, self.forward_protocol = parse_port(self.forward)
            self.container = set_target_container(
                service_name, container_names, set_else_none("container", definition)
            )

    def __repr__(self):
        if self.redirect:
            return f"{self.listen} -> redirect {self.redirect}"
        return f"{self.listen}{self.path or ''} -> {self.container}:{self.forward}"

    @property
    def protocols(self) -> list:
        return [
            protocol
            for protocol in (
                self.listen_protocol,
                self.forward_protocol,
                self.redirect_protocol if self.redirect else None,
            )
            if protocol
        ]

    def to_dict(self) -> dict:
        port = {"listen": self.listen}
        if self.redirect:
            port["redirect"] = self.redirect
        else:
            port["forward"] = self.forward
            port["container"] = self.container
        if self.path:
            port["path"] = self.path
        return port


def validate_ports_family(service_name: str, ports: list) -> str:
    """
    All the ports of a load balancer must use protocols of the same family.

    :param str service_name:
    :param list[PortMapping] ports:
    :return: the family of the ports, `application` or `network`
    :raises MixedProtocolFamily:
    """
    families = {
        protocol_family(protocol) for port in ports for protocol in port.protocols
    }
    if len(families) > 1:
        raise MixedProtocolFamily(
            f"{service_name} - Cannot mix http/https ports with tcp/udp/tcp_udp/tls ports",
            [repr(port) for port in ports],
        )
    return families.pop()


def validate_listeners(service_name: str, ports: list) -> None:
    """
    Ensures that no two ports use the same listen port and path

    :raises DuplicateListener:
    """
    listeners = [(port.listen_port, port.path) for port in ports]
    duplicates = {
        listener for listener in listeners if listeners.count(listener) > 1
    }
    if duplicates:
        raise DuplicateListener(
            f"{service_name} - More than one port definition for listener(s)",
            sorted(duplicates, key=lambda x: (x[0], x[1] or "")),
        )
    for listen_port in {port.listen_port for port in ports}:
        protocols = {
            port.listen_protocol for port in ports if port.listen_port == listen_port
        }
        if len(protocols) > 1:
            raise DuplicateListener(
                f"{service_name} - Listener {listen_port} defined with protocols",
                sorted(protocols),
            )


def normalize_ports(service_name: str, definitions: list, container_names: list) -> tuple:
    """
    Normalizes the ports of a load balancer and validates them together.

    :param str service_name:
    :param list[dict] definitions: the ports as defined by the user
    :param list[str] container_names:
    :return: the port mappings and their protocol family
    :rtype: tuple[list[PortMapping], str]
    """
    ports = [
        PortMapping(service_name, port_def, container_names) for port_def in definitions
    ]
    if not ports:
        raise ConfigurationError(f"{service_name} - load balancer must have ports")
    family = validate_ports_family(service_name, ports)
    validate_listeners(service_name, ports)
    if family == "network" and any(port.redirect or port.path for port in ports):
        raise ConfigurationError(
            f"{service_name} - redirect and path are only supported for http and https ports"
        )
    return ports, family


class LoadBalancerDomain:
    """
    Domain settings of the load balancer. DNS records are managed outside of cluster-x,
    only the certificate is used.
    """

    def __init__(self, definition):
        if isinstance(definition, str):
            definition = {"name": definition}
        self.name = definition["name"]
        self.aliases = set_else_none("aliases", definition, alt_value=[])
        self.cert = set_else_none("cert", definition)
        self.dns = set_else_none("dns", definition, eval_bool=True)

    def to_dict(self) -> dict:
        return {"name": self.name, "aliases": self.aliases, "cert": self.cert}


class LoadBalancerSettings:
    """
    Normalized load balancer settings

    :ivar bool public: internet-facing or internal
    :ivar LoadBalancerDomain domain:
    :ivar list[PortMapping] ports:
    :ivar str family: `application` or `network`
    :ivar dict[str, TargetHealthCheck] health: health checks indexed by forward port
    """

    def __init__(self, service_name: str, definition: dict, container_names: list):
        self.public = set_else_none("public", definition, alt_value=True, eval_bool=True)
        self.domain = (
            LoadBalancerDomain(definition["domain"])
            if keyisset("domain", definition)
            else None
        )
        self.ports, self.family = normalize_ports(
            service_name, definition["ports"], container_names
        )
        needs_certificate = [
            port.listen
            for port in self.ports
            if port.listen_protocol in CERTIFICATE_PROTOCOLS
        ]
        if needs_certificate and not (self.domain and self.domain.cert):
            raise MissingCertificate(
                f"{service_name} - domain.cert must be set to listen on",
                needs_certificate,
            )
        self.health = define_target_health_checks(
            set_else_none("health", definition), self.forward_ports
        )

    @property
    def type(self) -> str:
        return self.family

    @property
    def forward_ports(self) -> list:
        forward_ports = []
        for port in self.ports:
            if port.forward and port.forward not in forward_ports:
                forward_ports.append(port.forward)
        return forward_ports

    @property
    def listen_ports(self) -> list:
        listen_ports = []
        for port in self.ports:
            if port.listen not in listen_ports:
                listen_ports.append(port.listen)
        return listen_ports

    def to_dict(self) -> dict:
        return {
            "public": self.public,
            "domain": self.domain.to_dict() if self.domain else None,
            "ports": [port.to_dict() for port in self.ports],
            "health": {port: health.to_dict() for port, health in self.health.items()},
        }


def define_load_balancer(
    service_name: str, definition: dict, container_names: list
) -> LoadBalancerSettings | None:
    """
    Defines the load balancer settings from `loadBalancer` or the deprecated `public`.

    :raises ConflictingLoadBalancerSettings: if both are set.
    """
    if keyisset("loadBalancer", definition) and keyisset("public", definition):
        raise ConflictingLoadBalancerSettings(
            f"{service_name} - public is deprecated and cannot be used with loadBalancer"
        )
    if keyisset("public", definition):
        LOG.warning(
            f"{service_name} - public is deprecated. Use loadBalancer instead."
        )
        lb_definition = dict(definition["public"])
        lb_definition["public"] = True
        return LoadBalancerSettings(service_name, lb_definition, container_names)
    if keyisset("loadBalancer", definition):
        return LoadBalancerSettings(
            service_name, definition["loadBalancer"], container_names
        )
    return None
