# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Load balancer ports mappings and target groups health checks
"""

import pytest

from ecs_clusterx.exceptions import (
    AmbiguousContainerTarget,
    ConfigurationError,
    DuplicateListener,
    InvalidHealthCheck,
    MissingCertificate,
    MixedProtocolFamily,
    RedirectWithForward,
    UnknownContainer,
)
from ecs_clusterx.service_settings import normalize_service
from ecs_clusterx.service_settings.ports import normalize_ports

CERT = "arn:aws:acm:eu-west-1:123456789012:certificate/abcd"


def test_forward_defaults_to_listen():
    ports, family = normalize_ports("web", [{"listen": "8080/http"}], ["web"])
    assert ports[0].forward == "8080/http"
    assert ports[0].container == "web"
    assert family == "application"


def test_http_and_https_forward_listeners():
    ports, family = normalize_ports(
        "web",
        [{"listen": "80/http"}, {"listen": "443/https", "forward": "80/http"}],
        ["web"],
    )
    assert family == "application"
    assert [port.forward for port in ports] == ["80/http", "80/http"]
    assert not any(port.redirect for port in ports)


@pytest.mark.parametrize(
    "ports",
    [
        [{"listen": "80/http"}, {"listen": "53/udp"}],
        [{"listen": "443/tls", "forward": "80/http"}],
        [{"listen": "80/http", "redirect": "443/tcp"}],
    ],
)
def test_mixed_protocol_family(ports):
    with pytest.raises(MixedProtocolFamily):
        normalize_ports("web", ports, ["web"])


def test_network_ports():
    ports, family = normalize_ports(
        "dns",
        [{"listen": "53/udp"}, {"listen": "5353/tcp_udp", "forward": "53/tcp_udp"}],
        ["dns"],
    )
    assert family == "network"


def test_container_target():
    with pytest.raises(AmbiguousContainerTarget):
        normalize_ports("web", [{"listen": "80/http"}], ["app", "proxy"])
    with pytest.raises(UnknownContainer):
        normalize_ports("web", [{"listen": "80/http", "container": "nope"}], ["app", "proxy"])
    ports, _ = normalize_ports(
        "web", [{"listen": "80/http", "container": "proxy"}], ["app", "proxy"]
    )
    assert ports[0].container == "proxy"


def test_redirect():
    ports, _ = normalize_ports("web", [{"listen": "80/http", "redirect": "443/https"}], ["web"])
    assert ports[0].forward is None
    assert ports[0].container is None
    assert (ports[0].redirect_port, ports[0].redirect_protocol) == (443, "https")
    with pytest.raises(RedirectWithForward):
        normalize_ports(
            "web",
            [{"listen": "80/http", "redirect": "443/https", "forward": "80/http"}],
            ["web"],
        )


def test_duplicate_listeners():
    with pytest.raises(DuplicateListener):
        normalize_ports("web", [{"listen": "80/http"}, {"listen": "80/http", "forward": "8080/http"}], ["web"])
    with pytest.raises(DuplicateListener):
        normalize_ports("web", [{"listen": "80/http"}, {"listen": "80/https"}], ["web"])
    ports, _ = normalize_ports(
        "web",
        [{"listen": "80/http", "path": "/api/*", "forward": "8080/http"}, {"listen": "80/http"}],
        ["web"],
    )
    assert len(ports) == 2


def test_path_and_redirect_are_for_http():
    with pytest.raises(ConfigurationError):
        normalize_ports("web", [{"listen": "80/tcp", "path": "/api"}], ["web"])


def test_certificate_required():
    definition = {
        "image": "nginx",
        "loadBalancer": {"ports": [{"listen": "443/https", "forward": "80/http"}]},
    }
    with pytest.raises(MissingCertificate):
        normalize_service("web", definition)
    definition["loadBalancer"]["domain"] = {"name": "example.com", "cert": CERT}
    settings = normalize_service("web", definition)
    assert settings.load_balancer.domain.cert == CERT


def test_lb_health_defaults():
    settings = normalize_service(
        "web",
        {
            "image": "nginx",
            "loadBalancer": {"ports": [{"listen": "80/http", "forward": "8080/http"}]},
        },
    )
    health = settings.load_balancer.health["8080/http"]
    assert health.path == "/"
    assert health.success_codes == "200"
    assert (health.healthy_threshold, health.unhealthy_threshold) == (5, 2)
    assert (health.interval, health.timeout) == (30, 5)

    settings = normalize_service(
        "dns", {"image": "coredns", "loadBalancer": {"ports": [{"listen": "53/udp"}]}}
    )
    health = settings.load_balancer.health["53/udp"]
    assert health.path is None
    assert health.success_codes is None
    assert (health.interval, health.timeout) == (30, 6)


def test_lb_health_settings():
    settings = normalize_service(
        "web",
        {
            "image": "nginx",
            "loadBalancer": {
                "ports": [{"listen": "80/http"}],
                "health": {
                    "80/http": {
                        "path": "/health",
                        "interval": "10 seconds",
                        "successCodes": "200-299",
                    }
                },
            },
        },
    )
    health = settings.load_balancer.health["80/http"]
    assert (health.path, health.interval, health.success_codes) == (
        "/health",
        10,
        "200-299",
    )


@pytest.mark.parametrize(
    "ports, health",
    [
        ([{"listen": "80/http"}], {"8080/http": {"path": "/"}}),
        ([{"listen": "80/http"}], {"80/http": {"interval": "1 second"}}),
        ([{"listen": "80/http"}], {"80/http": {"healthyThreshold": 11}}),
        ([{"listen": "53/tcp"}], {"53/tcp": {"path": "/"}}),
        ([{"listen": "53/tcp"}], {"53/tcp": {"successCodes": "200"}}),
    ],
)
def test_invalid_lb_health(ports, health):
    with pytest.raises(InvalidHealthCheck):
        normalize_service(
            "web",
            {"image": "nginx", "loadBalancer": {"ports": ports, "health": health}},
        )
