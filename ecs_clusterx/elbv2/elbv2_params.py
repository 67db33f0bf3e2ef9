# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Titles and values for the load balancing resources of the services
"""

LB_T = "LoadBalancer"
LB_SG_T = "LoadBalancerSecurityGroup"
LISTENER_T = "Listener"
LISTENER_RULE_T = "Rule"
TARGET_GROUP_T = "TargetGroup"

LB_URL_T = "Url"

ELBV2_PROTOCOLS = {
    "http": "HTTP",
    "https": "HTTPS",
    "tcp": "TCP",
    "udp": "UDP",
    "tcp_udp": "TCP_UDP",
    "tls": "TLS",
}

INGRESS_PROTOCOLS = {
    "http": ["tcp"],
    "https": ["tcp"],
    "tcp": ["tcp"],
    "tls": ["tcp"],
    "udp": ["udp"],
    "tcp_udp": ["tcp", "udp"],
}

DEREGISTRATION_DELAY = "60"
FORBIDDEN_STATUS_CODE = "403"
REDIRECT_STATUS_CODE = "HTTP_301"
