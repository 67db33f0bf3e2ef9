# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

from os import path

import pytest

from ecs_clusterx.cluster import Cluster

HERE = path.abspath(path.dirname(__file__))
USE_CASES = path.abspath(f"{HERE}/../../use-cases")


@pytest.fixture
def vpc():
    return {
        "id": "vpc-0123456789abcdef0",
        "loadBalancerSubnets": ["subnet-public-a", "subnet-public-b"],
        "serviceSubnets": ["subnet-public-a", "subnet-public-b"],
        "securityGroups": ["sg-0123456789abcdef0"],
        "cloudmapNamespaceId": "ns-abcdefghijklmnop",
        "cloudmapNamespaceName": "prod.internal",
    }


@pytest.fixture
def cluster(vpc):
    return Cluster("prod", vpc)


@pytest.fixture
def web_service():
    return {
        "image": "nginx:stable",
        "cpu": "0.5 vCPU",
        "memory": "1 GB",
        "loadBalancer": {
            "ports": [
                {"listen": "80/http", "redirect": "443/https"},
                {"listen": "443/https", "forward": "80/http"},
            ],
            "domain": {
                "name": "www.example.com",
                "cert": "arn:aws:acm:eu-west-1:123456789012:certificate/abcd",
            },
        },
        "scaling": {"min": 1, "max": 4, "cpuUtilization": 70},
    }


@pytest.fixture
def use_case():
    def _path(file_name: str) -> str:
        return f"{USE_CASES}/{file_name}"

    return _path
