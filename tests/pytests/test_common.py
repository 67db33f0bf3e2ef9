# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

from ecs_clusterx.cluster.vpc import ClusterVpc
from ecs_clusterx.common import logical_name, merge_definitions


def test_logical_name():
    assert logical_name("my-cluster") == "Mycluster"
    assert logical_name("my-cluster", "web_app") == "MyclusterWebapp"
    assert logical_name("api", "", None) == "Api"


def test_merge_definitions():
    source = {"services": {"web": {"image": "nginx", "ports": [1, 2]}}, "x-cluster": {"name": "a"}}
    override = {"services": {"web": {"ports": [3]}, "api": {"image": "api"}}}
    merged = merge_definitions(source, override)
    assert merged == {
        "services": {"web": {"image": "nginx", "ports": [3]}, "api": {"image": "api"}},
        "x-cluster": {"name": "a"},
    }
    assert source["services"]["web"]["ports"] == [1, 2]


def test_cluster_vpc(vpc):
    cluster_vpc = ClusterVpc(dict(vpc, assignPublicIp=False))
    assert cluster_vpc.assign_public_ip is False
    assert cluster_vpc.service_subnets == ("subnet-public-a", "subnet-public-b")
    assert cluster_vpc.to_dict()["securityGroups"] == ["sg-0123456789abcdef0"]
