# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Cluster and services resources composition
"""

import json
import re

import pytest
from troposphere import Template

from ecs_clusterx.cluster import Cluster, ClusterVpc
from ecs_clusterx.exceptions import (
    AmbiguousContainerTarget,
    ConfigurationError,
    InvalidClusterVpc,
    InvalidSizeCombination,
)


def test_cluster_resources(cluster):
    template = cluster.template
    assert list(template.resources.keys()) == ["ProdCluster"]
    assert cluster.nodes["cluster"] is template.resources["ProdCluster"]
    assert cluster.ecs_cluster.ClusterName == "prod"
    assert cluster.ecs_cluster.Metadata["Properties"]["LayoutVersion"] == 2
    assert cluster.layout_version == 2
    assert set(template.outputs.keys()) == {
        "ProdName",
        "ProdArn",
        "ProdLayoutVersion",
    }
    assert template.outputs["ProdLayoutVersion"].Value == "2"
    template.to_json()


def test_cluster_name_and_vpc(vpc):
    with pytest.raises(ConfigurationError):
        Cluster("", vpc)
    with pytest.raises(ConfigurationError):
        Cluster("---", vpc)
    with pytest.raises(ConfigurationError):
        Cluster("prod", vpc, force_upgrade="v3")
    with pytest.raises(InvalidClusterVpc):
        Cluster("prod", {"id": "vpc-1234"})
    with pytest.raises(InvalidClusterVpc):
        Cluster("prod", "vpc-1234")
    cluster = Cluster("prod-eu", ClusterVpc(vpc))
    assert cluster.logical_name == "Prodeu"
    assert cluster.vpc.assign_public_ip is True


def test_existing_template(vpc):
    template = Template(Description="Mine")
    cluster = Cluster("prod", vpc, template=template)
    assert cluster.template is template
    assert "ProdCluster" in template.resources


def test_minimal_service(cluster):
    service = cluster.add_service("worker", {"image": "my/worker:latest"})
    resources = cluster.template.resources
    for title in (
        "WorkerWorkerLogGroup",
        "WorkerExecutionRole",
        "WorkerTaskRole",
        "WorkerTaskDefinition",
        "WorkerCloudMapService",
        "WorkerService",
        "WorkerAutoScalingTarget",
    ):
        assert title in resources, title
    assert not [title for title in resources if "TrackingPolicy" in title]
    assert service.url is None
    nodes = service.nodes
    assert nodes["loadBalancer"] is None
    assert nodes["listeners"] == []
    assert nodes["logGroups"]["worker"].LogGroupName == "/ecs/cluster/prod/worker/worker"
    assert nodes["logGroups"]["worker"].RetentionInDays == 30

    task = service.task_definition
    assert task.Family == "prod-worker"
    assert (task.Cpu, task.Memory) == ("256", "512")
    assert task.NetworkMode == "awsvpc"
    assert task.RequiresCompatibilities == ["FARGATE"]
    assert task.RuntimePlatform.CpuArchitecture == "X86_64"
    assert task.to_dict()["Properties"]["EphemeralStorage"] == {"Ref": "AWS::NoValue"}
    container = task.ContainerDefinitions[0]
    assert container.Name == "worker"
    assert container.Image == "my/worker:latest"
    assert container.PortMappings == []

    ecs_service = service.ecs_service
    assert ecs_service.DesiredCount == 1
    assert ecs_service.EnableExecuteCommand is True
    assert ecs_service.DeploymentConfiguration.DeploymentCircuitBreaker.Rollback is True
    network = ecs_service.NetworkConfiguration.AwsvpcConfiguration
    assert network.Subnets == ["subnet-public-a", "subnet-public-b"]
    assert network.SecurityGroups == ["sg-0123456789abcdef0"]
    assert network.AssignPublicIp == "ENABLED"
    assert set(cluster.template.outputs.keys()) >= {
        "WorkerServiceName",
        "WorkerCloudMapServiceArn",
    }
    assert "WorkerUrl" not in cluster.template.outputs
    json.loads(cluster.template.to_json())


def test_task_sizes(cluster):
    service = cluster.add_service(
        "batch",
        {"image": "batch", "cpu": "2 vCPU", "memory": "8 GB", "storage": "50 GB", "architecture": "arm64"},
    )
    task = service.task_definition
    assert (task.Cpu, task.Memory) == ("2048", "8192")
    assert task.EphemeralStorage.SizeInGiB == 50
    assert task.RuntimePlatform.CpuArchitecture == "ARM64"


def test_web_service(cluster, web_service):
    service = cluster.add_service("web", web_service)
    resources = cluster.template.resources
    assert "WebLoadBalancer" in resources
    assert "WebLoadBalancerSecurityGroup" in resources
    assert "Web80HTTPListener" in resources
    assert "Web443HTTPSListener" in resources
    assert "WebCpuTrackingPolicy" in resources
    assert "WebMemoryTrackingPolicy" not in resources

    target_groups = service.nodes["targetGroups"]
    assert [tg.title for tg in target_groups] == ["WebWeb80HTTPTargetGroup"]
    assert target_groups[0].Port == 80
    assert target_groups[0].HealthCheckPath == "/"

    lb = service.nodes["loadBalancer"]
    assert lb.Type == "application"
    assert lb.Scheme == "internet-facing"
    assert lb.Subnets == ["subnet-public-a", "subnet-public-b"]

    http_listener = resources["Web80HTTPListener"]
    assert http_listener.DefaultActions[0].Type == "redirect"
    assert http_listener.DefaultActions[0].RedirectConfig.Port == "443"
    https_listener = resources["Web443HTTPSListener"]
    assert https_listener.DefaultActions[0].Type == "forward"
    assert https_listener.Certificates[0].CertificateArn.startswith("arn:aws:acm")

    ecs_service = service.ecs_service
    assert ecs_service.LoadBalancers[0].ContainerName == "web"
    assert ecs_service.LoadBalancers[0].ContainerPort == 80
    assert ecs_service.HealthCheckGracePeriodSeconds == 120
    assert set(ecs_service.DependsOn) == {"Web80HTTPListener", "Web443HTTPSListener"}

    port_mappings = service.task_definition.ContainerDefinitions[0].PortMappings
    assert [(p.ContainerPort, p.Protocol) for p in port_mappings] == [(80, "tcp")]

    scaling = service.nodes["autoScalingTarget"]
    assert (scaling.MinCapacity, scaling.MaxCapacity) == (1, 4)
    policy = service.nodes["scalingPolicies"][0]
    assert policy.TargetTrackingScalingPolicyConfiguration.TargetValue == 70.0

    assert service.url == "https://www.example.com"
    assert cluster.template.outputs["WebUrl"].Value == "https://www.example.com"
    json.loads(cluster.template.to_json())


def test_path_routing(cluster):
    service = cluster.add_service(
        "api",
        {
            "containers": [
                {"name": "api", "image": "api"},
                {"name": "admin", "image": "admin"},
            ],
            "loadBalancer": {
                "public": False,
                "ports": [
                    {"listen": "80/http", "path": "/api/*", "forward": "8080/http", "container": "api"},
                    {"listen": "80/http", "path": "/admin/*", "forward": "9000/http", "container": "admin"},
                ],
            },
        },
    )
    nodes = service.nodes
    assert len(nodes["targetGroups"]) == 2
    assert len(nodes["listeners"]) == 1
    listener = nodes["listeners"][0]
    assert listener.DefaultActions[0].Type == "fixed-response"
    assert listener.DefaultActions[0].FixedResponseConfig.StatusCode == "403"
    assert [rule.title for rule in nodes["listenerRules"]] == [
        "Api80HTTPListenerRule1",
        "Api80HTTPListenerRule2",
    ]
    assert nodes["listenerRules"][0].Conditions[0].PathPatternConfig.Values == ["/api/*"]
    assert nodes["loadBalancer"].Scheme == "internal"
    containers = service.task_definition.ContainerDefinitions
    assert [c.PortMappings[0].ContainerPort for c in containers] == [8080, 9000]
    assert set(service.ecs_service.DependsOn) == {
        "Api80HTTPListener",
        "Api80HTTPListenerRule1",
        "Api80HTTPListenerRule2",
    }
    url = cluster.template.outputs["ApiUrl"].to_dict()["Value"]
    assert url == {"Fn::Sub": "http://${ApiLoadBalancer.DNSName}"}


def test_network_service(cluster):
    service = cluster.add_service(
        "dns",
        {
            "image": "coredns",
            "loadBalancer": {"ports": [{"listen": "53/tcp_udp"}]},
        },
    )
    lb = service.nodes["loadBalancer"]
    assert lb.Type == "network"
    target_group = service.nodes["targetGroups"][0]
    assert target_group.Protocol == "TCP_UDP"
    assert target_group.HealthCheckProtocol == "TCP"
    mappings = service.task_definition.ContainerDefinitions[0].PortMappings
    assert [(p.ContainerPort, p.Protocol) for p in mappings] == [(53, "tcp"), (53, "udp")]
    ingress = service.nodes["loadBalancerSecurityGroup"].SecurityGroupIngress
    assert [(rule.FromPort, rule.IpProtocol) for rule in ingress] == [(53, "tcp"), (53, "udp")]
    assert cluster.template.outputs["DnsUrl"].to_dict()["Value"] == {
        "Fn::Sub": "${DnsLoadBalancer.DNSName}"
    }


def test_service_registry(cluster):
    service = cluster.add_service(
        "api", {"image": "api", "serviceRegistry": {"port": 8080}}
    )
    sd_service = service.nodes["cloudmapService"]
    assert [record.Type for record in sd_service.DnsConfig.DnsRecords] == ["A", "SRV"]
    assert sd_service.NamespaceId == "ns-abcdefghijklmnop"
    registry = service.ecs_service.ServiceRegistries[0]
    assert (registry.ContainerName, registry.ContainerPort) == ("api", 8080)
    assert service.cloudmap_service.hostname == "api.prod.internal"


def test_efs_volumes(cluster):
    service = cluster.add_service(
        "files",
        {
            "image": "files",
            "volumes": [
                {"efs": {"fileSystem": "fs-1234", "accessPoint": "fsap-5678"}, "path": "/data"}
            ],
        },
    )
    volume = service.task_definition.Volumes[0]
    assert volume.Name == "Fs1234Fsap5678"
    assert volume.EFSVolumeConfiguration.TransitEncryption == "ENABLED"
    assert volume.EFSVolumeConfiguration.AuthorizationConfig.AccessPointId == "fsap-5678"
    mount = service.task_definition.ContainerDefinitions[0].MountPoints[0]
    assert (mount.SourceVolume, mount.ContainerPath) == ("Fs1234Fsap5678", "/data")
    statements = service.task_role.cfn_resource.Policies[0].PolicyDocument["Statement"]
    assert "elasticfilesystem:ClientMount" in statements[1]["Action"]


def test_built_image_parameter(cluster):
    cluster.add_service("api", {"image": {"context": "./api"}})
    template = cluster.template
    assert "ApiApiImageUri" in template.parameters
    images = template.metadata["ecs-cluster-x::images"]
    assert images["ApiApiImageUri"]["context"] == "./api"
    container = template.resources["ApiTaskDefinition"].ContainerDefinitions[0]
    assert container.Image.to_dict() == {"Ref": "ApiApiImageUri"}


def test_errors_do_not_change_the_template(cluster):
    before = list(cluster.template.resources.keys())
    with pytest.raises(InvalidSizeCombination):
        cluster.add_service("api", {"image": "api", "cpu": "1 vCPU", "memory": "20 GB"})
    with pytest.raises(AmbiguousContainerTarget):
        cluster.add_service(
            "api",
            {
                "containers": [{"name": "a", "image": "a"}, {"name": "b", "image": "b"}],
                "loadBalancer": {"ports": [{"listen": "80/http"}]},
            },
        )
    with pytest.raises(ConfigurationError):
        cluster.add_service("api", {"image": "api", "taskRole": "not a role!"})
    with pytest.raises(ConfigurationError):
        cluster.add_service("api", {"image": "api", "link": [{"arn": "no-permissions"}]})
    assert list(cluster.template.resources.keys()) == before
    assert cluster.services == {}


def test_conflicting_service_names(cluster):
    cluster.add_service("my-api", {"image": "api"})
    with pytest.raises(ConfigurationError):
        cluster.add_service("myapi", {"image": "api"})


def test_services_are_independent(cluster):
    first = cluster.add_service("first", {"image": "first"})
    second = cluster.add_service("second", {"image": "second", "scaling": {"min": 2, "max": 3}})
    assert first.ecs_service.DesiredCount == 1
    assert second.ecs_service.DesiredCount == 2
    assert set(cluster.services.keys()) == {"first", "second"}


def template_references(node, references: set) -> set:
    """
    Collects the logical names used in Ref, Fn::GetAtt and Fn::Sub across the template
    """
    if isinstance(node, list):
        for item in node:
            template_references(item, references)
    elif isinstance(node, dict):
        for key, value in node.items():
            if key == "Ref":
                references.add(value)
            elif key == "Fn::GetAtt":
                references.add(value[0] if isinstance(value, list) else value.split(".")[0])
            elif key == "Fn::Sub":
                text, local_vars = (value[0], value[1]) if isinstance(value, list) else (value, {})
                for name in re.findall(r"\$\{([^!}][^}]*)\}", text):
                    if name not in local_vars:
                        references.add(name.split(".")[0])
            template_references(value, references)
    return references


def test_template_references_resolve(cluster, web_service):
    cluster.add_service("web", web_service)
    cluster.add_service(
        "worker",
        {
            "image": {"context": "./worker"},
            "ssm": {"DB_PASSWORD": "/worker/db/password"},
            "volumes": [{"efs": {"fileSystem": "fs-1234"}, "path": "/data"}],
            "serviceRegistry": {"port": 8080},
        },
    )
    content = json.loads(cluster.template.to_json())
    known = set(content["Resources"].keys()) | set(content.get("Parameters", {}).keys())
    unresolved = {
        name
        for name in template_references(content, set())
        if name not in known and not name.startswith("AWS::")
    }
    assert unresolved == set()


def test_target_group_titles_collision(cluster):
    with pytest.raises(ValueError):
        cluster.add_service(
            "web",
            {
                "containers": [{"name": "a", "image": "a"}, {"name": "a1", "image": "a1"}],
                "loadBalancer": {
                    "ports": [
                        {"listen": "180/http", "container": "a"},
                        {"listen": "80/http", "container": "a1"},
                    ]
                },
            },
        )
