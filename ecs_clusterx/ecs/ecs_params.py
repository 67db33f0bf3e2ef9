# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Values and titles bound to ecs_clusterx.ecs

All the titles, marked `_T`, are suffixes used the same way across all modules to name
the resources of a service, which gives consistency for CFN which heavily relies onto them.

You can change the names *values* so you like so long as you keep it [a-zA-Z0-9]
"""

CLUSTER_T = "Cluster"
LOG_GROUP_T = "LogGroup"
EXEC_ROLE_T = "ExecutionRole"
TASK_ROLE_T = "TaskRole"
SERVICE_T = "Service"
TASK_T = "TaskDefinition"
IMAGE_URI_T = "ImageUri"
SERVICE_SCALING_TARGET = "AutoScalingTarget"
LAYOUT_VERSION_T = "LayoutVersion"

LAYOUT_VERSION = 2

DEFAULT_CPU = "0.25 vCPU"
DEFAULT_STORAGE = "20 GB"
MIN_STORAGE_GB = 20
MAX_STORAGE_GB = 200
DEFAULT_ARCHITECTURE = "x86_64"
ARCHITECTURES = {"x86_64": "X86_64", "arm64": "ARM64"}

SUPPORTED_CPUS = {
    "0.25 vCPU": 256,
    "0.5 vCPU": 512,
    "1 vCPU": 1024,
    "2 vCPU": 2048,
    "4 vCPU": 4096,
    "8 vCPU": 8192,
    "16 vCPU": 16384,
}


def _gb_range(start: int, stop: int, step: int = 1) -> dict:
    return {f"{value} GB": value * 1024 for value in range(start, stop + 1, step)}


SUPPORTED_MEMORIES = {
    "0.25 vCPU": {"0.5 GB": 512, "1 GB": 1024, "2 GB": 2048},
    "0.5 vCPU": _gb_range(1, 4),
    "1 vCPU": _gb_range(2, 8),
    "2 vCPU": _gb_range(4, 16),
    "4 vCPU": _gb_range(8, 30),
    "8 vCPU": _gb_range(16, 60, 4),
    "16 vCPU": _gb_range(32, 120, 8),
}

LOG_RETENTION = {
    "1 day": 1,
    "3 days": 3,
    "5 days": 5,
    "1 week": 7,
    "2 weeks": 14,
    "1 month": 30,
    "2 months": 60,
    "3 months": 90,
    "4 months": 120,
    "5 months": 150,
    "6 months": 180,
    "1 year": 365,
    "13 months": 400,
    "18 months": 545,
    "2 years": 731,
    "3 years": 1096,
    "5 years": 1827,
    "6 years": 2192,
    "7 years": 2557,
    "8 years": 2922,
    "9 years": 3288,
    "10 years": 3653,
    "forever": 0,
}
DEFAULT_LOG_RETENTION = "1 month"

CONTAINER_HEALTH_DEFAULTS = {
    "startPeriod": "0 seconds",
    "timeout": "5 seconds",
    "interval": "30 seconds",
    "retries": 3,
}
CONTAINER_HEALTH_RANGES = {
    "startPeriod": (0, 300),
    "timeout": (2, 60),
    "interval": (5, 300),
    "retries": (1, 10),
}

EXECUTION_ROLE_MANAGED_POLICY = (
    "arn:${AWS::Partition}:iam::aws:policy/service-role/AmazonECSTaskExecutionRolePolicy"
)
