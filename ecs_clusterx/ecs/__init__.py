# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Core module for ECS Cluster-X.

From the normalized service settings, defines for each service its

* Log groups
* TaskRole
* ExecutionRole
* TaskDefinition and containers definitions
* ServiceDefinition

The load balancing, cloudmap and scaling resources are defined in their own modules.
"""

from ecs_clusterx import __version__ as version

metadata = {
    "Type": "ClusterX",
    "Properties": {
        "ecs_clusterx::module": "ecs_clusterx.ecs",
        "Version": version,
    },
}
