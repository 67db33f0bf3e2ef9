# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Resources layout versions of the cluster.

Version 2 deploys both the load balancers and the services in the public subnets, which does not require
the VPC to have NAT gateways. Version 1 deployed the services into private subnets.
Moving between versions replaces the networking of the services, so it must be opted in.
"""

from __future__ import annotations

from ecs_clusterx.common.logging import LOG
from ecs_clusterx.ecs.ecs_params import LAYOUT_VERSION
from ecs_clusterx.exceptions import BreakingVersionChange

UPGRADE_NOTES = {
    2: [
        "Load balancers and services are now both deployed in the public subnets.",
        "Previously, services were deployed in the private subnets and the VPC required NAT gateways.",
    ]
}


def upgrade_message(cluster_name: str, old_version: int, new_version: int) -> str:
    lines = [
        f"Cluster {cluster_name} is deployed with resources layout v{old_version}. "
        f"v{new_version} has breaking changes.",
        "",
        "What changed:",
    ]
    lines += [f"  - {note}" for note in UPGRADE_NOTES.get(new_version, [])]
    lines += [
        "",
        "To upgrade:",
        f'  - Set forceUpgrade: "v{new_version}" in x-cluster, or use --force-upgrade v{new_version}',
    ]
    return "\n".join(lines)


def check_layout_version(
    cluster_name: str,
    old_version: int = None,
    new_version: int = LAYOUT_VERSION,
    force_upgrade: str = None,
) -> int:
    """
    Compares the previously deployed layout version of the cluster with the new one.

    :param str cluster_name:
    :param int old_version: the version previously deployed. None for new clusters.
    :param int new_version:
    :param str force_upgrade: the opt-in, i.e. `v2`
    :return: the version to apply
    :rtype: int
    :raises BreakingVersionChange: when upgrading without opt-in, or when downgrading
    """
    if old_version is None or old_version == new_version:
        return new_version
    if old_version > new_version:
        raise BreakingVersionChange(
            f"Cluster {cluster_name} is deployed with resources layout v{old_version} "
            f"which is more recent than v{new_version}. Downgrading is not supported.",
            cluster_name,
            old_version,
            new_version,
        )
    if force_upgrade == f"v{new_version}":
        LOG.warning(
            f"Cluster {cluster_name} - Upgrading resources layout from v{old_version} to v{new_version}"
        )
        return new_version
    message = upgrade_message(cluster_name, old_version, new_version)
    LOG.error(message)
    raise BreakingVersionChange(message, cluster_name, old_version, new_version)
