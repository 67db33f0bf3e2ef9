# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Main module to generate the cluster template with all the services defined in the input files.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ecs_clusterx.common.settings import ClusterXSettings
    from ecs_clusterx.iam.link import LinkResolver

from compose_x_common.compose_x_common import set_else_none

from ecs_clusterx.cluster import Cluster
from ecs_clusterx.common.files import FileArtifact
from ecs_clusterx.common.logging import LOG
from ecs_clusterx.service_settings import normalize_service


def generate_cluster(
    settings: ClusterXSettings, permissions_resolver: LinkResolver = None
) -> Cluster:
    """
    Creates the cluster and adds all the services defined in the settings content.

    :param ClusterXSettings settings:
    :param permissions_resolver: resolver for the services `link`
    :rtype: Cluster
    """
    cluster_definition = settings.cluster_definition
    cluster = Cluster(
        settings.cluster_name,
        cluster_definition["vpc"],
        transform=set_else_none("transform", cluster_definition),
        force_upgrade=settings.force_upgrade_value,
        settings=settings,
        permissions_resolver=permissions_resolver,
    )
    for service_name, service_definition in settings.services_definitions.items():
        cluster.add_service(service_name, service_definition)
    if not cluster.services:
        LOG.warning(f"Cluster {cluster.name} - No services defined")
    return cluster


def render_cluster(settings: ClusterXSettings) -> FileArtifact:
    """
    Generates the cluster template and writes it to the output directory, then saves the versions state.

    :rtype: FileArtifact
    """
    cluster = generate_cluster(settings)
    template_file = FileArtifact(
        settings.name or cluster.name, settings, template=cluster.template
    )
    template_file.write()
    settings.write_state()
    return template_file


def render_services_config(settings: ClusterXSettings) -> dict:
    """
    Validates and normalizes all the services.

    :return: the normalized settings of each service
    :rtype: dict
    """
    return {
        service_name: normalize_service(service_name, service_definition).to_dict()
        for service_name, service_definition in settings.services_definitions.items()
    }
