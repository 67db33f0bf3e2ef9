# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Common functions and variables fetched from AWS.
"""

from __future__ import annotations

import re

from botocore.exceptions import ClientError
from compose_x_common.compose_x_common import keyisset

from ecs_clusterx.common.logging import LOG
from ecs_clusterx.ecs.ecs_params import LAYOUT_VERSION_T

LAYOUT_VERSION_OUTPUT_RE = re.compile(rf"^(?P<cluster>[a-zA-Z0-9]+){LAYOUT_VERSION_T}$")


def get_deployed_cluster_versions(session, stack_name: str) -> dict:
    """
    Retrieves the resources layout versions of the clusters deployed in a CFN stack, from the
    stack outputs.

    :param boto3.session.Session session:
    :param str stack_name:
    :return: the layout versions, indexed by the cluster logical name. Empty if the stack does not exist.
    :rtype: dict[str, int]
    """
    client = session.client("cloudformation")
    try:
        stacks = client.describe_stacks(StackName=stack_name)["Stacks"]
    except ClientError as error:
        code = error.response["Error"]["Code"]
        message = error.response["Error"]["Message"]
        if code == "ValidationError" and "does not exist" in message:
            LOG.info(f"Stack {stack_name} does not exist. No deployed version")
            return {}
        raise
    versions = {}
    for stack in stacks:
        if not keyisset("Outputs", stack):
            continue
        for output in stack["Outputs"]:
            parts = LAYOUT_VERSION_OUTPUT_RE.match(output["OutputKey"])
            if not parts:
                continue
            versions[parts.group("cluster")] = int(output["OutputValue"])
    LOG.debug(f"Stack {stack_name} - deployed layout versions {versions}")
    return versions
