# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

"""
IAM helpers: trust policies, roles ARNs and permissions statements.
"""

import re

from troposphere import Sub

from ecs_clusterx.common.logging import LOG
from ecs_clusterx.exceptions import ConfigurationError

ROLE_NAME_RE = re.compile(r"^[\w+=,.@/-]{1,128}$")
ROLE_ARN_RE = re.compile(r"^arn:aws[a-z-]*:iam::\d{12}:role/[\w+=,.@/-]+$")


def service_role_trust_policy(service_name: str) -> dict:
    """
    Simple function to format the trust relationship for a Role and an AWS Service
    used from lambda-my-aws/ozone

    :param str service_name: name of the ecs_service
    :return: policy document
    :rtype: dict
    """
    statement = {
        "Effect": "Allow",
        "Principal": {"Service": [Sub(f"{service_name}.${{AWS::URLSuffix}}")]},
        "Action": ["sts:AssumeRole"],
    }
    policy_doc = {"Version": "2012-10-17", "Statement": [statement]}
    return policy_doc


def define_role_arn(role: str):
    """
    From input, determines if the role string is the full ARN or just the name of the role.
    If just the name, assumes it is from the account itself, and adds the necessary ARN prefix.

    :param str role:
    :return: the role ARN
    :raises ConfigurationError: if the value is neither a valid role name nor ARN
    """
    if ROLE_ARN_RE.match(role):
        return role
    if not ROLE_NAME_RE.match(role):
        raise ConfigurationError(
            f"role {role} does not match expected regexp",
            ROLE_NAME_RE.pattern,
            ROLE_ARN_RE.pattern,
        )
    LOG.debug(f"Using existing IAM role {role} from the account")
    return Sub(f"arn:${{AWS::Partition}}:iam::${{AWS::AccountId}}:role/{role}")


def permission_to_statement(permission: dict) -> dict:
    """
    Converts a `{effect, actions, resources}` permission into an IAM policy statement

    :param dict permission:
    :rtype: dict
    """
    return {
        "Effect": "Deny"
        if str(permission.get("effect", "allow")).lower() == "deny"
        else "Allow",
        "Action": list(permission["actions"]),
        "Resource": list(permission["resources"]),
    }
