# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

from troposphere import Sub

SECRETS_MANAGER_ARN_PREFIX = ":secretsmanager:"


def ssm_parameter_arn(value: str):
    """
    Returns the ARN of the SSM parameter or secret. Parameter names are expanded into the
    ARN of the parameter in the account and region.
    """
    if value.startswith("arn:"):
        return value
    return Sub(
        f"arn:${{AWS::Partition}}:ssm:${{AWS::Region}}:${{AWS::AccountId}}:parameter/{value.lstrip('/')}"
    )


def secrets_access_statements(values: list) -> list:
    """
    Statements to read the SSM parameters and Secrets Manager secrets exposed as env vars.

    :param list[str] values: SSM parameter names/ARNs or secrets ARNs
    :rtype: list[dict]
    """
    parameters = [
        ssm_parameter_arn(value)
        for value in values
        if SECRETS_MANAGER_ARN_PREFIX not in value
    ]
    secrets = [value for value in values if SECRETS_MANAGER_ARN_PREFIX in value]
    statements = []
    if parameters:
        statements.append(
            {
                "Effect": "Allow",
                "Action": ["ssm:GetParameters"],
                "Resource": parameters,
            }
        )
    if secrets:
        statements.append(
            {
                "Effect": "Allow",
                "Action": ["secretsmanager:GetSecretValue"],
                "Resource": secrets,
            }
        )
    return statements


def ecs_exec_statement() -> dict:
    return {
        "Effect": "Allow",
        "Action": [
            "ssmmessages:CreateControlChannel",
            "ssmmessages:CreateDataChannel",
            "ssmmessages:OpenControlChannel",
            "ssmmessages:OpenDataChannel",
        ],
        "Resource": ["*"],
    }


def efs_access_statements(file_systems: list) -> list:
    if not file_systems:
        return []
    return [
        {
            "Effect": "Allow",
            "Action": [
                "elasticfilesystem:ClientMount",
                "elasticfilesystem:ClientWrite",
                "elasticfilesystem:ClientRootAccess",
            ],
            "Resource": [
                Sub(
                    "arn:${AWS::Partition}:elasticfilesystem:${AWS::Region}:${AWS::AccountId}:"
                    f"file-system/{file_system}"
                )
                for file_system in file_systems
            ],
        }
    ]
