# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Execution and Task IAM roles of a service.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ecs_clusterx.cluster import Service

from troposphere import GetAtt, Sub
from troposphere.iam import Policy
from troposphere.iam import Role as IamRole

from ecs_clusterx.common.logging import LOG
from ecs_clusterx.common.troposphere_tools import build_resource
from ecs_clusterx.ecs.ecs_params import (
    EXEC_ROLE_T,
    EXECUTION_ROLE_MANAGED_POLICY,
    TASK_ROLE_T,
)
from ecs_clusterx.iam import define_role_arn, service_role_trust_policy

from .helpers import (
    ecs_exec_statement,
    efs_access_statements,
    secrets_access_statements,
)


class EcsRole:
    """
    Class to wrap around the AWS IAM Role, either new or an existing role referenced by name/ARN.

    :ivar str role_type: one of EXEC_ROLE_T or TASK_ROLE_T
    :ivar troposphere.iam.Role cfn_resource: the new role. None when using an existing role
    :ivar existing: the name or ARN of the existing role
    """

    def __init__(self, service: Service, role_type: str, existing: str = None):
        if role_type not in [TASK_ROLE_T, EXEC_ROLE_T]:
            raise ValueError(
                "role_type is", role_type, "expected one of", [TASK_ROLE_T, EXEC_ROLE_T]
            )
        self.role_type = role_type
        self.service = service
        self.logical_name = f"{service.logical_name}{role_type}"
        self.existing = existing
        self.cfn_resource = None
        self._existing_arn = define_role_arn(existing) if existing else None

    @property
    def arn(self):
        """
        Returns the ARN of the role to use
        """
        if self._existing_arn is not None:
            return self._existing_arn
        if self.cfn_resource is None:
            raise AttributeError(f"{self.logical_name} - role is not yet defined")
        return GetAtt(self.cfn_resource, "Arn")

    def init_role(self, statements: list, managed_policies: list = None, transform=None):
        """
        Creates the new IAM Role unless an existing role is used. Permissions are not merged
        into existing roles.

        :param list statements: IAM policy statements to grant in an inline policy
        :param list managed_policies: managed policies ARNs
        :param transform: hook on the role properties
        """
        if self.existing:
            LOG.info(
                f"{self.service.name} - Using existing role {self.existing} for {self.role_type}"
            )
            return
        props = {
            "AssumeRolePolicyDocument": service_role_trust_policy("ecs-tasks"),
            "Description": Sub(
                f"{self.role_type} - {self.service.name} in ${{{self.service.cluster.ecs_cluster.title}}}"
            ),
            "ManagedPolicyArns": managed_policies or [],
            "Policies": [],
        }
        if statements:
            props["Policies"].append(
                Policy(
                    PolicyName=f"{self.logical_name}Policy",
                    PolicyDocument={"Version": "2012-10-17", "Statement": statements},
                )
            )
        self.cfn_resource = build_resource(
            IamRole,
            self.logical_name,
            props,
            self.service.template,
            transform,
        )


def define_execution_role(service: Service) -> EcsRole:
    """
    The execution role pulls the images, writes the logs and reads the secrets exposed to the containers.
    """
    role = EcsRole(service, EXEC_ROLE_T, service.settings.execution_role)
    ssm_values = []
    for container in service.settings.containers:
        ssm_values += [value for value in container.ssm.values() if value not in ssm_values]
    role.init_role(
        secrets_access_statements(ssm_values),
        [Sub(EXECUTION_ROLE_MANAGED_POLICY)],
        service.settings.transform.get("executionRole"),
    )
    return role


def define_task_role(service: Service, policy_statements: list) -> EcsRole:
    """
    The task role grants the application access to ECS Exec, the EFS volumes, the linked resources
    and the additional permissions.

    :param Service service:
    :param list policy_statements: the statements resolved from `permissions` and `link`
    """
    role = EcsRole(service, TASK_ROLE_T, service.settings.task_role)
    file_systems = []
    for container in service.settings.containers:
        for volume in container.volumes:
            if volume.file_system not in file_systems:
                file_systems.append(volume.file_system)
    statements = [ecs_exec_statement()]
    statements += efs_access_statements(file_systems)
    statements += policy_statements
    role.init_role(statements, [], service.settings.transform.get("taskRole"))
    return role
