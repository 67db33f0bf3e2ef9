# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Package to generate the scalable target and the target tracking scaling policies of a service.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ecs_clusterx.cluster import Service

from troposphere import AWS_ACCOUNT_ID, AWS_PARTITION, AWS_URL_SUFFIX, Ref, Sub
from troposphere.applicationautoscaling import (
    PredefinedMetricSpecification,
    ScalableTarget,
    ScalingPolicy,
    SuspendedState,
    TargetTrackingScalingPolicyConfiguration,
)

from ecs_clusterx.common.troposphere_tools import add_resource, build_resource
from ecs_clusterx.ecs.ecs_params import SERVICE_SCALING_TARGET

SCALE_IN_COOLDOWN = 300
SCALE_OUT_COOLDOWN = 300

TRACKING_METRICS = {
    "cpu": ("Cpu", "ECSServiceAverageCPUUtilization"),
    "memory": ("Memory", "ECSServiceAverageMemoryUtilization"),
}


def define_tracking_target_configuration(
    target_value, config_key: str
) -> TargetTrackingScalingPolicyConfiguration:
    """
    Function to create the configuration for target tracking scaling

    :param target_value: the utilization percentage to track
    :param str config_key: cpu or memory
    """
    if config_key not in TRACKING_METRICS:
        raise KeyError(config_key, "Is invalid. Expected one of", TRACKING_METRICS.keys())
    return TargetTrackingScalingPolicyConfiguration(
        DisableScaleIn=False,
        ScaleInCooldown=SCALE_IN_COOLDOWN,
        ScaleOutCooldown=SCALE_OUT_COOLDOWN,
        TargetValue=float(target_value),
        PredefinedMetricSpecification=PredefinedMetricSpecification(
            PredefinedMetricType=TRACKING_METRICS[config_key][1]
        ),
    )


class ServiceScaling:
    """
    Class to group the configuration for Service scaling

    :ivar Service service:
    :ivar troposphere.applicationautoscaling.ScalableTarget scalable_target:
    :ivar list[troposphere.applicationautoscaling.ScalingPolicy] scaling_policies:
    """

    def __init__(self, service: Service):
        self.service = service
        self.settings = service.settings.scaling
        self.scalable_target = None
        self.scaling_policies = []

    def create_scalable_target(self) -> ScalableTarget:
        """
        Method to create the scalable target on the service DesiredCount, with the service-linked role.
        """
        self.scalable_target = build_resource(
            ScalableTarget,
            f"{self.service.logical_name}{SERVICE_SCALING_TARGET}",
            {
                "MinCapacity": self.settings.min,
                "MaxCapacity": self.settings.max,
                "ScalableDimension": "ecs:service:DesiredCount",
                "ServiceNamespace": "ecs",
                "RoleARN": Sub(
                    f"arn:${{{AWS_PARTITION}}}:iam::${{{AWS_ACCOUNT_ID}}}:role/"
                    f"ecs.application-autoscaling.${{{AWS_URL_SUFFIX}}}/"
                    "AWSServiceRoleForApplicationAutoScaling_ECSService"
                ),
                "ResourceId": Sub(
                    f"service/${{{self.service.cluster.ecs_cluster.title}}}/"
                    f"${{{self.service.ecs_service.title}.Name}}"
                ),
                "SuspendedState": SuspendedState(DynamicScalingInSuspended=False),
            },
            self.service.template,
            self.service.settings.transform.get("autoScalingTarget"),
        )
        return self.scalable_target

    def add_target_scaling(self) -> None:
        """
        Adds a target tracking policy for each of the CPU and Memory utilization targets that are enabled.
        """
        targets = {
            "cpu": self.settings.cpu_utilization,
            "memory": self.settings.memory_utilization,
        }
        for config_key, target_value in targets.items():
            if target_value is None:
                continue
            prefix = TRACKING_METRICS[config_key][0]
            policy = ScalingPolicy(
                f"{self.service.logical_name}{prefix}TrackingPolicy",
                ScalingTargetId=Ref(self.scalable_target),
                PolicyName=f"{self.service.cluster.name}-{self.service.name}-{config_key}",
                PolicyType="TargetTrackingScaling",
                TargetTrackingScalingPolicyConfiguration=define_tracking_target_configuration(
                    target_value, config_key
                ),
            )
            add_resource(self.service.template, policy)
            self.scaling_policies.append(policy)
