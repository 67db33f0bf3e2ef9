# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

from __future__ import annotations

from compose_x_common.compose_x_common import set_else_none

from ecs_clusterx.exceptions import InvalidScaling


def import_utilization(service_name: str, definition: dict, key: str):
    """
    Utilization targets are disabled when not set or set to false.

    :return: the target percentage, or None when disabled
    """
    value = set_else_none(key, definition, eval_bool=True)
    if value is None or value is False:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidScaling(
            f"{service_name} - scaling.{key} must be a number or false. Got", value
        )
    if not 0 < value <= 100:
        raise InvalidScaling(
            f"{service_name} - scaling.{key} must be in range (0, 100]. Got", value
        )
    return value


class ScalingSettings:
    """
    Range of tasks count for the service and target tracking settings.

    :ivar int min:
    :ivar int max:
    :ivar float cpu_utilization: None when disabled
    :ivar float memory_utilization: None when disabled
    """

    def __init__(self, service_name: str, definition: dict = None):
        definition = definition or {}
        self.min = set_else_none("min", definition, alt_value=1, eval_bool=True)
        self.max = set_else_none("max", definition, alt_value=1, eval_bool=True)
        if self.min < 0 or self.max < 1:
            raise InvalidScaling(
                f"{service_name} - scaling min must be >= 0 and max >= 1. Got",
                self.min,
                self.max,
            )
        if self.min > self.max:
            raise InvalidScaling(
                f"{service_name} - scaling min {self.min} is greater than max {self.max}"
            )
        self.cpu_utilization = import_utilization(
            service_name, definition, "cpuUtilization"
        )
        self.memory_utilization = import_utilization(
            service_name, definition, "memoryUtilization"
        )

    def to_dict(self) -> dict:
        return {
            "min": self.min,
            "max": self.max,
            "cpuUtilization": self.cpu_utilization
            if self.cpu_utilization is not None
            else False,
            "memoryUtilization": self.memory_utilization
            if self.memory_utilization is not None
            else False,
        }
