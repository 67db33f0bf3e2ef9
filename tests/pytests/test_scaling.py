# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

import pytest

from ecs_clusterx.exceptions import InvalidScaling
from ecs_clusterx.service_settings.scaling import ScalingSettings


def test_scaling_defaults():
    scaling = ScalingSettings("web")
    assert (scaling.min, scaling.max) == (1, 1)
    assert scaling.cpu_utilization is None
    assert scaling.memory_utilization is None


def test_scaling_settings():
    scaling = ScalingSettings(
        "web", {"min": 0, "max": 10, "cpuUtilization": 70, "memoryUtilization": False}
    )
    assert (scaling.min, scaling.max) == (0, 10)
    assert scaling.cpu_utilization == 70
    assert scaling.memory_utilization is None


@pytest.mark.parametrize(
    "definition",
    [
        {"min": 4, "max": 2},
        {"max": 0},
        {"cpuUtilization": 0},
        {"memoryUtilization": 101},
        {"cpuUtilization": True},
        {"cpuUtilization": "70"},
    ],
)
def test_invalid_scaling(definition):
    with pytest.raises(InvalidScaling):
        ScalingSettings("web", definition)
