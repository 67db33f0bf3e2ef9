# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Parsing of the human readable values
"""

import pytest

from ecs_clusterx.ecs.docker_tools import (
    cpu_to_units,
    duration_to_seconds,
    gb_to_mb,
    gb_value,
    parse_port,
)
from ecs_clusterx.exceptions import (
    ConfigurationError,
    InvalidDuration,
    InvalidSizeCombination,
)


@pytest.mark.parametrize(
    "value, units",
    [("0.25 vCPU", 256), ("0.5 vCPU", 512), ("1 vCPU", 1024), ("16 vCPU", 16384)],
)
def test_cpu_to_units(value, units):
    assert cpu_to_units(value) == units


def test_invalid_cpu():
    with pytest.raises(InvalidSizeCombination):
        cpu_to_units("1 CPU")
    with pytest.raises(InvalidSizeCombination):
        cpu_to_units("0.1 vCPU")


def test_memory_and_storage():
    assert gb_to_mb("0.5 GB") == 512
    assert gb_to_mb("2 GB") == 2048
    assert gb_value("21 GB") == 21
    with pytest.raises(InvalidSizeCombination):
        gb_to_mb("512 MB")
    with pytest.raises(InvalidSizeCombination):
        gb_value("20.5 GB")


def test_durations():
    assert duration_to_seconds("1 second") == 1
    assert duration_to_seconds("30 seconds") == 30
    assert duration_to_seconds("2 minutes") == 120
    with pytest.raises(InvalidDuration):
        duration_to_seconds("30s")
    with pytest.raises(InvalidDuration):
        duration_to_seconds(30)


def test_parse_port():
    assert parse_port("80/http") == (80, "http")
    assert parse_port("53/tcp_udp") == (53, "tcp_udp")
    for invalid in ("80", "http/80", "70000/tcp", "0/tcp", "80/grpc"):
        with pytest.raises(ConfigurationError):
            parse_port(invalid)
