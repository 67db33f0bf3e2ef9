# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Parsing of the human readable values used in the services definitions, i.e. `1 vCPU`, `2 GB`, `30 seconds`
"""

from __future__ import annotations

import re

from ecs_clusterx.common.logging import LOG
from ecs_clusterx.exceptions import (
    ConfigurationError,
    InvalidDuration,
    InvalidSizeCombination,
)

CPU_RE = re.compile(r"^(?P<amount>\d+(\.\d+)?) vCPU$")
GB_RE = re.compile(r"^(?P<amount>\d+(\.\d+)?) GB$")
DURATION_RE = re.compile(
    r"^(?P<amount>\d+) (?P<unit>second|seconds|minute|minutes)$"
)
PORT_RE = re.compile(r"^(?P<port>\d{1,5})/(?P<protocol>http|https|tcp|udp|tcp_udp|tls)$")


def cpu_to_units(value: str) -> int:
    """
    Function to convert `x vCPU` into ECS CPU units

    :param str value:
    :return: the CPU units, 1024 per vCPU
    :rtype: int
    """
    parts = CPU_RE.match(value) if isinstance(value, str) else None
    if not parts:
        raise InvalidSizeCombination(
            f"CPU {value} is not valid. Expected format is", CPU_RE.pattern
        )
    units = float(parts.group("amount")) * 1024
    if not units.is_integer():
        raise InvalidSizeCombination(f"CPU {value} does not map to whole CPU units")
    return int(units)


def gb_to_mb(value: str) -> int:
    """
    Returns the value of MB for a `x GB` value

    :param str value:
    :rtype: int
    """
    parts = GB_RE.match(value) if isinstance(value, str) else None
    if not parts:
        raise InvalidSizeCombination(
            f"Memory {value} is not valid. Expected format is", GB_RE.pattern
        )
    amount = float(parts.group("amount")) * 1024
    if not amount.is_integer():
        raise InvalidSizeCombination(f"Memory {value} does not map to whole MB")
    LOG.debug(f"Computed {value} into {int(amount)}MB")
    return int(amount)


def gb_value(value: str) -> int:
    """
    Returns the number of GB, for storage, as integer.
    """
    parts = GB_RE.match(value) if isinstance(value, str) else None
    if not parts or not float(parts.group("amount")).is_integer():
        raise InvalidSizeCombination(
            f"Storage {value} is not valid. Expected a whole number of GB, i.e. 20 GB"
        )
    return int(float(parts.group("amount")))


def duration_to_seconds(value: str) -> int:
    """
    Function to parse durations such as `30 seconds` or `1 minute`

    :param str value:
    :return: The number of seconds
    :rtype: int
    """
    parts = DURATION_RE.match(value) if isinstance(value, str) else None
    if not parts:
        raise InvalidDuration(
            f"The duration {value} does not match the expected pattern",
            DURATION_RE.pattern,
        )
    amount = int(parts.group("amount"))
    if parts.group("unit").startswith("minute"):
        return amount * 60
    return amount


def parse_port(value: str) -> tuple:
    """
    Splits `{port}/{protocol}` into its port number and protocol

    :param str value:
    :return: port, protocol
    :rtype: tuple[int, str]
    """
    parts = PORT_RE.match(value) if isinstance(value, str) else None
    if not parts:
        raise ConfigurationError(
            f"Port {value} is not valid. Expected {{port}}/{{protocol}}, i.e. 80/http"
        )
    port = int(parts.group("port"))
    if not 1 <= port <= 65535:
        raise ConfigurationError(f"Port {value} - {port} is not in range 1-65535")
    return port, parts.group("protocol")
