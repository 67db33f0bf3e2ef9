# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Most commonly used functions shared across all modules.
"""

from __future__ import annotations

import re
from copy import deepcopy

NONALPHANUM = re.compile(r"([^a-zA-Z\d]+)")


def logical_name(*parts: str) -> str:
    """
    Builds a CFN compliant logical name (title) out of the given parts, capitalizing each of them.

    >>> logical_name("my-cluster", "web")
    'MyclusterWeb'

    :param parts: the parts of the name to join
    :return: The alphanumerical name
    """
    cleaned = [NONALPHANUM.sub("", part) for part in parts if part]
    return "".join(part[:1].upper() + part[1:] for part in cleaned)


def merge_definitions(source: dict, override: dict) -> dict:
    """
    Merges recursively override into a copy of source. Lists and scalar values from override
    replace the ones of source.

    :param dict source:
    :param dict override:
    :return: the merged definition
    :rtype: dict
    """
    merged = deepcopy(source)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_definitions(merged[key], value)
        else:
            merged[key] = deepcopy(value)
    return merged
