# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Resolution of the permissions needed to access the resources linked to a service.

The permissions of a linked resource are defined by the resource itself. The default resolver accepts

* a mapping with a `permissions` list
* an object with a `get_permissions()` method, or a `permissions` attribute

A different resolver can be given to the cluster for other kinds of resources.
"""

from __future__ import annotations

from typing import Callable

from compose_x_common.compose_x_common import keypresent

from ecs_clusterx.exceptions import ConfigurationError

from . import permission_to_statement

LinkResolver = Callable[[object], list]


def default_link_resolver(link) -> list:
    """
    :param link: the linked resource
    :return: the permissions, as `{effect, actions, resources}` mappings
    :rtype: list[dict]
    """
    if isinstance(link, dict) and keypresent("permissions", link):
        return list(link["permissions"])
    if hasattr(link, "get_permissions") and callable(link.get_permissions):
        return list(link.get_permissions())
    if hasattr(link, "permissions"):
        return list(link.permissions)
    raise ConfigurationError(
        f"Unable to determine the permissions for linked resource {link!r}"
    )


def resolve_link_statements(
    service_name: str, links: list, resolver: LinkResolver = None
) -> list:
    """
    Resolves all the links of a service into IAM policy statements

    :param str service_name:
    :param list links:
    :param resolver: the function resolving a link into its permissions
    :rtype: list[dict]
    """
    if resolver is None:
        resolver = default_link_resolver
    statements = []
    for link in links:
        permissions = resolver(link)
        for permission in permissions:
            if not isinstance(permission, dict) or not all(
                keypresent(key, permission) for key in ("actions", "resources")
            ):
                raise ConfigurationError(
                    f"{service_name} - link {link!r} permission must have actions and resources. Got",
                    permission,
                )
            statements.append(permission_to_statement(permission))
    return statements
