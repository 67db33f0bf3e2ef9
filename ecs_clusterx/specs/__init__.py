#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
JSON Schemas of the cluster-x input and validation of the definitions against them.
"""

from jsonschema import Draft7Validator
from jsonschema.exceptions import ValidationError
from referencing.jsonschema import EMPTY_REGISTRY as _EMPTY_REGISTRY

from ecs_clusterx.common.logging import LOG
from ecs_clusterx.exceptions import SchemaValidationError
from ecs_clusterx.specs._core import _schemas, load_spec

REGISTRY = (_schemas() @ _EMPTY_REGISTRY).crawl()

CLUSTER_SPEC = "cluster.spec.json"
SERVICE_SPEC = "service.spec.json"
INPUT_SPEC = "cluster-x.spec.json"


def validate_definition(definition: dict, spec_name: str, name: str) -> None:
    """
    JSON Validation of the definition against the given spec

    :param dict definition:
    :param str spec_name: the spec file name, i.e. service.spec.json
    :param str name: name of the resource, for logging
    :raises SchemaValidationError:
    """
    validator = Draft7Validator(load_spec(spec_name), registry=REGISTRY)
    try:
        validator.validate(definition)
    except ValidationError as error:
        path = ".".join(str(part) for part in error.absolute_path)
        LOG.error(f"{name} - Definition is not conform to schema {spec_name}")
        raise SchemaValidationError(
            f"{name} - {path or 'definition'}: {error.message}", error
        ) from error


__all__ = [
    "REGISTRY",
    "CLUSTER_SPEC",
    "SERVICE_SPEC",
    "INPUT_SPEC",
    "validate_definition",
]
