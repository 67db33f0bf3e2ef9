#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Helpers around troposphere templates and resources creation.
"""

from __future__ import annotations

from typing import Callable, Union

from troposphere import AWSObject, Output, Parameter, Template

from ecs_clusterx.common.logging import LOG

Transform = Union[dict, Callable[[dict, str], Union[dict, None]]]


def add_resource(template: Template, resource: AWSObject, replace: bool = False):
    """
    Function to add a resource to the template, only if it has not been added already.

    :param troposphere.Template template:
    :param troposphere.AWSObject resource:
    :param bool replace: Whether to replace the resource if already present in the template.
    :return: the resource
    """
    if resource.title not in template.resources:
        template.add_resource(resource)
    elif replace:
        LOG.debug(f"Replacing {resource.title} in template")
        template.resources[resource.title] = resource
    else:
        LOG.debug(f"{resource.title} is already in template. Skipping")
    return resource


def add_outputs(template: Template, outputs: list) -> None:
    """
    Adds outputs to the template, overriding existing ones with the same title.
    """
    for output in outputs:
        if not isinstance(output, Output):
            raise TypeError("Output must be of type", Output, "Got", type(output))
        if output.title in template.outputs:
            template.outputs[output.title] = output
        else:
            template.add_output(output)


def add_parameters(template: Template, parameters: list) -> None:
    """
    Adds the parameters to the template if they are not already defined
    """
    for param in parameters:
        if not isinstance(param, Parameter):
            raise TypeError("Parameter must be of type", Parameter, "Got", type(param))
        if param.title not in template.parameters:
            template.add_parameter(param)


def apply_transform(props: dict, title: str, transform: Transform = None) -> dict:
    """
    Applies the transform hook to the properties of a resource right before it is created.

    A mapping is merged into the properties: keys set in the mapping replace the properties,
    and are merged when both are plain dicts.
    A callable receives the properties and the resource title and can either update the properties
    in place or return a new mapping of properties.

    :param dict props: the resource properties
    :param str title: the resource logical name
    :param transform: the hook to apply
    :return: the properties to use for the resource
    :rtype: dict
    """
    if transform is None:
        return props
    if isinstance(transform, dict):
        for key, value in transform.items():
            if isinstance(value, dict) and isinstance(props.get(key), dict):
                props[key] = apply_transform(dict(props[key]), title, value)
            else:
                props[key] = value
        return props
    if callable(transform):
        transformed = transform(props, title)
        return props if transformed is None else transformed
    raise TypeError(
        f"{title} - transform must be a mapping or a callable. Got", type(transform)
    )


def build_resource(
    resource_class: type,
    title: str,
    props: dict,
    template: Template = None,
    transform: Transform = None,
):
    """
    Creates the troposphere resource with its properties, once the transform has been applied.
    Errors raised by troposphere are propagated as-is, including the ValueError raised when
    the template already has a resource with the same title.

    :param type resource_class: The troposphere.AWSObject class to create the resource with
    :param str title:
    :param dict props:
    :param troposphere.Template template: if set, the resource is added to it.
    :param transform:
    :return: the new resource
    """
    props = apply_transform(props, title, transform)
    resource = resource_class(title, **props)
    if template is not None:
        template.add_resource(resource)
    return resource
