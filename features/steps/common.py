#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

import json
from os import path
from tempfile import TemporaryDirectory

from behave import given, then, when

from ecs_clusterx.common.settings import ClusterXSettings
from ecs_clusterx.ecs_clusterx import generate_cluster, render_cluster
from ecs_clusterx.exceptions import ClusterXBaseException


def here():
    return path.abspath(path.dirname(__file__))


def use_case_path(file_path: str) -> str:
    return path.abspath(f"{here()}/../../{file_path}")


def set_settings(context, files: list, **kwargs):
    args = {
        ClusterXSettings.name_arg: "test",
        ClusterXSettings.command_arg: ClusterXSettings.render_arg,
        ClusterXSettings.input_file_arg: [use_case_path(file) for file in files],
        ClusterXSettings.format_arg: "json",
    }
    args.update(kwargs)
    context.settings = ClusterXSettings(**args)


@given("I use {file_path} as my cluster file")
def step_impl(context, file_path):
    """
    Function to import the cluster file from use-cases.

    :param context:
    :param str file_path:
    """
    set_settings(context, [file_path])


@given("I use {file_path} as my cluster file and {override_file} as override file")
def step_impl(context, file_path, override_file):
    set_settings(context, [file_path, override_file])


@given("the cluster {cluster_name} was deployed with layout version {version:d}")
def step_impl(context, cluster_name, version):
    context.settings.versions[cluster_name] = version


@given("I opt in to upgrade to {force_upgrade}")
def step_impl(context, force_upgrade):
    context.settings.force_upgrade = force_upgrade


@when("I render the cluster")
def step_impl(context):
    try:
        context.cluster = generate_cluster(context.settings)
    except ClusterXBaseException as error:
        context.error = error


@then("the cluster is rendered")
def step_impl(context):
    assert not hasattr(context, "error"), getattr(context, "error", None)
    template = json.loads(context.cluster.template.to_json())
    assert template["Resources"]


@then("the template has resources {titles}")
def step_impl(context, titles):
    resources = context.cluster.template.resources
    for title in [title.strip() for title in titles.split(",")]:
        assert title in resources, f"{title} not in {list(resources.keys())}"


@then("the template does not have resource {title}")
def step_impl(context, title):
    assert title not in context.cluster.template.resources


@then("the cluster layout version is {version:d}")
def step_impl(context, version):
    assert context.cluster.layout_version == version
    assert context.settings.versions[context.cluster.name] == version


@then("rendering fails with {error_name}")
def step_impl(context, error_name):
    assert hasattr(context, "error"), "No error was raised"
    assert error_name in [cls.__name__ for cls in type(context.error).__mro__], type(
        context.error
    )


@then("I can write the template in {file_format}")
def step_impl(context, file_format):
    with TemporaryDirectory() as output_dir:
        context.settings.format = file_format
        context.settings.output_dir = output_dir
        template_file = render_cluster(context.settings)
        assert path.exists(template_file.file_path)
