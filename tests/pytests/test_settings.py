# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Input files, settings and versions state file
"""

import json

import pytest

from ecs_clusterx.common.settings import ClusterXSettings, load_files
from ecs_clusterx.ecs_clusterx import (
    generate_cluster,
    render_cluster,
    render_services_config,
)
from ecs_clusterx.exceptions import (
    BreakingVersionChange,
    ConfigurationError,
    SchemaValidationError,
)


def get_settings(files, **kwargs):
    args = {
        ClusterXSettings.name_arg: "test",
        ClusterXSettings.command_arg: ClusterXSettings.render_arg,
        ClusterXSettings.input_file_arg: files,
    }
    args.update(kwargs)
    return ClusterXSettings(**args)


def test_load_and_merge_files(use_case):
    content = load_files([use_case("blog.yml"), use_case("blog.override.yml")])
    assert content["services"]["web"]["image"] == "nginx:1.25"
    assert content["services"]["web"]["scaling"] == {"min": 2, "max": 6, "cpuUtilization": 70}
    assert content["services"]["web"]["cpu"] == "0.5 vCPU"


def test_invalid_files(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_files([str(tmp_path / "missing.yml")])
    not_a_mapping = tmp_path / "list.yml"
    not_a_mapping.write_text("- a\n- b\n")
    with pytest.raises(ConfigurationError):
        load_files([str(not_a_mapping)])
    empty = tmp_path / "empty.yml"
    empty.write_text("")
    assert load_files([str(empty)]) == {}


def test_settings_content(use_case):
    settings = get_settings([use_case("blog.yml")])
    assert settings.cluster_name == "blog"
    assert settings.format == "json"
    assert set(settings.services_definitions.keys()) == {"web", "worker"}
    assert settings.force_upgrade_value is None


def test_cluster_name_from_settings(vpc):
    settings = ClusterXSettings(
        content={"x-cluster": {"vpc": vpc}}, **{ClusterXSettings.name_arg: "fromargs"}
    )
    assert settings.cluster_name == "fromargs"
    with pytest.raises(ConfigurationError):
        _ = ClusterXSettings(content={"x-cluster": {"vpc": vpc}}).cluster_name


def test_invalid_input(vpc):
    with pytest.raises(SchemaValidationError):
        ClusterXSettings(content={"services": {}})
    with pytest.raises(SchemaValidationError):
        ClusterXSettings(content={"x-cluster": {"vpc": vpc, "forceUpgrade": "v3"}})
    with pytest.raises(SchemaValidationError):
        ClusterXSettings(content={"x-cluster": {"vpc": {"id": "vpc-123"}}})
    settings = ClusterXSettings(
        content={
            "x-cluster": {"vpc": vpc, "transform": {"cluster": lambda p, t: None}},
            "services": {"api": None, "web": {"image": "nginx", "transform": {"service": print}}},
            "x-other": {"ignored": True},
        },
        **{ClusterXSettings.name_arg: "test"},
    )
    assert settings.services_definitions["api"] is None


def test_generate_cluster(use_case):
    settings = get_settings([use_case("blog.yml")])
    cluster = generate_cluster(settings)
    assert cluster.name == "blog"
    assert set(cluster.services.keys()) == {"web", "worker"}
    assert "BlogCluster" in cluster.template.resources
    assert settings.versions == {"blog": 2}


def test_render_cluster(use_case, tmp_path):
    state_file = tmp_path / "state.json"
    settings = get_settings(
        [use_case("blog.yml")],
        **{
            ClusterXSettings.output_dir_arg: str(tmp_path / "output"),
            ClusterXSettings.format_arg: "yaml",
            ClusterXSettings.state_file_arg: str(state_file),
        },
    )
    template_file = render_cluster(settings)
    assert template_file.file_path == f"{tmp_path}/output/test.yaml"
    with open(template_file.file_path) as template_fd:
        template = template_fd.read()
    assert "BlogCluster" in template
    assert json.loads(state_file.read_text()) == {"versions": {"blog": 2}}


def test_state_file_versions(use_case, tmp_path):
    state_file = tmp_path / "state.json"
    state_file.write_text(json.dumps({"versions": {"blog": 1}}))
    settings = get_settings(
        [use_case("blog.yml")], **{ClusterXSettings.state_file_arg: str(state_file)}
    )
    assert settings.previous_version("blog") == 1
    with pytest.raises(BreakingVersionChange):
        generate_cluster(settings)

    settings = get_settings(
        [use_case("blog.yml")],
        **{
            ClusterXSettings.state_file_arg: str(state_file),
            ClusterXSettings.force_upgrade_arg: "v2",
            ClusterXSettings.output_dir_arg: str(tmp_path),
        },
    )
    render_cluster(settings)
    assert json.loads(state_file.read_text()) == {"versions": {"blog": 2}}


def test_force_upgrade_from_file(use_case, tmp_path):
    state_file = tmp_path / "state.json"
    state_file.write_text(json.dumps({"versions": {"blog": 1}}))
    settings = get_settings(
        [use_case("blog.yml"), use_case("blog.upgrade.yml")],
        **{ClusterXSettings.state_file_arg: str(state_file)},
    )
    assert settings.force_upgrade_value == "v2"
    assert generate_cluster(settings).layout_version == 2


def test_render_services_config(use_case):
    config = render_services_config(get_settings([use_case("blog.yml")]))
    assert config["web"]["loadBalancer"]["ports"][1] == {
        "listen": "443/https",
        "forward": "80/http",
        "container": "web",
    }
    assert config["worker"]["memory"] == "1 GB"
