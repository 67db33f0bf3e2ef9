# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

import json

import pytest
import yaml
from troposphere import Template

from ecs_clusterx.common.files import JSON_MIME, YAML_MIME, FileArtifact
from ecs_clusterx.common.settings import ClusterXSettings


@pytest.fixture
def settings(vpc, tmp_path):
    return ClusterXSettings(
        content={"x-cluster": {"vpc": vpc}},
        **{
            ClusterXSettings.name_arg: "test",
            ClusterXSettings.output_dir_arg: str(tmp_path / "outputs"),
        },
    )


def test_template_artifact(settings, tmp_path):
    template = Template(Description="Test")
    artifact = FileArtifact("cluster", settings, template=template)
    assert artifact.mime == JSON_MIME
    artifact.write()
    with open(tmp_path / "outputs" / "cluster.json") as file_fd:
        assert json.loads(file_fd.read())["Description"] == "Test"


def test_content_artifact(settings):
    artifact = FileArtifact("config", settings, file_format="yaml", content={"a": [1, 2]})
    assert artifact.mime == YAML_MIME
    artifact.define_body()
    assert yaml.safe_load(artifact.body) == {"a": [1, 2]}
    with pytest.raises(TypeError):
        FileArtifact("config", settings, template={"Resources": {}})
    with pytest.raises(TypeError):
        FileArtifact("config", settings, content=42)
