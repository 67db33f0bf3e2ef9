# SPDX-License-Identifier: MPL-2.0
# Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Functions to write the templates and files generated to the local filesystem
"""

from __future__ import annotations

import json
from os import makedirs
from os.path import abspath

import yaml
from cfn_flip.yaml_dumper import LongCleanDumper
from troposphere import Template

from ecs_clusterx.common.logging import LOG

JSON_MIME = "application/json"
YAML_MIME = "application/x-yaml"


class FileArtifact:
    """
    Class to handle files artifacts, such as configuration files or templates.

    :cvar str body: The content of the FileArtifact
    :cvar troposphere.Template template: the CFN template
    :cvar str file_name: the base name of the file
    :cvar str mime: MIME-type of the file
    :cvar str file_path: Output file path for the FileArtifact
    """

    mime = "text/plain"
    file_path = None

    def __init__(
        self, file_name, settings, file_format=None, template=None, content=None
    ):
        """
        :param str file_name: Name of the file. Mandatory
        :param ecs_clusterx.common.settings.ClusterXSettings settings:
        :param str file_format: json or yaml. Defaults to the settings format
        :param troposphere.Template template: If you are providing a template to generate
        :param content: the data to write, if not a template
        """
        self.template = None
        self.content = None
        self.file_name = file_name
        self.body = None
        if file_format is None:
            file_format = settings.format
        if template is not None and not isinstance(template, Template):
            raise TypeError("template must be of type", Template, "got", type(template))
        elif (
            content is not None
            and not isinstance(content, (tuple, dict, str, list))
            and template is None
        ):
            raise TypeError(
                "content must be of type", tuple, dict, str, list, "Got", type(content)
            )
        elif template is not None:
            self.template = template
        else:
            self.content = content
        self.define_file_specs(file_name, file_format, settings)
        self.output_dir = settings.output_dir
        self.file_path = f"{settings.output_dir}/{self.file_name}"

    def __repr__(self):
        return self.file_path

    def define_file_specs(self, file_name, file_format, settings):
        """
        Method to set the file name and MIME type from the format

        :param str file_name: name of the file
        :param str file_format: format to use for the file.
        :param settings: The settings for execution
        """
        if file_format is not None and file_format in settings.allowed_formats:
            self.file_name = f"{file_name}.{file_format}"
        if self.file_name.endswith(".json"):
            self.mime = JSON_MIME
        elif self.file_name.endswith(".yml") or self.file_name.endswith(".yaml"):
            self.mime = YAML_MIME
        else:
            self.mime = JSON_MIME
            self.file_name = f"{self.file_name}.template"

    def define_body(self):
        """
        Method to define the body of the file artifact.
        """
        if isinstance(self.template, Template):
            if self.mime == YAML_MIME:
                self.body = self.template.to_yaml()
            else:
                self.body = self.template.to_json()
        elif isinstance(self.content, str):
            self.body = self.content
        elif self.mime == YAML_MIME:
            self.body = yaml.dump(self.content, Dumper=LongCleanDumper)
        else:
            self.body = json.dumps(self.content, indent=4)

    def write(self):
        """
        Method to write the file to the output directory, creating it if needed.
        """
        if self.body is None:
            self.define_body()
        makedirs(self.output_dir, exist_ok=True)
        with open(self.file_path, "w") as file_fd:
            file_fd.write(self.body)
        LOG.info(f"{self.file_name} written successfully at {abspath(self.file_path)}")
