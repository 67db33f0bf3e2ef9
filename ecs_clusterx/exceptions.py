#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Custom exceptions for cluster-x
"""


class ClusterXBaseException(Exception):
    """
    Top class for Cluster-X Exceptions
    """

    def __init__(self, msg, *args):
        super().__init__(msg, *args)


class ConfigurationError(ClusterXBaseException):
    """
    Raised when the cluster or a service definition is not valid.
    Always raised before any resource is added to the template.
    """


class SchemaValidationError(ConfigurationError):
    """
    Definition does not conform to the JSON schema.
    """

    def __init__(self, msg, validation_error=None, *args):
        super().__init__(msg, *args)
        self.validation_error = validation_error


class InvalidSizeCombination(ConfigurationError):
    """
    The CPU/Memory/Storage combination is not supported by AWS Fargate
    """


class InvalidDuration(ConfigurationError):
    """
    A duration could not be parsed, i.e. `30 seconds`
    """


class MixedProtocolFamily(ConfigurationError):
    """
    Application-layer (http/https) and network-layer (tcp/udp/tls) ports defined on the same load balancer
    """


class AmbiguousContainerTarget(ConfigurationError):
    """
    More than one container in the service and the port does not say which one to route to.
    """


class UnknownContainer(ConfigurationError):
    """
    A port or a registry points to a container that is not defined in the service.
    """


class RedirectWithForward(ConfigurationError):
    """
    A port cannot both redirect and forward traffic.
    """


class DuplicateListener(ConfigurationError):
    """
    Two ports listen on the same port and path.
    """


class MissingCertificate(ConfigurationError):
    """
    https/tls listeners need a certificate to be set in the domain
    """


class InvalidHealthCheck(ConfigurationError):
    """
    Health check settings out of range or not valid for the protocol
    """


class InvalidScaling(ConfigurationError):
    """
    Scaling range or utilization target is not valid
    """


class OverAllocatedContainerResources(ConfigurationError):
    """
    The sum of the containers CPU or Memory is greater than the service CPU or Memory
    """


class ConflictingTopLevelAndContainers(ConfigurationError):
    """
    `containers` is set together with container properties at the service level.
    """


class ConflictingLoadBalancerSettings(ConfigurationError):
    """
    Both `public` (deprecated) and `loadBalancer` are set.
    """


class DuplicateContainerName(ConfigurationError):
    """
    Container names must be unique within a service
    """


class InvalidClusterVpc(ConfigurationError):
    """
    The VPC settings of the cluster are missing or incomplete.
    """


class VersioningError(ClusterXBaseException):
    """
    Top class for errors related to the resources layout version
    """


class BreakingVersionChange(VersioningError):
    """
    The deployed cluster uses a different resources layout and the change was not opted in.
    """

    def __init__(self, msg, cluster_name=None, old_version=None, new_version=None):
        super().__init__(msg, cluster_name, old_version, new_version)
        self.cluster_name = cluster_name
        self.old_version = old_version
        self.new_version = new_version

    def __str__(self):
        return self.args[0]
