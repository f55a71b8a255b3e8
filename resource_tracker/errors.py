"""Error types raised by the resource tracker."""

from typing import Optional


class ResourceTrackerError(Exception):
    """Base class for resource tracker errors."""


class ConfigurationError(ResourceTrackerError):
    """Fatal misconfiguration; the run produces no output."""


class ClusterResolutionError(ConfigurationError):
    """A destination cluster could not be resolved or has unusable credentials."""


class DiscoveryError(ResourceTrackerError):
    """A relation miner could not be built or scanned for one cluster."""


class GraphQueryError(ResourceTrackerError):
    """A single graph query failed."""


class BundleError(ResourceTrackerError):
    """Processing of one application failed."""

    def __init__(self, app_name: str, message: str, cause: Optional[Exception] = None):
        super().__init__(f"application {app_name}: {message}")
        self.app_name = app_name
        self.cause = cause
