"""Data models for the resource tracker."""

from .application import ArgoApplication, ApplicationCondition, Destination, ManagedResource
from .cluster import ClusterConfig, ClusterConnection, IN_CLUSTER_SERVER
from .config import TrackerConfig
from .export import ExportFormat, RelationSource, TrackingMethod
from .inclusion import ResourceInclusionEntry
from .kubernetes import K8sResource, ResourceInfo, ResourceType

__all__ = [
    "ArgoApplication",
    "ApplicationCondition",
    "Destination",
    "ManagedResource",
    "ClusterConfig",
    "ClusterConnection",
    "IN_CLUSTER_SERVER",
    "TrackerConfig",
    "ExportFormat",
    "RelationSource",
    "TrackingMethod",
    "ResourceInclusionEntry",
    "K8sResource",
    "ResourceInfo",
    "ResourceType",
]
