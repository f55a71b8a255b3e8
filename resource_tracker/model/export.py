"""Export and selection enums."""

from enum import Enum


class ExportFormat(str, Enum):
    """Supported output formats for the inclusion document."""

    YAML = "yaml"
    JSON = "json"


class RelationSource(str, Enum):
    """Backend used to discover related kinds."""

    RESOURCE_GRAPH = "resourcegraph"
    GRAPH = "graph"


class TrackingMethod(str, Enum):
    """How Argo CD marks the resources it manages."""

    LABEL = "label"
    ANNOTATION = "annotation"
