"""Core dependency-graph logic.

Only the modules without Kubernetes dependencies are re-exported here; the
strategies, walker and tracker are imported from their own modules.
"""

from .addressing import (
    CORE_GROUP,
    api_group,
    normalize_group,
    render_group,
    render_key,
    resource_key,
    resource_key_from_api_version,
    split_key,
)
from .inclusions import GroupedResourceKinds
from .relations import ReadWriteLock, SharedRelationsCache

__all__ = [
    "CORE_GROUP",
    "api_group",
    "normalize_group",
    "render_group",
    "render_key",
    "resource_key",
    "resource_key_from_api_version",
    "split_key",
    "GroupedResourceKinds",
    "ReadWriteLock",
    "SharedRelationsCache",
]
