"""Kubernetes resource scanner."""

from typing import List

from ..model.kubernetes import K8sResource, ResourceType
from ..utils.logger import get_logger
from .client import K8sClient

logger = get_logger(__name__)


class ResourceScanner:
    """Scans a cluster for live objects of every listable resource type."""

    # Resource types to skip by default; they never own or reference anything
    DEFAULT_SKIP_TYPES = {"Event", "ComponentStatus", "Binding", "Lease"}

    def __init__(self, client: K8sClient):
        self.client = client

    def get_resource_types(self) -> List[ResourceType]:
        """Get filtered list of API resources."""
        filtered = []
        for resource in self.client.get_api_resources():
            kind = resource.get("kind", "")

            if kind in self.DEFAULT_SKIP_TYPES:
                continue

            filtered.append(
                ResourceType(
                    name=resource.get("name", ""),
                    kind=kind,
                    namespaced=resource.get("namespaced", False),
                    api_group=resource.get("group") or None,
                    version=resource.get("version"),
                )
            )

        return filtered

    def scan_resource_type(self, resource_type: ResourceType) -> List[K8sResource]:
        """Scan all resources of a specific type."""
        logger.debug(f"Scanning {resource_type.kind} resources")

        data = self.client.get_json(
            resource_type.qualified_name,
            all_namespaces=resource_type.namespaced and not self.client.namespace,
        )
        if not data:
            return []

        resources = []
        for item in data.get("items", []):
            try:
                resources.append(
                    K8sResource(
                        api_version=item.get("apiVersion", ""),
                        kind=item.get("kind") or resource_type.kind,
                        metadata=item.get("metadata") or {},
                        spec=item.get("spec"),
                        status=item.get("status"),
                    )
                )
            except ValueError as e:
                logger.error(f"Failed to parse {resource_type.kind} resource: {e}")
                continue

        return resources
