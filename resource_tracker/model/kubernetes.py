"""Kubernetes resource models."""

from typing import Dict, Any, Optional, List, Tuple
from pydantic import BaseModel


class ResourceType(BaseModel):
    """Kubernetes resource type information."""

    name: str
    kind: str
    namespaced: bool = False
    api_group: Optional[str] = None
    version: Optional[str] = None

    @property
    def qualified_name(self) -> str:
        """Resource name that kubectl resolves unambiguously, e.g. deployments.apps."""
        if self.api_group:
            return f"{self.name}.{self.api_group}"
        return self.name


class K8sResource(BaseModel):
    """Kubernetes resource."""

    api_version: str = ""
    kind: str
    metadata: Dict[str, Any]
    spec: Optional[Dict[str, Any]] = None
    status: Optional[Dict[str, Any]] = None

    @property
    def name(self) -> str:
        """Get resource name."""
        return self.metadata.get("name", "")

    @property
    def namespace(self) -> Optional[str]:
        """Get resource namespace."""
        return self.metadata.get("namespace")

    @property
    def uid(self) -> str:
        return self.metadata.get("uid", "")

    @property
    def owner_references(self) -> List[Dict[str, Any]]:
        return self.metadata.get("ownerReferences") or []

    def as_dict(self) -> Dict[str, Any]:
        """Return the object in its wire shape, for field-path lookups."""
        data: Dict[str, Any] = {
            "apiVersion": self.api_version,
            "kind": self.kind,
            "metadata": self.metadata,
        }
        if self.spec is not None:
            data["spec"] = self.spec
        if self.status is not None:
            data["status"] = self.status
        return data


class ResourceInfo(BaseModel):
    """Identifies one live resource instance.

    ``group`` is the API group as Kubernetes reports it; the core group is the
    empty string here and only becomes the ``core`` sentinel inside resource keys.
    """

    kind: str
    group: str = ""
    version: str = ""
    name: str = ""
    namespace: str = ""

    class Config:
        frozen = True

    @property
    def api_version(self) -> str:
        version = self.version or "v1"
        return f"{self.group}/{version}" if self.group else version

    @property
    def identity(self) -> Tuple[str, str, str, str]:
        """Stable instance identity, independent of the reported version."""
        return (self.group, self.kind, self.namespace, self.name)

    @property
    def kind_identity(self) -> Tuple[str, str]:
        return (self.kind, self.group)

    def __str__(self) -> str:
        return (
            f"[group:{self.group}, kind: {self.kind}, "
            f"name: {self.name}, namespace:{self.namespace}]"
        )
