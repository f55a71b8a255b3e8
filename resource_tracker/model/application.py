"""Argo CD Application models."""

from typing import Any, Dict, List

from pydantic import BaseModel, Field

EXCLUDED_RESOURCE_WARNING = "ExcludedResourceWarning"


class ManagedResource(BaseModel):
    """One entry of an Application's status.resources list."""

    group: str = ""
    version: str = ""
    kind: str
    name: str = ""
    namespace: str = ""


class ApplicationCondition(BaseModel):
    """Application status condition."""

    type: str
    message: str = ""


class Destination(BaseModel):
    """Where the Application deploys to."""

    server: str = ""
    name: str = ""
    namespace: str = ""


class ArgoApplication(BaseModel):
    """An Argo CD Application as far as the tracker needs it."""

    name: str
    namespace: str = ""
    project: str = "default"
    destination: Destination = Field(default_factory=Destination)
    resources: List[ManagedResource] = Field(default_factory=list)
    conditions: List[ApplicationCondition] = Field(default_factory=list)

    @classmethod
    def from_k8s(cls, obj: Dict[str, Any]) -> "ArgoApplication":
        """Build from an Application object as returned by the API server."""
        metadata = obj.get("metadata") or {}
        spec = obj.get("spec") or {}
        status = obj.get("status") or {}

        return cls(
            name=metadata.get("name", ""),
            namespace=metadata.get("namespace", ""),
            project=spec.get("project") or "default",
            destination=Destination(**(spec.get("destination") or {})),
            resources=[ManagedResource(**r) for r in status.get("resources") or [] if r.get("kind")],
            conditions=[
                ApplicationCondition(type=c.get("type", ""), message=c.get("message", ""))
                for c in status.get("conditions") or []
            ],
        )

    def excluded_resource_messages(self) -> List[str]:
        return [
            c.message
            for c in self.conditions
            if c.type.lower() == EXCLUDED_RESOURCE_WARNING.lower()
        ]
