"""Resource inclusion document models."""

from typing import Any, Dict, List

from pydantic import BaseModel, Field

CLUSTER_WILDCARD = "*"


class ResourceInclusionEntry(BaseModel):
    """One row of an Argo CD resource.inclusions setting."""

    api_groups: List[str] = Field(default_factory=list, alias="apiGroups")
    kinds: List[str] = Field(default_factory=list)
    clusters: List[str] = Field(default_factory=list)

    class Config:
        populate_by_name = True

    def to_document(self) -> Dict[str, Any]:
        return {"apiGroups": list(self.api_groups), "kinds": list(self.kinds), "clusters": list(self.clusters)}
