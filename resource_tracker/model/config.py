"""Run configuration."""

from typing import Optional

from pydantic import BaseModel, Field

from .export import RelationSource, TrackingMethod

DEFAULT_WORKERS = 4
DEFAULT_ARGOCD_NAMESPACE = "argocd"
RELATION_LOOKUP_CONFIGMAP = "resource-relation-lookup"
RESOURCE_INCLUSIONS_KEY = "resource.inclusions"


class TrackerConfig(BaseModel):
    """Settings of one analysis run."""

    workers: int = Field(default=DEFAULT_WORKERS, ge=1)
    argocd_namespace: str = DEFAULT_ARGOCD_NAMESPACE
    kubeconfig: Optional[str] = None
    relation_source: RelationSource = RelationSource.RESOURCE_GRAPH
    tracking_method: TrackingMethod = TrackingMethod.LABEL
    command_timeout: float = Field(default=60.0, gt=0)
    mapper_ready_timeout: float = Field(default=30.0, ge=0)
    mapper_refresh_interval: float = Field(default=300.0, gt=0)
    # Require a relation miner for the application's own destination cluster
    strict_destination: bool = False
