"""Kubernetes interaction module."""

from .client import K8sClient
from .scanner import ResourceScanner
from .argocd import ApplicationClient
from .registry import ClusterRegistry
from .mapper import RelationMiner, ResourceMapper
from .graph_engine import GraphQueryEngine, KubectlGraphEngine, RelationshipRule, Comparison

__all__ = [
    "K8sClient",
    "ResourceScanner",
    "ApplicationClient",
    "ClusterRegistry",
    "RelationMiner",
    "ResourceMapper",
    "GraphQueryEngine",
    "KubectlGraphEngine",
    "RelationshipRule",
    "Comparison",
]
