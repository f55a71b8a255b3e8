"""Instance-level dependency walk driven by graph queries."""

import json
from typing import Any, Dict, List, Set, Tuple

from ..errors import GraphQueryError
from ..k8s.graph_engine import Comparison, GraphQueryEngine, RelationshipRule
from ..model.export import TrackingMethod
from ..model.kubernetes import ResourceInfo
from ..utils.logger import get_logger
from .addressing import CORE_GROUP, api_group

logger = get_logger(__name__)

LABEL_TRACKING_CRITERIA = "$.metadata.labels.app\\.kubernetes\\.io/instance"
ANNOTATION_TRACKING_CRITERIA = "$.metadata.annotations.argocd\\.argoproj\\.io/tracking-id"

TRACKING_CRITERIA: Dict[TrackingMethod, Tuple[str, Comparison]] = {
    TrackingMethod.LABEL: (LABEL_TRACKING_CRITERIA, Comparison.EXACT),
    TrackingMethod.ANNOTATION: (ANNOTATION_TRACKING_CRITERIA, Comparison.CONTAINS),
}

APPLICATION_QUERY_KIND = "applications.argoproj.io"

# Kinds whose neighbors are either noisy or sensitive
BLACKLISTED_KINDS = frozenset(
    {
        "Project",
        "ProjectRequest",
        "ConfigMap",
        "Secret",
        "ServiceAccount",
        "Pod",
        "Node",
        "APIService",
        "Namespace",
    }
)

# Kinds that never lead anywhere new
LEAF_KINDS = frozenset(
    {
        "Role",
        "RoleBinding",
        "ClusterRole",
        "ClusterRoleBinding",
        "ConfigMap",
        "Secret",
        "ServiceAccount",
        "Namespace",
        "PersistentVolume",
        "PersistentVolumeClaim",
        "Endpoints",
        "EndpointSlice",
        "NetworkPolicy",
        "Ingress",
        "Route",
        "SecurityContextConstraints",
    }
)

# Neighbors that drag in large unrelated subgraphs
IGNORED_NEIGHBOR_KINDS = frozenset({"Namespace", "Node", "APIService"})

OPENSHIFT_RULES = (
    RelationshipRule(
        name="BAREMETALHOSTS_OWN_HOSTFIRMWARE_SETTINGS",
        kind_a="hostfirmwaresettings.metal3.io",
        kind_b="baremetalhosts.metal3.io",
        field_a="$.metadata.ownerReferences[].name",
        field_b="$.metadata.name",
        comparison=Comparison.EXACT,
    ),
)


def query_kind(resource: ResourceInfo) -> str:
    """Unambiguous kind notation used in queries."""
    if not resource.group:
        return f"{CORE_GROUP}.{resource.kind}"
    return f"{resource.kind.lower()}s.{resource.group}"


class GraphWalker:
    """Depth-first walk from a resource instance through its live neighbors.

    Each (kind, group) pair is expanded at most once per walker, so heavily
    shared kinds are queried once no matter how many instances reference them.
    A walker is not thread safe; give each concurrent caller its own.
    """

    def __init__(
        self,
        engine: GraphQueryEngine,
        tracking_method: TrackingMethod = TrackingMethod.LABEL,
        openshift: bool = False,
    ):
        self.engine = engine
        self.tracking_method = TrackingMethod(tracking_method)
        self.match_criteria, self.comparison = TRACKING_CRITERIA[self.tracking_method]
        self.visited_kinds: Set[Tuple[str, str]] = set()
        self.queries = 0
        self.failed_queries = 0

        engine.add_relationship_rule(
            RelationshipRule(
                name=f"ARGOAPP_TRACKS_BY_{self.tracking_method.value.upper()}",
                kind_a="*",
                kind_b=APPLICATION_QUERY_KIND,
                field_a=self.match_criteria,
                field_b="$.metadata.name",
                comparison=self.comparison,
            )
        )
        if openshift:
            logger.info("OpenShift cluster detected, adding OpenShift specific rules")
            for rule in OPENSHIFT_RULES:
                engine.add_relationship_rule(rule)

    def application_children(self, name: str, namespace: str = "") -> Set[ResourceInfo]:
        """All resources reachable from an Application, without the Application itself."""
        root = ResourceInfo(
            kind="Application",
            group="argoproj.io",
            version="v1alpha1",
            name=name,
            namespace=namespace,
        )
        return {r for r in self.nested_children(root) if r.identity != root.identity}

    def nested_children(self, resource: ResourceInfo) -> Set[ResourceInfo]:
        """Every instance reachable from ``resource``, including itself.

        A failed query abandons that node's subtree; the walk continues.
        """
        found: Dict[Tuple[str, str, str, str], ResourceInfo] = {}
        stack = [resource]
        while stack:
            node = stack.pop()
            if node.identity in found:
                continue
            logger.debug(f"Visiting: {node}")
            found[node.identity] = node

            try:
                children = self.children(node)
            except GraphQueryError as e:
                self.failed_queries += 1
                logger.warning(f"error getting children of resource {node}: {e}")
                continue

            stack.extend(c for c in reversed(children) if c.identity not in found)
        return set(found.values())

    def children(self, resource: ResourceInfo) -> List[ResourceInfo]:
        """Immediate neighbors of a node, or nothing if it must not be expanded."""
        if resource.kind in LEAF_KINDS or resource.kind in BLACKLISTED_KINDS:
            logger.debug(f"skipping leaf or blacklisted resource: {resource}")
            return []
        if resource.kind_identity in self.visited_kinds:
            logger.debug(f"skipping resource {resource} as kind already visited")
            return []

        self.queries += 1
        rows = self.engine.execute(self.build_query(resource), resource.namespace)
        self.visited_kinds.add(resource.kind_identity)
        return self.extract_resource_infos(rows)

    @staticmethod
    def build_query(resource: ResourceInfo) -> str:
        selector = f"{{name:{json.dumps(resource.name)}}}" if resource.name else ""
        return (
            f"MATCH (p: {query_kind(resource)}{selector}) -> (c) "
            "RETURN c.kind, c.apiVersion, c.metadata.namespace"
        )

    @staticmethod
    def extract_resource_infos(rows: List[Dict[str, Any]]) -> List[ResourceInfo]:
        infos = []
        for row in rows:
            kind = row.get("kind")
            if not kind or kind in IGNORED_NEIGHBOR_KINDS:
                logger.debug(f"ignoring resource of kind: {kind}")
                continue
            api_version = row.get("apiVersion") or ""
            metadata = row.get("metadata") or {}
            infos.append(
                ResourceInfo(
                    kind=kind,
                    group=api_group(api_version),
                    version=api_version.rpartition("/")[2],
                    name=row.get("name") or metadata.get("name") or "",
                    namespace=metadata.get("namespace") or "",
                )
            )
        return infos
