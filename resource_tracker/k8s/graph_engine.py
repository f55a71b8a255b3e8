"""Graph queries over live cluster objects.

Understands the single query shape the walker issues::

    MATCH (p: deployments.apps{name:"web"}) -> (c) RETURN c.kind, c.apiVersion, c.metadata.namespace

The parent kind is ``core.<Kind>`` for the core group and ``<plural>.<group>``
otherwise. Neighbors of a parent are the objects it owns, the objects its pod
spec references, and the objects matched by registered relationship rules.
"""

import json
import re
import threading
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, List, Optional, Set, Tuple

from pydantic import BaseModel

from ..core.addressing import CORE_GROUP, api_group
from ..errors import GraphQueryError
from ..model.kubernetes import K8sResource, ResourceType
from ..utils.logger import get_logger
from .client import K8sClient
from .relations import spec_references
from .scanner import ResourceScanner

logger = get_logger(__name__)

QUERY_PATTERN = re.compile(
    r"""^\s*MATCH\s*\(\s*p\s*:\s*(?P<kind>[\w.\-]+)\s*
        (?:\{\s*name\s*:\s*(?P<name>"(?:[^"\\]|\\.)*")\s*\})?\s*\)
        \s*->\s*\(\s*c\s*\)\s*
        RETURN\s+(?P<fields>c\.[\w.]+(?:\s*,\s*c\.[\w.]+)*)\s*$""",
    re.IGNORECASE | re.VERBOSE,
)

Row = Dict[str, Any]


class Comparison(str, Enum):
    """How a relationship rule compares field values."""

    EXACT = "exact"
    CONTAINS = "contains"


class RelationshipRule(BaseModel):
    """Relates objects of ``kind_a`` to a parent of ``kind_b`` by field values.

    Kinds use the query notation (``applications.argoproj.io``) or ``*``.
    """

    name: str
    kind_a: str
    kind_b: str
    field_a: str
    field_b: str
    comparison: Comparison = Comparison.EXACT

    class Config:
        frozen = True


class ParsedQuery(BaseModel):
    kind: str
    name: Optional[str] = None
    fields: Tuple[str, ...] = ()


def parse_query(query: str) -> ParsedQuery:
    match = QUERY_PATTERN.match(query)
    if not match:
        raise GraphQueryError(f"unsupported graph query: {query}")
    name = json.loads(match.group("name")) if match.group("name") else None
    fields = tuple(f.strip() for f in match.group("fields").split(","))
    return ParsedQuery(kind=match.group("kind"), name=name, fields=fields)


def resolve_path(obj: Any, path: str) -> List[Any]:
    """Resolve a ``$.a.b\\.c.d[].e`` field path; ``[]`` fans out over lists."""
    segments = re.split(r"(?<!\\)\.", path.lstrip("$").lstrip("."))
    values = [obj]
    for raw in segments:
        segment = raw.replace("\\.", ".")
        fan_out = segment.endswith("[]")
        if fan_out:
            segment = segment[:-2]
        next_values = []
        for value in values:
            if not isinstance(value, dict) or segment not in value:
                continue
            found = value[segment]
            if fan_out:
                next_values.extend(found if isinstance(found, list) else [])
            else:
                next_values.append(found)
        values = next_values
    return [v for v in values if v is not None]


def kind_matches(token: str, resource_type: ResourceType) -> bool:
    """Check a query kind token (``core.Pod``, ``deployments.apps``, ``*``) against a type."""
    if token == "*":
        return True
    name, _, group = token.lower().partition(".")
    type_group = (resource_type.api_group or "").lower()
    if name == CORE_GROUP and group:
        return not type_group and resource_type.kind.lower() == group
    if group != type_group:
        return False
    kind = resource_type.kind.lower()
    return name in (resource_type.name.lower(), kind, kind + "s")


class GraphQueryEngine(ABC):
    """Executes graph queries against one cluster."""

    @abstractmethod
    def execute(self, query: str, namespace: str = "") -> List[Row]:
        """Run a query; an empty namespace searches all namespaces."""

    @abstractmethod
    def add_relationship_rule(self, rule: RelationshipRule) -> None:
        """Register an extra relationship used when finding neighbors."""


class KubectlGraphEngine(GraphQueryEngine):
    """Graph query engine over an index of every listable object of a cluster.

    The index is built on first use and reused until ``refresh`` is called.
    """

    def __init__(self, client: K8sClient):
        self.scanner = ResourceScanner(client)
        self._rules: List[RelationshipRule] = []
        self._lock = threading.Lock()
        self._types: List[ResourceType] = []
        self._objects: Dict[Tuple[str, str], List[K8sResource]] = {}
        self._by_owner: Dict[str, List[K8sResource]] = {}
        self._by_identity: Dict[Tuple[str, str, str, str], K8sResource] = {}
        self._indexed = False

    def add_relationship_rule(self, rule: RelationshipRule) -> None:
        with self._lock:
            if rule not in self._rules:
                self._rules.append(rule)

    def refresh(self) -> None:
        with self._lock:
            self._indexed = False

    def _ensure_index(self) -> None:
        with self._lock:
            if self._indexed:
                return

            types = self.scanner.get_resource_types()
            if not types:
                raise GraphQueryError("cluster returned no listable API resources")

            objects: Dict[Tuple[str, str], List[K8sResource]] = {}
            by_owner: Dict[str, List[K8sResource]] = {}
            by_identity: Dict[Tuple[str, str, str, str], K8sResource] = {}
            for resource_type in types:
                for resource in self.scanner.scan_resource_type(resource_type):
                    group = api_group(resource.api_version)
                    objects.setdefault((group, resource.kind), []).append(resource)
                    by_identity[(group, resource.kind, resource.namespace or "", resource.name)] = resource
                    for owner in resource.owner_references:
                        if owner.get("uid"):
                            by_owner.setdefault(owner["uid"], []).append(resource)

            self._types = types
            self._objects = objects
            self._by_owner = by_owner
            self._by_identity = by_identity
            self._indexed = True
            logger.debug(f"Indexed {len(by_identity)} objects of {len(types)} resource types")

    def _types_for(self, token: str) -> List[ResourceType]:
        return [t for t in self._types if kind_matches(token, t)]

    def _objects_of(self, resource_type: ResourceType) -> List[K8sResource]:
        return self._objects.get((resource_type.api_group or "", resource_type.kind), [])

    def execute(self, query: str, namespace: str = "") -> List[Row]:
        parsed = parse_query(query)
        self._ensure_index()

        parents = []
        for resource_type in self._types_for(parsed.kind):
            for resource in self._objects_of(resource_type):
                if parsed.name is not None and resource.name != parsed.name:
                    continue
                if namespace and resource_type.namespaced and resource.namespace != namespace:
                    continue
                parents.append((resource_type, resource))

        rows: List[Row] = []
        seen: Set[Tuple[str, str, str, str]] = set()
        for parent_type, parent in parents:
            for child in self._neighbors(parent_type, parent):
                identity = (child.api_version, child.kind, child.namespace or "", child.name)
                if identity in seen:
                    continue
                seen.add(identity)
                rows.append(self._row(child))
        return rows

    def _neighbors(self, parent_type: ResourceType, parent: K8sResource) -> List[K8sResource]:
        neighbors = list(self._by_owner.get(parent.uid, [])) if parent.uid else []

        for ref in spec_references(parent):
            resource = self._by_identity.get(ref.identity)
            if resource is not None:
                neighbors.append(resource)

        parent_doc = parent.as_dict()
        for rule in self._rules:
            if not kind_matches(rule.kind_b, parent_type):
                continue
            expected = [str(v) for v in resolve_path(parent_doc, rule.field_b)]
            if not expected:
                continue
            for candidate_type in self._types_for(rule.kind_a):
                for candidate in self._objects_of(candidate_type):
                    if candidate is parent:
                        continue
                    actual = [str(v) for v in resolve_path(candidate.as_dict(), rule.field_a)]
                    if self._compare(actual, expected, rule.comparison):
                        neighbors.append(candidate)
        return neighbors

    @staticmethod
    def _compare(actual: List[str], expected: List[str], comparison: Comparison) -> bool:
        if comparison == Comparison.CONTAINS:
            return any(e in a for a in actual for e in expected)
        return any(a == e for a in actual for e in expected)

    @staticmethod
    def _row(resource: K8sResource) -> Row:
        return {
            "kind": resource.kind,
            "apiVersion": resource.api_version,
            "name": resource.name,
            "metadata": {"name": resource.name, "namespace": resource.namespace},
        }
