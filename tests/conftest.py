"""Test configuration and fixtures."""

import threading
from typing import Any, Dict, Iterable, List, Optional, Tuple

import pytest

from resource_tracker.core.strategies import ClosureStrategy
from resource_tracker.errors import DiscoveryError, GraphQueryError
from resource_tracker.k8s.graph_engine import GraphQueryEngine, RelationshipRule, parse_query
from resource_tracker.k8s.mapper import RelationMiner
from resource_tracker.model.application import ArgoApplication
from resource_tracker.model.export import RelationSource


class FakeMiner(RelationMiner):
    """In-memory relation miner."""

    def __init__(self, relations: Optional[Dict[str, Iterable[str]]] = None, error: str = ""):
        self.relations = {k: set(v) for k, v in (relations or {}).items()}
        self.error = error
        self.started = 0
        self.stopped = False
        self.joined = False
        self.ready = True
        self.snapshots = 0

    def start(self) -> None:
        self.started += 1

    def snapshot(self):
        self.snapshots += 1
        if self.error:
            raise DiscoveryError(self.error)
        return {k: set(v) for k, v in self.relations.items()}

    def wait_until_ready(self, timeout=None) -> bool:
        return self.ready

    def stop(self) -> None:
        self.stopped = True

    def join(self, timeout=None) -> bool:
        self.joined = self.stopped
        return True


class FakeGraphEngine(GraphQueryEngine):
    """Answers graph queries from a fixed neighbor table.

    ``neighbors`` maps ``(query kind, name)`` to result rows; a ``None`` name
    answers for every instance of that kind.
    """

    def __init__(
        self,
        neighbors: Optional[Dict[Tuple[str, Optional[str]], List[Dict[str, Any]]]] = None,
        failing: Iterable[str] = (),
    ):
        self.neighbors = neighbors or {}
        self.failing = set(failing)
        self.rules: List[RelationshipRule] = []
        self.queries: List[Tuple[str, Optional[str], str]] = []
        self._lock = threading.Lock()

    def add_relationship_rule(self, rule: RelationshipRule) -> None:
        self.rules.append(rule)

    def execute(self, query: str, namespace: str = "") -> List[Dict[str, Any]]:
        parsed = parse_query(query)
        with self._lock:
            self.queries.append((parsed.kind, parsed.name, namespace))
        if parsed.kind in self.failing:
            raise GraphQueryError(f"query for {parsed.kind} failed")
        rows = self.neighbors.get((parsed.kind, parsed.name))
        if rows is None:
            rows = self.neighbors.get((parsed.kind, None), [])
        return list(rows)

    def queried_kinds(self) -> List[str]:
        return [kind for kind, _, _ in self.queries]


class StubStrategy(ClosureStrategy):
    """Returns fixed keys per application, or raises the configured error."""

    source = RelationSource.RESOURCE_GRAPH

    def __init__(self, outcomes: Dict[str, Any]):
        self.outcomes = outcomes
        self.closed = False
        self.calls: List[str] = []
        self._lock = threading.Lock()

    def closure(self, app, direct):
        with self._lock:
            self.calls.append(app.name)
        outcome = self.outcomes.get(app.name, set(direct.keys))
        if isinstance(outcome, Exception):
            raise outcome
        return set(outcome)

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def make_app():
    """Build an ArgoApplication from an Application object."""

    def _make(
        name: str,
        resources: Iterable[Dict[str, str]] = (),
        server: str = "https://cluster-1.example.com",
        destination_name: str = "",
        conditions: Iterable[Dict[str, str]] = (),
        namespace: str = "argocd",
    ) -> ArgoApplication:
        destination = {"namespace": "default"}
        if server:
            destination["server"] = server
        if destination_name:
            destination["name"] = destination_name
        return ArgoApplication.from_k8s(
            {
                "apiVersion": "argoproj.io/v1alpha1",
                "kind": "Application",
                "metadata": {"name": name, "namespace": namespace},
                "spec": {"project": "default", "destination": destination},
                "status": {
                    "resources": list(resources),
                    "conditions": list(conditions),
                    "controllerNamespace": namespace,
                },
            }
        )

    return _make


@pytest.fixture
def make_row():
    """Build a graph query result row."""

    def _make(kind: str, api_version: str, name: str, namespace: str = "default") -> Dict[str, Any]:
        return {
            "kind": kind,
            "apiVersion": api_version,
            "name": name,
            "metadata": {"name": name, "namespace": namespace},
        }

    return _make


@pytest.fixture
def web_resources():
    """Managed resources of the sample web application."""
    return [
        {
            "group": "apps",
            "version": "v1",
            "kind": "Deployment",
            "name": "web",
            "namespace": "default",
        }
    ]


@pytest.fixture
def web_relations():
    """Kind-level relations of the sample cluster."""
    return {
        "apps_Deployment": {"apps_ReplicaSet"},
        "apps_ReplicaSet": {"core_Pod"},
    }


@pytest.fixture
def web_graph(make_row):
    """Instance-level neighbors matching ``web_relations``."""
    return {
        ("deployments.apps", "web"): [make_row("ReplicaSet", "apps/v1", "web-5d4f")],
        ("replicasets.apps", "web-5d4f"): [make_row("Pod", "v1", "web-5d4f-x2x7")],
        ("core.Pod", "web-5d4f-x2x7"): [make_row("ConfigMap", "v1", "web-config")],
    }


@pytest.fixture
def fake_miner():
    """Factory for in-memory relation miners."""
    return FakeMiner


@pytest.fixture
def fake_engine():
    """Factory for table-driven graph query engines."""
    return FakeGraphEngine


@pytest.fixture
def stub_strategy():
    """Factory for closure strategies with canned outcomes."""
    return StubStrategy
