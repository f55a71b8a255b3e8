"""Test relation mining from live objects."""

from unittest.mock import Mock

import pytest

from resource_tracker.errors import DiscoveryError
from resource_tracker.k8s.mapper import ResourceMapper
from resource_tracker.k8s.relations import kind_relations, owner_keys, spec_references
from resource_tracker.k8s.scanner import ResourceScanner
from resource_tracker.model.kubernetes import K8sResource, ResourceType


def replica_set() -> K8sResource:
    return K8sResource(
        api_version="apps/v1",
        kind="ReplicaSet",
        metadata={
            "name": "web-5d4f",
            "namespace": "shop",
            "ownerReferences": [{"apiVersion": "apps/v1", "kind": "Deployment", "name": "web"}],
        },
    )


def pod() -> K8sResource:
    return K8sResource(
        api_version="v1",
        kind="Pod",
        metadata={
            "name": "web-5d4f-x2x7",
            "namespace": "shop",
            "ownerReferences": [{"apiVersion": "apps/v1", "kind": "ReplicaSet", "name": "web-5d4f"}],
        },
        spec={
            "serviceAccountName": "web",
            "volumes": [
                {"name": "config", "configMap": {"name": "web-config"}},
                {"name": "tls", "secret": {"secretName": "web-tls"}},
                {"name": "data", "persistentVolumeClaim": {"claimName": "web-data"}},
            ],
            "containers": [
                {
                    "name": "web",
                    "env": [
                        {"name": "TOKEN", "valueFrom": {"secretKeyRef": {"name": "web-tls", "key": "token"}}}
                    ],
                }
            ],
        },
    )


@pytest.mark.unit
class TestRelations:
    def test_owner_keys(self):
        assert owner_keys(pod()) == ["apps_ReplicaSet"]

    def test_spec_references_are_unique(self):
        refs = spec_references(pod())

        assert [(r.kind, r.name) for r in refs] == [
            ("ConfigMap", "web-config"),
            ("Secret", "web-tls"),
            ("PersistentVolumeClaim", "web-data"),
            ("ServiceAccount", "web"),
        ]
        assert all(r.namespace == "shop" for r in refs)

    def test_cron_job_template(self):
        cron_job = K8sResource(
            api_version="batch/v1",
            kind="CronJob",
            metadata={"name": "report", "namespace": "shop"},
            spec={
                "jobTemplate": {
                    "spec": {
                        "template": {
                            "spec": {"imagePullSecrets": [{"name": "registry"}], "containers": []}
                        }
                    }
                }
            },
        )

        assert [(r.kind, r.name) for r in spec_references(cron_job)] == [("Secret", "registry")]

    def test_no_pod_spec(self):
        service = K8sResource(api_version="v1", kind="Service", metadata={"name": "web"}, spec={})

        assert spec_references(service) == []

    def test_kind_relations(self):
        relations = kind_relations([replica_set(), pod()])

        assert relations == {
            "apps_Deployment": {"apps_ReplicaSet"},
            "apps_ReplicaSet": {"core_Pod"},
            "core_Pod": {
                "core_ConfigMap",
                "core_Secret",
                "core_PersistentVolumeClaim",
                "core_ServiceAccount",
            },
        }


@pytest.fixture
def scanner():
    scanner = Mock(spec=ResourceScanner)
    scanner.get_resource_types.return_value = [
        ResourceType(name="replicasets", kind="ReplicaSet", namespaced=True, api_group="apps"),
        ResourceType(name="pods", kind="Pod", namespaced=True),
    ]
    scanner.scan_resource_type.side_effect = lambda rt: {"ReplicaSet": [replica_set()], "Pod": [pod()]}[rt.kind]
    return scanner


@pytest.fixture
def mapper(scanner):
    mapper = ResourceMapper(Mock(), name="https://cluster-1.example.com", refresh_interval=3600)
    mapper.scanner = scanner
    yield mapper
    mapper.stop()


@pytest.mark.unit
class TestResourceMapper:
    def test_refresh(self, mapper):
        assert mapper.refresh() == 6
        assert mapper.refresh() == 0
        assert mapper.snapshot()["apps_Deployment"] == {"apps_ReplicaSet"}

    def test_snapshot_is_a_copy(self, mapper):
        mapper.refresh()

        mapper.snapshot()["apps_Deployment"].add("core_Secret")

        assert mapper.snapshot()["apps_Deployment"] == {"apps_ReplicaSet"}

    def test_refresh_without_resource_types(self, mapper, scanner):
        scanner.get_resource_types.return_value = []

        with pytest.raises(DiscoveryError, match="no listable API resources"):
            mapper.refresh()

    def test_background_discovery(self, mapper, scanner):
        """Test that start scans in the background and is idempotent."""
        mapper.start()
        mapper.start()

        assert mapper.wait_until_ready(timeout=5)
        assert "core_Pod" in mapper.snapshot()
        scanner.get_resource_types.assert_called_once()

    def test_failed_discovery_surfaces_in_snapshot(self, mapper, scanner):
        scanner.get_resource_types.return_value = []

        mapper.start()

        assert mapper.wait_until_ready(timeout=5)
        with pytest.raises(DiscoveryError):
            mapper.snapshot()

    def test_snapshot_before_discovery(self, mapper):
        assert mapper.snapshot() == {}

    def test_stop_and_join(self, mapper):
        mapper.start()
        assert mapper.wait_until_ready(timeout=5)

        mapper.stop()

        assert mapper.join(timeout=5)
        assert not mapper._thread.is_alive()

    def test_join_before_start(self, mapper):
        assert mapper.join(timeout=0.01)
