"""Test the shared kind-level relations cache."""

import threading
from unittest.mock import Mock, patch

import pytest

from resource_tracker.core import ReadWriteLock, SharedRelationsCache

SNAPSHOT_A = {"apps_Deployment": {"apps_ReplicaSet"}}
SNAPSHOT_B = {"apps_Deployment": {"core_Pod"}, "apps_ReplicaSet": {"core_Pod"}}


@pytest.mark.unit
class TestMerge:
    def test_merge_counts_new_edges(self):
        cache = SharedRelationsCache()

        assert cache.merge(SNAPSHOT_A) == 1
        assert cache.merge(SNAPSHOT_B) == 2

    def test_merge_is_commutative(self):
        """Test that merge order does not change the adjacency."""
        first = SharedRelationsCache()
        first.merge(SNAPSHOT_A)
        first.merge(SNAPSHOT_B)

        second = SharedRelationsCache()
        second.merge(SNAPSHOT_B)
        second.merge(SNAPSHOT_A)

        assert first.snapshot() == second.snapshot()

    def test_merge_is_idempotent(self):
        cache = SharedRelationsCache()
        cache.merge(SNAPSHOT_A)
        before = cache.snapshot()

        assert cache.merge(SNAPSHOT_A) == 0
        assert cache.snapshot() == before

    def test_snapshot_is_a_copy(self):
        cache = SharedRelationsCache()
        cache.merge(SNAPSHOT_A)

        cache.snapshot()["apps_Deployment"].add("core_Secret")

        assert cache.children("apps_Deployment") == {"apps_ReplicaSet"}

    def test_concurrent_merges(self):
        cache = SharedRelationsCache()

        def merge_edges(worker):
            for i in range(50):
                cache.merge({f"w{worker}_Parent": {f"w{worker}_Child{i}"}})

        threads = [threading.Thread(target=merge_edges, args=(i,)) for i in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        snapshot = cache.snapshot()
        assert len(snapshot) == 8
        assert all(len(children) == 50 for children in snapshot.values())


@pytest.mark.unit
class TestClosure:
    def test_deployment_closure(self):
        """Test the closure of a Deployment through Pods to ConfigMaps."""
        cache = SharedRelationsCache()
        cache.merge({"apps_Deployment": {"core_Pod"}, "core_Pod": {"core_ConfigMap"}})

        assert cache.closure({"apps_Deployment"}) == {
            "apps_Deployment",
            "core_Pod",
            "core_ConfigMap",
        }

    def test_seeds_without_edges_are_kept(self):
        cache = SharedRelationsCache()

        assert cache.closure({"example.com_Widget"}) == {"example.com_Widget"}

    def test_cycle_visits_each_key_once(self):
        cache = SharedRelationsCache()
        cache.merge({"a.io_A": {"b.io_B"}, "b.io_B": {"a.io_A"}})

        with patch.object(cache, "children", wraps=cache.children) as children:
            result = cache.closure({"a.io_A"})

        assert result == {"a.io_A", "b.io_B"}
        assert children.call_count == 2

    def test_unknown_key_has_no_children(self):
        assert SharedRelationsCache().children("core_Pod") is None


@pytest.mark.unit
class TestSync:
    def test_sync_for_missing_keys(self, fake_miner):
        """Test that unknown keys pull the destination's relations once."""
        miner = fake_miner({"apps_Deployment": {"apps_ReplicaSet"}})
        mappers = Mock()
        mappers.get.return_value = miner
        cache = SharedRelationsCache(mappers)

        assert cache.sync_for({"apps_Deployment", "example.com_Widget"}, "https://c1") is True
        assert cache.sync_for({"apps_Deployment", "example.com_Widget"}, "https://c1") is False

        mappers.get.assert_called_once_with("https://c1")
        assert miner.snapshots == 1
        assert cache.children("example.com_Widget") == set()

    def test_known_keys_skip_sync(self):
        mappers = Mock()
        cache = SharedRelationsCache(mappers)
        cache.merge(SNAPSHOT_A)

        assert cache.sync_for({"apps_Deployment"}, "https://c1") is False
        mappers.get.assert_not_called()

    def test_missing_mapper_is_not_fatal(self):
        mappers = Mock()
        mappers.get.return_value = None
        cache = SharedRelationsCache(mappers)

        assert cache.ensure_synced("https://gone") is False
        assert cache.sync_for({"apps_Deployment"}, "https://gone") is True
        assert "apps_Deployment" in cache

    def test_failed_snapshot_is_skipped(self, fake_miner):
        mappers = Mock()
        mappers.get.return_value = fake_miner(error="forbidden")
        cache = SharedRelationsCache(mappers)

        assert cache.ensure_synced("https://c1") is False
        assert len(cache) == 0

    def test_missing(self):
        cache = SharedRelationsCache()
        cache.merge(SNAPSHOT_A)

        assert cache.missing({"apps_Deployment", "core_Pod"}) == {"core_Pod"}


@pytest.mark.unit
class TestReadWriteLock:
    def test_readers_share(self):
        lock = ReadWriteLock()
        acquired = threading.Event()

        def reader():
            with lock.read():
                acquired.set()

        with lock.read():
            thread = threading.Thread(target=reader)
            thread.start()
            assert acquired.wait(2)
        thread.join()

    def test_writer_waits_for_readers(self):
        lock = ReadWriteLock()
        acquired = threading.Event()

        def writer():
            with lock.write():
                acquired.set()

        with lock.read():
            thread = threading.Thread(target=writer)
            thread.start()
            assert not acquired.wait(0.1)
        assert acquired.wait(2)
        thread.join()
