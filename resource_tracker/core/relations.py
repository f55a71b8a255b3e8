"""Process-wide cache of kind-level relations merged from every cluster seen."""

import threading
from collections import deque
from contextlib import contextmanager
from typing import Dict, Iterable, Iterator, Mapping, Optional, Set

from ..errors import DiscoveryError
from ..utils.logger import get_logger

logger = get_logger(__name__)


class ReadWriteLock:
    """Many readers or one writer; waiting writers block new readers."""

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._waiting_writers = 0

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._waiting_writers:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if not self._readers:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            self._waiting_writers += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._waiting_writers -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class SharedRelationsCache:
    """Adjacency map ``parent key -> child keys``, shared by all workers.

    Merges only ever add edges. ``mappers`` is anything with a
    ``get(server)`` returning a relation miner or ``None``.
    """

    def __init__(self, mappers=None):
        self._mappers = mappers
        self._relations: Dict[str, Set[str]] = {}
        self._lock = ReadWriteLock()

    def merge(self, relations: Mapping[str, Iterable[str]]) -> int:
        """Union ``relations`` into the cache; returns the number of new edges."""
        added = 0
        with self._lock.write():
            for parent, children in relations.items():
                known = self._relations.setdefault(parent, set())
                before = len(known)
                known.update(children)
                added += len(known) - before
        return added

    def ensure_synced(self, server: str) -> bool:
        """Merge the current relations of ``server``'s miner into the cache."""
        mapper = self._mappers.get(server) if self._mappers is not None else None
        if mapper is None:
            logger.warning(f"No relation mapper for host {server}")
            return False

        try:
            relations = mapper.snapshot()
        except DiscoveryError as e:
            logger.warning(f"Relation scan on {server} failed: {e}")
            return False

        added = self.merge(relations)
        logger.info(f"Synced relations from {server}: {added} new edges, {len(self)} parent kinds")
        return True

    def missing(self, keys: Iterable[str]) -> Set[str]:
        with self._lock.read():
            return {k for k in keys if k not in self._relations}

    def sync_for(self, keys: Iterable[str], server: str) -> bool:
        """Sync from ``server`` when any of ``keys`` is unknown; returns whether it synced.

        Keys still unknown afterwards are recorded without children so they do
        not trigger another sync. Concurrent callers may sync redundantly.
        """
        keys = set(keys)
        if not self.missing(keys):
            return False

        logger.debug(f"Syncing relations cache from host {server}")
        self.ensure_synced(server)
        with self._lock.write():
            for key in keys:
                self._relations.setdefault(key, set())
        return True

    def children(self, key: str) -> Optional[Set[str]]:
        with self._lock.read():
            children = self._relations.get(key)
            return set(children) if children is not None else None

    def closure(self, seeds: Iterable[str]) -> Set[str]:
        """Breadth-first closure of ``seeds``; seeds are always part of the result.

        Each lookup takes the read lock on its own so merges from other
        workers can proceed between steps.
        """
        visited: Set[str] = set()
        queue = deque(seeds)
        while queue:
            current = queue.popleft()
            if current in visited:
                continue
            visited.add(current)
            for child in self.children(current) or ():
                if child not in visited:
                    queue.append(child)
        return visited

    def snapshot(self) -> Dict[str, Set[str]]:
        with self._lock.read():
            return {parent: set(children) for parent, children in self._relations.items()}

    def __contains__(self, key: str) -> bool:
        with self._lock.read():
            return key in self._relations

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._relations)
