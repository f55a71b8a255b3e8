"""Per-cluster relation miner.

A ``ResourceMapper`` keeps a kind-level adjacency map for one cluster up to
date from a background thread. Callers never wait for discovery to finish:
``snapshot`` returns whatever has been learned so far.
"""

import copy
import threading
from abc import ABC, abstractmethod
from typing import Dict, Optional, Set

from ..errors import DiscoveryError
from ..utils.logger import get_logger
from .client import K8sClient
from .relations import kind_relations
from .scanner import ResourceScanner

logger = get_logger(__name__)

Relations = Dict[str, Set[str]]


class RelationMiner(ABC):
    """Source of kind-level relations for one cluster."""

    @abstractmethod
    def start(self) -> None:
        """Start background discovery; calling it again is a no-op."""

    @abstractmethod
    def snapshot(self) -> Relations:
        """Return the currently known adjacency; may be partial."""

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        return True

    def stop(self) -> None:
        pass

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for background discovery to end; returns False on timeout."""
        return True


class ResourceMapper(RelationMiner):
    """Mines ownership and reference relations from live objects of a cluster."""

    def __init__(self, client: K8sClient, name: str = "", refresh_interval: float = 300.0):
        self.name = name
        self.refresh_interval = refresh_interval
        self.scanner = ResourceScanner(client)
        self._relations: Relations = {}
        self._lock = threading.Lock()
        self._start_lock = threading.Lock()
        self._ready = threading.Event()
        self._stopped = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._last_error: Optional[str] = None

    def start(self) -> None:
        with self._start_lock:
            if self._thread is not None:
                return
            self._thread = threading.Thread(
                target=self._run, daemon=True, name=f"resource-mapper-{self.name}"
            )
            self._thread.start()
        logger.info(f"Started relation discovery for {self.name or 'cluster'}")

    def stop(self) -> None:
        self._stopped.set()

    def join(self, timeout: Optional[float] = None) -> bool:
        thread = self._thread
        if thread is None or thread is threading.current_thread():
            return True
        thread.join(timeout)
        if thread.is_alive():
            logger.warning(f"Relation discovery on {self.name} did not stop within {timeout}s")
            return False
        return True

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Wait for the first scan to finish (successfully or not)."""
        return self._ready.wait(timeout)

    def _run(self) -> None:
        while not self._stopped.is_set():
            try:
                self.refresh()
                self._last_error = None
            except DiscoveryError as e:
                self._last_error = str(e)
                logger.warning(f"Relation discovery on {self.name} failed: {e}")
            finally:
                self._ready.set()
            self._stopped.wait(self.refresh_interval)

    def refresh(self) -> int:
        """Scan the cluster once and merge what was found; returns the number of new edges."""
        resource_types = self.scanner.get_resource_types()
        if not resource_types:
            raise DiscoveryError(f"no listable API resources found on {self.name or 'cluster'}")

        discovered = kind_relations(
            resource
            for resource_type in resource_types
            for resource in self.scanner.scan_resource_type(resource_type)
        )

        added = 0
        with self._lock:
            for parent, children in discovered.items():
                known = self._relations.setdefault(parent, set())
                added += len(children - known)
                known.update(children)

        logger.debug(f"Relation discovery on {self.name}: {added} new edges")
        return added

    def snapshot(self) -> Relations:
        with self._lock:
            relations = copy.deepcopy(self._relations)
        if not relations and self._last_error:
            raise DiscoveryError(self._last_error)
        return relations
