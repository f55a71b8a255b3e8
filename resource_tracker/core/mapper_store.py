"""Registry owning one relation miner per destination cluster."""

import threading
from typing import Callable, Dict, List, Optional

from ..errors import DiscoveryError, ResourceTrackerError
from ..k8s.mapper import RelationMiner
from ..utils.logger import get_logger

logger = get_logger(__name__)

MinerFactory = Callable[[str], RelationMiner]

DEFAULT_STOP_TIMEOUT = 10.0


class MapperRegistry:
    """Creates, starts and keeps relation miners keyed by server URL.

    Miners live until ``close`` is called; the tracker closes its registry
    when the run ends. Building a miner talks to the cluster, so it happens
    under a per-server lock: only callers waiting for the same server block.
    """

    def __init__(
        self,
        factory: MinerFactory,
        ready_timeout: float = 0.0,
        stop_timeout: float = DEFAULT_STOP_TIMEOUT,
    ):
        self._factory = factory
        self.ready_timeout = ready_timeout
        self.stop_timeout = stop_timeout
        self._mappers: Dict[str, RelationMiner] = {}
        self._lock = threading.Lock()
        self._server_locks: Dict[str, threading.Lock] = {}

    def _get_server_lock(self, server: str) -> threading.Lock:
        with self._lock:
            if server not in self._server_locks:
                self._server_locks[server] = threading.Lock()
            return self._server_locks[server]

    def get(self, server: str) -> Optional[RelationMiner]:
        with self._lock:
            return self._mappers.get(server)

    def get_or_create(self, server: str) -> RelationMiner:
        """Return the miner of ``server``, creating and starting it on first use."""
        mapper = self.get(server)
        if mapper is not None:
            return mapper

        with self._get_server_lock(server):
            mapper = self.get(server)
            if mapper is not None:
                return mapper

            try:
                mapper = self._factory(server)
            except (ResourceTrackerError, RuntimeError) as e:
                raise DiscoveryError(f"failed to create ResourceMapper for {server}: {e}") from e
            mapper.start()
            with self._lock:
                self._mappers[server] = mapper

            if self.ready_timeout and not mapper.wait_until_ready(self.ready_timeout):
                logger.info(
                    f"Relation discovery on {server} still running after "
                    f"{self.ready_timeout}s; continuing with partial relations"
                )
        return mapper

    def servers(self) -> List[str]:
        with self._lock:
            return sorted(self._mappers)

    def close(self) -> None:
        """Stop every miner and wait for its background scan to end."""
        with self._lock:
            mappers = list(self._mappers.values())
            self._mappers.clear()
        for mapper in mappers:
            mapper.stop()
        for mapper in mappers:
            mapper.join(self.stop_timeout)

    def __len__(self) -> int:
        with self._lock:
            return len(self._mappers)

    def __contains__(self, server: str) -> bool:
        with self._lock:
            return server in self._mappers
