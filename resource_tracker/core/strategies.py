"""Closure strategies: which kinds are related to an Application's own resources."""

from abc import ABC, abstractmethod
from typing import Optional, Set

from ..errors import BundleError, ClusterResolutionError, ConfigurationError, DiscoveryError
from ..k8s.client import K8sClient
from ..k8s.graph_engine import GraphQueryEngine, KubectlGraphEngine
from ..k8s.mapper import ResourceMapper
from ..k8s.registry import ClusterRegistry
from ..model.application import ArgoApplication
from ..model.config import TrackerConfig
from ..model.export import RelationSource, TrackingMethod
from ..utils.logger import get_logger
from .addressing import resource_key
from .direct import DirectResources
from .mapper_store import MapperRegistry
from .relations import SharedRelationsCache
from .walker import GraphWalker

logger = get_logger(__name__)


class ClosureStrategy(ABC):
    """Computes the related resource keys of one Application.

    ``closure`` is called concurrently from worker threads.
    """

    source: RelationSource

    @abstractmethod
    def closure(self, app: ArgoApplication, direct: DirectResources) -> Set[str]:
        """Return the direct keys plus every key related to them."""

    def close(self) -> None:
        pass


class ResourceGraphStrategy(ClosureStrategy):
    """Kind-level closure over relations mined from destination clusters."""

    source = RelationSource.RESOURCE_GRAPH

    def __init__(
        self,
        clusters: ClusterRegistry,
        mappers: MapperRegistry,
        cache: Optional[SharedRelationsCache] = None,
        strict_destination: bool = False,
    ):
        self.clusters = clusters
        self.mappers = mappers
        self.cache = cache or SharedRelationsCache(mappers)
        self.strict_destination = strict_destination

    def resolve_destination(self, app: ArgoApplication) -> str:
        if app.destination.server:
            return app.destination.server.rstrip("/")
        if not app.destination.name:
            raise BundleError(app.name, "both destination server and name are empty")
        try:
            return self.clusters.resolve(app.destination.name)
        except ClusterResolutionError as e:
            raise BundleError(app.name, f"error getting cluster: {e}", e) from e

    def closure(self, app: ArgoApplication, direct: DirectResources) -> Set[str]:
        server = self.resolve_destination(app)

        try:
            self.mappers.get_or_create(server)
        except DiscoveryError as e:
            if self.strict_destination:
                raise BundleError(app.name, str(e), e) from e
            logger.warning(f"Skipping relations of {server} for application {app.name}: {e}")

        if not len(self.mappers):
            raise ConfigurationError(
                "no destination clusters synced; ensure Applications have valid "
                ".spec.destination and Argo CD has access"
            )

        if self.cache.sync_for(direct.keys, server):
            logger.debug(f"Relations cache synced from {server} for application {app.name}")

        return self.cache.closure(direct.keys)

    def close(self) -> None:
        self.mappers.close()
        self.clusters.close()


class GraphStrategy(ClosureStrategy):
    """Instance-level closure by walking live objects with graph queries.

    Every Application gets its own walker, so kind memoization is never
    shared between threads.
    """

    source = RelationSource.GRAPH

    def __init__(
        self,
        engine: GraphQueryEngine,
        tracking_method: TrackingMethod = TrackingMethod.LABEL,
        openshift: bool = False,
    ):
        self.engine = engine
        self.tracking_method = tracking_method
        self.openshift = openshift

    def closure(self, app: ArgoApplication, direct: DirectResources) -> Set[str]:
        walker = GraphWalker(self.engine, self.tracking_method, openshift=self.openshift)
        keys = set(direct.keys)
        for info in direct.infos:
            for child in walker.nested_children(info):
                keys.add(resource_key(child.group, child.kind))

        if walker.failed_queries:
            logger.warning(
                f"{walker.failed_queries} graph queries failed for application {app.name}; "
                "results may be incomplete"
            )
        return keys


def build_strategy(config: TrackerConfig, client: K8sClient) -> ClosureStrategy:
    """Create the strategy selected by ``config.relation_source``."""
    try:
        source = RelationSource(config.relation_source)
    except ValueError:
        raise ConfigurationError(
            f"invalid --relation-source: {config.relation_source} (use 'resourcegraph' or 'graph')"
        )

    if source == RelationSource.RESOURCE_GRAPH:
        clusters = ClusterRegistry(
            client,
            config.argocd_namespace,
            kubeconfig=config.kubeconfig,
            timeout=config.command_timeout,
        )

        def create_mapper(server: str) -> ResourceMapper:
            cluster = clusters.resolve_credentials(server)
            return ResourceMapper(
                clusters.client_for(cluster),
                name=server,
                refresh_interval=config.mapper_refresh_interval,
            )

        mappers = MapperRegistry(create_mapper, ready_timeout=config.mapper_ready_timeout)
        return ResourceGraphStrategy(
            clusters, mappers, strict_destination=config.strict_destination
        )

    openshift = client.supports_api_group("config.openshift.io")
    return GraphStrategy(KubectlGraphEngine(client), config.tracking_method, openshift)
