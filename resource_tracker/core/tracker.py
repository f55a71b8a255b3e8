"""Fan Applications out to a bounded worker pool and aggregate related kinds."""

import queue
import threading
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Set

from ..errors import BundleError, ConfigurationError, ResourceTrackerError
from ..model.application import ArgoApplication
from ..model.config import DEFAULT_WORKERS
from ..utils.logger import get_logger
from .direct import extract_direct_resources
from .inclusions import GroupedResourceKinds
from .strategies import ClosureStrategy

logger = get_logger(__name__)


@dataclass
class WorkerResult:
    """Outcome of one Application, reported exactly once."""

    app_name: str
    keys: Set[str] = field(default_factory=set)
    error: Optional[ResourceTrackerError] = None


@dataclass
class AnalysisResult:
    """Aggregated outcome of a run."""

    kinds: GroupedResourceKinds
    errors: List[ResourceTrackerError] = field(default_factory=list)
    processed: int = 0

    @property
    def first_error(self) -> Optional[ResourceTrackerError]:
        return self.errors[0] if self.errors else None

    @property
    def fatal_error(self) -> Optional[ConfigurationError]:
        for error in self.errors:
            if isinstance(error, ConfigurationError):
                return error
        return None

    @property
    def ok(self) -> bool:
        return not self.errors


class ResourceTracker:
    """Runs a closure strategy over Applications with a fixed number of workers.

    Workers only compute; the calling thread is the single writer of the
    grouped result, so no lock guards it.
    """

    def __init__(self, strategy: ClosureStrategy, workers: int = DEFAULT_WORKERS):
        if workers < 1:
            raise ConfigurationError("worker count must be at least 1")
        self.strategy = strategy
        self.workers = workers

    def __enter__(self) -> "ResourceTracker":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def close(self) -> None:
        self.strategy.close()

    def analyze(self, apps: Sequence[ArgoApplication]) -> AnalysisResult:
        logger.info(f"Analyzing {len(apps)} applications with {self.strategy.source.value}")
        result = AnalysisResult(kinds=GroupedResourceKinds())
        if not apps:
            return result

        jobs: "queue.Queue[ArgoApplication]" = queue.Queue()
        results: "queue.Queue[WorkerResult]" = queue.Queue()
        for app in apps:
            jobs.put(app)

        threads = [
            threading.Thread(
                target=self._worker, args=(jobs, results), daemon=True, name=f"tracker-worker-{i}"
            )
            for i in range(min(self.workers, len(apps)))
        ]
        for thread in threads:
            thread.start()

        for _ in range(len(apps)):
            outcome = results.get()
            result.processed += 1
            if outcome.error is not None:
                logger.error(f"Failed to analyze application {outcome.app_name}: {outcome.error}")
                result.errors.append(outcome.error)
                continue
            result.kinds.add_keys(outcome.keys)

        for thread in threads:
            thread.join()

        logger.info(
            f"Analysis complete: {result.processed} applications, "
            f"{len(result.errors)} errors, {len(result.kinds)} API groups"
        )
        return result

    def _worker(
        self, jobs: "queue.Queue[ArgoApplication]", results: "queue.Queue[WorkerResult]"
    ) -> None:
        while True:
            try:
                app = jobs.get_nowait()
            except queue.Empty:
                return
            results.put(self.process(app))

    def process(self, app: ArgoApplication) -> WorkerResult:
        """Compute the related keys of one Application; never raises."""
        try:
            direct = extract_direct_resources(app)
            logger.debug(
                f"Application {app.name}: direct keys={len(direct.keys)} infos={len(direct.infos)}"
            )
            return WorkerResult(app.name, keys=self.strategy.closure(app, direct))
        except ResourceTrackerError as e:
            return WorkerResult(app.name, error=e)
        except Exception as e:
            # every Application must report exactly once
            logger.exception(f"Unexpected failure analyzing application {app.name}")
            return WorkerResult(app.name, error=BundleError(app.name, str(e), e))
