"""Base exporter class."""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List

from ..core.inclusions import GroupedResourceKinds
from ..utils.logger import get_logger

logger = get_logger(__name__)


class Exporter(ABC):
    """Base class for inclusion document exporters."""

    @abstractmethod
    def render(self, grouped: GroupedResourceKinds) -> str:
        """Render the inclusion document."""
        pass

    def documents(self, grouped: GroupedResourceKinds) -> List[Dict[str, Any]]:
        """Inclusion entries as plain data, groups and kinds sorted."""
        return [entry.to_document() for entry in grouped.entries()]

    def export(self, grouped: GroupedResourceKinds, path: Path) -> Path:
        """Write the rendered document to ``path``."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w") as f:
            f.write(self.render(grouped))

        logger.info(f"Exported {len(grouped)} API group(s) to {path}")
        return path
