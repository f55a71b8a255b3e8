"""JSON exporter."""

import json

from ..core.inclusions import GroupedResourceKinds
from .base import Exporter


class JsonExporter(Exporter):
    """Render inclusions as a JSON array."""

    def render(self, grouped: GroupedResourceKinds) -> str:
        return json.dumps(self.documents(grouped), indent=2) + "\n"
