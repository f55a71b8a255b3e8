"""YAML exporter."""

import yaml

from ..core.inclusions import GroupedResourceKinds
from ..model.config import RESOURCE_INCLUSIONS_KEY
from .base import Exporter


class YamlExporter(Exporter):
    """Render inclusions as YAML, optionally as the value of the Argo CD setting."""

    def __init__(self, as_setting: bool = False):
        self.as_setting = as_setting

    def render(self, grouped: GroupedResourceKinds) -> str:
        document = yaml.safe_dump(
            self.documents(grouped), default_flow_style=False, sort_keys=False
        )
        if not self.as_setting:
            return document

        lines = [f"{RESOURCE_INCLUSIONS_KEY}: |"]
        lines.extend(f"  {line}" for line in document.splitlines())
        return "\n".join(lines) + "\n"
