"""Inclusion document exporters."""

from ..model.export import ExportFormat
from .base import Exporter
from .yaml_exporter import YamlExporter
from .json_exporter import JsonExporter


def get_exporter(export_format: ExportFormat, as_setting: bool = False) -> Exporter:
    """Select the exporter for a format."""
    exporter_registry = {
        ExportFormat.YAML: lambda: YamlExporter(as_setting=as_setting),
        ExportFormat.JSON: lambda: JsonExporter(),
    }
    exporter_factory = exporter_registry.get(ExportFormat(export_format), lambda: YamlExporter())
    return exporter_factory()


__all__ = ["Exporter", "YamlExporter", "JsonExporter", "get_exporter"]
