"""Direct resources of an Application, read from its reported status."""

import re
from typing import List, Set

from pydantic import BaseModel, Field

from ..model.application import ArgoApplication
from ..model.kubernetes import ResourceInfo
from .addressing import resource_key

# group/kind name, as found in ExcludedResourceWarning messages
EXCLUDED_RESOURCE_PATTERN = re.compile(r"([A-Za-z0-9.-]*)/([A-Za-z0-9.]+) ([A-Za-z0-9_.-]+)")


class DirectResources(BaseModel):
    """Resources an Application manages directly.

    ``infos`` drive instance-level graph queries, ``keys`` drive the
    kind-level relations traversal.
    """

    infos: List[ResourceInfo] = Field(default_factory=list)
    keys: Set[str] = Field(default_factory=set)

    def add(self, info: ResourceInfo) -> None:
        self.infos.append(info)
        self.keys.add(resource_key(info.group, info.kind))


def extract_direct_resources(app: ArgoApplication) -> DirectResources:
    """Collect managed resources plus kinds named in excluded-resource warnings."""
    direct = DirectResources()

    for res in app.resources:
        direct.add(
            ResourceInfo(
                kind=res.kind,
                group=res.group,
                version=res.version,
                name=res.name,
                namespace=res.namespace,
            )
        )

    for message in app.excluded_resource_messages():
        match = EXCLUDED_RESOURCE_PATTERN.search(message)
        if match:
            group, kind, name = match.groups()
            direct.add(ResourceInfo(kind=kind, group=group, version="v1", name=name))

    return direct
