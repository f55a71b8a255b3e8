"""Grouping of discovered kinds into resource inclusion entries."""

from typing import Dict, Iterable, Iterator, List, Optional, Set, Tuple

import yaml

from ..model.inclusion import CLUSTER_WILDCARD, ResourceInclusionEntry
from ..model.kubernetes import ResourceInfo
from .addressing import normalize_group, render_group, split_key


class GroupedResourceKinds:
    """Set of kinds per API group.

    Groups are stored normalized (core group as ``core``) so that ``""`` and
    ``core`` never end up as two entries. Not thread safe: one owner mutates it.
    """

    def __init__(self, groups: Optional[Dict[str, Iterable[str]]] = None):
        self._groups: Dict[str, Set[str]] = {}
        for group, kinds in (groups or {}).items():
            for kind in kinds:
                self.add(group, kind)

    def add(self, group: str, kind: str) -> None:
        self._groups.setdefault(normalize_group(group), set()).add(kind)

    def add_key(self, key: str) -> None:
        group, kind = split_key(key)
        self.add(group, kind)

    def add_keys(self, keys: Iterable[str]) -> None:
        for key in keys:
            self.add_key(key)

    def merge(self, other: "GroupedResourceKinds") -> None:
        for group, kinds in other._groups.items():
            self._groups.setdefault(group, set()).update(kinds)

    def merge_resource_infos(self, infos: Iterable[ResourceInfo]) -> None:
        """Group instance infos by their API group and add their kinds.

        Infos without an API version are skipped.
        """
        for info in infos:
            if not info.version:
                continue
            self.add(info.group, info.kind)

    def kinds(self, group: str) -> Set[str]:
        return set(self._groups.get(normalize_group(group), set()))

    def items(self) -> Iterator[Tuple[str, Set[str]]]:
        """Yield ``(apiGroup, kinds)`` with rendered group names, sorted by group."""
        for group in sorted(self._groups, key=render_group):
            yield render_group(group), set(self._groups[group])

    def entries(self) -> List[ResourceInclusionEntry]:
        """Deterministic inclusion entries: groups and kinds sorted lexicographically."""
        return [
            ResourceInclusionEntry(
                api_groups=[group], kinds=sorted(kinds), clusters=[CLUSTER_WILDCARD]
            )
            for group, kinds in self.items()
        ]

    @classmethod
    def from_yaml(cls, document: str) -> "GroupedResourceKinds":
        """Parse a resource.inclusions document.

        Only the first API group of each entry is considered; entries without
        groups are skipped.
        """
        grouped = cls()
        entries = yaml.safe_load(document) or []
        if not isinstance(entries, list):
            raise ValueError("resource inclusions must be a YAML sequence")

        for raw in entries:
            entry = ResourceInclusionEntry.model_validate(raw)
            if not entry.api_groups:
                continue
            for kind in entry.kinds:
                grouped.add(entry.api_groups[0], kind)
        return grouped

    def __len__(self) -> int:
        return len(self._groups)

    def __bool__(self) -> bool:
        return bool(self._groups)

    def __contains__(self, key: str) -> bool:
        group, kind = split_key(key)
        return kind in self._groups.get(group, set())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GroupedResourceKinds):
            return NotImplemented
        return self._groups == other._groups

    def __repr__(self) -> str:
        return f"GroupedResourceKinds({dict(self.items())!r})"
