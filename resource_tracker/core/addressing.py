"""Canonical resource keys.

A resource key identifies a *kind*: ``<group>_<Kind>``, with the empty core
group stored as the ``core`` sentinel. Versions never take part in a key.
Rendering turns the sentinel back into the empty string.
"""

from typing import Tuple

CORE_GROUP = "core"
KEY_SEPARATOR = "_"


def normalize_group(group: str) -> str:
    """Map the empty API group to the core sentinel."""
    return group or CORE_GROUP


def render_group(group: str) -> str:
    """Map the core sentinel back to the empty API group."""
    return "" if group in ("", CORE_GROUP) else group


def api_group(api_version: str) -> str:
    """Extract the API group from an apiVersion; ``v1`` yields the empty group."""
    if "/" in api_version:
        return api_version.split("/", 1)[0]
    return ""


def resource_key(group: str, kind: str) -> str:
    return f"{normalize_group(group)}{KEY_SEPARATOR}{kind}"


def resource_key_from_api_version(api_version: str, kind: str) -> str:
    return resource_key(api_group(api_version), kind)


def split_key(key: str) -> Tuple[str, str]:
    """Decompose a key into its stored ``(group, kind)``; the sentinel is kept.

    Group names never contain the separator, kinds may, so the first one wins.
    """
    group, sep, kind = key.partition(KEY_SEPARATOR)
    if not sep or not group or not kind:
        raise ValueError(f"malformed resource key: {key!r}")
    return group, kind


def render_key(key: str) -> Tuple[str, str]:
    """Decompose a key into the ``(apiGroup, kind)`` pair used in output."""
    group, kind = split_key(key)
    return render_group(group), kind
