"""Relations between live objects: ownership and pod-spec references."""

from typing import Any, Dict, Iterable, List, Optional, Set

from ..core.addressing import api_group, resource_key, resource_key_from_api_version
from ..model.kubernetes import K8sResource, ResourceInfo

# Kinds carrying a pod template at spec.template
POD_TEMPLATE_KINDS = {
    "Deployment",
    "StatefulSet",
    "DaemonSet",
    "ReplicaSet",
    "ReplicationController",
    "Job",
    "DeploymentConfig",
}


def pod_spec(resource: K8sResource) -> Optional[Dict[str, Any]]:
    """Return the pod spec of a pod or of a workload's pod template."""
    spec = resource.spec or {}
    if resource.kind == "Pod":
        return spec
    if resource.kind == "CronJob":
        spec = (spec.get("jobTemplate") or {}).get("spec") or {}
        return (spec.get("template") or {}).get("spec")
    if resource.kind in POD_TEMPLATE_KINDS:
        return (spec.get("template") or {}).get("spec")
    return None


def _ref(kind: str, name: Optional[str], namespace: Optional[str]) -> Optional[ResourceInfo]:
    if not name:
        return None
    return ResourceInfo(kind=kind, version="v1", name=name, namespace=namespace or "")


def spec_references(resource: K8sResource) -> List[ResourceInfo]:
    """Objects a pod spec points at: ConfigMaps, Secrets, PVCs and its ServiceAccount."""
    spec = pod_spec(resource)
    if not spec:
        return []

    ns = resource.namespace
    refs: List[Optional[ResourceInfo]] = []

    for volume in spec.get("volumes") or []:
        refs.append(_ref("ConfigMap", (volume.get("configMap") or {}).get("name"), ns))
        refs.append(_ref("Secret", (volume.get("secret") or {}).get("secretName"), ns))
        refs.append(
            _ref(
                "PersistentVolumeClaim",
                (volume.get("persistentVolumeClaim") or {}).get("claimName"),
                ns,
            )
        )
        for source in (volume.get("projected") or {}).get("sources") or []:
            refs.append(_ref("ConfigMap", (source.get("configMap") or {}).get("name"), ns))
            refs.append(_ref("Secret", (source.get("secret") or {}).get("name"), ns))

    containers = (spec.get("containers") or []) + (spec.get("initContainers") or [])
    for container in containers:
        for env_from in container.get("envFrom") or []:
            refs.append(_ref("ConfigMap", (env_from.get("configMapRef") or {}).get("name"), ns))
            refs.append(_ref("Secret", (env_from.get("secretRef") or {}).get("name"), ns))
        for env in container.get("env") or []:
            value_from = env.get("valueFrom") or {}
            refs.append(_ref("ConfigMap", (value_from.get("configMapKeyRef") or {}).get("name"), ns))
            refs.append(_ref("Secret", (value_from.get("secretKeyRef") or {}).get("name"), ns))

    for pull_secret in spec.get("imagePullSecrets") or []:
        refs.append(_ref("Secret", pull_secret.get("name"), ns))

    refs.append(_ref("ServiceAccount", spec.get("serviceAccountName"), ns))

    seen: Set[tuple] = set()
    unique = []
    for ref in refs:
        if ref is not None and ref.identity not in seen:
            seen.add(ref.identity)
            unique.append(ref)
    return unique


def owner_keys(resource: K8sResource) -> List[str]:
    return [
        resource_key_from_api_version(owner.get("apiVersion", ""), owner["kind"])
        for owner in resource.owner_references
        if owner.get("kind")
    ]


def kind_relations(resources: Iterable[K8sResource]) -> Dict[str, Set[str]]:
    """Derive the kind-level adjacency (parent key -> child keys) from live objects."""
    relations: Dict[str, Set[str]] = {}
    for resource in resources:
        key = resource_key(api_group(resource.api_version), resource.kind)
        for parent in owner_keys(resource):
            relations.setdefault(parent, set()).add(key)
        for ref in spec_references(resource):
            relations.setdefault(key, set()).add(resource_key(ref.group, ref.kind))
    return relations
