"""Access to Argo CD Applications and settings."""

from typing import List, Optional

from ..errors import ConfigurationError
from ..model.application import ArgoApplication
from ..model.config import RELATION_LOOKUP_CONFIGMAP, RESOURCE_INCLUSIONS_KEY
from ..utils.logger import get_logger
from .client import K8sClient

logger = get_logger(__name__)

APPLICATION_RESOURCE = "applications.argoproj.io"


class ApplicationClient:
    """Lists Argo CD Applications through kubectl."""

    def __init__(self, client: K8sClient):
        self.client = client

    def list_applications(self, namespace: Optional[str] = None) -> List[ArgoApplication]:
        """List Applications in one namespace, or in all namespaces when empty."""
        data = self.client.get_json(
            APPLICATION_RESOURCE, namespace=namespace or None, all_namespaces=not namespace
        )
        if data is None:
            raise ConfigurationError(
                f"failed to list applications in namespace {namespace or '<all>'}"
            )

        apps = [ArgoApplication.from_k8s(item) for item in data.get("items", [])]
        logger.info(f"Successfully listed {len(apps)} applications")
        return apps

    def get_application(self, name: str, namespace: Optional[str] = None) -> ArgoApplication:
        data = self.client.get_json(APPLICATION_RESOURCE, name=name, namespace=namespace or None)
        if data is None:
            raise ConfigurationError(f"failed to get application {name}")
        return ArgoApplication.from_k8s(data)

    def get_resource_inclusions(self, namespace: str) -> Optional[str]:
        """Read the previously recorded inclusions from the relation lookup ConfigMap."""
        data = self.client.get_json("configmap", name=RELATION_LOOKUP_CONFIGMAP, namespace=namespace)
        if data is None:
            logger.warning(
                f"ConfigMap {RELATION_LOOKUP_CONFIGMAP} not found in namespace {namespace}"
            )
            return None
        return (data.get("data") or {}).get(RESOURCE_INCLUSIONS_KEY)
