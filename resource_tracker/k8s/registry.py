"""Destination cluster registry backed by Argo CD cluster secrets."""

import base64
import json
import os
import tempfile
import threading
from typing import Any, Dict, List, Optional

import yaml

from ..errors import ClusterResolutionError
from ..model.cluster import ClusterConfig, ClusterConnection, IN_CLUSTER_SERVER
from ..utils.logger import get_logger
from .client import K8sClient

logger = get_logger(__name__)

CLUSTER_SECRET_SELECTOR = "argocd.argoproj.io/secret-type=cluster"
IN_CLUSTER_NAME = "in-cluster"
EXEC_API_VERSION = "client.authentication.k8s.io/v1beta1"


def _decode(value: Optional[str]) -> str:
    if not value:
        return ""
    return base64.b64decode(value).decode("utf-8")


class ClusterRegistry:
    """Resolves destination clusters and builds clients for them."""

    def __init__(
        self,
        client: K8sClient,
        namespace: str,
        kubeconfig: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.client = client
        self.namespace = namespace
        self.kubeconfig = kubeconfig
        self.timeout = timeout
        self._clusters: Optional[List[ClusterConfig]] = None
        self._lock = threading.Lock()
        self._kubeconfig_files: List[str] = []
        self._files_lock = threading.Lock()

    @staticmethod
    def decode_secret(secret: Dict[str, Any]) -> ClusterConfig:
        """Decode one Argo CD cluster secret."""
        data = secret.get("data") or {}
        raw_config = _decode(data.get("config"))
        return ClusterConfig(
            name=_decode(data.get("name")),
            server=_decode(data.get("server")).rstrip("/"),
            config=ClusterConnection.model_validate(json.loads(raw_config)) if raw_config else ClusterConnection(),
        )

    def clusters(self) -> List[ClusterConfig]:
        """Return the clusters registered in Argo CD, loading them once."""
        with self._lock:
            if self._clusters is None:
                secrets = self.client.get_json(
                    "secrets", namespace=self.namespace, label_selector=CLUSTER_SECRET_SELECTOR
                )
                if secrets is None:
                    raise ClusterResolutionError(
                        f"failed to list cluster secrets in namespace {self.namespace}"
                    )

                clusters = []
                for secret in secrets.get("items", []):
                    secret_name = (secret.get("metadata") or {}).get("name", "")
                    try:
                        clusters.append(self.decode_secret(secret))
                    except ValueError as e:
                        logger.warning(f"Skipping unreadable cluster secret {secret_name}: {e}")
                self._clusters = clusters
                logger.debug(f"Loaded {len(clusters)} cluster secrets")
            return list(self._clusters)

    def resolve(self, name_or_server: str) -> str:
        """Resolve a destination name or server URL to a server URL."""
        if "://" in name_or_server:
            return name_or_server.rstrip("/")

        servers = [c.server for c in self.clusters() if c.name == name_or_server]
        if not servers and name_or_server == IN_CLUSTER_NAME:
            return IN_CLUSTER_SERVER
        if len(servers) > 1:
            raise ClusterResolutionError(
                f"there are {len(servers)} clusters with the same name: {servers}"
            )
        if not servers:
            raise ClusterResolutionError(f"there are no clusters with this name: {name_or_server}")
        return servers[0]

    def resolve_credentials(self, server: str) -> ClusterConfig:
        """Find the connection settings of a server."""
        server = server.rstrip("/")
        for cluster in self.clusters():
            if cluster.server == server:
                return cluster
        if server == IN_CLUSTER_SERVER:
            return ClusterConfig(name=IN_CLUSTER_NAME, server=IN_CLUSTER_SERVER)
        raise ClusterResolutionError(f"cluster {server} is not registered in Argo CD")

    def client_for(self, cluster: ClusterConfig) -> K8sClient:
        """Build a kubectl client talking to the given cluster."""
        if cluster.is_in_cluster:
            logger.info("Detected in-cluster host (kubernetes.default.svc); using local kubeconfig")
            return K8sClient(kubeconfig=self.kubeconfig, timeout=self.timeout)

        return K8sClient(kubeconfig=self._write_kubeconfig(cluster), timeout=self.timeout)

    @staticmethod
    def build_kubeconfig(cluster: ClusterConfig) -> Dict[str, Any]:
        """Render the cluster's connection settings as a kubeconfig document."""
        conn = cluster.config
        tls = conn.tls_client_config

        cluster_entry: Dict[str, Any] = {"server": cluster.server}
        if tls.insecure:
            cluster_entry["insecure-skip-tls-verify"] = True
        if tls.ca_data:
            cluster_entry["certificate-authority-data"] = tls.ca_data
        if tls.server_name:
            cluster_entry["tls-server-name"] = tls.server_name
        if conn.proxy_url:
            cluster_entry["proxy-url"] = conn.proxy_url

        user: Dict[str, Any] = {}
        if tls.cert_data:
            user["client-certificate-data"] = tls.cert_data
        if tls.key_data:
            user["client-key-data"] = tls.key_data

        if conn.aws_auth_config:
            # Same contract as Argo CD: argocd-k8s-auth issues the EKS token
            args = ["aws", "--cluster-name", conn.aws_auth_config.cluster_name]
            if conn.aws_auth_config.role_arn:
                args.extend(["--role-arn", conn.aws_auth_config.role_arn])
            if conn.aws_auth_config.profile:
                args.extend(["--profile", conn.aws_auth_config.profile])
            user["exec"] = {
                "apiVersion": EXEC_API_VERSION,
                "command": "argocd-k8s-auth",
                "args": args,
                "interactiveMode": "Never",
            }
        elif conn.exec_provider_config:
            provider = conn.exec_provider_config
            user["exec"] = {
                "apiVersion": provider.api_version,
                "command": provider.command,
                "args": list(provider.args),
                "env": [{"name": k, "value": v} for k, v in sorted(provider.env.items())],
                "interactiveMode": "Never",
            }
            if provider.install_hint:
                user["exec"]["installHint"] = provider.install_hint
        elif conn.bearer_token:
            user["token"] = conn.bearer_token
        elif conn.username:
            user["username"] = conn.username
            user["password"] = conn.password or ""

        name = cluster.name or "destination"
        return {
            "apiVersion": "v1",
            "kind": "Config",
            "clusters": [{"name": name, "cluster": cluster_entry}],
            "users": [{"name": name, "user": user}],
            "contexts": [{"name": name, "context": {"cluster": name, "user": name}}],
            "current-context": name,
        }

    def _write_kubeconfig(self, cluster: ClusterConfig) -> str:
        with tempfile.NamedTemporaryFile(
            "w", prefix="resource-tracker-", suffix=".kubeconfig", delete=False
        ) as f:
            yaml.safe_dump(self.build_kubeconfig(cluster), f, default_flow_style=False)
        with self._files_lock:
            self._kubeconfig_files.append(f.name)
        return f.name

    def close(self) -> None:
        """Remove generated kubeconfig files."""
        with self._files_lock:
            paths = list(self._kubeconfig_files)
            self._kubeconfig_files.clear()
        for path in paths:
            try:
                os.remove(path)
            except FileNotFoundError:
                pass
