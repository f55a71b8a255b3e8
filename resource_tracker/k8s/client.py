"""Kubernetes client wrapper."""

import subprocess
import json
from typing import List, Tuple, Optional, Dict, Any

from ..utils.logger import get_logger

logger = get_logger(__name__)


class K8sClient:
    """Wrapper for kubectl commands."""

    def __init__(
        self,
        context: Optional[str] = None,
        namespace: Optional[str] = None,
        kubeconfig: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.context = context
        self.namespace = namespace
        self.kubeconfig = kubeconfig
        self.timeout = timeout
        self._verify_kubectl()

    def _verify_kubectl(self):
        """Verify kubectl is available and configured."""
        try:
            subprocess.run(
                ["kubectl", "version", "--client", "-o", "json"],
                capture_output=True,
                text=True,
                check=True,
            )
            logger.debug("kubectl verified successfully")
        except FileNotFoundError:
            raise RuntimeError("kubectl command not found. Please install kubectl.")
        except subprocess.CalledProcessError:
            logger.warning("kubectl verification failed")

    def _build_command(self, args: List[str]) -> List[str]:
        """Build kubectl command with kubeconfig, context and namespace."""
        cmd = ["kubectl"]

        if self.kubeconfig:
            cmd.extend(["--kubeconfig", self.kubeconfig])

        if self.context:
            cmd.extend(["--context", self.context])

        cmd.extend(args)

        if self.namespace and "--all-namespaces" not in args and "-n" not in args:
            cmd.extend(["-n", self.namespace])

        return cmd

    def execute(self, args: List[str]) -> Tuple[bool, str]:
        """Execute kubectl command and return success status and output."""
        cmd = self._build_command(args)
        logger.debug(f"Executing: {' '.join(cmd)}")

        try:
            result = subprocess.run(
                cmd, capture_output=True, text=True, check=True, timeout=self.timeout
            )
            return True, result.stdout
        except subprocess.CalledProcessError as e:
            logger.error(f"Command failed: {e.stderr}")
            return False, e.stderr
        except subprocess.TimeoutExpired:
            logger.error(f"Command timed out after {self.timeout}s: {' '.join(cmd)}")
            return False, f"timed out after {self.timeout}s"

    def get_json(
        self,
        resource_type: str,
        name: Optional[str] = None,
        namespace: Optional[str] = None,
        all_namespaces: bool = False,
        label_selector: Optional[str] = None,
    ) -> Optional[Dict[str, Any]]:
        """Get resource(s) as JSON."""
        args = ["get", resource_type]

        if name:
            args.append(name)

        if namespace:
            args.extend(["-n", namespace])
        elif all_namespaces:
            args.append("--all-namespaces")

        if label_selector:
            args.extend(["-l", label_selector])

        args.extend(["-o", "json"])

        success, output = self.execute(args)
        if success:
            try:
                return json.loads(output)
            except json.JSONDecodeError:
                logger.error("Failed to parse JSON output")
                return None
        return None

    def get_api_resources(self) -> List[Dict[str, Any]]:
        """Get available listable API resources."""
        success, output = self.execute(["api-resources", "--verbs=list", "--no-headers"])
        if not success:
            return []

        resources = []
        for line in output.strip().split("\n"):
            if not line.strip():
                continue
            # NAME [SHORTNAMES] APIVERSION NAMESPACED KIND
            parts = line.split()
            if len(parts) < 4:
                continue
            api_version = parts[-3]
            group, _, version = api_version.rpartition("/")
            resources.append(
                {
                    "name": parts[0],
                    "kind": parts[-1],
                    "namespaced": parts[-2].lower() == "true",
                    "apiVersion": api_version,
                    "group": group,
                    "version": version,
                }
            )
        return resources

    def supports_api_group(self, group: str) -> bool:
        """Check whether the cluster serves the given API group."""
        return any(r["group"] == group for r in self.get_api_resources())
