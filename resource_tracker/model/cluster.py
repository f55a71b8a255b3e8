"""Destination cluster models, as stored in Argo CD cluster secrets."""

from typing import Dict, List, Optional
from pydantic import BaseModel, Field

IN_CLUSTER_SERVER = "https://kubernetes.default.svc"


class TLSClientConfig(BaseModel):
    """TLS settings of a cluster connection."""

    insecure: bool = False
    server_name: Optional[str] = Field(default=None, alias="serverName")
    ca_data: Optional[str] = Field(default=None, alias="caData")
    cert_data: Optional[str] = Field(default=None, alias="certData")
    key_data: Optional[str] = Field(default=None, alias="keyData")

    class Config:
        populate_by_name = True


class ExecProviderConfig(BaseModel):
    """Generic exec credential plugin (OIDC, SSO, ...)."""

    command: str
    args: List[str] = []
    env: Dict[str, str] = {}
    api_version: str = Field(default="client.authentication.k8s.io/v1beta1", alias="apiVersion")
    install_hint: Optional[str] = Field(default=None, alias="installHint")

    class Config:
        populate_by_name = True


class AWSAuthConfig(BaseModel):
    """EKS IAM authentication through argocd-k8s-auth."""

    cluster_name: str = Field(alias="clusterName")
    role_arn: Optional[str] = Field(default=None, alias="roleARN")
    profile: Optional[str] = None

    class Config:
        populate_by_name = True


class ClusterConnection(BaseModel):
    """The ``config`` JSON of an Argo CD cluster secret."""

    username: Optional[str] = None
    password: Optional[str] = None
    bearer_token: Optional[str] = Field(default=None, alias="bearerToken")
    tls_client_config: TLSClientConfig = Field(
        default_factory=TLSClientConfig, alias="tlsClientConfig"
    )
    aws_auth_config: Optional[AWSAuthConfig] = Field(default=None, alias="awsAuthConfig")
    exec_provider_config: Optional[ExecProviderConfig] = Field(
        default=None, alias="execProviderConfig"
    )
    proxy_url: Optional[str] = Field(default=None, alias="proxyUrl")

    class Config:
        populate_by_name = True


class ClusterConfig(BaseModel):
    """A destination cluster known to Argo CD."""

    name: str = ""
    server: str
    config: ClusterConnection = Field(default_factory=ClusterConnection)

    @property
    def is_in_cluster(self) -> bool:
        return "kubernetes.default.svc" in self.server
