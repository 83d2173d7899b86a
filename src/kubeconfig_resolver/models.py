"""Pydantic v2 models for the kubeconfig document and exec plugin responses."""

# Note 1: `from __future__ import annotations` keeps annotations as strings, so the
# Note 2: named wrappers below can reference the inner models regardless of order.
from __future__ import annotations

from typing import Any

# Note 3: Every model here accepts both the wire name (the alias, e.g. `current-context`)
# Note 4: and the Python attribute name. `populate_by_name=True` lets tests and callers
# Note 5: construct models directly with snake_case keyword arguments, while
# Note 6: `model_validate` on a parsed YAML mapping uses the kubeconfig field names.
from pydantic import BaseModel, ConfigDict, Field

_WIRE = ConfigDict(populate_by_name=True, extra="ignore")


# --- Shared ---


class NamedExtension(BaseModel):
    """Opaque extension payload attached to clusters, contexts, users or the document."""

    model_config = _WIRE

    name: str
    extension: Any = None


class Preferences(BaseModel):
    """Client preferences block. Carried for round-tripping only."""

    model_config = _WIRE

    colors: bool | None = None
    extensions: list[NamedExtension] | None = None


# --- Clusters ---


class Cluster(BaseModel):
    """Connection details for one API server."""

    model_config = _WIRE

    server: str
    insecure_skip_tls_verify: bool | None = Field(default=None, alias="insecure-skip-tls-verify")
    certificate_authority: str | None = Field(default=None, alias="certificate-authority")
    certificate_authority_data: str | None = Field(default=None, alias="certificate-authority-data")
    extensions: list[NamedExtension] | None = None


class NamedCluster(BaseModel):
    model_config = _WIRE

    name: str
    cluster: Cluster


# --- Users ---


class ExecEnvVar(BaseModel):
    model_config = _WIRE

    name: str
    value: str


class ExecConfig(BaseModel):
    """External credential plugin invocation, as written in a kubeconfig ``exec`` block."""

    model_config = _WIRE

    command: str
    args: list[str] | None = None
    # Note 7: kubeconfig stores plugin environment as a list of {name, value} pairs rather
    # Note 8: than a mapping, so the wire shape is kept here and `env_map` flattens it.
    env: list[ExecEnvVar] | None = None
    api_version: str | None = Field(default=None, alias="apiVersion")
    install_hint: str | None = Field(default=None, alias="installHint")

    @property
    def env_map(self) -> dict[str, str]:
        """Plugin environment as a mapping; later entries override earlier ones."""
        return {var.name: var.value for var in self.env or []}


class AuthProviderConfig(BaseModel):
    model_config = _WIRE

    name: str
    config: dict[str, str] | None = None


class AuthInfo(BaseModel):
    """Credentials for one user. The credential fields are alternatives, not cumulative."""

    model_config = _WIRE

    username: str | None = None
    password: str | None = None
    token: str | None = None
    token_file: str | None = Field(default=None, alias="tokenFile")
    client_certificate: str | None = Field(default=None, alias="client-certificate")
    client_certificate_data: str | None = Field(default=None, alias="client-certificate-data")
    client_key: str | None = Field(default=None, alias="client-key")
    client_key_data: str | None = Field(default=None, alias="client-key-data")
    impersonate: str | None = Field(default=None, alias="as")
    impersonate_groups: list[str] | None = Field(default=None, alias="as-groups")
    auth_provider: AuthProviderConfig | None = Field(default=None, alias="auth-provider")
    exec: ExecConfig | None = None
    extensions: list[NamedExtension] | None = None


class NamedAuthInfo(BaseModel):
    model_config = _WIRE

    name: str
    user: AuthInfo


# --- Contexts ---


class Context(BaseModel):
    """A named pairing of a cluster and a user, with an optional namespace."""

    model_config = _WIRE

    cluster: str
    user: str
    namespace: str | None = None
    extensions: list[NamedExtension] | None = None


class NamedContext(BaseModel):
    model_config = _WIRE

    name: str
    context: Context


# --- Document ---


class Config(BaseModel):
    """A parsed kubeconfig document.

    Names inside ``clusters``, ``users`` and ``contexts`` are lookup keys, but the
    format does not enforce uniqueness; the loader takes the first match.
    """

    model_config = _WIRE

    kind: str | None = None
    api_version: str | None = Field(default=None, alias="apiVersion")
    preferences: Preferences | None = None
    clusters: list[NamedCluster] = Field(default_factory=list)
    users: list[NamedAuthInfo] = Field(default_factory=list)
    contexts: list[NamedContext] = Field(default_factory=list)
    current_context: str | None = Field(default=None, alias="current-context")
    extensions: list[NamedExtension] | None = None


# --- Exec plugin response ---


class ExecCredentialStatus(BaseModel):
    model_config = _WIRE

    expiration_timestamp: str | None = Field(default=None, alias="expirationTimestamp")
    token: str | None = None
    client_certificate_data: str | None = Field(default=None, alias="clientCertificateData")
    client_key_data: str | None = Field(default=None, alias="clientKeyData")


class ExecCredential(BaseModel):
    """Transient credential returned by an exec plugin. Never written back to the document."""

    model_config = _WIRE

    kind: str | None = None
    api_version: str | None = Field(default=None, alias="apiVersion")
    spec: dict[str, Any] | None = None
    status: ExecCredentialStatus | None = None
