"""Parse a kubeconfig file and select the active context, cluster and user."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import structlog
import yaml
from cryptography import x509
from pydantic import ValidationError

from kubeconfig_resolver.errors import (
    ClusterNotFoundError,
    ConfigParseError,
    ContextNotFoundError,
    UserNotFoundError,
)
from kubeconfig_resolver.material import ClientIdentity, resolve_ca_bundle, resolve_client_identity
from kubeconfig_resolver.models import AuthInfo, Cluster, Config
from kubeconfig_resolver.settings import DEFAULT_NAMESPACE

log = structlog.get_logger()


@dataclass(frozen=True)
class ResolvedSelection:
    """The cluster, user and namespace chosen for one client build."""

    context_name: str
    cluster_name: str
    user_name: str
    cluster: Cluster
    user: AuthInfo
    namespace: str = DEFAULT_NAMESPACE
    base_dir: Path | None = None


def parse_config(path: str | os.PathLike[str]) -> Config:
    """Read and validate the kubeconfig document at ``path``.

    Raises:
        ConfigParseError: If the file cannot be read, is not YAML, or does not
            match the kubeconfig schema.
    """
    path = Path(path)
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as exc:
        msg = f"Unable to read kubeconfig {path}: {exc.strerror or exc}"
        raise ConfigParseError(msg) from exc
    except (yaml.YAMLError, UnicodeDecodeError) as exc:
        msg = f"Kubeconfig {path} is not valid YAML: {exc}"
        raise ConfigParseError(msg) from exc

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        msg = f"Kubeconfig {path} must be a mapping, got {type(raw).__name__}."
        raise ConfigParseError(msg)

    try:
        return Config.model_validate(raw)
    except ValidationError as exc:
        msg = f"Kubeconfig {path} has an invalid structure: {exc}"
        raise ConfigParseError(msg) from exc


def select(
    config: Config,
    context: str | None = None,
    cluster: str | None = None,
    user: str | None = None,
    *,
    base_dir: Path | None = None,
) -> ResolvedSelection:
    """Resolve the effective context and its cluster/user from a parsed document.

    Overrides take precedence over the document: ``context`` over
    ``current-context``, and ``cluster``/``user`` over the context's references.
    A name with no matching entry is an error; no other entry is substituted.
    """
    context_name = context or config.current_context
    named_context = next((c for c in config.contexts if c.name == context_name), None)
    if not context_name or named_context is None:
        raise ContextNotFoundError(context_name or "", [c.name for c in config.contexts])

    cluster_name = cluster or named_context.context.cluster
    named_cluster = next((c for c in config.clusters if c.name == cluster_name), None)
    if named_cluster is None:
        raise ClusterNotFoundError(cluster_name, [c.name for c in config.clusters])

    user_name = user or named_context.context.user
    named_user = next((u for u in config.users if u.name == user_name), None)
    if named_user is None:
        raise UserNotFoundError(user_name, [u.name for u in config.users])

    log.debug("kubeconfig_selection", context=context_name, cluster=cluster_name, user=user_name)
    return ResolvedSelection(
        context_name=context_name,
        cluster_name=cluster_name,
        user_name=user_name,
        cluster=named_cluster.cluster,
        user=named_user.user,
        namespace=named_context.context.namespace or DEFAULT_NAMESPACE,
        base_dir=base_dir,
    )


class KubeConfigLoader:
    """A loaded kubeconfig with one context selected.

    Material accessors re-read and re-decode on every call; nothing is cached
    between builds.
    """

    def __init__(self, selection: ResolvedSelection) -> None:
        self.selection = selection

    @classmethod
    def load(
        cls,
        path: str | os.PathLike[str],
        context: str | None = None,
        cluster: str | None = None,
        user: str | None = None,
    ) -> KubeConfigLoader:
        path = Path(path)
        config = parse_config(path)
        return cls(select(config, context, cluster, user, base_dir=path.resolve().parent))

    @property
    def cluster(self) -> Cluster:
        return self.selection.cluster

    @property
    def user(self) -> AuthInfo:
        return self.selection.user

    def ca_bundle(self) -> tuple[x509.Certificate, ...] | None:
        return resolve_ca_bundle(self.cluster, self.selection.base_dir)

    def identity(self, passphrase: str) -> ClientIdentity | None:
        return resolve_client_identity(self.user, passphrase, self.selection.base_dir)
