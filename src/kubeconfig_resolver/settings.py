"""Ambient settings: kubeconfig discovery, in-cluster mount layout, PKCS12 passphrase."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

# The transport's identity input is a PKCS12 bundle, which always needs a
# passphrase. Nothing in a kubeconfig supplies one, so a fixed placeholder is
# used to seal and unseal the bundle within a single build.
PKCS12_PASSPHRASE = " "

DEFAULT_NAMESPACE = "default"

SERVICE_HOSTENV = "KUBERNETES_SERVICE_HOST"
SERVICE_PORTENV = "KUBERNETES_SERVICE_PORT"

_SERVICE_ACCOUNT_DIR = "/var/run/secrets/kubernetes.io/serviceaccount"


def _default_kubeconfig_path() -> Path:
    return Path.home() / ".kube" / "config"


def _service_account_file(name: str) -> Path:
    return Path(os.environ.get("KUBECONFIG_RESOLVER_SA_DIR", _SERVICE_ACCOUNT_DIR)) / name


@dataclass(frozen=True)
class LocatorSettings:
    """Where to look for a kubeconfig file when no explicit path is given."""

    env_var: str = "KUBECONFIG"
    default_path: Path = field(default_factory=_default_kubeconfig_path)


@dataclass(frozen=True)
class InClusterSettings:
    """Service-account mount layout injected into pods by the cluster.

    The mount directory can be redirected with ``KUBECONFIG_RESOLVER_SA_DIR``,
    which is mainly useful for running in-cluster code paths locally.
    """

    host_env: str = SERVICE_HOSTENV
    port_env: str = SERVICE_PORTENV
    token_path: Path = field(default_factory=lambda: _service_account_file("token"))
    ca_path: Path = field(default_factory=lambda: _service_account_file("ca.crt"))
    namespace_path: Path = field(default_factory=lambda: _service_account_file("namespace"))
