"""Resolve the API server and service-account credentials from inside a pod."""

from __future__ import annotations

import ipaddress
import os
from collections.abc import Mapping
from pathlib import Path

import structlog
from cryptography import x509

from kubeconfig_resolver.errors import InClusterConfigError, TlsMaterialError
from kubeconfig_resolver.material import load_certificates
from kubeconfig_resolver.settings import InClusterSettings

log = structlog.get_logger()


def _format_host(host: str) -> str:
    try:
        address = ipaddress.ip_address(host)
    except ValueError:
        return host
    return f"[{host}]" if address.version == 6 else host


def kube_server(environ: Mapping[str, str] | None = None, settings: InClusterSettings | None = None) -> str:
    """Build the API server URL from the service host and port variables.

    Raises:
        InClusterConfigError: If either variable is unset or empty.
    """
    environ = os.environ if environ is None else environ
    settings = settings or InClusterSettings()
    host = environ.get(settings.host_env, "")
    port = environ.get(settings.port_env, "")
    if not host or not port:
        msg = f"Unable to load incluster config, {settings.host_env} and {settings.port_env} must be defined"
        raise InClusterConfigError(msg, artifact="environment")
    return f"https://{_format_host(host)}:{port}"


def _read(path: Path, artifact: str) -> bytes:
    try:
        return path.read_bytes()
    except OSError as exc:
        msg = f"Unable to load in cluster {artifact} from {path}: {exc.strerror or exc}"
        raise InClusterConfigError(msg, artifact=artifact) from exc


def load_cert(settings: InClusterSettings | None = None) -> list[x509.Certificate]:
    settings = settings or InClusterSettings()
    raw = _read(settings.ca_path, "ca")
    try:
        return load_certificates(raw, str(settings.ca_path))
    except TlsMaterialError as exc:
        raise InClusterConfigError(str(exc), artifact="ca") from exc


def load_token(settings: InClusterSettings | None = None) -> str:
    settings = settings or InClusterSettings()
    token = _read(settings.token_path, "token").decode("utf-8", errors="replace").strip()
    if not token:
        msg = f"In cluster token file {settings.token_path} is empty"
        raise InClusterConfigError(msg, artifact="token")
    return token


def load_default_ns(settings: InClusterSettings | None = None) -> str:
    settings = settings or InClusterSettings()
    namespace = _read(settings.namespace_path, "namespace").decode("utf-8", errors="replace").strip()
    if not namespace:
        msg = f"In cluster namespace file {settings.namespace_path} is empty"
        raise InClusterConfigError(msg, artifact="namespace")
    return namespace


def resolve_incluster(
    environ: Mapping[str, str] | None = None,
    settings: InClusterSettings | None = None,
) -> tuple[str, list[x509.Certificate], str, str]:
    """Return ``(server, ca_certificates, token, namespace)`` for the running pod.

    Each artifact fails with its own ``InClusterConfigError`` so callers can
    tell which piece of the service-account mount is missing.
    """
    settings = settings or InClusterSettings()
    server = kube_server(environ, settings)
    certificates = load_cert(settings)
    token = load_token(settings)
    namespace = load_default_ns(settings)
    log.debug("incluster_config_resolved", server=server, namespace=namespace)
    return server, certificates, token, namespace
