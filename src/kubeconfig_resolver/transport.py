"""Resolved transport settings and the adapter onto the Kubernetes Python client."""

from __future__ import annotations

import os
import tempfile
import weakref
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum

import structlog
from cryptography import x509
from cryptography.hazmat.primitives import serialization
from kubernetes import client as k8s_client

from kubeconfig_resolver.errors import ClientBuildError
from kubeconfig_resolver.material import ClientIdentity, Credential, NoCredential

log = structlog.get_logger()


class TrustMode(Enum):
    SYSTEM = "system"
    CUSTOM_ROOTS = "custom-roots"


@dataclass(frozen=True)
class TransportConfig:
    """Everything the HTTP transport needs, resolved and immutable.

    ``TrustMode.SYSTEM`` means no root override: the platform trust store
    verifies the server. ``accept_invalid_certs`` is only ever set by the
    ``insecure-skip-tls-verify`` fallback when no client identity exists.
    """

    root_certificates: tuple[x509.Certificate, ...] = ()
    identity: ClientIdentity | None = None
    accept_invalid_certs: bool = False
    credential: Credential = field(default_factory=NoCredential)
    default_headers: Mapping[str, str] = field(default_factory=dict, repr=False)

    @property
    def trust_mode(self) -> TrustMode:
        return TrustMode.CUSTOM_ROOTS if self.root_certificates else TrustMode.SYSTEM




def _remove_all(paths: tuple[str, ...]) -> None:
    for path in paths:
        try:
            os.remove(path)
        except FileNotFoundError:
            pass


def _write_temp(content: bytes, suffix: str, written: list[str]) -> str:
    # Note 1: The Kubernetes client only accepts CA, certificate and key material as file
    # Note 2: paths. mkstemp creates the file with mode 0600 so the private key is never
    # Note 3: readable by other users.
    fd, path = tempfile.mkstemp(prefix="kubeconfig-resolver-", suffix=suffix)
    written.append(path)
    with os.fdopen(fd, "wb") as handle:
        handle.write(content)
    return path


# Note 4: One finalizer per client. It runs when the client is released, when it is
# Note 5: garbage collected, or at interpreter exit, whichever comes first.
_finalizers: weakref.WeakKeyDictionary[k8s_client.ApiClient, weakref.finalize] = weakref.WeakKeyDictionary()


def release_api_client(api_client: k8s_client.ApiClient) -> None:
    """Remove the PEM files written for ``api_client``. Safe to call more than once."""
    finalizer = _finalizers.pop(api_client, None)
    if finalizer is not None:
        finalizer()


def build_api_client(base_path: str, transport: TransportConfig) -> k8s_client.ApiClient:
    """Map a resolved transport onto a ``kubernetes.client.ApiClient``.

    PEM material lives in temp files for as long as the returned client does.

    Raises:
        ClientBuildError: If the Kubernetes client rejects the configuration.
    """
    configuration = k8s_client.Configuration()
    configuration.host = base_path
    written: list[str] = []
    try:
        if transport.root_certificates:
            bundle = b"".join(cert.public_bytes(serialization.Encoding.PEM) for cert in transport.root_certificates)
            configuration.ssl_ca_cert = _write_temp(bundle, "-ca.crt", written)
        if transport.identity is not None:
            configuration.cert_file = _write_temp(transport.identity.certificate_chain_pem(), "-client.crt", written)
            configuration.key_file = _write_temp(transport.identity.private_key_pem(), "-client.key", written)
        configuration.verify_ssl = not transport.accept_invalid_certs

        api_client = k8s_client.ApiClient(configuration)
        for name, value in transport.default_headers.items():
            api_client.set_default_header(name, value)
    except (OSError, ValueError, TypeError) as exc:
        _remove_all(tuple(written))
        log.error("client_build_failed", host=base_path, error=str(exc))
        msg = f"Unable to build client for {base_path}: {exc}"
        raise ClientBuildError(msg) from exc
    if written:
        _finalizers[api_client] = weakref.finalize(api_client, _remove_all, tuple(written))
    return api_client
