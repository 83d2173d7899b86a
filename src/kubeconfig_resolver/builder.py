"""Build a ready-to-use client configuration from a kubeconfig or the in-cluster environment."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

import structlog
from kubernetes import client as k8s_client

from kubeconfig_resolver.exec_plugin import ExecCredentialProvider, auth_exec
from kubeconfig_resolver.incluster import resolve_incluster
from kubeconfig_resolver.loader import KubeConfigLoader, ResolvedSelection
from kubeconfig_resolver.locator import find_kubeconfig
from kubeconfig_resolver.material import (
    BearerToken,
    authorization_header,
    credential_from_tokens,
    resolve_ca_bundle,
    resolve_client_identity,
    static_token,
)
from kubeconfig_resolver.models import ExecCredential
from kubeconfig_resolver.settings import PKCS12_PASSPHRASE, InClusterSettings, LocatorSettings
from kubeconfig_resolver.transport import TransportConfig, build_api_client, release_api_client

log = structlog.get_logger()


@dataclass(frozen=True)
class ConfigOptions:
    """Overrides applied when loading a kubeconfig file."""

    kubeconfig: str | os.PathLike[str] | None = None
    context: str | None = None
    cluster: str | None = None
    user: str | None = None


@dataclass(frozen=True)
class ClientConfiguration:
    """API server URL, default namespace and a configured Kubernetes API client.

    ``default_namespace`` is the context's namespace (or ``"default"``) outside a
    cluster, and the pod's namespace inside one.
    """

    base_path: str
    default_namespace: str
    transport: TransportConfig
    client: k8s_client.ApiClient

    def close(self) -> None:
        """Close the client and remove the certificate files written for it."""
        self.client.close()
        release_api_client(self.client)


def resolve_transport(
    selection: ResolvedSelection,
    exec_credential: ExecCredential | None = None,
    passphrase: str = PKCS12_PASSPHRASE,
) -> TransportConfig:
    """Apply the trust, identity and authentication precedence rules.

    Trust: every CA certificate configured on the cluster becomes a root,
    otherwise the system store is used. Identity: a client certificate wins;
    only when none is configured does ``insecure-skip-tls-verify`` disable
    verification. Authentication: token, tokenFile, exec token, then basic
    auth; no credential at all means anonymous access.
    """
    return _resolve_transport(selection, static_token(selection.user, selection.base_dir), exec_credential, passphrase)


def _resolve_transport(
    selection: ResolvedSelection,
    static: str | None,
    exec_credential: ExecCredential | None,
    passphrase: str,
) -> TransportConfig:
    cluster, user, base_dir = selection.cluster, selection.user, selection.base_dir

    roots = resolve_ca_bundle(cluster, base_dir) or ()
    identity = resolve_client_identity(user, passphrase, base_dir, exec_credential)

    accept_invalid_certs = False
    if identity is None and cluster.insecure_skip_tls_verify is True:
        # Note 1: Last resort only. The flag is honoured when the user has no client
        # Note 2: certificate; a missing CA alone never turns verification off.
        log.warning("tls_verification_disabled", cluster=selection.cluster_name)
        accept_invalid_certs = True

    exec_token = exec_credential.status.token if exec_credential and exec_credential.status else None
    credential = credential_from_tokens(user, static, exec_token)
    headers = authorization_header(credential)

    log.debug(
        "transport_resolved",
        context=selection.context_name,
        roots=len(roots),
        identity=identity is not None,
        credential=type(credential).__name__,
    )
    return TransportConfig(
        root_certificates=tuple(roots),
        identity=identity,
        accept_invalid_certs=accept_invalid_certs,
        credential=credential,
        default_headers=headers,
    )


def build_client_configuration(
    selection: ResolvedSelection,
    exec_provider: ExecCredentialProvider | None = None,
    passphrase: str = PKCS12_PASSPHRASE,
) -> ClientConfiguration:
    """Resolve credentials for ``selection`` and build the client.

    The exec plugin runs at most once, and only when the user has an ``exec``
    block and no static token. Either a complete configuration is returned or
    an exception is raised; there is no partial result.
    """
    user = selection.user
    static = static_token(user, selection.base_dir)
    exec_credential: ExecCredential | None = None
    if user.exec is not None and static is None:
        exec_credential = auth_exec(user.exec, exec_provider)

    transport = _resolve_transport(selection, static, exec_credential, passphrase)
    server = selection.cluster.server
    return ClientConfiguration(
        base_path=server,
        default_namespace=selection.namespace,
        transport=transport,
        client=build_api_client(server, transport),
    )


def create_client_configuration(
    options: ConfigOptions | None = None,
    *,
    exec_provider: ExecCredentialProvider | None = None,
    locator_settings: LocatorSettings | None = None,
) -> tuple[ClientConfiguration, KubeConfigLoader]:
    """Locate and load the kubeconfig, then build the client.

    The loader is returned alongside the configuration so callers can inspect
    the selected context, cluster and user.
    """
    options = options or ConfigOptions()
    path = find_kubeconfig(options.kubeconfig, settings=locator_settings)
    loader = KubeConfigLoader.load(path, options.context, options.cluster, options.user)
    log.info(
        "kubeconfig_loaded",
        path=str(path),
        context=loader.selection.context_name,
        server=loader.cluster.server,
    )
    return build_client_configuration(loader.selection, exec_provider), loader


def load_kube_config_with(
    options: ConfigOptions,
    *,
    exec_provider: ExecCredentialProvider | None = None,
    locator_settings: LocatorSettings | None = None,
) -> ClientConfiguration:
    configuration, _ = create_client_configuration(
        options, exec_provider=exec_provider, locator_settings=locator_settings
    )
    return configuration


def load_kube_config(
    *,
    exec_provider: ExecCredentialProvider | None = None,
    locator_settings: LocatorSettings | None = None,
) -> ClientConfiguration:
    """Build a client from the default kubeconfig (``KUBECONFIG`` or ``~/.kube/config``)."""
    return load_kube_config_with(ConfigOptions(), exec_provider=exec_provider, locator_settings=locator_settings)


def incluster_config(
    environ: Mapping[str, str] | None = None,
    settings: InClusterSettings | None = None,
) -> ClientConfiguration:
    """Build a client from the pod's service-account mount.

    Raises:
        InClusterConfigError: If the service variables or any mounted file is missing.
    """
    server, certificates, token, namespace = resolve_incluster(environ, settings)
    credential = BearerToken(token)
    transport = TransportConfig(
        root_certificates=tuple(certificates),
        credential=credential,
        default_headers=authorization_header(credential),
    )
    log.info("incluster_config_loaded", server=server, namespace=namespace)
    return ClientConfiguration(
        base_path=server,
        default_namespace=namespace,
        transport=transport,
        client=build_api_client(server, transport),
    )
