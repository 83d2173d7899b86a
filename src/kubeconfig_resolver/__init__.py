"""Resolve kubeconfig and in-cluster credentials into a configured Kubernetes API client."""

from kubeconfig_resolver.builder import (
    ClientConfiguration,
    ConfigOptions,
    build_client_configuration,
    create_client_configuration,
    incluster_config,
    load_kube_config,
    load_kube_config_with,
    resolve_transport,
)
from kubeconfig_resolver.errors import (
    ClientBuildError,
    ClusterNotFoundError,
    ConfigNotFoundError,
    ConfigParseError,
    ContextNotFoundError,
    ExecPluginError,
    InClusterConfigError,
    InvalidCredentialError,
    KubeConfigError,
    TlsMaterialError,
    UserNotFoundError,
)
from kubeconfig_resolver.exec_plugin import ExecCredentialProvider, SubprocessExecProvider, auth_exec
from kubeconfig_resolver.loader import KubeConfigLoader, ResolvedSelection
from kubeconfig_resolver.locator import find_kubeconfig
from kubeconfig_resolver.models import (
    AuthInfo,
    AuthProviderConfig,
    Cluster,
    Config,
    Context,
    ExecConfig,
    ExecCredential,
    NamedAuthInfo,
    NamedCluster,
    NamedContext,
    NamedExtension,
    Preferences,
)
from kubeconfig_resolver.transport import TransportConfig, TrustMode, release_api_client

__all__ = [
    "AuthInfo",
    "AuthProviderConfig",
    "ClientBuildError",
    "ClientConfiguration",
    "Cluster",
    "ClusterNotFoundError",
    "Config",
    "ConfigNotFoundError",
    "ConfigOptions",
    "ConfigParseError",
    "Context",
    "ContextNotFoundError",
    "ExecConfig",
    "ExecCredential",
    "ExecCredentialProvider",
    "ExecPluginError",
    "InClusterConfigError",
    "InvalidCredentialError",
    "KubeConfigError",
    "KubeConfigLoader",
    "NamedAuthInfo",
    "NamedCluster",
    "NamedContext",
    "NamedExtension",
    "Preferences",
    "ResolvedSelection",
    "SubprocessExecProvider",
    "TlsMaterialError",
    "TransportConfig",
    "TrustMode",
    "UserNotFoundError",
    "auth_exec",
    "build_client_configuration",
    "create_client_configuration",
    "find_kubeconfig",
    "incluster_config",
    "load_kube_config",
    "load_kube_config_with",
    "release_api_client",
    "resolve_transport",
]
