"""Tests for incluster.py: service variables and the service-account mount."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from kubeconfig_resolver.errors import InClusterConfigError
from kubeconfig_resolver.incluster import kube_server, load_default_ns, load_token, resolve_incluster
from kubeconfig_resolver.settings import InClusterSettings

SERVICE_ENV = {"KUBERNETES_SERVICE_HOST": "10.96.0.1", "KUBERNETES_SERVICE_PORT": "443"}


@pytest.fixture
def mount(tmp_path: Path, ca_pair: Any) -> InClusterSettings:
    """A complete service-account mount under tmp_path."""
    (tmp_path / "ca.crt").write_bytes(ca_pair.cert_pem)
    (tmp_path / "token").write_text("sa-token\n")
    (tmp_path / "namespace").write_text("payments")
    return InClusterSettings(
        token_path=tmp_path / "token",
        ca_path=tmp_path / "ca.crt",
        namespace_path=tmp_path / "namespace",
    )


class TestKubeServer:
    def test_builds_https_url(self) -> None:
        assert kube_server(SERVICE_ENV) == "https://10.96.0.1:443"

    def test_ipv6_host_is_bracketed(self) -> None:
        env = {"KUBERNETES_SERVICE_HOST": "fd00::1", "KUBERNETES_SERVICE_PORT": "443"}
        assert kube_server(env) == "https://[fd00::1]:443"

    @pytest.mark.parametrize("missing", ["KUBERNETES_SERVICE_HOST", "KUBERNETES_SERVICE_PORT"])
    def test_missing_variable_names_both(self, missing: str) -> None:
        env = {k: v for k, v in SERVICE_ENV.items() if k != missing}
        with pytest.raises(InClusterConfigError) as exc_info:
            kube_server(env)
        assert exc_info.value.artifact == "environment"
        assert "KUBERNETES_SERVICE_HOST" in str(exc_info.value)
        assert "KUBERNETES_SERVICE_PORT" in str(exc_info.value)


class TestMountedFiles:
    def test_resolves_everything(self, mount: InClusterSettings, ca_pair: Any) -> None:
        server, certificates, token, namespace = resolve_incluster(SERVICE_ENV, mount)
        assert server == "https://10.96.0.1:443"
        assert certificates == [ca_pair.certificate]
        assert token == "sa-token"
        assert namespace == "payments"

    def test_missing_token_names_token_path(self, mount: InClusterSettings) -> None:
        mount.token_path.unlink()
        with pytest.raises(InClusterConfigError) as exc_info:
            resolve_incluster(SERVICE_ENV, mount)
        assert exc_info.value.artifact == "token"
        assert str(mount.token_path) in str(exc_info.value)

    def test_missing_ca_is_distinct_error(self, mount: InClusterSettings) -> None:
        mount.ca_path.unlink()
        with pytest.raises(InClusterConfigError) as exc_info:
            resolve_incluster(SERVICE_ENV, mount)
        assert exc_info.value.artifact == "ca"
        assert str(mount.ca_path) in str(exc_info.value)

    def test_malformed_ca_is_ca_error(self, mount: InClusterSettings) -> None:
        mount.ca_path.write_text("not a certificate")
        with pytest.raises(InClusterConfigError) as exc_info:
            resolve_incluster(SERVICE_ENV, mount)
        assert exc_info.value.artifact == "ca"

    def test_missing_namespace_is_distinct_error(self, mount: InClusterSettings) -> None:
        mount.namespace_path.unlink()
        with pytest.raises(InClusterConfigError) as exc_info:
            load_default_ns(mount)
        assert exc_info.value.artifact == "namespace"

    def test_empty_token_is_error(self, mount: InClusterSettings) -> None:
        mount.token_path.write_text("  \n")
        with pytest.raises(InClusterConfigError, match="empty"):
            load_token(mount)

    def test_environment_checked_before_files(self, tmp_path: Path) -> None:
        settings = InClusterSettings(
            token_path=tmp_path / "token",
            ca_path=tmp_path / "ca.crt",
            namespace_path=tmp_path / "namespace",
        )
        with pytest.raises(InClusterConfigError) as exc_info:
            resolve_incluster({}, settings)
        assert exc_info.value.artifact == "environment"


class TestInClusterSettings:
    def test_default_mount_layout(self) -> None:
        with patch.dict(os.environ, clear=False) as env:
            env.pop("KUBECONFIG_RESOLVER_SA_DIR", None)
            settings = InClusterSettings()
        assert settings.token_path == Path("/var/run/secrets/kubernetes.io/serviceaccount/token")
        assert settings.ca_path == Path("/var/run/secrets/kubernetes.io/serviceaccount/ca.crt")
        assert settings.namespace_path == Path("/var/run/secrets/kubernetes.io/serviceaccount/namespace")

    def test_mount_dir_override_from_env(self, tmp_path: Path) -> None:
        # Note 1: The settings object is created inside the patch block so the
        # default_factory sees the overridden variable.
        with patch.dict(os.environ, {"KUBECONFIG_RESOLVER_SA_DIR": str(tmp_path)}):
            settings = InClusterSettings()
        assert settings.token_path == tmp_path / "token"
