"""Shared test fixtures: generated certificates, kubeconfig files and a fake exec plugin."""

# Note 1: conftest.py is discovered by pytest automatically; fixtures defined here are
# injected into any test in this directory by parameter name.
from __future__ import annotations

import base64
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

import pytest
import yaml
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from kubeconfig_resolver.models import ExecConfig, ExecCredential


@dataclass(frozen=True)
class CertPair:
    """A self-signed certificate with its key, plus the encodings kubeconfig uses."""

    certificate: x509.Certificate
    key: ec.EllipticCurvePrivateKey

    @property
    def cert_pem(self) -> bytes:
        return self.certificate.public_bytes(serialization.Encoding.PEM)

    @property
    def key_pem(self) -> bytes:
        return self.key.private_bytes(
            serialization.Encoding.PEM,
            serialization.PrivateFormat.TraditionalOpenSSL,
            serialization.NoEncryption(),
        )

    @property
    def cert_b64(self) -> str:
        return base64.b64encode(self.cert_pem).decode()

    @property
    def key_b64(self) -> str:
        return base64.b64encode(self.key_pem).decode()


def _make_cert_pair(common_name: str) -> CertPair:
    # Note 2: EC P-256 keys are generated in microseconds, unlike RSA, so every test can
    # own fresh, distinguishable certificates without slowing the suite down.
    key = ec.generate_private_key(ec.SECP256R1())
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    now = datetime.now(UTC)
    certificate = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(days=1))
        .not_valid_after(now + timedelta(days=30))
        .add_extension(x509.BasicConstraints(ca=True, path_length=None), critical=True)
        .sign(key, hashes.SHA256())
    )
    return CertPair(certificate=certificate, key=key)


@pytest.fixture
def make_cert_pair() -> Callable[[str], CertPair]:
    return _make_cert_pair


@pytest.fixture
def ca_pair() -> CertPair:
    return _make_cert_pair("test-ca")


@pytest.fixture
def client_pair() -> CertPair:
    return _make_cert_pair("test-client")


def kubeconfig_document(
    cluster: dict[str, Any],
    user: dict[str, Any],
    *,
    namespace: str | None = None,
) -> dict[str, Any]:
    """A single-context kubeconfig mapping named ``test``."""
    context: dict[str, Any] = {"cluster": "test-cluster", "user": "test-user"}
    if namespace is not None:
        context["namespace"] = namespace
    return {
        "apiVersion": "v1",
        "kind": "Config",
        "current-context": "test",
        "clusters": [{"name": "test-cluster", "cluster": cluster}],
        "users": [{"name": "test-user", "user": user}],
        "contexts": [{"name": "test", "context": context}],
        "preferences": {},
    }


@pytest.fixture
def make_kubeconfig() -> Callable[..., dict[str, Any]]:
    return kubeconfig_document


@pytest.fixture
def write_kubeconfig(tmp_path: Path) -> Callable[[dict[str, Any]], Path]:
    """Factory that writes a kubeconfig mapping to ``tmp_path/config`` and returns its path."""

    def _write(document: dict[str, Any]) -> Path:
        path = tmp_path / "config"
        path.write_text(yaml.safe_dump(document, sort_keys=False))
        return path

    return _write


@dataclass
class FakeExecProvider:
    """Records invocations and returns a canned ExecCredential instead of spawning a process."""

    response: dict[str, Any] = field(default_factory=lambda: {"status": {"token": "exec-token"}})
    calls: list[ExecConfig] = field(default_factory=list)

    def invoke(self, exec_config: ExecConfig) -> ExecCredential:
        self.calls.append(exec_config)
        return ExecCredential.model_validate(self.response)


@pytest.fixture
def fake_exec() -> FakeExecProvider:
    return FakeExecProvider()
