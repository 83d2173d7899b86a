"""Decode TLS and authentication material referenced by a kubeconfig.

Each resolver treats "not configured" as a normal outcome and returns ``None``
(or ``NoCredential``). Material that is configured but cannot be read or
decoded is always a hard error.
"""

from __future__ import annotations

import base64
import binascii
import re
from dataclasses import dataclass, field
from pathlib import Path

import structlog
from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.serialization import pkcs12

from kubeconfig_resolver.errors import InvalidCredentialError, TlsMaterialError
from kubeconfig_resolver.models import AuthInfo, Cluster, ExecCredential

log = structlog.get_logger()

_PEM_MARKER = b"-----BEGIN"

# Visible ASCII plus space and horizontal tab; anything else (CR, LF, NUL,
# non-ASCII) cannot travel in an HTTP header value.
_HEADER_VALUE_RE = re.compile(r"[\t\x20-\x7e]*")


# --- Credential variant ---


@dataclass(frozen=True)
class NoCredential:
    """Anonymous access: no Authorization header is sent."""


@dataclass(frozen=True)
class BearerToken:
    token: str = field(repr=False)


@dataclass(frozen=True)
class BasicAuth:
    username: str
    password: str = field(repr=False)


Credential = NoCredential | BearerToken | BasicAuth


# --- Client identity ---


@dataclass(frozen=True)
class ClientIdentity:
    """A client certificate and private key sealed into a PKCS12 bundle."""

    pkcs12: bytes = field(repr=False)
    passphrase: str = field(repr=False)

    @classmethod
    def seal(
        cls,
        key: pkcs12.PKCS12PrivateKeyTypes,
        certificates: list[x509.Certificate],
        passphrase: str,
    ) -> ClientIdentity:
        encryption: serialization.KeySerializationEncryption
        if passphrase:
            encryption = serialization.BestAvailableEncryption(passphrase.encode())
        else:
            encryption = serialization.NoEncryption()
        bundle = pkcs12.serialize_key_and_certificates(
            name=None,
            key=key,
            cert=certificates[0],
            cas=certificates[1:] or None,
            encryption_algorithm=encryption,
        )
        return cls(pkcs12=bundle, passphrase=passphrase)

    def _unseal(self) -> tuple[pkcs12.PKCS12PrivateKeyTypes, list[x509.Certificate]]:
        key, cert, extra = pkcs12.load_key_and_certificates(self.pkcs12, self.passphrase.encode() or None)
        if key is None or cert is None:
            msg = "PKCS12 identity bundle is missing its certificate or key"
            raise TlsMaterialError(msg)
        return key, [cert, *extra]

    @property
    def certificate(self) -> x509.Certificate:
        return self._unseal()[1][0]

    def certificate_chain_pem(self) -> bytes:
        """Leaf certificate followed by any intermediates, PEM encoded."""
        _, chain = self._unseal()
        return b"".join(cert.public_bytes(serialization.Encoding.PEM) for cert in chain)

    def private_key_pem(self) -> bytes:
        key, _ = self._unseal()
        return key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )


# --- Raw material ---


def _resolve_path(path: str, base_dir: Path | None) -> Path:
    candidate = Path(path).expanduser()
    if not candidate.is_absolute() and base_dir is not None:
        candidate = base_dir / candidate
    return candidate


def data_or_file(
    data: str | None,
    path: str | None,
    *,
    field_name: str,
    base_dir: Path | None = None,
) -> bytes | None:
    """Return TLS material from inline base64 ``data`` or from the file at ``path``.

    Inline data wins when both are set. Relative paths are resolved against
    ``base_dir`` (the kubeconfig's directory), matching kubectl.

    Raises:
        TlsMaterialError: If the data is not valid base64 or the file cannot be read.
    """
    if data:
        try:
            return base64.b64decode("".join(data.split()), validate=True)
        except (binascii.Error, ValueError) as exc:
            msg = f"{field_name}-data is not valid base64: {exc}"
            raise TlsMaterialError(msg) from exc
    if path:
        resolved = _resolve_path(path, base_dir)
        try:
            return resolved.read_bytes()
        except OSError as exc:
            msg = f"Unable to read {field_name} file {resolved}: {exc.strerror or exc}"
            raise TlsMaterialError(msg) from exc
    return None


def load_certificates(raw: bytes, source: str) -> list[x509.Certificate]:
    """Parse one or more PEM certificates, or a single DER certificate."""
    try:
        if _PEM_MARKER in raw:
            return x509.load_pem_x509_certificates(raw)
        return [x509.load_der_x509_certificate(raw)]
    except ValueError as exc:
        msg = f"Unable to parse certificate from {source}: {exc}"
        raise TlsMaterialError(msg) from exc


def _load_private_key(raw: bytes, source: str) -> pkcs12.PKCS12PrivateKeyTypes:
    try:
        if _PEM_MARKER in raw:
            key = serialization.load_pem_private_key(raw, password=None)
        else:
            key = serialization.load_der_private_key(raw, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        msg = f"Unable to parse private key from {source}: {exc}"
        raise TlsMaterialError(msg) from exc
    return key  # type: ignore[return-value]


# --- Resolvers ---


def resolve_ca_bundle(cluster: Cluster, base_dir: Path | None = None) -> tuple[x509.Certificate, ...] | None:
    """Decode the cluster's CA bundle, or return ``None`` when none is configured."""
    raw = data_or_file(
        cluster.certificate_authority_data,
        cluster.certificate_authority,
        field_name="certificate-authority",
        base_dir=base_dir,
    )
    if raw is None:
        return None
    source = "certificate-authority-data" if cluster.certificate_authority_data else cluster.certificate_authority
    certificates = load_certificates(raw, str(source))
    log.debug("ca_bundle_resolved", source=source, certificates=len(certificates))
    return tuple(certificates)


def resolve_client_identity(
    user: AuthInfo,
    passphrase: str,
    base_dir: Path | None = None,
    exec_credential: ExecCredential | None = None,
) -> ClientIdentity | None:
    """Build the client identity from the user's certificate and key.

    Static ``client-certificate``/``client-key`` settings win; the exec
    credential's PEM certificate and key are used only when the user carries
    neither. Returns ``None`` when no certificate material is configured.

    Raises:
        TlsMaterialError: If only one of certificate and key is configured, or
            either fails to decode.
    """
    cert_raw = data_or_file(
        user.client_certificate_data,
        user.client_certificate,
        field_name="client-certificate",
        base_dir=base_dir,
    )
    key_raw = data_or_file(
        user.client_key_data,
        user.client_key,
        field_name="client-key",
        base_dir=base_dir,
    )
    source = "kubeconfig"

    if cert_raw is None and key_raw is None and exec_credential is not None and exec_credential.status is not None:
        status = exec_credential.status
        if status.client_certificate_data or status.client_key_data:
            cert_raw = status.client_certificate_data.encode() if status.client_certificate_data else None
            key_raw = status.client_key_data.encode() if status.client_key_data else None
            source = "exec-plugin"

    if cert_raw is None and key_raw is None:
        return None
    if cert_raw is None or key_raw is None:
        missing = "certificate" if cert_raw is None else "key"
        msg = f"Client {missing} is missing from {source}: client certificate and key must be configured together"
        raise TlsMaterialError(msg)

    certificates = load_certificates(cert_raw, f"{source} client-certificate")
    key = _load_private_key(key_raw, f"{source} client-key")
    try:
        identity = ClientIdentity.seal(key, certificates, passphrase)
    except (ValueError, TypeError) as exc:
        msg = f"Unable to package client identity from {source}: {exc}"
        raise TlsMaterialError(msg) from exc
    log.debug("client_identity_resolved", source=source)
    return identity


def static_token(user: AuthInfo, base_dir: Path | None = None) -> str | None:
    """Return the user's inline token, else the ``tokenFile`` contents, else ``None``.

    Both sources are whitespace-trimmed; a blank token counts as absent.

    Raises:
        InvalidCredentialError: If ``tokenFile`` is set but cannot be read.
    """
    if user.token and user.token.strip():
        return user.token.strip()
    if user.token_file:
        path = _resolve_path(user.token_file, base_dir)
        try:
            token = path.read_text(encoding="utf-8").strip()
        except (OSError, UnicodeDecodeError) as exc:
            msg = f"Unable to read tokenFile {path}: {exc}"
            raise InvalidCredentialError(msg) from exc
        return token or None
    return None


def resolve_credential(
    user: AuthInfo,
    exec_token: str | None = None,
    *,
    base_dir: Path | None = None,
) -> Credential:
    """Collapse the user's alternative credential fields into one variant.

    Precedence: ``token``, ``tokenFile``, the exec plugin token, then basic
    auth when both username and password are set. Nothing configured is
    anonymous access, not an error.
    """
    return credential_from_tokens(user, static_token(user, base_dir), exec_token)


def credential_from_tokens(user: AuthInfo, static: str | None, exec_token: str | None = None) -> Credential:
    """Same precedence as :func:`resolve_credential`, for a static token the caller already read."""
    token = static or exec_token or None
    if token:
        return BearerToken(token)
    if user.username is not None and user.password is not None:
        return BasicAuth(user.username, user.password)
    return NoCredential()


def authorization_header(credential: Credential) -> dict[str, str]:
    """Render the credential as default request headers.

    Raises:
        InvalidCredentialError: If the value cannot be carried in an HTTP header.
    """
    if isinstance(credential, BearerToken):
        value = f"Bearer {credential.token}"
        kind = "bearer token"
    elif isinstance(credential, BasicAuth):
        encoded = base64.b64encode(f"{credential.username}:{credential.password}".encode()).decode("ascii")
        value = f"Basic {encoded}"
        kind = "basic auth credentials"
    else:
        return {}
    if not _HEADER_VALUE_RE.fullmatch(value):
        msg = f"Invalid {kind}: value contains characters not allowed in an HTTP header"
        raise InvalidCredentialError(msg)
    return {"Authorization": value}
