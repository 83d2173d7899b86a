"""Exception hierarchy for kubeconfig and in-cluster credential resolution.

Every failure raised by this package derives from ``KubeConfigError`` so
callers can catch a single base error, or a specific subclass when they need
to react to one failure mode (e.g. a missing context versus a broken plugin).
"""

from __future__ import annotations


class KubeConfigError(Exception):
    """Base error for client configuration resolution."""


class ConfigNotFoundError(KubeConfigError):
    """No kubeconfig file could be located."""


class ConfigParseError(KubeConfigError):
    """The kubeconfig file exists but is not a valid document."""


class NameNotFoundError(KubeConfigError):
    """A context, cluster or user name is not present in the document."""

    kind = "entry"

    def __init__(self, name: str, available: list[str] | None = None) -> None:
        self.name = name
        self.available = list(available or [])
        valid = ", ".join(self.available) if self.available else "none"
        super().__init__(f"Unable to find {self.kind} named {name!r} in kubeconfig. Available: {valid}")


class ContextNotFoundError(NameNotFoundError):
    kind = "context"


class ClusterNotFoundError(NameNotFoundError):
    kind = "cluster"


class UserNotFoundError(NameNotFoundError):
    kind = "user"


class TlsMaterialError(KubeConfigError):
    """Configured CA, certificate or key material is malformed or unreadable."""


class InvalidCredentialError(KubeConfigError):
    """A resolved credential cannot be used as a transport header value."""


class ExecPluginError(KubeConfigError):
    """The exec credential plugin failed or returned an unusable response."""


class InClusterConfigError(KubeConfigError):
    """The in-cluster environment is incomplete.

    ``artifact`` names what is missing: ``"environment"``, ``"ca"``,
    ``"token"`` or ``"namespace"``.
    """

    def __init__(self, message: str, artifact: str) -> None:
        self.artifact = artifact
        super().__init__(message)


class ClientBuildError(KubeConfigError):
    """The transport library rejected the assembled configuration."""
