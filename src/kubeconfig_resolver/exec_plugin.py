"""Exec credential plugins: run an external command and parse its ExecCredential."""

from __future__ import annotations

import json
import os
import subprocess
from collections.abc import Mapping
from typing import Protocol

import structlog
from pydantic import ValidationError

from kubeconfig_resolver.errors import ExecPluginError
from kubeconfig_resolver.models import ExecConfig, ExecCredential

log = structlog.get_logger()

DEFAULT_EXEC_API_VERSION = "client.authentication.k8s.io/v1beta1"


class ExecCredentialProvider(Protocol):
    """Anything that can turn an ``exec`` block into an ExecCredential."""

    def invoke(self, exec_config: ExecConfig) -> ExecCredential: ...


def _exec_info(exec_config: ExecConfig) -> str:
    return json.dumps(
        {
            "apiVersion": exec_config.api_version or DEFAULT_EXEC_API_VERSION,
            "kind": "ExecCredential",
            "spec": {"interactive": False},
        }
    )


def require_status(credential: ExecCredential, command: str) -> ExecCredential:
    """Reject a credential without a ``status`` object, whichever provider produced it."""
    if credential.status is None:
        msg = f"exec-plugin {command!r} response did not contain a status"
        raise ExecPluginError(msg)
    return credential


def parse_exec_credential(stdout: bytes | str, command: str) -> ExecCredential:
    """Parse plugin output, requiring a ``status`` object.

    Raises:
        ExecPluginError: If the output is not an ExecCredential or carries no status.
    """
    try:
        credential = ExecCredential.model_validate_json(stdout)
    except ValidationError as exc:
        msg = f"exec-plugin {command!r} produced output that is not a valid ExecCredential: {exc}"
        raise ExecPluginError(msg) from exc
    return require_status(credential, command)


class SubprocessExecProvider:
    """Run the plugin as a child process.

    The child inherits this process's environment, extended by the ``exec``
    block's ``env`` entries and ``KUBERNETES_EXEC_INFO``. Only stdout is
    captured; stderr is left attached so interactive plugins can prompt. There
    is no timeout: a hung plugin blocks the caller.
    """

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        self._environ = environ

    def invoke(self, exec_config: ExecConfig) -> ExecCredential:
        argv = [exec_config.command, *(exec_config.args or [])]
        env = dict(os.environ if self._environ is None else self._environ)
        env.update(exec_config.env_map)
        env["KUBERNETES_EXEC_INFO"] = _exec_info(exec_config)

        log.debug("exec_plugin_invoke", command=exec_config.command, args=len(argv) - 1)
        try:
            result = subprocess.run(argv, env=env, stdout=subprocess.PIPE, check=False)
        except OSError as exc:
            hint = f" ({exec_config.install_hint})" if exec_config.install_hint else ""
            msg = f"Unable to run exec-plugin {exec_config.command!r}: {exc.strerror or exc}{hint}"
            raise ExecPluginError(msg) from exc

        if result.returncode != 0:
            log.error("exec_plugin_failed", command=exec_config.command, returncode=result.returncode)
            msg = f"exec-plugin {exec_config.command!r} exited with status {result.returncode}"
            raise ExecPluginError(msg)

        return parse_exec_credential(result.stdout, exec_config.command)


def auth_exec(exec_config: ExecConfig, provider: ExecCredentialProvider | None = None) -> ExecCredential:
    """Invoke the exec plugin once and return its credential.

    Raises:
        ExecPluginError: If the plugin fails or its credential carries no status.
    """
    credential = (provider or SubprocessExecProvider()).invoke(exec_config)
    return require_status(credential, exec_config.command)
