"""Locate the kubeconfig file to load."""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path

import structlog

from kubeconfig_resolver.errors import ConfigNotFoundError
from kubeconfig_resolver.settings import LocatorSettings

log = structlog.get_logger()


def find_kubeconfig(
    explicit: str | os.PathLike[str] | None = None,
    *,
    settings: LocatorSettings | None = None,
    environ: Mapping[str, str] | None = None,
) -> Path:
    """Return the path of the kubeconfig file to load.

    Candidates are checked in order: the explicit path, each entry of the
    ``KUBECONFIG`` variable (``os.pathsep``-separated, first existing wins), then
    ``~/.kube/config``. An explicit path is authoritative: if it does not exist
    the lookup fails instead of falling through to the ambient candidates.

    Raises:
        ConfigNotFoundError: If no candidate names an existing file.
    """
    settings = settings or LocatorSettings()
    environ = os.environ if environ is None else environ

    if explicit is not None:
        path = Path(explicit).expanduser()
        if path.is_file():
            log.debug("kubeconfig_located", path=str(path), source="explicit")
            return path
        msg = f"Unable to load kubeconfig: explicit path {path} does not exist"
        raise ConfigNotFoundError(msg)

    tried: list[str] = []
    for entry in environ.get(settings.env_var, "").split(os.pathsep):
        if not entry:
            continue
        path = Path(entry).expanduser()
        tried.append(str(path))
        if path.is_file():
            log.debug("kubeconfig_located", path=str(path), source=settings.env_var)
            return path

    default = settings.default_path.expanduser()
    tried.append(str(default))
    if default.is_file():
        log.debug("kubeconfig_located", path=str(default), source="default")
        return default

    msg = f"Unable to load kubeconfig: no file found (tried {', '.join(tried)}); set {settings.env_var} or pass a path"
    raise ConfigNotFoundError(msg)
