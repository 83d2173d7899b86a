"""Tests for locator.py: explicit path, KUBECONFIG, and the home-directory default."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from kubeconfig_resolver.errors import ConfigNotFoundError
from kubeconfig_resolver.locator import find_kubeconfig
from kubeconfig_resolver.settings import LocatorSettings


@pytest.fixture
def settings(tmp_path: Path) -> LocatorSettings:
    # Note 1: Redirecting the default path into tmp_path keeps the developer's real
    # ~/.kube/config out of the test, whatever machine the suite runs on.
    return LocatorSettings(default_path=tmp_path / "home" / ".kube" / "config")


def _touch(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("apiVersion: v1\n")
    return path


class TestFindKubeconfig:
    def test_explicit_path_wins(self, tmp_path: Path, settings: LocatorSettings) -> None:
        explicit = _touch(tmp_path / "explicit")
        env_file = _touch(tmp_path / "from-env")
        _touch(settings.default_path)
        found = find_kubeconfig(explicit, settings=settings, environ={"KUBECONFIG": str(env_file)})
        assert found == explicit

    def test_missing_explicit_path_does_not_fall_through(self, tmp_path: Path, settings: LocatorSettings) -> None:
        _touch(settings.default_path)
        with pytest.raises(ConfigNotFoundError, match="explicit path"):
            find_kubeconfig(tmp_path / "nope", settings=settings, environ={})

    def test_env_var_used_when_no_explicit_path(self, tmp_path: Path, settings: LocatorSettings) -> None:
        env_file = _touch(tmp_path / "from-env")
        _touch(settings.default_path)
        assert find_kubeconfig(settings=settings, environ={"KUBECONFIG": str(env_file)}) == env_file

    def test_env_var_list_takes_first_existing_entry(self, tmp_path: Path, settings: LocatorSettings) -> None:
        second = _touch(tmp_path / "second")
        value = os.pathsep.join([str(tmp_path / "missing"), str(second)])
        assert find_kubeconfig(settings=settings, environ={"KUBECONFIG": value}) == second

    def test_default_path_used_last(self, settings: LocatorSettings) -> None:
        default = _touch(settings.default_path)
        assert find_kubeconfig(settings=settings, environ={}) == default

    def test_custom_env_var_name(self, tmp_path: Path) -> None:
        env_file = _touch(tmp_path / "custom")
        settings = LocatorSettings(env_var="MY_KUBECONFIG", default_path=tmp_path / "absent")
        assert find_kubeconfig(settings=settings, environ={"MY_KUBECONFIG": str(env_file)}) == env_file

    def test_nothing_found_lists_candidates(self, tmp_path: Path, settings: LocatorSettings) -> None:
        missing = tmp_path / "missing"
        with pytest.raises(ConfigNotFoundError) as exc_info:
            find_kubeconfig(settings=settings, environ={"KUBECONFIG": str(missing)})
        message = str(exc_info.value)
        assert str(missing) in message
        assert str(settings.default_path) in message
        assert "KUBECONFIG" in message


class TestLocatorSettings:
    def test_default_path_is_under_home(self) -> None:
        assert LocatorSettings().default_path == Path.home() / ".kube" / "config"

    def test_settings_are_frozen(self) -> None:
        with pytest.raises(AttributeError):
            LocatorSettings().env_var = "OTHER"  # type: ignore[misc]
