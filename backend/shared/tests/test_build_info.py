"""Tests for shared.build_info module."""

import importlib
import subprocess
from importlib import metadata
from unittest.mock import patch

import pytest

import shared.build_info as build_info_module


@pytest.fixture
def reload_build_info():
    """Reload the module under the test's environment, then restore it."""
    yield lambda: importlib.reload(build_info_module)
    importlib.reload(build_info_module)


class TestGitShortSha:
    def test_strips_git_output(self):
        with patch("subprocess.check_output", return_value="a1b2c3d\n"):
            assert build_info_module._git_short_sha() == "a1b2c3d"

    def test_returns_dev_when_git_not_found(self):
        with patch("subprocess.check_output", side_effect=FileNotFoundError):
            assert build_info_module._git_short_sha() == "dev"

    def test_returns_dev_when_git_fails(self):
        with patch("subprocess.check_output", side_effect=subprocess.CalledProcessError(128, "git")):
            assert build_info_module._git_short_sha() == "dev"


class TestInstalledVersion:
    def test_reads_distribution_metadata(self):
        with patch("shared.build_info.metadata.version", return_value="0.3.1") as version:
            assert build_info_module._installed_version() == "0.3.1"
        version.assert_called_once_with("chroma-recall")

    def test_returns_dev_when_not_installed(self):
        with patch("shared.build_info.metadata.version", side_effect=metadata.PackageNotFoundError):
            assert build_info_module._installed_version() == "dev"


class TestModuleLevelConstants:
    def test_app_version_reads_from_env(self, reload_build_info, monkeypatch):
        monkeypatch.setenv("APP_VERSION", "1.2.3")
        assert reload_build_info().APP_VERSION == "1.2.3"

    def test_git_commit_reads_from_env(self, reload_build_info, monkeypatch):
        monkeypatch.setenv("GIT_COMMIT", "abc1234")
        assert reload_build_info().GIT_COMMIT == "abc1234"

    def test_git_commit_falls_back_to_git(self, reload_build_info, monkeypatch):
        monkeypatch.delenv("GIT_COMMIT", raising=False)
        with patch("subprocess.check_output", return_value="feedbee\n"):
            assert reload_build_info().GIT_COMMIT == "feedbee"
