"""Test configuration loading."""

import os
from pathlib import Path

import pytest

from repodeck.config import (
    DEFAULT_HISTORY_LIMIT,
    Config,
    DebugConfig,
    ScanPolicy,
    default_config_path,
    default_max_workers,
    get_config,
    parse_scan_policy,
)
from repodeck.errors import ConfigError


def write_config(path: Path, body: str) -> Path:
    path.write_text(body)
    return path


class TestDefaults:
    def test_defaults_without_file(self, tmp_path):
        config = get_config(tmp_path / "missing")
        assert config.max_workers == default_max_workers()
        assert config.scan_policy is ScanPolicy.ABORT
        assert config.history_limit == DEFAULT_HISTORY_LIMIT
        assert config.git_binary == "git"
        assert config.git_timeout == 0.0

    def test_config_dataclass_defaults(self):
        config = Config()
        assert config.scan_policy is ScanPolicy.ABORT
        assert config.config_path is None


class TestConfigPath:
    def test_explicit_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("REPODECK_CONFIG", str(tmp_path / "custom.ini"))
        assert default_config_path() == tmp_path / "custom.ini"

    def test_xdg(self, tmp_path, monkeypatch):
        monkeypatch.delenv("REPODECK_CONFIG")
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
        assert default_config_path() == tmp_path / "repodeck" / "config"

    def test_home_fallback(self, monkeypatch):
        monkeypatch.delenv("REPODECK_CONFIG")
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        assert default_config_path() == Path.home() / ".config" / "repodeck" / "config"


class TestConfigFile:
    def test_section_values(self, tmp_path):
        path = write_config(
            tmp_path / "config",
            "[repodeck]\n"
            "max_workers = 3\n"
            "scan_policy = isolate\n"
            "history_limit = 20\n"
            "git_binary = /usr/local/bin/git\n"
            "git_timeout = 2.5\n",
        )
        config = get_config(path)
        assert config.max_workers == 3
        assert config.scan_policy is ScanPolicy.ISOLATE
        assert config.history_limit == 20
        assert config.git_binary == "/usr/local/bin/git"
        assert config.git_timeout == 2.5

    def test_default_section(self, tmp_path):
        path = write_config(tmp_path / "config", "[DEFAULT]\nhistory_limit = 7\n")
        assert get_config(path).history_limit == 7

    def test_section_overrides_default(self, tmp_path):
        path = write_config(
            tmp_path / "config",
            "[DEFAULT]\nhistory_limit = 7\n\n[repodeck]\nhistory_limit = 9\n",
        )
        assert get_config(path).history_limit == 9

    def test_malformed_file(self, tmp_path):
        path = write_config(tmp_path / "config", "history_limit = 7\n")
        with pytest.raises(ConfigError):
            get_config(path)

    def test_debug_from_file(self, tmp_path):
        path = write_config(tmp_path / "config", "[repodeck]\ndebug = true\n")
        assert get_config(path).debug.enabled


class TestEnvironment:
    def test_env_overrides_file(self, tmp_path, monkeypatch):
        path = write_config(tmp_path / "config", "[repodeck]\nmax_workers = 3\n")
        monkeypatch.setenv("REPODECK_MAX_WORKERS", "6")
        monkeypatch.setenv("REPODECK_SCAN_POLICY", "ISOLATE")
        monkeypatch.setenv("REPODECK_GIT", "git2")
        config = get_config(path)
        assert config.max_workers == 6
        assert config.scan_policy is ScanPolicy.ISOLATE
        assert config.git_binary == "git2"

    @pytest.mark.parametrize("value", ["abc", "0", "-4"])
    def test_bad_worker_count_falls_back(self, monkeypatch, value):
        monkeypatch.setenv("REPODECK_MAX_WORKERS", value)
        assert get_config().max_workers == default_max_workers()

    @pytest.mark.parametrize("value", ["soon", "-1"])
    def test_bad_timeout_falls_back(self, monkeypatch, value):
        monkeypatch.setenv("REPODECK_GIT_TIMEOUT", value)
        assert get_config().git_timeout == 0.0

    def test_invalid_policy(self, monkeypatch):
        monkeypatch.setenv("REPODECK_SCAN_POLICY", "sometimes")
        with pytest.raises(ConfigError, match="Invalid scan policy"):
            get_config()

    @pytest.mark.parametrize("value, expected", [("1", True), ("yes", True), ("0", False)])
    def test_debug_env(self, monkeypatch, value, expected):
        monkeypatch.setenv("REPODECK_DEBUG", value)
        assert DebugConfig.from_env().enabled is expected

    def test_env_does_not_leak(self):
        assert "REPODECK_MAX_WORKERS" not in os.environ


def test_parse_scan_policy():
    assert parse_scan_policy(" Abort ") is ScanPolicy.ABORT
    assert parse_scan_policy("isolate") is ScanPolicy.ISOLATE
