"""Tests for the configuration module."""

from __future__ import annotations

from pathlib import Path

import pytest

from acp_bridge.config import Config, load_config
from acp_bridge.transport.websocket import DEFAULT_RECONNECT_ATTEMPTS, DEFAULT_RECONNECT_DELAY


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Run every test from an empty directory with no overrides set."""
    monkeypatch.delenv("ACP_BRIDGE_URL", raising=False)
    monkeypatch.delenv("ACP_BRIDGE_LOG", raising=False)
    monkeypatch.chdir(tmp_path)


class TestDefaults:
    """Test configuration without a file."""

    def test_defaults(self) -> None:
        """Test that a missing file yields the default config."""
        config = load_config()
        assert config == Config()
        assert config.url is None
        assert config.reconnect.attempts == DEFAULT_RECONNECT_ATTEMPTS
        assert config.reconnect.delay == DEFAULT_RECONNECT_DELAY
        assert config.client.name == "acp-bridge"
        assert config.fs.read is False
        assert config.fs.write is False

    def test_explicit_missing_path(self, tmp_path: Path) -> None:
        """Test that a missing explicit path is ignored."""
        assert load_config(tmp_path / "nope.yaml") == Config()


class TestYamlConfig:
    """Test loading from YAML."""

    def test_full_file(self, tmp_path: Path) -> None:
        """Test that every section is read."""
        path = tmp_path / "custom.yaml"
        path.write_text(
            "url: ws://localhost:9000\n"
            "reconnect:\n"
            "  attempts: 5\n"
            "  delay: 0.5\n"
            "client:\n"
            "  name: my-editor\n"
            "  version: 2.0.0\n"
            "fs:\n"
            "  read: true\n"
            "  write: true\n"
            "  root: /srv/project\n"
            "logging:\n"
            "  level: debug\n"
            "  file: /tmp/bridge.log\n"
        )
        config = load_config(path)
        assert config.url == "ws://localhost:9000"
        assert config.reconnect.attempts == 5
        assert config.reconnect.delay == 0.5
        assert config.client.name == "my-editor"
        assert config.client.version == "2.0.0"
        assert config.fs.read is True
        assert config.fs.write is True
        assert config.fs.root == Path("/srv/project")
        assert config.logging.level == "debug"
        assert config.logging.file == "/tmp/bridge.log"

    def test_partial_file_keeps_defaults(self, tmp_path: Path) -> None:
        """Test that missing keys fall back to defaults."""
        path = tmp_path / "custom.yaml"
        path.write_text("reconnect:\n  attempts: 0\n")
        config = load_config(path)
        assert config.reconnect.attempts == 0
        assert config.reconnect.delay == DEFAULT_RECONNECT_DELAY
        assert config.fs.root is None

    def test_empty_file(self, tmp_path: Path) -> None:
        """Test that an empty file is treated as no settings."""
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config(path) == Config()

    @pytest.mark.parametrize("name", ["acp-bridge.yaml", ".acp-bridge.yaml", "acp-bridge.yml"])
    def test_default_file_found(self, tmp_path: Path, name: str) -> None:
        """Test that the working directory is searched for a config file."""
        (tmp_path / name).write_text("url: ws://found\n")
        assert load_config().url == "ws://found"


class TestEnvironmentOverrides:
    """Test environment variable overrides."""

    def test_url_override(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that ACP_BRIDGE_URL wins over the file."""
        (tmp_path / "acp-bridge.yaml").write_text("url: ws://file\n")
        monkeypatch.setenv("ACP_BRIDGE_URL", "ws://env")
        assert load_config().url == "ws://env"

    def test_log_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that ACP_BRIDGE_LOG sets the log file."""
        monkeypatch.setenv("ACP_BRIDGE_LOG", "/tmp/env.log")
        assert load_config().logging.file == "/tmp/env.log"
