"""Configuration loading for acp-bridge."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from acp_bridge.transport.websocket import DEFAULT_RECONNECT_ATTEMPTS, DEFAULT_RECONNECT_DELAY

DEFAULT_CONFIG_FILES = ["acp-bridge.yaml", ".acp-bridge.yaml", "acp-bridge.yml", ".acp-bridge.yml"]


@dataclass
class ReconnectConfig:
    """Automatic reconnect policy."""

    attempts: int = DEFAULT_RECONNECT_ATTEMPTS
    """Retries after a lost or failed connection before giving up."""

    delay: float = DEFAULT_RECONNECT_DELAY
    """Seconds between retries."""


@dataclass
class ClientInfoConfig:
    """Identity sent to the agent in initialize."""

    name: str = "acp-bridge"
    version: str = "0.1.0"


@dataclass
class FsConfig:
    """Local file access offered to the agent."""

    read: bool = False
    write: bool = False
    root: Path | None = None


@dataclass
class LoggingConfig:
    level: str | None = None
    verbose: int | None = None
    file: str | None = None


@dataclass
class Config:
    """acp-bridge configuration."""

    url: str | None = None
    reconnect: ReconnectConfig = field(default_factory=ReconnectConfig)
    client: ClientInfoConfig = field(default_factory=ClientInfoConfig)
    fs: FsConfig = field(default_factory=FsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(config_path: Path | None = None) -> Config:
    """Load configuration from file, then apply environment overrides."""
    config = Config()

    if config_path is None:
        for name in DEFAULT_CONFIG_FILES:
            if Path(name).exists():
                config_path = Path(name)
                break

    if config_path and config_path.exists():
        config = _load_yaml_config(config_path)

    if url := os.environ.get("ACP_BRIDGE_URL"):
        config.url = url
    if log_file := os.environ.get("ACP_BRIDGE_LOG"):
        config.logging.file = log_file

    return config


def _load_yaml_config(path: Path) -> Config:
    """Load config from YAML file."""
    with open(path) as f:
        data: dict[str, Any] = yaml.safe_load(f) or {}

    reconnect_data = data.get("reconnect", {})
    client_data = data.get("client", {})
    fs_data = data.get("fs", {})
    logging_data = data.get("logging", {})

    root = fs_data.get("root")

    return Config(
        url=data.get("url"),
        reconnect=ReconnectConfig(
            attempts=reconnect_data.get("attempts", DEFAULT_RECONNECT_ATTEMPTS),
            delay=reconnect_data.get("delay", DEFAULT_RECONNECT_DELAY),
        ),
        client=ClientInfoConfig(
            name=client_data.get("name", "acp-bridge"),
            version=client_data.get("version", "0.1.0"),
        ),
        fs=FsConfig(
            read=fs_data.get("read", False),
            write=fs_data.get("write", False),
            root=Path(root) if root else None,
        ),
        logging=LoggingConfig(
            level=logging_data.get("level"),
            verbose=logging_data.get("verbose"),
            file=logging_data.get("file"),
        ),
    )
