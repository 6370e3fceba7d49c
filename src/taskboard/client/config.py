"""Sync client configuration.

Loads from ~/.taskboard/client.yaml with environment variable overrides.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml


@dataclass
class ClientConfig:
    """Configuration for a sync client."""

    server_url: str = "ws://localhost:8000"
    token: str = ""  # bearer token, loaded from env only (never saved)
    max_reconnect_attempts: int = 5
    reconnect_interval: float = 3.0  # fixed delay between reconnect attempts, seconds
    ping_interval: float = 20.0  # seconds between keepalive pings; 0 disables

    CONFIG_FILE: Path = field(
        default_factory=lambda: Path.home() / ".taskboard" / "client.yaml",
        repr=False,
    )

    @property
    def ws_url(self) -> str:
        """Sync endpoint URL derived from ``server_url`` (http(s) becomes ws(s))."""
        base = self.server_url.rstrip("/")
        if base.startswith("https://"):
            base = "wss://" + base.removeprefix("https://")
        elif base.startswith("http://"):
            base = "ws://" + base.removeprefix("http://")
        return f"{base}/ws"

    @classmethod
    def load(cls, config_path: Path | None = None) -> ClientConfig:
        """Load client config from file and environment variables.

        Priority (highest wins):
          1. Environment variables (TASKBOARD_SERVER_URL, TASKBOARD_TOKEN, etc.)
          2. Config file (~/.taskboard/client.yaml or custom path)
          3. Defaults
        """
        config = cls()
        file_path = config_path or config.CONFIG_FILE

        if file_path.exists():
            try:
                with open(file_path) as f:
                    data = yaml.safe_load(f) or {}

                config.server_url = data.get("server_url", config.server_url)
                config.max_reconnect_attempts = int(
                    data.get("max_reconnect_attempts", config.max_reconnect_attempts)
                )
                config.reconnect_interval = float(
                    data.get("reconnect_interval", config.reconnect_interval)
                )
                config.ping_interval = float(data.get("ping_interval", config.ping_interval))
            except (yaml.YAMLError, OSError, ValueError):
                pass

        # Environment variables override file config
        config.server_url = os.environ.get("TASKBOARD_SERVER_URL", config.server_url)
        config.token = os.environ.get("TASKBOARD_TOKEN", config.token)

        if env_attempts := os.environ.get("TASKBOARD_MAX_RECONNECT_ATTEMPTS"):
            config.max_reconnect_attempts = int(env_attempts)
        if env_interval := os.environ.get("TASKBOARD_RECONNECT_INTERVAL"):
            config.reconnect_interval = float(env_interval)

        return config

    def save(self, config_path: Path | None = None) -> None:
        """Save current config to file. The token is never written."""
        file_path = config_path or self.CONFIG_FILE
        file_path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "server_url": self.server_url,
            "max_reconnect_attempts": self.max_reconnect_attempts,
            "reconnect_interval": self.reconnect_interval,
            "ping_interval": self.ping_interval,
        }

        with open(file_path, "w") as f:
            yaml.safe_dump(data, f, default_flow_style=False)
