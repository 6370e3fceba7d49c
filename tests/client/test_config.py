"""Tests for client configuration loading."""

from __future__ import annotations

import yaml

from taskboard.client import ClientConfig


class TestWsUrl:
    def test_http_becomes_ws(self):
        assert ClientConfig(server_url="http://host:8000/").ws_url == "ws://host:8000/ws"

    def test_https_becomes_wss(self):
        assert ClientConfig(server_url="https://host").ws_url == "wss://host/ws"

    def test_ws_left_alone(self):
        assert ClientConfig(server_url="ws://host").ws_url == "ws://host/ws"


class TestLoad:
    def test_defaults_without_file(self, tmp_path, monkeypatch):
        for var in ("TASKBOARD_SERVER_URL", "TASKBOARD_TOKEN", "TASKBOARD_MAX_RECONNECT_ATTEMPTS"):
            monkeypatch.delenv(var, raising=False)
        monkeypatch.delenv("TASKBOARD_RECONNECT_INTERVAL", raising=False)

        config = ClientConfig.load(tmp_path / "missing.yaml")

        assert config.server_url == "ws://localhost:8000"
        assert config.max_reconnect_attempts == 5
        assert config.reconnect_interval == 3.0

    def test_file_then_env(self, tmp_path, monkeypatch):
        path = tmp_path / "client.yaml"
        path.write_text(
            yaml.safe_dump({"server_url": "http://file", "max_reconnect_attempts": 2})
        )
        monkeypatch.setenv("TASKBOARD_SERVER_URL", "http://env")
        monkeypatch.setenv("TASKBOARD_TOKEN", "secret-token")
        monkeypatch.setenv("TASKBOARD_RECONNECT_INTERVAL", "0.5")
        monkeypatch.delenv("TASKBOARD_MAX_RECONNECT_ATTEMPTS", raising=False)

        config = ClientConfig.load(path)

        assert config.server_url == "http://env"
        assert config.token == "secret-token"
        assert config.max_reconnect_attempts == 2
        assert config.reconnect_interval == 0.5

    def test_broken_file_falls_back_to_defaults(self, tmp_path, monkeypatch):
        monkeypatch.delenv("TASKBOARD_SERVER_URL", raising=False)
        path = tmp_path / "client.yaml"
        path.write_text("server_url: [unclosed")

        assert ClientConfig.load(path).server_url == "ws://localhost:8000"

    def test_save_never_writes_token(self, tmp_path):
        path = tmp_path / "nested" / "client.yaml"
        ClientConfig(server_url="http://saved", token="secret").save(path)

        data = yaml.safe_load(path.read_text())
        assert data["server_url"] == "http://saved"
        assert "token" not in data
