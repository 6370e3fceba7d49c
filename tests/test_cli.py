"""Tests for the taskboard command line."""

from __future__ import annotations

import asyncio

from typer.testing import CliRunner

from taskboard.cli.app import app
from taskboard.web.auth import service as auth_service
from taskboard.web.db.database import connect
from taskboard.web.db.seed import seed_db

runner = CliRunner()


async def _seeded(db_path: str) -> None:
    db = await connect(db_path)
    await seed_db(db)
    await db.close()


class TestTokenCommand:
    def test_mints_verifiable_token(self, tmp_path, monkeypatch):
        db_path = str(tmp_path / "cli.db")
        asyncio.run(_seeded(db_path))
        monkeypatch.setenv("TASKBOARD_DB_PATH", db_path)
        monkeypatch.setenv("TASKBOARD_JWT_SECRET", "cli-secret")
        monkeypatch.delenv("TASKBOARD_ENV", raising=False)

        result = runner.invoke(app, ["token", "alice"])

        assert result.exit_code == 0
        payload = auth_service.decode_token(result.stdout.strip())
        assert payload["username"] == "alice"

    def test_unknown_user(self, tmp_path, monkeypatch):
        db_path = str(tmp_path / "cli.db")
        asyncio.run(_seeded(db_path))
        monkeypatch.setenv("TASKBOARD_DB_PATH", db_path)
        monkeypatch.setenv("TASKBOARD_JWT_SECRET", "cli-secret")
        monkeypatch.delenv("TASKBOARD_ENV", raising=False)

        result = runner.invoke(app, ["token", "nobody"])

        assert result.exit_code == 1


class TestWatchCommand:
    def test_requires_token(self, monkeypatch, tmp_path):
        monkeypatch.delenv("TASKBOARD_TOKEN", raising=False)
        monkeypatch.setenv("HOME", str(tmp_path))

        result = runner.invoke(app, ["watch"])

        assert result.exit_code == 1
