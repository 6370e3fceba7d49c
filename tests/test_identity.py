"""Tests for token handling and identity resolution."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import jwt
import pytest
import pytest_asyncio

from taskboard.web.auth import service as auth_service
from taskboard.web.auth.identity import database_resolver, verify_identity
from taskboard.web.auth.service import TokenRevokedError
from taskboard.web.config import WebConfig
from taskboard.web.db.database import connect, get_user_by_username
from taskboard.web.db.seed import seed_db
from taskboard.web.errors import AuthError

SECRET = "test-secret"


@pytest.fixture(autouse=True)
def auth_config():
    config = WebConfig(jwt_secret=SECRET)
    auth_service.configure(config)
    yield config
    auth_service._revoked.clear()


@pytest_asyncio.fixture
async def db(tmp_path):
    """Seeded database with the demo users."""
    conn = await connect(str(tmp_path / "test.db"))
    await seed_db(conn)
    yield conn
    await conn.close()


async def _token_for(db, username: str) -> str:
    row = await get_user_by_username(db, username)
    return auth_service.create_token(row["id"], row["username"])


class TestTokens:
    def test_roundtrip_claims(self, auth_config):
        token = auth_service.create_token("u1", "alice")
        payload = auth_service.decode_token(token)
        assert payload["sub"] == "u1"
        assert payload["username"] == "alice"
        assert payload["iss"] == auth_config.jwt_issuer
        assert payload["aud"] == auth_config.jwt_audience

    def test_wrong_type_rejected(self):
        token = auth_service.create_token("u1", "alice", token_type="refresh")
        with pytest.raises(jwt.InvalidTokenError, match="Invalid token type"):
            auth_service.decode_token(token)

    def test_wrong_audience_rejected(self, auth_config):
        token = jwt.encode(
            {
                "sub": "u1",
                "type": "access",
                "iss": auth_config.jwt_issuer,
                "aud": "someone-else",
                "exp": datetime.now(UTC) + timedelta(hours=1),
            },
            SECRET,
            algorithm="HS256",
        )
        with pytest.raises(jwt.InvalidAudienceError):
            auth_service.decode_token(token)

    def test_revocation(self):
        token = auth_service.create_token("u1", "alice")
        auth_service.revoke_token(token)
        assert auth_service.is_revoked(token)
        with pytest.raises(TokenRevokedError):
            auth_service.decode_token(token)


class TestVerifyIdentity:
    async def test_valid_token(self, db):
        token = await _token_for(db, "alice")

        identity = await verify_identity(token, db)

        assert identity.is_active
        assert identity.profile.username == "alice"
        assert identity.profile.name == "Alice Johnson"
        assert identity.profile.role == "admin"

    async def test_username_lookup_is_case_insensitive(self, db):
        assert (await get_user_by_username(db, " Alice "))["username"] == "alice"

    async def test_empty_token(self, db):
        with pytest.raises(AuthError, match="Authentication token required"):
            await verify_identity("", db)

    async def test_garbage_token(self, db):
        with pytest.raises(AuthError) as exc_info:
            await verify_identity("not-a-jwt", db)
        assert exc_info.value.reason == "invalid"

    async def test_expired_token(self, db, auth_config):
        row = await get_user_by_username(db, "alice")
        token = jwt.encode(
            {
                "sub": row["id"],
                "type": "access",
                "iss": auth_config.jwt_issuer,
                "aud": auth_config.jwt_audience,
                "exp": datetime.now(UTC) - timedelta(minutes=5),
            },
            SECRET,
            algorithm="HS256",
        )
        with pytest.raises(AuthError) as exc_info:
            await verify_identity(token, db)
        assert exc_info.value.reason == "expired"
        assert exc_info.value.message == "Token expired"

    async def test_revoked_token(self, db):
        token = await _token_for(db, "bob")
        auth_service.revoke_token(token)

        with pytest.raises(AuthError) as exc_info:
            await verify_identity(token, db)
        assert exc_info.value.reason == "revoked"

    async def test_unknown_user(self, db):
        token = auth_service.create_token("deleted-user", "ghost")
        with pytest.raises(AuthError) as exc_info:
            await verify_identity(token, db)
        assert exc_info.value.reason == "unknown_user"

    async def test_inactive_user_resolves_as_inactive(self, db):
        token = await _token_for(db, "dana")

        identity = await verify_identity(token, db)

        assert identity.is_active is False

    async def test_database_resolver(self, db):
        token = await _token_for(db, "charlie")
        resolve = database_resolver(db)
        assert (await resolve(token)).profile.username == "charlie"


class TestSeed:
    async def test_seed_is_idempotent(self, db):
        await seed_db(db)
        cursor = await db.execute("SELECT COUNT(*) FROM users")
        assert (await cursor.fetchone())[0] == 4
