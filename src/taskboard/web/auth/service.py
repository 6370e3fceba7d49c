"""Auth service: JWT operations and token revocation."""

from __future__ import annotations

import secrets
from datetime import UTC, datetime, timedelta

import jwt

from ..config import WebConfig


class TokenRevokedError(jwt.InvalidTokenError):
    """The token was valid but has been revoked."""


_config: WebConfig | None = None

# Revoked access tokens. Process-local, like the rest of the sync state.
_revoked: set[str] = set()


def _get_config() -> WebConfig:
    global _config
    if _config is None:
        _config = WebConfig.load()
    return _config


def configure(config: WebConfig) -> None:
    """Use *config* for signing and verification (called from the app lifespan)."""
    global _config
    _config = config


def create_token(user_id: str, username: str, token_type: str = "access") -> str:
    """Create a JWT token for a user."""
    config = _get_config()
    now = datetime.now(UTC)
    payload = {
        "sub": user_id,
        "username": username,
        "type": token_type,
        "iss": config.jwt_issuer,
        "aud": config.jwt_audience,
        "exp": now + timedelta(hours=config.jwt_expire_hours),
        "iat": now,
        "jti": secrets.token_hex(8),
    }
    return jwt.encode(payload, config.jwt_secret, algorithm=config.jwt_algorithm)


def decode_token(token: str, token_type: str = "access") -> dict:
    """Decode and validate a JWT token. Raises jwt.InvalidTokenError on failure."""
    config = _get_config()
    if token in _revoked:
        raise TokenRevokedError("Token has been revoked")

    payload = jwt.decode(
        token,
        config.jwt_secret,
        algorithms=[config.jwt_algorithm],
        issuer=config.jwt_issuer,
        audience=config.jwt_audience,
        options={"require": ["sub", "exp"]},
    )
    if payload.get("type") != token_type:
        raise jwt.InvalidTokenError(
            f"Invalid token type. Expected {token_type}, got {payload.get('type')}"
        )
    return payload


def revoke_token(token: str) -> None:
    """Reject *token* on every later verification (logout)."""
    _revoked.add(token)


def is_revoked(token: str) -> bool:
    return token in _revoked
