"""Identity resolver: maps a bearer credential to an active user identity."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

import aiosqlite
import jwt

from ..db.database import get_db, get_user
from ..errors import AuthError
from .models import UserProfile
from .service import TokenRevokedError, decode_token

logger = logging.getLogger(__name__)


@dataclass
class Identity:
    """Verified owner of a credential."""

    user_id: str
    is_active: bool
    profile: UserProfile


IdentityResolver = Callable[[str], Awaitable[Identity]]


async def verify_identity(token: str, db: aiosqlite.Connection | None = None) -> Identity:
    """Verify *token* and load the user it belongs to.

    Raises:
        AuthError: The token is missing, malformed, expired, revoked, of the
            wrong type, or names a user that no longer exists.
    """
    if not token:
        raise AuthError("Authentication token required")

    try:
        payload = decode_token(token)
    except jwt.ExpiredSignatureError:
        raise AuthError("Token expired", reason="expired") from None
    except TokenRevokedError as e:
        raise AuthError(str(e), reason="revoked") from None
    except jwt.InvalidTokenError as e:
        raise AuthError(str(e) or "Invalid token") from None

    if db is None:
        db = await get_db()
    row = await get_user(db, payload["sub"])
    if row is None:
        raise AuthError("Invalid token - user not found", reason="unknown_user")

    profile = UserProfile.from_row(row)
    return Identity(user_id=profile.id, is_active=profile.is_active, profile=profile)


def database_resolver(db: aiosqlite.Connection) -> IdentityResolver:
    """Bind :func:`verify_identity` to a specific connection."""

    async def resolve(token: str) -> Identity:
        return await verify_identity(token, db)

    return resolve
