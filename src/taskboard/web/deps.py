"""FastAPI dependency injection."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, Request
from fastapi.requests import HTTPConnection

from .auth.identity import Identity, IdentityResolver
from .config import WebConfig
from .errors import AuthError
from .realtime.service import SyncService


def _get_sync(conn: HTTPConnection) -> SyncService:
    return conn.app.state.sync


def _get_resolver(conn: HTTPConnection) -> IdentityResolver:
    return conn.app.state.identity_resolver


def _get_config(conn: HTTPConnection) -> WebConfig:
    return conn.app.state.config


Sync = Annotated[SyncService, Depends(_get_sync)]
Resolver = Annotated[IdentityResolver, Depends(_get_resolver)]
Config = Annotated[WebConfig, Depends(_get_config)]


async def _get_current_user(request: Request, resolver: Resolver) -> Identity:
    """Extract and validate the bearer token from the Authorization header."""
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Missing or invalid Authorization header")

    token = auth_header.removeprefix("Bearer ").strip()
    try:
        identity = await resolver(token)
    except AuthError as e:
        raise HTTPException(status_code=401, detail=e.message) from None

    if not identity.is_active:
        raise HTTPException(status_code=401, detail="Account is deactivated")
    return identity


CurrentUser = Annotated[Identity, Depends(_get_current_user)]
