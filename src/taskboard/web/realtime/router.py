"""Real-time endpoints: the sync WebSocket and presence queries."""

from __future__ import annotations

from fastapi import APIRouter, Query, WebSocket

from ..deps import Config, CurrentUser, Resolver, Sync
from .session import ClientSession

router = APIRouter(tags=["realtime"])


@router.websocket("/ws")
async def sync_socket(
    websocket: WebSocket,
    sync: Sync,
    resolver: Resolver,
    config: Config,
    token: str = Query("", description="Bearer token (browsers can't set WebSocket headers)"),
):
    """Live task-board updates.

    Uses a token query param because the browser WebSocket API doesn't
    support custom headers.
    """
    session = ClientSession(
        websocket,
        sync,
        resolver,
        auth_timeout=config.auth_timeout,
        send_queue_size=config.send_queue_size,
        close_timeout=config.close_timeout,
    )
    await session.run(token)


@router.get("/api/realtime/users")
async def connected_users(user: CurrentUser, sync: Sync):
    """Users currently connected, with their status."""
    return sync.connected_users()


@router.get("/api/realtime/stats")
async def realtime_stats(user: CurrentUser, sync: Sync):
    return sync.stats()
