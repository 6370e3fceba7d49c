"""ClientSession - handshake and lifecycle of one WebSocket connection.

States: PENDING (socket accepted, no identity, inbound frames dropped) ->
AUTHENTICATED (registered, frames dispatched) -> CLOSED. Cleanup runs
exactly once, from one place, whatever ends the session.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from enum import StrEnum

from fastapi import WebSocket, WebSocketDisconnect

from ..auth.identity import Identity, IdentityResolver
from ..errors import AuthError
from .service import SyncService
from .transport import CLOSE_INTERNAL_ERROR, CLOSE_POLICY_VIOLATION, WebSocketTransport

logger = logging.getLogger(__name__)


async def _cancel(task: asyncio.Future) -> None:
    if task.done():
        return
    task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await task


class SessionState(StrEnum):
    PENDING = "pending"
    AUTHENTICATED = "authenticated"
    CLOSED = "closed"


class ClientSession:
    """Drives one client connection from handshake to cleanup."""

    def __init__(
        self,
        websocket: WebSocket,
        service: SyncService,
        resolver: IdentityResolver,
        *,
        auth_timeout: float = 10.0,
        send_queue_size: int = 256,
        close_timeout: float = 5.0,
    ):
        self.websocket = websocket
        self.service = service
        self.resolver = resolver
        self.auth_timeout = auth_timeout
        self.send_queue_size = send_queue_size
        self.close_timeout = close_timeout
        self.state = SessionState.PENDING
        self.identity: Identity | None = None
        self.transport: WebSocketTransport | None = None

    async def run(self, token: str) -> None:
        # Accept first so the client sees our close code instead of an HTTP 403.
        await self.websocket.accept()

        identity = await self._authenticate(token)
        if identity is None:
            self.state = SessionState.CLOSED
            return

        self.identity = identity
        self.transport = WebSocketTransport(self.websocket, max_queue=self.send_queue_size)
        writer = asyncio.create_task(self.transport.run(on_error=self._on_write_error))
        try:
            self.service.connect(identity.profile, self.transport)
            self.state = SessionState.AUTHENTICATED
            await self._receive_loop()
        finally:
            self._cleanup()
            done, _ = await asyncio.wait({writer}, timeout=self.close_timeout)
            if not done:
                writer.cancel()

    async def _authenticate(self, token: str) -> Identity | None:
        """Verify the handshake credential; close with 1008 on any failure."""
        if not token:
            await self._reject("Authentication token required")
            return None

        resolve = asyncio.ensure_future(self.resolver(token))
        drain = asyncio.create_task(self._drain_unauthenticated())
        try:
            done, _ = await asyncio.wait(
                {resolve, drain}, timeout=self.auth_timeout, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            await _cancel(drain)

        if drain in done:
            # Client went away mid-handshake; nothing left to close.
            await _cancel(resolve)
            return None
        if resolve not in done:
            await _cancel(resolve)
            logger.warning("WebSocket authentication timed out after %.1fs", self.auth_timeout)
            await self._reject("Authentication timed out")
            return None

        try:
            identity = resolve.result()
        except AuthError as e:
            logger.warning("WebSocket authentication failed: %s", e.message)
            await self._reject(e.message)
            return None

        if not identity.is_active:
            logger.warning("WebSocket rejected for inactive user %s", identity.user_id)
            await self._reject("Invalid or inactive user")
            return None
        return identity

    async def _drain_unauthenticated(self) -> None:
        """Read and drop frames until the handshake ends. Returns if the client disconnects."""
        while True:
            try:
                message = await self.websocket.receive()
            except (WebSocketDisconnect, RuntimeError):
                return
            if message["type"] == "websocket.disconnect":
                return
            logger.warning("Dropping frame received before authentication")

    async def _reject(self, reason: str) -> None:
        try:
            await self.websocket.close(code=CLOSE_POLICY_VIOLATION, reason=reason)
        except (RuntimeError, WebSocketDisconnect):
            # Client went away before we could close.
            pass

    async def _receive_loop(self) -> None:
        user_id = self.identity.user_id
        while self.service.registry.owns(user_id, self.transport):
            try:
                message = await self.websocket.receive()
            except (WebSocketDisconnect, RuntimeError):
                return
            if message["type"] == "websocket.disconnect":
                return

            raw = message.get("text")
            if raw is None:
                raw = message.get("bytes") or b""
            # Re-check: the session may have been superseded while we waited.
            if not self.service.registry.owns(user_id, self.transport):
                return
            self.service.handle(user_id, raw)

    def _on_write_error(self, error: Exception) -> None:
        if self.identity is None:
            return
        logger.warning("WebSocket error for user %s: %s", self.identity.user_id, error)
        self.service.disconnect(
            self.identity.user_id, self.transport, code=CLOSE_INTERNAL_ERROR, reason="Write failed"
        )

    def _cleanup(self) -> None:
        if self.state is SessionState.CLOSED:
            return
        self.state = SessionState.CLOSED
        if self.identity is not None and self.transport is not None:
            # No-op if a write error or a newer session already removed us.
            self.service.disconnect(self.identity.user_id, self.transport)
