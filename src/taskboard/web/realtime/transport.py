"""Connection handles: the registry talks to clients only through a Transport."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Protocol

from fastapi import WebSocket

from ..errors import DeliveryError

logger = logging.getLogger(__name__)

# WebSocket close codes
CLOSE_NORMAL = 1000
CLOSE_GOING_AWAY = 1001
CLOSE_POLICY_VIOLATION = 1008
CLOSE_INTERNAL_ERROR = 1011


class Transport(Protocol):
    """Per-connection outbound channel.

    ``send`` must not block: it either accepts the frame for delivery, in
    order, or raises DeliveryError. ``close`` is idempotent.
    """

    @property
    def closed(self) -> bool: ...

    def send(self, frame: str) -> None: ...

    def close(self, code: int = CLOSE_NORMAL, reason: str = "") -> None: ...


class _CloseRequest:
    def __init__(self, code: int, reason: str):
        self.code = code
        self.reason = reason


class WebSocketTransport:
    """Queue-backed transport over a Starlette WebSocket.

    Frames are queued by ``send`` and written by ``run``, one writer per
    connection, which keeps the per-connection order of ``send`` calls.
    """

    def __init__(self, websocket: WebSocket, max_queue: int = 256):
        self.websocket = websocket
        self.max_queue = max_queue
        self._queue: asyncio.Queue[str | _CloseRequest] = asyncio.Queue()
        self._closed = False
        self.close_code: int | None = None

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def send(self, frame: str) -> None:
        if self._closed:
            raise DeliveryError("Connection is closed")
        if self._queue.qsize() >= self.max_queue:
            raise DeliveryError(f"Send queue full ({self.max_queue} frames)")
        self._queue.put_nowait(frame)

    def close(self, code: int = CLOSE_NORMAL, reason: str = "") -> None:
        if self._closed:
            return
        self._closed = True
        self.close_code = code
        # Queued after pending frames so they are flushed first.
        self._queue.put_nowait(_CloseRequest(code, reason))

    async def run(self, on_error: Callable[[Exception], None] | None = None) -> None:
        """Write queued frames until a close request is processed or a write fails."""
        while True:
            item = await self._queue.get()
            try:
                if isinstance(item, _CloseRequest):
                    await self.websocket.close(code=item.code, reason=item.reason)
                    return
                await self.websocket.send_text(item)
            except Exception as e:
                # Closing an already-closed socket is expected during teardown.
                was_closed = self._closed
                self._closed = True
                if not was_closed:
                    logger.debug("WebSocket write failed: %s", e)
                    if on_error is not None:
                        on_error(e)
                return
