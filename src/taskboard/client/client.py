"""WebSocket client for the task-board sync endpoint.

Connects with ``?token=``, dispatches ``{type, data}`` frames to handlers
registered per frame type and reconnects after transient failures.
"""

from __future__ import annotations

import asyncio
import contextlib
import inspect
import json
import logging
from collections import defaultdict
from collections.abc import Callable
from enum import StrEnum
from typing import Any
from urllib.parse import urlencode

import websockets
from websockets.exceptions import ConnectionClosed, InvalidHandshake

from .config import ClientConfig

logger = logging.getLogger(__name__)

# Close codes after which the client must not reconnect on its own:
# a clean close (including a session superseded by a newer login) and an
# authentication failure, which needs a fresh token first.
TERMINAL_CLOSE_CODES = frozenset({1000, 1008})
CLOSE_ABNORMAL = 1006

Handler = Callable[[dict[str, Any]], Any]


class ClientState(StrEnum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    CLOSED = "closed"


def should_reconnect(close_code: int | None) -> bool:
    return close_code not in TERMINAL_CLOSE_CODES


def _close_code(exc: ConnectionClosed) -> int:
    if exc.rcvd is not None:
        return exc.rcvd.code
    return CLOSE_ABNORMAL


class SyncClient:
    """Sync endpoint client with bounded, fixed-interval reconnection.

    Room memberships do not survive a reconnect; re-join from a
    ``connected`` handler if needed.
    """

    def __init__(
        self,
        config: ClientConfig,
        token: str = "",
        connect: Callable[..., Any] | None = None,
    ):
        self.config = config
        self.token = token or config.token
        self.state = ClientState.DISCONNECTED
        self.reconnect_attempts = 0
        self.last_close_code: int | None = None
        self._handlers: dict[str, list[Handler]] = defaultdict(list)
        self._connect = connect or websockets.connect
        self._ws: Any = None
        self._stopping = False

    # --- Handlers ---

    def on(self, frame_type: str, handler: Handler) -> None:
        self._handlers[frame_type].append(handler)

    def off(self, frame_type: str, handler: Handler) -> None:
        handlers = self._handlers.get(frame_type)
        if handlers and handler in handlers:
            handlers.remove(handler)
            if not handlers:
                del self._handlers[frame_type]

    async def _dispatch(self, raw: str | bytes) -> None:
        try:
            frame = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Ignoring malformed frame from server")
            return

        frame_type = frame.get("type", "")
        data = frame.get("data", {})
        handlers = list(self._handlers.get(frame_type, ()))
        if not handlers:
            logger.debug("No handlers for frame type %s", frame_type)
            return
        for handler in handlers:
            try:
                result = handler(data)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("Handler for %s failed", frame_type)

    # --- Connection ---

    @property
    def url(self) -> str:
        return f"{self.config.ws_url}?{urlencode({'token': self.token})}"

    async def run(self) -> int | None:
        """Connect and dispatch frames until a terminal close or retries run out.

        Returns the last close code seen.
        """
        self._stopping = False
        while True:
            self.state = ClientState.CONNECTING
            code = await self._run_once()
            self.last_close_code = code
            self.state = ClientState.DISCONNECTED

            if self._stopping or not should_reconnect(code):
                logger.info("Connection closed (%s), not reconnecting", code)
                break
            if self.reconnect_attempts >= self.config.max_reconnect_attempts:
                logger.error(
                    "Max reconnection attempts reached (%d)", self.config.max_reconnect_attempts
                )
                break

            self.reconnect_attempts += 1
            logger.info(
                "Attempting to reconnect... (%d/%d)",
                self.reconnect_attempts,
                self.config.max_reconnect_attempts,
            )
            await asyncio.sleep(self.config.reconnect_interval)

        self.state = ClientState.CLOSED
        return self.last_close_code

    async def _run_once(self) -> int:
        keepalive: asyncio.Task | None = None
        try:
            async with self._connect(self.url) as ws:
                self._ws = ws
                self.state = ClientState.CONNECTED
                self.reconnect_attempts = 0
                if self.config.ping_interval > 0:
                    keepalive = asyncio.create_task(self._keepalive())
                async for raw in ws:
                    await self._dispatch(raw)
                return ws.close_code if ws.close_code is not None else CLOSE_ABNORMAL
        except ConnectionClosed as e:
            return _close_code(e)
        except (OSError, InvalidHandshake, TimeoutError) as e:
            logger.warning("Could not connect to %s: %s", self.config.ws_url, e)
            return CLOSE_ABNORMAL
        finally:
            self._ws = None
            if keepalive is not None:
                keepalive.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await keepalive

    async def _keepalive(self) -> None:
        while True:
            await asyncio.sleep(self.config.ping_interval)
            await self.ping()

    async def close(self) -> None:
        """Close the connection and stop reconnecting."""
        self._stopping = True
        if self._ws is not None:
            await self._ws.close()

    # --- Commands ---

    async def send(self, command: str, **fields: Any) -> bool:
        if self._ws is None or self.state != ClientState.CONNECTED:
            logger.warning("Not connected; dropping %s", command)
            return False
        try:
            await self._ws.send(json.dumps({"type": command, **fields}))
        except ConnectionClosed:
            return False
        return True

    async def join_task_room(self, task_id: str) -> bool:
        return await self.send("joinTaskRoom", taskId=task_id)

    async def leave_task_room(self, task_id: str) -> bool:
        return await self.send("leaveTaskRoom", taskId=task_id)

    async def send_typing(self, task_id: str, is_typing: bool) -> bool:
        return await self.send("typing", taskId=task_id, isTyping=is_typing)

    async def update_status(self, status: str) -> bool:
        return await self.send("updateStatus", status=status)

    async def ping(self) -> bool:
        return await self.send("ping")
