"""Tests for the queue-backed WebSocket transport."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, call

import pytest

from taskboard.web.errors import DeliveryError
from taskboard.web.realtime.broadcast import BroadcastEngine
from taskboard.web.realtime.models import Frame, FrameType
from taskboard.web.realtime.registry import ConnectionRegistry
from taskboard.web.realtime.rooms import RoomIndex
from taskboard.web.realtime.transport import WebSocketTransport


@pytest.fixture
def websocket():
    ws = MagicMock()
    ws.send_text = AsyncMock()
    ws.close = AsyncMock()
    return ws


class TestWebSocketTransport:
    async def test_frames_written_in_order_then_closed(self, websocket):
        transport = WebSocketTransport(websocket)
        transport.send("one")
        transport.send("two")
        transport.close(1001, "Server shutting down")

        await transport.run()

        assert websocket.send_text.await_args_list == [call("one"), call("two")]
        websocket.close.assert_awaited_once_with(code=1001, reason="Server shutting down")
        assert transport.close_code == 1001

    async def test_send_after_close_fails(self, websocket):
        transport = WebSocketTransport(websocket)
        transport.close()

        with pytest.raises(DeliveryError):
            transport.send("late")

    async def test_close_is_idempotent(self, websocket):
        transport = WebSocketTransport(websocket)
        transport.close(1000)
        transport.close(1011)

        await transport.run()

        websocket.close.assert_awaited_once_with(code=1000, reason="")

    async def test_queue_cap(self, websocket):
        transport = WebSocketTransport(websocket, max_queue=2)
        transport.send("a")
        transport.send("b")

        with pytest.raises(DeliveryError, match="queue full"):
            transport.send("c")
        assert transport.pending == 2

    async def test_write_failure_reports_once(self, websocket):
        websocket.send_text.side_effect = RuntimeError("socket gone")
        on_error = MagicMock()
        transport = WebSocketTransport(websocket)
        transport.send("a")
        transport.send("b")

        await transport.run(on_error=on_error)

        on_error.assert_called_once()
        assert transport.closed
        assert websocket.send_text.await_count == 1


class TestDeliveryFailureCallback:
    def test_callback_gets_user_and_error(self, new_transport, profile_of):
        registry = ConnectionRegistry()
        on_failure = MagicMock()
        engine = BroadcastEngine(registry, RoomIndex(registry), on_delivery_failure=on_failure)
        registry.register("alice", profile_of("alice"), new_transport(fail=True))
        registry.register("bob", profile_of("bob"), new_transport())

        delivered = engine.broadcast(Frame(FrameType.NOTIFICATION, {"message": "hi"}))

        assert delivered == 1
        on_failure.assert_called_once()
        user_id, error = on_failure.call_args.args
        assert user_id == "alice"
        assert isinstance(error, DeliveryError)
