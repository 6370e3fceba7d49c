"""SyncService - owns the registry and room index and ties the components together."""

from __future__ import annotations

import logging
from typing import Any

from ..auth.models import UserProfile
from ..errors import DeliveryError
from .broadcast import BroadcastEngine
from .dispatcher import MessageRouter
from .models import Connection, Frame, FrameType
from .registry import ConnectionRegistry
from .rooms import RoomIndex
from .transport import CLOSE_GOING_AWAY, CLOSE_INTERNAL_ERROR, CLOSE_NORMAL, Transport

logger = logging.getLogger(__name__)


class SyncService:
    """Real-time sync state for one process.

    Construct one per app (the lifespan stores it on ``app.state.sync``);
    tests build isolated instances. All methods are synchronous and must be
    called from the event loop that owns the connections.
    """

    def __init__(self) -> None:
        self.registry = ConnectionRegistry()
        self.rooms = RoomIndex(self.registry)
        self.broadcaster = BroadcastEngine(
            self.registry, self.rooms, on_delivery_failure=self._on_delivery_failure
        )
        self.dispatcher = MessageRouter(self)

    # --- Connection lifecycle ---

    def connect(self, profile: UserProfile, transport: Transport) -> Connection | None:
        """Register an authenticated connection, superseding any older one for the user.

        Returns None if the connection was dropped because the welcome frame
        could not be delivered.
        """
        user_id = profile.id
        previous = self.registry.register(user_id, profile, transport)
        if previous is not None:
            # No session resumption: the new session starts with no rooms.
            self.rooms.prune_user(user_id)
            previous.transport.close(CLOSE_NORMAL, "Superseded by a newer session")
            logger.info("User %s reconnected; previous session closed", profile.name)

        connection = self.registry.get(user_id)
        logger.info(
            "User connected: %s (%s), %d online", profile.name, profile.email, len(self.registry)
        )
        self.broadcaster.send_to_user(
            user_id,
            Frame(
                FrameType.CONNECTED,
                {"message": "Connected to WebSocket server", "user": profile.model_dump()},
            ),
        )
        if not self.registry.owns(user_id, transport):
            # Delivery failure already disconnected it and broadcast presence.
            return None
        self.broadcaster.presence_changed()
        return connection

    def disconnect(
        self,
        user_id: str,
        transport: Transport | None = None,
        code: int = CLOSE_NORMAL,
        reason: str = "",
    ) -> bool:
        """Unregister *user_id*, prune its rooms and broadcast presence.

        Idempotent: returns False, and broadcasts nothing, if the user (or the
        given transport) is no longer registered.
        """
        connection = self.registry.unregister(user_id, transport)
        if connection is None:
            return False
        left = self.rooms.prune_user(user_id)
        connection.transport.close(code, reason)
        logger.info(
            "User disconnected: %s (left %d rooms), %d online",
            connection.profile.name,
            left,
            len(self.registry),
        )
        self.broadcaster.presence_changed()
        return True

    def _on_delivery_failure(self, user_id: str, error: DeliveryError) -> None:
        self.disconnect(user_id, code=CLOSE_INTERNAL_ERROR, reason="Delivery failed")

    # --- Commands ---

    def handle(self, user_id: str, raw: str | bytes) -> None:
        self.dispatcher.handle(user_id, raw)

    def join_room(self, user_id: str, task_id: str) -> bool:
        if not self.rooms.join(user_id, task_id):
            return False
        self.broadcaster.send_to_user(
            user_id,
            Frame(
                FrameType.JOINED_TASK_ROOM,
                {"taskId": task_id, "message": f"Joined task room {task_id}"},
            ),
        )
        return True

    def leave_room(self, user_id: str, task_id: str, notify: bool = True) -> bool:
        was_member = self.rooms.leave(user_id, task_id)
        if notify:
            self.broadcaster.send_to_user(
                user_id,
                Frame(
                    FrameType.LEFT_TASK_ROOM,
                    {"taskId": task_id, "message": f"Left task room {task_id}"},
                ),
            )
        return was_member

    def update_status(self, user_id: str, status: str) -> bool:
        if not self.registry.set_status(user_id, status):
            return False
        self.broadcaster.presence_changed()
        return True

    # --- Queries ---

    def is_online(self, user_id: str) -> bool:
        return self.registry.is_online(user_id)

    def connected_users(self) -> dict[str, Any]:
        users = self.registry.snapshot()
        return {"users": users, "count": len(users)}

    def stats(self) -> dict[str, int]:
        return {
            "connectedUsers": len(self.registry),
            "activeTaskRooms": len(self.rooms),
            "totalConnections": len(self.registry.connections()),
        }

    # --- Shutdown ---

    def shutdown(self) -> None:
        """Close every connection and forget all sync state."""
        connections = self.registry.connections()
        for connection in connections:
            connection.transport.close(CLOSE_GOING_AWAY, "Server shutting down")
        self.registry.clear()
        self.rooms.clear()
        logger.info("Sync service shut down (%d connections closed)", len(connections))
