"""BroadcastEngine - computes delivery sets for domain events and pushes frames."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from typing import Any

from ..errors import DeliveryError
from .models import DomainEvent, EventKind, Frame, FrameType
from .registry import ConnectionRegistry
from .rooms import RoomIndex

logger = logging.getLogger(__name__)


def _task_id_of(task: dict[str, Any]) -> str:
    task_id = task.get("id", task.get("_id"))
    if task_id is None:
        raise ValueError("Task snapshot has no 'id'")
    return str(task_id)


class BroadcastEngine:
    """Fans frames out to connections.

    Every entry point is synchronous: frames are handed to each target's
    transport queue. A target whose transport rejects a frame is reported
    through *on_delivery_failure* and skipped; delivery to the rest goes on.
    """

    def __init__(
        self,
        registry: ConnectionRegistry,
        rooms: RoomIndex,
        on_delivery_failure: Callable[[str, DeliveryError], None] | None = None,
    ) -> None:
        self.registry = registry
        self.rooms = rooms
        self.on_delivery_failure = on_delivery_failure

    # --- Send mechanics ---

    def send_to_user(self, user_id: str, frame: Frame | str) -> bool:
        """Send one frame to *user_id*. Returns False if it was not delivered."""
        transport = self.registry.lookup(user_id)
        if transport is None:
            # Already disconnected: not an error.
            return False
        encoded = frame if isinstance(frame, str) else frame.encode()
        try:
            transport.send(encoded)
        except DeliveryError as e:
            logger.warning("Delivery to user %s failed: %s", user_id, e.message)
            if self.on_delivery_failure is not None:
                self.on_delivery_failure(user_id, e)
            return False
        return True

    def _deliver(self, targets: Iterable[str], frame: Frame) -> int:
        # dict.fromkeys de-duplicates while keeping first-seen order.
        recipients = list(dict.fromkeys(targets))
        encoded = frame.encode()
        delivered = 0
        for user_id in recipients:
            if self.send_to_user(user_id, encoded):
                delivered += 1
        return delivered

    def _everyone(self, exclude_user_id: str | None = None) -> list[str]:
        return [uid for uid in self.registry.user_ids() if uid != exclude_user_id]

    def _room(self, task_id: str, exclude_user_id: str | None = None) -> list[str]:
        return sorted(uid for uid in self.rooms.members_of(task_id) if uid != exclude_user_id)

    def broadcast(self, frame: Frame, exclude_user_id: str | None = None) -> int:
        return self._deliver(self._everyone(exclude_user_id), frame)

    def broadcast_to_room(
        self, task_id: str, frame: Frame, exclude_user_id: str | None = None
    ) -> int:
        return self._deliver(self._room(task_id, exclude_user_id), frame)

    # --- Domain events ---

    def task_created(self, task: dict[str, Any], exclude_user_id: str | None = None) -> int:
        return self.broadcast(Frame(FrameType.TASK_CREATED, {"task": task}), exclude_user_id)

    def task_updated(
        self,
        task: dict[str, Any],
        changes: dict[str, Any] | None = None,
        exclude_user_id: str | None = None,
    ) -> int:
        """Reach the task's room and every other connection, once each."""
        task_id = _task_id_of(task)
        frame = Frame(FrameType.TASK_UPDATED, {"task": task, "changes": changes or {}})
        targets = self._room(task_id, exclude_user_id) + self._everyone(exclude_user_id)
        return self._deliver(targets, frame)

    def task_deleted(self, task_id: str, exclude_user_id: str | None = None) -> int:
        task_id = str(task_id)
        frame = Frame(FrameType.TASK_DELETED, {"taskId": task_id})
        targets = self._room(task_id, exclude_user_id) + self._everyone(exclude_user_id)
        return self._deliver(targets, frame)

    def comment_added(
        self, task_id: str, comment: dict[str, Any], exclude_user_id: str | None = None
    ) -> int:
        """Comments only reach people currently viewing the task."""
        task_id = str(task_id)
        frame = Frame(FrameType.COMMENT_ADDED, {"taskId": task_id, "comment": comment})
        return self.broadcast_to_room(task_id, frame, exclude_user_id)

    def progress_updated(self, task_id: str, data: dict[str, Any]) -> int:
        task_id = str(task_id)
        return self.broadcast(
            Frame(FrameType.TASK_PROGRESS_UPDATED, {**data, "taskId": task_id})
        )

    def publish(self, event: DomainEvent) -> int:
        """Route a DomainEvent to the matching entry point."""
        payload = event.payload
        if event.kind is EventKind.TASK_CREATED:
            return self.task_created(payload["task"], event.exclude_user_id)
        if event.kind is EventKind.TASK_UPDATED:
            return self.task_updated(
                payload["task"], payload.get("changes"), event.exclude_user_id
            )
        if event.kind is EventKind.TASK_DELETED:
            return self.task_deleted(
                payload.get("task_id", event.task_id), event.exclude_user_id
            )
        if event.kind is EventKind.COMMENT_ADDED:
            return self.comment_added(
                payload.get("task_id", event.task_id), payload["comment"], event.exclude_user_id
            )
        if event.kind is EventKind.PROGRESS_UPDATED:
            data = {k: v for k, v in payload.items() if k != "task_id"}
            return self.progress_updated(payload.get("task_id", event.task_id), data)
        raise ValueError(f"Unknown event kind: {event.kind}")

    # --- Presence and room signals ---

    def presence_changed(self) -> int:
        users = self.registry.snapshot()
        return self.broadcast(
            Frame(FrameType.CONNECTED_USERS, {"users": users, "count": len(users)})
        )

    def user_typing(self, user_id: str, task_id: str, is_typing: bool) -> int:
        """Tell the other members of *task_id*'s room that *user_id* is typing."""
        connection = self.registry.get(user_id)
        if connection is None:
            return 0
        frame = Frame(
            FrameType.USER_TYPING,
            {"user": connection.profile.model_dump(), "taskId": task_id, "isTyping": is_typing},
        )
        return self.broadcast_to_room(task_id, frame, exclude_user_id=user_id)

    def notify_user(
        self,
        user_id: str,
        kind: str,
        message: str,
        task_id: str | None = None,
        sender: dict[str, Any] | None = None,
    ) -> bool:
        """Send a personal notification (e.g. task assignment) to one user.

        *sender* is the public profile of the acting user, if any.
        """
        frame = Frame(
            FrameType.NOTIFICATION,
            {
                "type": kind,
                "message": message,
                "taskId": task_id,
                "from": sender,
                "timestamp": datetime.now(UTC).isoformat(),
            },
        )
        return self.send_to_user(user_id, frame)

    def pong(self, user_id: str) -> bool:
        return self.send_to_user(
            user_id, Frame(FrameType.PONG, {"timestamp": int(time.time() * 1000)})
        )

    def error(self, user_id: str, message: str) -> bool:
        return self.send_to_user(user_id, Frame(FrameType.ERROR, {"message": message}))
