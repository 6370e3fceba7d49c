"""Sync-layer models: outbound frames, inbound commands, connections and domain events."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import TYPE_CHECKING, Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from ..auth.models import UserProfile

if TYPE_CHECKING:
    from .transport import Transport


class FrameType(StrEnum):
    # Session
    CONNECTED = "connected"
    CONNECTED_USERS = "connectedUsers"
    PONG = "pong"
    ERROR = "error"
    # Rooms
    JOINED_TASK_ROOM = "joinedTaskRoom"
    LEFT_TASK_ROOM = "leftTaskRoom"
    USER_TYPING = "userTyping"
    # Task events
    TASK_CREATED = "taskCreated"
    TASK_UPDATED = "taskUpdated"
    TASK_DELETED = "taskDeleted"
    COMMENT_ADDED = "commentAdded"
    TASK_PROGRESS_UPDATED = "taskProgressUpdated"
    # Misc
    NOTIFICATION = "notification"


@dataclass
class Frame:
    """Outbound message: serialized as ``{"type": ..., "data": {...}}``."""

    type: FrameType
    data: dict[str, Any] = field(default_factory=dict)

    def encode(self) -> str:
        # Task snapshots from the CRUD layer may carry datetimes or ids that
        # are not JSON-native; they go out as their string form.
        return json.dumps({"type": self.type.value, "data": self.data}, default=str)


# --- Inbound commands ---


class _Command(BaseModel):
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)


class JoinTaskRoom(_Command):
    type: Literal["joinTaskRoom"]
    task_id: str = Field(alias="taskId", min_length=1)


class LeaveTaskRoom(_Command):
    type: Literal["leaveTaskRoom"]
    task_id: str = Field(alias="taskId", min_length=1)


class Typing(_Command):
    type: Literal["typing"]
    task_id: str = Field(alias="taskId", min_length=1)
    is_typing: bool = Field(alias="isTyping")


class Ping(_Command):
    type: Literal["ping"]


class UpdateStatus(_Command):
    type: Literal["updateStatus"]
    status: str = Field(min_length=1, max_length=100)


InboundCommand = Annotated[
    Union[JoinTaskRoom, LeaveTaskRoom, Typing, Ping, UpdateStatus],
    Field(discriminator="type"),
]

COMMAND_TYPES = frozenset({"joinTaskRoom", "leaveTaskRoom", "typing", "ping", "updateStatus"})


# --- Connections ---


@dataclass
class Connection:
    """One authenticated, live client session."""

    user_id: str
    profile: UserProfile
    transport: Transport
    connected_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    status: str = "online"

    def presence(self) -> dict[str, Any]:
        """Presence entry as shown to other clients."""
        return {
            **self.profile.model_dump(),
            "status": self.status,
            "connectedAt": self.connected_at.isoformat(),
        }


# --- Domain events ---


class EventKind(StrEnum):
    TASK_CREATED = "task_created"
    TASK_UPDATED = "task_updated"
    TASK_DELETED = "task_deleted"
    COMMENT_ADDED = "comment_added"
    PROGRESS_UPDATED = "progress_updated"


@dataclass
class DomainEvent:
    """Task mutation reported by the CRUD layer after a committed write.

    ``payload`` keys by kind:
      - task_created: ``task``
      - task_updated: ``task``, ``changes``
      - task_deleted: ``task_id``
      - comment_added: ``task_id``, ``comment``
      - progress_updated: ``task_id`` plus any progress fields
    """

    kind: EventKind
    payload: dict[str, Any] = field(default_factory=dict)
    exclude_user_id: str | None = None
    task_id: str | None = None
