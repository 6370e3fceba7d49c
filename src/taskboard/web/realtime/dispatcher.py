"""MessageRouter - parses inbound frames and dispatches them to handlers."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from pydantic import TypeAdapter, ValidationError

from ..errors import ProtocolError
from .models import (
    COMMAND_TYPES,
    InboundCommand,
    JoinTaskRoom,
    LeaveTaskRoom,
    Ping,
    Typing,
    UpdateStatus,
)

if TYPE_CHECKING:
    from .service import SyncService

logger = logging.getLogger(__name__)

_COMMAND_ADAPTER: TypeAdapter[InboundCommand] = TypeAdapter(InboundCommand)


def parse_command(raw: str | bytes) -> InboundCommand:
    """Parse one inbound frame. Raises ProtocolError with a client-facing message."""
    try:
        payload = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ProtocolError("Invalid message format") from None

    if not isinstance(payload, dict) or not isinstance(payload.get("type"), str):
        raise ProtocolError("Invalid message format")

    msg_type = payload["type"]
    if msg_type not in COMMAND_TYPES:
        raise ProtocolError(f"Unknown message type: {msg_type}")

    try:
        return _COMMAND_ADAPTER.validate_python(payload)
    except ValidationError:
        raise ProtocolError(f"Invalid {msg_type} message") from None


class MessageRouter:
    """Stateless dispatcher: every effect goes through the SyncService."""

    def __init__(self, service: SyncService) -> None:
        self.service = service

    def handle(self, user_id: str, raw: str | bytes) -> None:
        """Handle one raw frame from *user_id*. Protocol errors go back to the sender only."""
        if not self.service.registry.is_online(user_id):
            return

        try:
            command = parse_command(raw)
        except ProtocolError as e:
            logger.warning("Protocol error from user %s: %s", user_id, e.message)
            self.service.broadcaster.error(user_id, e.message)
            return

        logger.debug("Dispatching %s from user %s", command.type, user_id)

        if isinstance(command, JoinTaskRoom):
            self.service.join_room(user_id, command.task_id)
        elif isinstance(command, LeaveTaskRoom):
            self.service.leave_room(user_id, command.task_id, notify=True)
        elif isinstance(command, Typing):
            self.service.broadcaster.user_typing(user_id, command.task_id, command.is_typing)
        elif isinstance(command, Ping):
            self.service.broadcaster.pong(user_id)
        elif isinstance(command, UpdateStatus):
            self.service.update_status(user_id, command.status)
