"""ConnectionRegistry - who is online, and how to reach them."""

from __future__ import annotations

from typing import Any

from ..auth.models import UserProfile
from .models import Connection
from .transport import Transport


class ConnectionRegistry:
    """Maps each user id to its single live connection.

    All methods are plain in-memory map operations; callers run them on the
    event loop, which serializes access.
    """

    def __init__(self) -> None:
        self._connections: dict[str, Connection] = {}

    def register(
        self, user_id: str, profile: UserProfile, transport: Transport
    ) -> Connection | None:
        """Insert or replace the connection for *user_id*.

        Returns the superseded connection, if there was one. The caller owns
        closing its transport.
        """
        previous = self._connections.pop(user_id, None)
        self._connections[user_id] = Connection(
            user_id=user_id, profile=profile, transport=transport
        )
        if previous is not None and previous.transport is transport:
            return None
        return previous

    def unregister(self, user_id: str, transport: Transport | None = None) -> Connection | None:
        """Remove *user_id*. No-op if absent.

        When *transport* is given, only remove the entry if it still belongs
        to that transport, so a superseded session cannot evict its successor.
        """
        connection = self._connections.get(user_id)
        if connection is None:
            return None
        if transport is not None and connection.transport is not transport:
            return None
        return self._connections.pop(user_id)

    def get(self, user_id: str) -> Connection | None:
        return self._connections.get(user_id)

    def lookup(self, user_id: str) -> Transport | None:
        connection = self._connections.get(user_id)
        return connection.transport if connection else None

    def owns(self, user_id: str, transport: Transport) -> bool:
        """True if *transport* is the current handle for *user_id*."""
        return self.lookup(user_id) is transport

    def is_online(self, user_id: str) -> bool:
        return user_id in self._connections

    def set_status(self, user_id: str, status: str) -> bool:
        connection = self._connections.get(user_id)
        if connection is None:
            return False
        connection.status = status
        return True

    def user_ids(self) -> list[str]:
        return list(self._connections)

    def snapshot(self) -> list[dict[str, Any]]:
        """Presence entries in connection order. Clients must not rely on the order."""
        return [c.presence() for c in self._connections.values()]

    def connections(self) -> list[Connection]:
        return list(self._connections.values())

    def clear(self) -> None:
        self._connections.clear()

    def __len__(self) -> int:
        return len(self._connections)

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._connections
