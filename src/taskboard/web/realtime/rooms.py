"""RoomIndex - task-scoped interest groups."""

from __future__ import annotations

import logging

from .registry import ConnectionRegistry

logger = logging.getLogger(__name__)


class RoomIndex:
    """Task id -> member user ids, with the inverse user id -> task ids.

    Rooms exist only while they have members. Only registered users can
    join, so every room's members are a subset of the registry.
    """

    def __init__(self, registry: ConnectionRegistry) -> None:
        self._registry = registry
        self._rooms: dict[str, set[str]] = {}
        self._joined: dict[str, set[str]] = {}

    def join(self, user_id: str, task_id: str) -> bool:
        """Add *user_id* to the room for *task_id*.

        Returns False if the user is not connected. Joining a room twice
        leaves membership unchanged.
        """
        if not self._registry.is_online(user_id):
            return False
        self._rooms.setdefault(task_id, set()).add(user_id)
        self._joined.setdefault(user_id, set()).add(task_id)
        logger.debug("User %s joined task room %s", user_id, task_id)
        return True

    def leave(self, user_id: str, task_id: str) -> bool:
        """Remove *user_id* from the room. Returns True if it was a member."""
        members = self._rooms.get(task_id)
        was_member = members is not None and user_id in members
        if members is not None:
            members.discard(user_id)
            if not members:
                del self._rooms[task_id]

        joined = self._joined.get(user_id)
        if joined is not None:
            joined.discard(task_id)
            if not joined:
                del self._joined[user_id]

        if was_member:
            logger.debug("User %s left task room %s", user_id, task_id)
        return was_member

    def prune_user(self, user_id: str) -> int:
        """Remove *user_id* from every room it joined. Returns the number of rooms left."""
        rooms = list(self._joined.get(user_id, ()))
        for task_id in rooms:
            self.leave(user_id, task_id)
        return len(rooms)

    def members_of(self, task_id: str) -> set[str]:
        return set(self._rooms.get(task_id, ()))

    def rooms_of(self, user_id: str) -> set[str]:
        return set(self._joined.get(user_id, ()))

    def is_member(self, user_id: str, task_id: str) -> bool:
        return user_id in self._rooms.get(task_id, ())

    def clear(self) -> None:
        self._rooms.clear()
        self._joined.clear()

    def __len__(self) -> int:
        return len(self._rooms)
