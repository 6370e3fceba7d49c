"""Shared fixtures for the sync layer tests."""

from __future__ import annotations

import json

import pytest

from taskboard.web.auth.models import UserProfile
from taskboard.web.errors import DeliveryError
from taskboard.web.realtime.service import SyncService


class FakeTransport:
    """In-memory transport that records frames instead of writing them."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent: list[dict] = []
        self.close_code: int | None = None
        self.close_reason = ""
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def send(self, frame: str) -> None:
        if self._closed:
            raise DeliveryError("Connection is closed")
        if self.fail:
            raise DeliveryError("Peer went away")
        self.sent.append(json.loads(frame))

    def close(self, code: int = 1000, reason: str = "") -> None:
        if self._closed:
            return
        self._closed = True
        self.close_code = code
        self.close_reason = reason

    def types(self) -> list[str]:
        return [f["type"] for f in self.sent]

    def of_type(self, frame_type: str) -> list[dict]:
        return [f["data"] for f in self.sent if f["type"] == frame_type]

    def clear(self) -> None:
        self.sent.clear()


def make_profile(user_id: str, **overrides) -> UserProfile:
    fields = {
        "id": user_id,
        "username": user_id,
        "name": user_id.title(),
        "email": f"{user_id}@example.com",
    }
    fields.update(overrides)
    return UserProfile(**fields)


@pytest.fixture
def sync():
    return SyncService()


@pytest.fixture
def connect(sync):
    """Connect a user with a fresh FakeTransport and return the transport."""

    def _connect(user_id: str, fail: bool = False, **profile) -> FakeTransport:
        transport = FakeTransport(fail=fail)
        sync.connect(make_profile(user_id, **profile), transport)
        return transport

    return _connect


@pytest.fixture
def new_transport():
    """Factory for unregistered FakeTransports."""
    return FakeTransport


@pytest.fixture
def profile_of():
    """Factory for UserProfiles keyed by user id."""
    return make_profile
