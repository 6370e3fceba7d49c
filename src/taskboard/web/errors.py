"""Error types raised by the sync layer."""

from __future__ import annotations


class SyncError(Exception):
    """Base class for sync-layer errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class AuthError(SyncError):
    """Handshake credential was missing, invalid, expired, revoked or inactive."""

    def __init__(self, message: str, reason: str = "invalid"):
        self.reason = reason
        super().__init__(message)


class ProtocolError(SyncError):
    """Inbound frame could not be parsed into a known command."""


class DeliveryError(SyncError):
    """A frame could not be handed to a connection's transport."""
