"""Real-time sync layer: connection registry, task rooms and event fan-out."""

from .broadcast import BroadcastEngine
from .models import DomainEvent, EventKind, Frame, FrameType
from .registry import ConnectionRegistry
from .rooms import RoomIndex
from .service import SyncService

__all__ = [
    "BroadcastEngine",
    "ConnectionRegistry",
    "DomainEvent",
    "EventKind",
    "Frame",
    "FrameType",
    "RoomIndex",
    "SyncService",
]
