"""Python client for the task-board sync endpoint."""

from .client import ClientState, SyncClient, should_reconnect
from .config import ClientConfig

__all__ = ["ClientConfig", "ClientState", "SyncClient", "should_reconnect"]
