"""Taskboard: real-time synchronization for a collaborative task board.

The sync layer keeps a registry of authenticated WebSocket connections,
groups them into per-task rooms and fans task mutations out to them.

Usage:
    # Server
    $ taskboard serve

    # Watch live events as a user
    $ taskboard watch --task 42

    # Python API (from the CRUD layer, after a committed write)
    sync = app.state.sync
    sync.broadcaster.task_updated(task, changes, exclude_user_id=actor_id)
"""

try:
    from importlib.metadata import version as _get_version

    __version__ = _get_version("taskboard")
except Exception:
    __version__ = "0.1.0"
