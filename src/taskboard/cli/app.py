"""Command line interface using Typer."""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Annotated, Optional

import typer

from .output import (
    console,
    print_error,
    print_frame,
    print_info,
    print_presence,
    print_success,
    print_warning,
)

app = typer.Typer(
    name="taskboard",
    help="Real-time sync server for the collaborative task board",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


@app.command("serve")
def serve(
    host: Annotated[
        Optional[str], typer.Option("--host", "-h", help="Bind address (default from config)")
    ] = None,
    port: Annotated[
        Optional[int], typer.Option("--port", "-p", help="Port (default from config)")
    ] = None,
    reload: Annotated[bool, typer.Option("--reload", help="Reload on code changes")] = False,
):
    """Run the sync server.

    Examples:
        taskboard serve
        taskboard serve --port 9000
    """
    import uvicorn

    from ..web.config import WebConfig

    config = WebConfig.load()
    logging.basicConfig(level=config.log_level, format=LOG_FORMAT)

    # Bind failures propagate out of uvicorn and abort startup.
    uvicorn.run(
        "taskboard.web.app:create_app",
        factory=True,
        host=host or config.host,
        port=port or config.port,
        reload=reload,
        log_level=config.log_level.lower(),
    )


@app.command("token")
def token(
    username: Annotated[str, typer.Argument(help="User to mint an access token for")],
):
    """Mint an access token for a user in the local database (development only)."""
    if not os.environ.get("TASKBOARD_JWT_SECRET"):
        print_warning(
            "TASKBOARD_JWT_SECRET is not set; the server will not accept this token."
        )

    async def _mint() -> str | None:
        from ..web.auth.service import configure, create_token
        from ..web.config import WebConfig
        from ..web.db.database import close_db, get_db, get_user_by_username, init_db

        config = WebConfig.load()
        configure(config)
        await init_db(config.db_path)
        try:
            row = await get_user_by_username(await get_db(), username)
        finally:
            await close_db()
        if row is None:
            return None
        return create_token(row["id"], row["username"])

    minted = asyncio.run(_mint())
    if minted is None:
        print_error(f"User not found: {username}")
        raise typer.Exit(1)
    console.print(minted, highlight=False, soft_wrap=True)


@app.command("watch")
def watch(
    task: Annotated[
        Optional[list[str]], typer.Option("--task", "-t", help="Task room(s) to join")
    ] = None,
    server_url: Annotated[
        Optional[str], typer.Option("--server", "-s", help="Server URL (default from config)")
    ] = None,
    token: Annotated[
        Optional[str], typer.Option("--token", help="Access token (default: TASKBOARD_TOKEN)")
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Verbose output")] = False,
):
    """Connect as a user and print every frame the server sends."""
    from ..client import ClientConfig, SyncClient

    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING, format=LOG_FORMAT)

    config = ClientConfig.load()
    if server_url:
        config.server_url = server_url
    client = SyncClient(config, token=token or config.token)
    if not client.token:
        print_error("No token given. Use --token or set TASKBOARD_TOKEN.")
        raise typer.Exit(1)

    rooms = task or []

    async def on_connected(data: dict) -> None:
        user = data.get("user", {})
        print_success(f"Connected as {user.get('name', '?')}")
        for task_id in rooms:
            await client.join_task_room(task_id)

    client.on("connected", on_connected)
    client.on("connectedUsers", lambda data: print_presence(data.get("users", [])))
    for frame_type in (
        "joinedTaskRoom",
        "leftTaskRoom",
        "userTyping",
        "pong",
        "error",
        "taskCreated",
        "taskUpdated",
        "taskDeleted",
        "commentAdded",
        "taskProgressUpdated",
        "notification",
    ):
        client.on(frame_type, lambda data, t=frame_type: print_frame(t, data))

    print_info(f"Connecting to {config.ws_url}...")
    try:
        code = asyncio.run(client.run())
    except KeyboardInterrupt:
        raise typer.Exit(0) from None

    if code == 1008:
        print_error("Authentication failed. Get a new token and try again.")
        raise typer.Exit(1)
    print_info(f"Disconnected (code {code})")
