"""Rich console output helpers."""

from __future__ import annotations

import json
from typing import Any

from rich.console import Console
from rich.table import Table

# Shared console instance
console = Console()
error_console = Console(stderr=True)


def print_error(message: str) -> None:
    """Print an error message."""
    error_console.print(f"[red]Error:[/red] {message}")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]Warning:[/yellow] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]{message}[/green]")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[dim]{message}[/dim]")


_FRAME_STYLES = {
    "connected": "green",
    "connectedUsers": "cyan",
    "error": "red",
    "taskCreated": "bold green",
    "taskUpdated": "yellow",
    "taskDeleted": "bold red",
    "commentAdded": "magenta",
    "userTyping": "dim",
    "notification": "bold cyan",
}


def print_frame(frame_type: str, data: dict[str, Any]) -> None:
    """Print one received frame, one line per frame."""
    style = _FRAME_STYLES.get(frame_type, "")
    body = json.dumps(data, default=str)
    if len(body) > 200:
        body = body[:197] + "..."
    label = f"[{style}]{frame_type}[/{style}]" if style else frame_type
    console.print(f"{label} {body}", highlight=False)


def print_presence(users: list[dict[str, Any]]) -> None:
    """Print the connected-users list as a table."""
    table = Table(title=f"Online ({len(users)})", show_header=True, header_style="bold")
    table.add_column("User", style="cyan")
    table.add_column("Email")
    table.add_column("Status", style="green")
    table.add_column("Since", style="dim")
    for user in users:
        table.add_row(
            user.get("name", ""),
            user.get("email", ""),
            user.get("status", ""),
            str(user.get("connectedAt", "")),
        )
    console.print(table)
