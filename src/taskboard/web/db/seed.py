"""Seed database with demo users."""

from __future__ import annotations

import secrets

import aiosqlite


def _id() -> str:
    return secrets.token_hex(8)


async def seed_db(db: aiosqlite.Connection) -> None:
    """Seed database with demo users for local development."""

    # Check if already seeded
    cursor = await db.execute("SELECT COUNT(*) FROM users")
    row = await cursor.fetchone()
    if row[0] > 0:
        return

    users = [
        (_id(), "alice", "Alice Johnson", "alice@example.com", "admin", 1),
        (_id(), "bob", "Bob Smith", "bob@example.com", "member", 1),
        (_id(), "charlie", "Charlie Davis", "charlie@example.com", "member", 1),
        # Deactivated account, rejected at handshake
        (_id(), "dana", "Dana Lee", "dana@example.com", "member", 0),
    ]
    await db.executemany(
        """INSERT INTO users (id, username, name, email, role, is_active)
           VALUES (?, ?, ?, ?, ?, ?)""",
        users,
    )
    await db.commit()
