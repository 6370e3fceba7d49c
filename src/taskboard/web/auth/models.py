"""Auth Pydantic models."""

from __future__ import annotations

from pydantic import BaseModel


class UserProfile(BaseModel):
    """Public user profile shared with other clients. Never carries credentials."""

    id: str
    username: str
    name: str
    email: str = ""
    role: str = "member"
    avatar: str = ""
    is_active: bool = True

    model_config = {"from_attributes": True}

    @classmethod
    def from_row(cls, row: dict) -> UserProfile:
        return cls(
            id=row["id"],
            username=row["username"],
            name=row["name"] or row["username"],
            email=row["email"] or "",
            role=row["role"] or "member",
            avatar=row["avatar"] or "",
            is_active=bool(row["is_active"]),
        )
