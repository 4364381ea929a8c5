"""
Shared data models used across modules.

These models are shared infrastructure, not business logic.
Module-specific models should stay in their respective module directories.
"""

from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, Field


class UserRole(str, Enum):
    """Platform roles."""

    STUDENT = "student"
    CREATOR = "creator"
    ADMIN = "admin"


class Identity(BaseModel):
    """
    An authenticated platform user.

    Owned by the user directory; the real-time core treats it as read-only.
    It is resolved once at connection time and bound to the connection
    for its whole lifetime.
    """

    id: str = Field(..., description="User ID")
    username: str = Field(..., description="Public username")
    role: UserRole = Field(default=UserRole.STUDENT, description="Platform role")
    is_banned: bool = Field(default=False, description="Whether the account is banned")
    avatar: Optional[str] = Field(None, description="Avatar URL")

    model_config = {
        "frozen": True,  # Make immutable for safety
        "extra": "ignore",
    }

    def public(self) -> dict[str, Any]:
        """The subset of the identity other participants may see."""
        return {
            "userId": self.id,
            "username": self.username,
            "avatar": self.avatar,
        }
