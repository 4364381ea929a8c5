"""
Rooms module data models.
"""

import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from modules.connections.models import ConnectionHandle


@dataclass(eq=False)
class StreamRoom:
    """
    Ephemeral, process-local viewer room of one live stream.

    Attributes:
        room_id: Stream ID
        members: Connections currently in the room
        peak_viewers: Largest member count ever observed
        total_viewers: Number of join events (not unique viewers)
        closed: Set once the room has emptied and left the registry
        lock: Serialises every mutation of this room
    """

    room_id: str
    members: set["ConnectionHandle"] = field(default_factory=set)
    peak_viewers: int = 0
    total_viewers: int = 0
    closed: bool = False
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)


class RoomStats(BaseModel):
    """Viewer metrics of a room."""

    room_id: str = Field(..., description="Stream ID")
    viewer_count: int = Field(..., ge=0, description="Current viewers")
    peak_viewers: int = Field(..., ge=0, description="Peak concurrent viewers")
    total_viewers: int = Field(..., ge=0, description="Join events since the room opened")
