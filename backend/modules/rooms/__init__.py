"""
Rooms module.

In-memory membership of live-stream viewer rooms.

Public API:
- IRoomRegistry: Interface for room membership
- RoomRegistry: Per-process implementation with per-room locking
- RoomStats: Viewer metrics of a room
"""

from .interfaces import IRoomRegistry
from .models import RoomStats
from .service import RoomRegistry

__all__ = [
    "IRoomRegistry",
    "RoomStats",
    "RoomRegistry",
]
