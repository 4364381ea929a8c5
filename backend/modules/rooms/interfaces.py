"""
Rooms module interface.
"""

from typing import Protocol, Optional, TYPE_CHECKING, runtime_checkable

from .models import RoomStats

if TYPE_CHECKING:
    from modules.connections.models import ConnectionHandle


@runtime_checkable
class IRoomRegistry(Protocol):
    """
    Interface for stream room membership.

    Missing rooms are never an error: they behave as empty rooms.
    """

    async def join(self, room_id: str, handle: "ConnectionHandle") -> int:
        """
        Add a connection to a room, creating the room if needed.

        Joining twice does not double count.

        Returns:
            The room's viewer count after the join
        """
        ...

    async def leave(self, room_id: str, handle: "ConnectionHandle") -> int:
        """
        Remove a connection from a room, deleting the room once empty.

        Returns:
            The room's viewer count after the leave (0 if the room is gone)
        """
        ...

    def viewer_count(self, room_id: str) -> int:
        """Current number of connections in a room."""
        ...

    def members(self, room_id: str) -> list["ConnectionHandle"]:
        """Snapshot of the connections in a room."""
        ...

    def stats(self, room_id: str) -> Optional[RoomStats]:
        """Viewer metrics of a room, or None if the room does not exist."""
        ...
