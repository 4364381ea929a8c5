"""
Room registry implementation.

Every room has its own asyncio.Lock, so join/leave on one room are
serialised while different rooms proceed independently. A room is
removed as soon as it empties; a coroutine that was queued on the lock
of a removed room sees the ``closed`` flag and retries against
whatever room currently holds that ID.
"""

import logging
from typing import Optional, TYPE_CHECKING

from .interfaces import IRoomRegistry
from .models import RoomStats, StreamRoom

if TYPE_CHECKING:
    from modules.connections.models import ConnectionHandle

logger = logging.getLogger(__name__)


class RoomRegistry(IRoomRegistry):
    """
    Per-process registry of live-stream viewer rooms.

    Constructed once by the server and passed to every session, so tests
    can run several independent registries side by side.
    """

    def __init__(self) -> None:
        self._rooms: dict[str, StreamRoom] = {}

    def _room_for_join(self, room_id: str) -> StreamRoom:
        room = self._rooms.get(room_id)
        if room is None:
            room = StreamRoom(room_id=room_id)
            self._rooms[room_id] = room
            logger.debug("Opened room %s", room_id)
        return room

    async def join(self, room_id: str, handle: "ConnectionHandle") -> int:
        while True:
            room = self._room_for_join(room_id)
            async with room.lock:
                if room.closed:
                    continue
                room.members.add(handle)
                room.total_viewers += 1
                room.peak_viewers = max(room.peak_viewers, len(room.members))
                return len(room.members)

    async def leave(self, room_id: str, handle: "ConnectionHandle") -> int:
        room = self._rooms.get(room_id)
        if room is None:
            return 0
        async with room.lock:
            if room.closed:
                return 0
            room.members.discard(handle)
            count = len(room.members)
            if count == 0:
                room.closed = True
                if self._rooms.get(room_id) is room:
                    del self._rooms[room_id]
                logger.debug(
                    "Closed room %s (peak=%d, joins=%d)",
                    room_id,
                    room.peak_viewers,
                    room.total_viewers,
                )
            return count

    def viewer_count(self, room_id: str) -> int:
        room = self._rooms.get(room_id)
        return len(room.members) if room else 0

    def members(self, room_id: str) -> list["ConnectionHandle"]:
        room = self._rooms.get(room_id)
        return list(room.members) if room else []

    def is_member(self, room_id: str, handle: "ConnectionHandle") -> bool:
        room = self._rooms.get(room_id)
        return room is not None and handle in room.members

    def stats(self, room_id: str) -> Optional[RoomStats]:
        room = self._rooms.get(room_id)
        if room is None:
            return None
        return RoomStats(
            room_id=room_id,
            viewer_count=len(room.members),
            peak_viewers=room.peak_viewers,
            total_viewers=room.total_viewers,
        )

    def room_ids(self) -> list[str]:
        return list(self._rooms)

    def __len__(self) -> int:
        return len(self._rooms)
