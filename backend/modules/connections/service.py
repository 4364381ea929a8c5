"""
Connection index.

Process-local lookup of open connections by connection ID (for targeted
signalling) and by user ID (for private notification channels). A
deployment with several processes needs an external fan-out layer to see
connections held by its siblings.
"""

import asyncio
from typing import Any, Iterable, Optional

from .models import ConnectionHandle


async def fan_out(
    handles: Iterable[ConnectionHandle],
    event: str,
    data: dict[str, Any],
) -> int:
    """
    Send one event to every handle concurrently.

    Returns:
        Number of handles the event was delivered to
    """
    results = await asyncio.gather(*(handle.send(event, data) for handle in handles))
    return sum(1 for delivered in results if delivered)


class ConnectionIndex:
    """
    Index of every authenticated connection held by this process.

    Mutations are plain dict/set operations with no awaits in between,
    so they are atomic on the event loop.
    """

    def __init__(self) -> None:
        self._by_id: dict[str, ConnectionHandle] = {}
        self._by_user: dict[str, set[ConnectionHandle]] = {}

    def add(self, handle: ConnectionHandle) -> None:
        """Register an authenticated connection."""
        self._by_id[handle.connection_id] = handle
        self._by_user.setdefault(handle.user_id, set()).add(handle)

    def remove(self, handle: ConnectionHandle) -> None:
        """Unregister a connection. Unknown handles are ignored."""
        if self._by_id.get(handle.connection_id) is handle:
            del self._by_id[handle.connection_id]
        handles = self._by_user.get(handle.user_id)
        if handles is not None:
            handles.discard(handle)
            if not handles:
                del self._by_user[handle.user_id]

    def get(self, connection_id: str) -> Optional[ConnectionHandle]:
        """Get an open connection by ID."""
        return self._by_id.get(connection_id)

    def for_user(self, user_id: str) -> list[ConnectionHandle]:
        """All open connections of one user (their private channel)."""
        return list(self._by_user.get(user_id, ()))

    def all(self) -> list[ConnectionHandle]:
        """Snapshot of every open connection."""
        return list(self._by_id.values())

    def is_online(self, user_id: str) -> bool:
        return user_id in self._by_user

    def __len__(self) -> int:
        return len(self._by_id)

    def __contains__(self, handle: object) -> bool:
        return isinstance(handle, ConnectionHandle) and self._by_id.get(handle.connection_id) is handle
