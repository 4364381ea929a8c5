"""
Connections module data models.
"""

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any

from shared.models import Identity

from .interfaces import ITransport
from .exceptions import TransportClosedError

logger = logging.getLogger(__name__)


def _new_connection_id() -> str:
    return uuid.uuid4().hex


@dataclass(eq=False)
class ConnectionHandle:
    """
    A live transport connection tagged with its authenticated identity.

    Handles compare and hash by object identity, so the same user on two
    devices is two distinct room members.

    Attributes:
        identity: The identity verified at handshake
        transport: Underlying transport
        connection_id: Opaque ID clients use to target signalling messages
        conversation_rooms: Conversation IDs this connection has joined
        stream_rooms: Stream IDs this connection has joined
    """

    identity: Identity
    transport: ITransport
    connection_id: str = field(default_factory=_new_connection_id)
    conversation_rooms: set[str] = field(default_factory=set)
    stream_rooms: set[str] = field(default_factory=set)
    is_open: bool = True

    @property
    def user_id(self) -> str:
        return self.identity.id

    async def send(self, event: str, data: dict[str, Any]) -> bool:
        """
        Deliver one event to this connection.

        Never raises for delivery failures: a disconnected peer is a
        delivery miss, logged and reported as False.
        """
        if not self.is_open:
            logger.debug("Dropped %s for closed connection %s", event, self.connection_id)
            return False
        try:
            await self.transport.send_json({"event": event, "data": data})
            return True
        except TransportClosedError:
            logger.debug("Delivery miss: %s to %s", event, self.connection_id)
            return False

    def __repr__(self) -> str:
        return f"ConnectionHandle(id={self.connection_id!r}, user={self.user_id!r})"
