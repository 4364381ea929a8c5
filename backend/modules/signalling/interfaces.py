"""
Signalling module interface.

Every relay operation is fire-and-forget for the caller: it returns how
many connections the message was handed to and never fails because a
recipient has gone away.
"""

from decimal import Decimal
from typing import Any, Optional, Protocol, TYPE_CHECKING, runtime_checkable

from shared.models import Identity

if TYPE_CHECKING:
    from modules.connections.models import ConnectionHandle


@runtime_checkable
class ISignallingRelay(Protocol):
    """Interface for signalling relay and room fan-out."""

    async def relay_offer(
        self,
        stream_id: str,
        sender: "ConnectionHandle",
        payload: Any,
    ) -> int:
        """Forward an offer to every other connection in the stream room."""
        ...

    async def relay_answer(
        self,
        target_connection_id: str,
        sender: "ConnectionHandle",
        payload: Any,
    ) -> int:
        """Deliver an answer to exactly one connection."""
        ...

    async def relay_ice_candidate(
        self,
        stream_id: str,
        sender: "ConnectionHandle",
        payload: Any,
        target_connection_id: Optional[str] = None,
    ) -> int:
        """Unicast an ICE candidate, or broadcast it to the room minus the sender."""
        ...

    async def broadcast_chat(self, stream_id: str, sender: Identity, content: str) -> int:
        """Fan a chat message out to every connection in the room, sender included."""
        ...

    async def broadcast_reaction(self, stream_id: str, sender: Identity, reaction_tag: str) -> int:
        """Fan a reaction out to every connection in the room, sender included."""
        ...

    async def broadcast_tip(
        self,
        stream_id: str,
        sender: Identity,
        amount: Decimal,
        message: Optional[str] = None,
    ) -> int:
        """Fan a tip out to every connection in the room, sender included."""
        ...

    async def broadcast_to_stream(
        self,
        stream_id: str,
        event: str,
        data: dict[str, Any],
        exclude: Optional["ConnectionHandle"] = None,
    ) -> int:
        """Send an arbitrary event to a stream room."""
        ...
