"""
Signalling relay implementation.

Holds no state of its own: room membership comes from the room registry
and targeted connections from the connection index.
"""

import logging
from decimal import Decimal
from typing import Any, Optional

from shared.models import Identity
from modules.connections.models import ConnectionHandle
from modules.connections.service import ConnectionIndex, fan_out
from modules.rooms.interfaces import IRoomRegistry

from .interfaces import ISignallingRelay
from .models import (
    SignalType,
    SignallingMessage,
    ChatBroadcast,
    ReactionBroadcast,
    TipBroadcast,
)
from .exceptions import InvalidSignalError

logger = logging.getLogger(__name__)


def _require(value: Any, field_name: str) -> None:
    if value is None or value == "":
        raise InvalidSignalError(field_name)


class SignallingRelay(ISignallingRelay):
    """
    Relay for WebRTC negotiation and stream-room broadcasts.

    Offers and untargeted ICE candidates never echo back to their sender.
    Chat, reactions and tips are delivered to the sender as well, so every
    client renders the room's timeline from the same broadcast.
    """

    def __init__(self, rooms: IRoomRegistry, connections: ConnectionIndex):
        self._rooms = rooms
        self._connections = connections

    def _signal(
        self,
        signal_type: SignalType,
        sender: ConnectionHandle,
        payload: Any,
        target_connection_id: Optional[str] = None,
    ) -> dict[str, Any]:
        return SignallingMessage(
            type=signal_type,
            payload=payload,
            sender=sender.identity.public(),
            from_connection_id=sender.connection_id,
            target_connection_id=target_connection_id,
        ).to_wire()

    async def _unicast(self, target_connection_id: str, event: str, data: dict[str, Any]) -> int:
        target = self._connections.get(target_connection_id)
        if target is None:
            logger.info("Delivery miss: %s target %s is gone", event, target_connection_id)
            return 0
        return 1 if await target.send(event, data) else 0

    async def broadcast_to_stream(
        self,
        stream_id: str,
        event: str,
        data: dict[str, Any],
        exclude: Optional[ConnectionHandle] = None,
    ) -> int:
        members = [m for m in self._rooms.members(stream_id) if m is not exclude]
        return await fan_out(members, event, data)

    async def relay_offer(
        self,
        stream_id: str,
        sender: ConnectionHandle,
        payload: Any,
    ) -> int:
        _require(stream_id, "streamId")
        _require(payload, "payload")
        data = self._signal(SignalType.OFFER, sender, payload)
        return await self.broadcast_to_stream(stream_id, SignalType.OFFER.event, data, exclude=sender)

    async def relay_answer(
        self,
        target_connection_id: str,
        sender: ConnectionHandle,
        payload: Any,
    ) -> int:
        _require(target_connection_id, "targetHandle")
        _require(payload, "payload")
        data = self._signal(SignalType.ANSWER, sender, payload, target_connection_id)
        return await self._unicast(target_connection_id, SignalType.ANSWER.event, data)

    async def relay_ice_candidate(
        self,
        stream_id: str,
        sender: ConnectionHandle,
        payload: Any,
        target_connection_id: Optional[str] = None,
    ) -> int:
        _require(payload, "payload")
        event = SignalType.ICE_CANDIDATE.event
        if target_connection_id:
            if target_connection_id == sender.connection_id:
                return 0
            data = self._signal(SignalType.ICE_CANDIDATE, sender, payload, target_connection_id)
            return await self._unicast(target_connection_id, event, data)

        _require(stream_id, "streamId")
        data = self._signal(SignalType.ICE_CANDIDATE, sender, payload)
        return await self.broadcast_to_stream(stream_id, event, data, exclude=sender)

    async def broadcast_chat(self, stream_id: str, sender: Identity, content: str) -> int:
        _require(stream_id, "streamId")
        _require(content, "content")
        data = ChatBroadcast(identity=sender.public(), content=content).to_wire()
        return await self.broadcast_to_stream(stream_id, "stream:chat", data)

    async def broadcast_reaction(self, stream_id: str, sender: Identity, reaction_tag: str) -> int:
        _require(stream_id, "streamId")
        _require(reaction_tag, "reactionTag")
        data = ReactionBroadcast(identity=sender.public(), reaction_tag=reaction_tag).to_wire()
        return await self.broadcast_to_stream(stream_id, "stream:reaction", data)

    async def broadcast_tip(
        self,
        stream_id: str,
        sender: Identity,
        amount: Decimal,
        message: Optional[str] = None,
    ) -> int:
        _require(stream_id, "streamId")
        data = TipBroadcast(identity=sender.public(), amount=amount, message=message).to_wire()
        return await self.broadcast_to_stream(stream_id, "stream:tip", data)
