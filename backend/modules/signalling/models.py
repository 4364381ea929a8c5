"""
Signalling module data models.

Outbound models serialise with camelCase keys, which is what browser
clients expect on the wire.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class WireModel(BaseModel):
    """Base for payloads sent to clients."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class SignalType(str, Enum):
    """WebRTC negotiation message kinds."""

    OFFER = "offer"
    ANSWER = "answer"
    ICE_CANDIDATE = "ice-candidate"

    @property
    def event(self) -> str:
        return f"webrtc:{self.value}"


class SignallingMessage(WireModel):
    """
    One relayed negotiation message.

    ``from_connection_id`` lets the receiver address its reply to the
    exact connection that sent this message.
    """

    type: SignalType
    payload: Any
    sender: dict[str, Any] = Field(..., description="Public identity of the sender")
    from_connection_id: str
    target_connection_id: Optional[str] = None


class ChatBroadcast(WireModel):
    """A stream chat message as fanned out to the room."""

    identity: dict[str, Any]
    content: str
    timestamp: datetime = Field(default_factory=_utcnow)


class ReactionBroadcast(WireModel):
    """A reaction (heart, clap, ...) as fanned out to the room."""

    identity: dict[str, Any]
    reaction_tag: str
    timestamp: datetime = Field(default_factory=_utcnow)


class TipBroadcast(WireModel):
    """A tip as fanned out to the room."""

    identity: dict[str, Any]
    amount: Decimal
    message: Optional[str] = None
    timestamp: datetime = Field(default_factory=_utcnow)
