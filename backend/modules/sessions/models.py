"""
Sessions module data models.

Inbound payloads use camelCase field names on the wire.
"""

from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from modules.messaging.models import MessageType


class SessionState(str, Enum):
    """Connection session lifecycle. CLOSED is terminal."""

    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"
    CLOSED = "closed"


class InboundMessage(BaseModel):
    """One inbound frame: an event name plus its payload."""

    event: str = Field(..., min_length=1)
    data: dict[str, Any] = Field(default_factory=dict)


class InboundPayload(BaseModel):
    """Base for inbound event payloads."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class StreamRef(InboundPayload):
    stream_id: str = Field(..., min_length=1)


class ConversationRef(InboundPayload):
    conversation_id: str = Field(..., min_length=1)


class OfferPayload(StreamRef):
    payload: Any = Field(...)


class AnswerPayload(InboundPayload):
    target_handle: str = Field(..., min_length=1, description="Connection ID to answer")
    payload: Any = Field(...)


class IceCandidatePayload(InboundPayload):
    stream_id: Optional[str] = None
    target_handle: Optional[str] = None
    payload: Any = Field(...)


class ChatPayload(StreamRef):
    content: str = Field(..., min_length=1, max_length=1000)


class ReactionPayload(StreamRef):
    reaction_tag: str = Field(..., min_length=1, max_length=32)


class TipPayload(StreamRef):
    amount: Decimal
    message: Optional[str] = Field(None, max_length=500)


class MessagePayload(ConversationRef):
    content: str = Field(..., min_length=1, max_length=5000)
    message_type: MessageType = Field(default=MessageType.TEXT)
