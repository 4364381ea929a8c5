"""
Streams module data models.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field

from modules.access.models import AccessType, ContentAccessPolicy


class StreamStatus(str, Enum):
    """Broadcast lifecycle."""

    SCHEDULED = "scheduled"
    LIVE = "live"
    ENDED = "ended"


class StreamRecord(BaseModel):
    """A live stream as stored by the persistence layer."""

    id: str = Field(..., description="Stream ID")
    owner_id: str = Field(..., description="Broadcasting creator")
    title: str = Field(..., description="Stream title")
    description: Optional[str] = Field(None, description="Stream description")
    status: StreamStatus = Field(default=StreamStatus.LIVE)
    access_type: AccessType = Field(default=AccessType.SUBSCRIBERS)
    price: Decimal = Field(default=Decimal(0), ge=0)
    started_at: Optional[datetime] = Field(None)

    @property
    def is_live(self) -> bool:
        return self.status == StreamStatus.LIVE

    @property
    def policy(self) -> ContentAccessPolicy:
        return ContentAccessPolicy(
            content_id=self.id,
            owner_id=self.owner_id,
            access_type=self.access_type,
            price=self.price,
        )


class StreamDetail(BaseModel):
    """Stream payload served to a specific viewer."""

    id: str
    owner_id: str
    title: str
    description: Optional[str] = None
    status: StreamStatus
    access_type: AccessType
    price: Decimal
    broadcaster: Optional[dict[str, Any]] = Field(None, description="Public broadcaster identity")
    has_access: bool = Field(..., description="Whether the requesting viewer may watch")
    viewer_count: int = Field(default=0, description="Connections currently in the room")
    peak_viewers: int = Field(default=0, description="Peak since the room opened")


class TipRequest(BaseModel):
    """Request to tip a live stream."""

    amount: Decimal = Field(..., description="Tip amount in USD")
    message: Optional[str] = Field(None, max_length=500, description="Optional message")


class TipReceipt(BaseModel):
    """Confirmation returned by the payment collaborator."""

    id: str = Field(..., description="Payment reference")
    payer_id: str
    payee_id: str
    stream_id: str
    amount: Decimal
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class TipResponse(BaseModel):
    """Result of a tip."""

    receipt: TipReceipt
    delivered_to: int = Field(..., description="Room connections that saw the tip")


class AnnounceResponse(BaseModel):
    """Result of a go-live announcement."""

    stream_id: str
    subscribers_notified: int = Field(..., description="Active subscribers addressed")
