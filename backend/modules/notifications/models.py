"""
Notifications module data models.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class NotificationType(str, Enum):
    """Kinds of notification the platform emits."""

    NEW_SUBSCRIBER = "new_subscriber"
    NEW_FOLLOWER = "new_follower"
    POST_PUBLISHED = "post_published"
    POST_LIKED = "post_liked"
    POST_COMMENTED = "post_commented"
    TIP_RECEIVED = "tip_received"
    LIVE_STREAM_STARTED = "live_stream_started"
    LIVE_STREAM_ENDED = "live_stream_ended"
    NEW_MESSAGE = "new_message"
    SUBSCRIPTION_RENEWED = "subscription_renewed"
    SUBSCRIPTION_CANCELLED = "subscription_cancelled"
    SUBSCRIPTION_EXPIRED = "subscription_expired"
    PAYOUT_COMPLETED = "payout_completed"
    ACCOUNT_SUSPENDED = "account_suspended"
    SYSTEM_ANNOUNCEMENT = "system_announcement"


class NotificationEvent(BaseModel):
    """One notification as delivered on the ``notification:new`` channel."""

    type: NotificationType = Field(..., description="Notification kind")
    title: str = Field(..., min_length=1, description="Short title")
    message: str = Field(..., description="Human-readable message")
    data: dict[str, Any] = Field(default_factory=dict, description="Event-specific payload")
    link: Optional[str] = Field(None, description="In-app link to open")
    sender_id: Optional[str] = Field(None, description="User who caused the event")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event was created",
    )

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)
