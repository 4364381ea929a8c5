"""
Access module data models.

The policy is attached to a post or a live stream. Subscription and
purchase records are owned by the persistence layer and only read here.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator


class AccessType(str, Enum):
    """Who may see a piece of content."""

    FREE = "free"
    SUBSCRIBERS = "subscribers"
    PAID = "paid"


class ContentAccessPolicy(BaseModel):
    """
    Access policy of a single post or live stream.

    A free policy always carries a zero price. A paid policy must
    state its price explicitly.
    """

    content_id: str = Field(..., description="Post or stream ID the policy guards")
    owner_id: str = Field(..., description="Creator who owns the content")
    access_type: AccessType = Field(default=AccessType.SUBSCRIBERS)
    price: Decimal = Field(
        default=Decimal(0),
        ge=0,
        description="One-time unlock price in USD (paid content only)",
    )

    model_config = {"frozen": True}

    @model_validator(mode="before")
    @classmethod
    def _normalise_price(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        if data.get("access_type", AccessType.SUBSCRIBERS) == AccessType.PAID:
            if data.get("price") is None:
                raise ValueError("price is required for paid content")
            return data
        # Price has no meaning outside of paid content.
        return {**data, "price": Decimal(0)}


def as_utc(value: datetime) -> datetime:
    """Aware UTC datetime; naive values are taken to already be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class SubscriptionStatus(str, Enum):
    """Lifecycle of a subscriber/creator relationship."""

    ACTIVE = "active"
    CANCELLED = "cancelled"
    EXPIRED = "expired"
    PAUSED = "paused"


class SubscriptionRecord(BaseModel):
    """A subscriber's subscription to a creator."""

    subscriber_id: str = Field(..., description="Subscribing user ID")
    creator_id: str = Field(..., description="Creator user ID")
    status: SubscriptionStatus = Field(default=SubscriptionStatus.ACTIVE)
    tier: str = Field(default="basic", description="Subscription tier")
    current_period_start: datetime = Field(..., description="Start of the paid period")
    current_period_end: datetime = Field(..., description="End of the paid period")

    @field_validator("current_period_start", "current_period_end")
    @classmethod
    def _to_utc(cls, value: datetime) -> datetime:
        return as_utc(value)

    def grants_access(self, now: datetime) -> bool:
        """Only an active subscription inside its paid period grants access."""
        return self.status == SubscriptionStatus.ACTIVE and as_utc(now) < self.current_period_end


class PurchaseStatus(str, Enum):
    """Status of a one-time purchase transaction."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class PurchaseRecord(BaseModel):
    """Evidence that a user paid to unlock one content item."""

    user_id: str = Field(..., description="Buyer user ID")
    content_id: str = Field(..., description="Unlocked post or stream ID")
    status: PurchaseStatus = Field(default=PurchaseStatus.PENDING)
    amount: Decimal = Field(default=Decimal(0), ge=0, description="Amount paid")

    @property
    def is_completed(self) -> bool:
        return self.status == PurchaseStatus.COMPLETED


class PostRecord(BaseModel):
    """A gated post as stored by the persistence layer."""

    id: str = Field(..., description="Post ID")
    author_id: str = Field(..., description="Creator who wrote the post")
    title: str = Field(default="", description="Post title")
    access_type: AccessType = Field(default=AccessType.SUBSCRIBERS)
    price: Decimal = Field(default=Decimal(0), ge=0)

    @property
    def policy(self) -> ContentAccessPolicy:
        return ContentAccessPolicy(
            content_id=self.id,
            owner_id=self.author_id,
            access_type=self.access_type,
            price=self.price,
        )


class PostAccessResponse(BaseModel):
    """Access decision for one post and one viewer."""

    post_id: str
    access_type: AccessType
    price: Decimal
    has_access: bool
