"""
Supabase-backed directory.

Reads from the platform tables:
- profiles
- subscriptions
- purchases
- live_streams
- posts
- conversations

and writes conversation messages to ``messages``.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Optional

from shared.models import Identity
from shared.repository import BaseRepository
from modules.access.models import (
    AccessType,
    SubscriptionRecord,
    SubscriptionStatus,
    PurchaseRecord,
    PurchaseStatus,
    PostRecord,
)
from modules.messaging.models import ConversationMessage, MessageType
from modules.streams.models import StreamRecord, StreamStatus

from .interfaces import IDirectory
from .memory import _best_subscription, _best_purchase


class SupabaseDirectory(BaseRepository[Identity], IDirectory):
    """
    Directory reading the Supabase tables through the async client.

    Note: This repository does NOT perform authorization checks.
    Access decisions are made by the access evaluator.
    """

    async def get_identity(self, user_id: str) -> Optional[Identity]:
        row = await self._first("profiles", id=user_id)
        return self._map_to_identity(row) if row else None

    async def find_subscription(
        self,
        subscriber_id: str,
        creator_id: str,
    ) -> Optional[SubscriptionRecord]:
        rows = await self._rows("subscriptions", subscriber_id=subscriber_id, creator_id=creator_id)
        return _best_subscription(self._map_to_subscription(row) for row in rows)

    async def find_purchase(self, user_id: str, content_id: str) -> Optional[PurchaseRecord]:
        rows = await self._rows("purchases", user_id=user_id, content_id=content_id)
        return _best_purchase(self._map_to_purchase(row) for row in rows)

    async def get_stream(self, stream_id: str) -> Optional[StreamRecord]:
        row = await self._first("live_streams", id=stream_id)
        return self._map_to_stream(row) if row else None

    async def get_post(self, post_id: str) -> Optional[PostRecord]:
        row = await self._first("posts", id=post_id)
        return self._map_to_post(row) if row else None

    async def get_conversation_participants(self, conversation_id: str) -> Optional[list[str]]:
        row = await self._first("conversations", id=conversation_id)
        if row is None:
            return None
        return [str(p) for p in row.get("participant_ids") or []]

    async def list_active_subscriber_ids(self, creator_id: str) -> list[str]:
        rows = await self._rows(
            "subscriptions",
            creator_id=creator_id,
            status=SubscriptionStatus.ACTIVE.value,
        )
        now = datetime.now(timezone.utc)
        subscriber_ids: list[str] = []
        for row in rows:
            record = self._map_to_subscription(row)
            if record.grants_access(now) and record.subscriber_id not in subscriber_ids:
                subscriber_ids.append(record.subscriber_id)
        return subscriber_ids

    # -------------------------------------------------------------------------
    # Messages
    # -------------------------------------------------------------------------

    async def create_message(
        self,
        conversation_id: str,
        sender_id: str,
        content: str,
        message_type: MessageType = MessageType.TEXT,
    ) -> ConversationMessage:
        row = await self._insert(
            "messages",
            {
                "conversation_id": conversation_id,
                "sender_id": sender_id,
                "content": content,
                "message_type": message_type.value,
            },
        )
        message = self._map_to_message(row)
        await self._update(
            "conversations",
            {"last_message_id": message.id, "last_message_at": message.created_at.isoformat()},
            id=conversation_id,
        )
        return message

    async def count_unread(self, conversation_id: str, recipient_id: str) -> int:
        result = await (
            self._db.table("messages")
            .select("id", count="exact")
            .eq("conversation_id", conversation_id)
            .neq("sender_id", recipient_id)
            .eq("is_read", False)
            .execute()
        )
        return result.count or 0

    # -------------------------------------------------------------------------
    # Mapping helpers
    # -------------------------------------------------------------------------

    def _map_to_identity(self, data: dict[str, Any]) -> Identity:
        return Identity(
            id=str(data["id"]),
            username=data.get("username") or "",
            role=data.get("role") or "student",
            is_banned=bool(data.get("is_banned", False)),
            avatar=data.get("avatar_url"),
        )

    def _map_to_subscription(self, data: dict[str, Any]) -> SubscriptionRecord:
        return SubscriptionRecord(
            subscriber_id=str(data["subscriber_id"]),
            creator_id=str(data["creator_id"]),
            status=data.get("status") or SubscriptionStatus.ACTIVE,
            tier=data.get("tier") or "basic",
            current_period_start=data["current_period_start"],
            current_period_end=data["current_period_end"],
        )

    def _map_to_purchase(self, data: dict[str, Any]) -> PurchaseRecord:
        return PurchaseRecord(
            user_id=str(data["user_id"]),
            content_id=str(data["content_id"]),
            status=data.get("status") or PurchaseStatus.PENDING,
            amount=Decimal(str(data.get("amount") or 0)),
        )

    def _map_to_stream(self, data: dict[str, Any]) -> StreamRecord:
        return StreamRecord(
            id=str(data["id"]),
            owner_id=str(data["owner_id"]),
            title=data.get("title") or "",
            description=data.get("description"),
            status=data.get("status") or StreamStatus.SCHEDULED,
            access_type=data.get("access_type") or AccessType.SUBSCRIBERS,
            price=Decimal(str(data.get("price") or 0)),
            started_at=data.get("started_at"),
        )

    def _map_to_post(self, data: dict[str, Any]) -> PostRecord:
        return PostRecord(
            id=str(data["id"]),
            author_id=str(data["author_id"]),
            title=data.get("title") or "",
            access_type=data.get("access_type") or AccessType.SUBSCRIBERS,
            price=Decimal(str(data.get("price") or 0)),
        )

    def _map_to_message(self, data: dict[str, Any]) -> ConversationMessage:
        return ConversationMessage(
            id=str(data["id"]),
            conversation_id=str(data["conversation_id"]),
            sender_id=str(data["sender_id"]),
            content=data["content"],
            message_type=data.get("message_type") or MessageType.TEXT,
            is_read=bool(data.get("is_read", False)),
            created_at=data.get("created_at") or datetime.now(timezone.utc),
        )
