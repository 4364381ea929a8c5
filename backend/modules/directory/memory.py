"""
In-memory directory.

Used when no database is configured and throughout the test suite.
"""

import uuid
from collections import defaultdict
from datetime import datetime, timezone
from typing import Iterable, Optional

from shared.models import Identity
from modules.access.models import (
    SubscriptionRecord,
    SubscriptionStatus,
    PurchaseRecord,
    PurchaseStatus,
    PostRecord,
)
from modules.messaging.models import ConversationMessage, MessageType
from modules.streams.models import StreamRecord

from .interfaces import IDirectory


def _best_subscription(records: Iterable[SubscriptionRecord]) -> Optional[SubscriptionRecord]:
    """Prefer an active subscription, then the one whose period ends last."""
    ranked = sorted(
        records,
        key=lambda r: (r.status == SubscriptionStatus.ACTIVE, r.current_period_end),
        reverse=True,
    )
    return ranked[0] if ranked else None


def _best_purchase(records: Iterable[PurchaseRecord]) -> Optional[PurchaseRecord]:
    """Prefer a completed purchase over pending or failed attempts."""
    records = list(records)
    for record in records:
        if record.status == PurchaseStatus.COMPLETED:
            return record
    return records[-1] if records else None


class InMemoryDirectory(IDirectory):
    """
    Process-local directory seeded through the ``add_*`` helpers.

    Example:
        directory = InMemoryDirectory()
        directory.add_identity(Identity(id="u1", username="ada"))
        await directory.get_identity("u1")
    """

    def __init__(self) -> None:
        self._identities: dict[str, Identity] = {}
        self._subscriptions: dict[tuple[str, str], list[SubscriptionRecord]] = defaultdict(list)
        self._purchases: dict[tuple[str, str], list[PurchaseRecord]] = defaultdict(list)
        self._streams: dict[str, StreamRecord] = {}
        self._posts: dict[str, PostRecord] = {}
        self._conversations: dict[str, list[str]] = {}
        self._messages: dict[str, list[ConversationMessage]] = defaultdict(list)

    # Seeding

    def add_identity(self, identity: Identity) -> Identity:
        self._identities[identity.id] = identity
        return identity

    def add_subscription(self, record: SubscriptionRecord) -> SubscriptionRecord:
        self._subscriptions[(record.subscriber_id, record.creator_id)].append(record)
        return record

    def add_purchase(self, record: PurchaseRecord) -> PurchaseRecord:
        self._purchases[(record.user_id, record.content_id)].append(record)
        return record

    def add_stream(self, stream: StreamRecord) -> StreamRecord:
        self._streams[stream.id] = stream
        return stream

    def add_post(self, post: PostRecord) -> PostRecord:
        self._posts[post.id] = post
        return post

    def add_conversation(self, conversation_id: str, participant_ids: Iterable[str]) -> None:
        self._conversations[conversation_id] = list(participant_ids)

    # Lookups

    async def get_identity(self, user_id: str) -> Optional[Identity]:
        return self._identities.get(user_id)

    async def find_subscription(
        self,
        subscriber_id: str,
        creator_id: str,
    ) -> Optional[SubscriptionRecord]:
        return _best_subscription(self._subscriptions.get((subscriber_id, creator_id), []))

    async def find_purchase(self, user_id: str, content_id: str) -> Optional[PurchaseRecord]:
        return _best_purchase(self._purchases.get((user_id, content_id), []))

    async def get_stream(self, stream_id: str) -> Optional[StreamRecord]:
        return self._streams.get(stream_id)

    async def get_post(self, post_id: str) -> Optional[PostRecord]:
        return self._posts.get(post_id)

    async def get_conversation_participants(self, conversation_id: str) -> Optional[list[str]]:
        participants = self._conversations.get(conversation_id)
        return list(participants) if participants is not None else None

    async def list_active_subscriber_ids(self, creator_id: str) -> list[str]:
        now = datetime.now(timezone.utc)
        subscriber_ids = []
        for (subscriber_id, subscribed_to), records in self._subscriptions.items():
            if subscribed_to != creator_id:
                continue
            best = _best_subscription(records)
            if best is not None and best.grants_access(now):
                subscriber_ids.append(subscriber_id)
        return subscriber_ids

    # Messages

    async def create_message(
        self,
        conversation_id: str,
        sender_id: str,
        content: str,
        message_type: MessageType = MessageType.TEXT,
    ) -> ConversationMessage:
        message = ConversationMessage(
            id=f"msg_{uuid.uuid4().hex}",
            conversation_id=conversation_id,
            sender_id=sender_id,
            content=content,
            message_type=message_type,
        )
        self._messages[conversation_id].append(message)
        return message

    async def count_unread(self, conversation_id: str, recipient_id: str) -> int:
        return sum(
            1
            for message in self._messages.get(conversation_id, [])
            if message.sender_id != recipient_id and not message.is_read
        )

    def messages(self, conversation_id: str) -> list[ConversationMessage]:
        """Stored messages of one conversation, oldest first."""
        return list(self._messages.get(conversation_id, []))
