"""
Access module interfaces.

The evaluator depends on two lookups owned by the persistence layer.
Both are async so a slow database never stalls other connections.
"""

from datetime import datetime
from typing import Protocol, Optional, runtime_checkable

from shared.models import Identity

from .models import ContentAccessPolicy, SubscriptionRecord, PurchaseRecord, PostRecord


@runtime_checkable
class ISubscriptionLookup(Protocol):
    """Reads subscription records."""

    async def find_subscription(
        self,
        subscriber_id: str,
        creator_id: str,
    ) -> Optional[SubscriptionRecord]:
        """
        Find the subscription of ``subscriber_id`` to ``creator_id``.

        Implementations should prefer an active record when several exist.

        Returns:
            The subscription record, or None if there is none
        """
        ...


@runtime_checkable
class IPurchaseLookup(Protocol):
    """Reads one-time purchase records."""

    async def find_purchase(
        self,
        user_id: str,
        content_id: str,
    ) -> Optional[PurchaseRecord]:
        """
        Find the purchase of ``content_id`` by ``user_id``.

        Implementations should prefer a completed record when several exist.

        Returns:
            The purchase record, or None if there is none
        """
        ...


@runtime_checkable
class IAccessEvaluator(Protocol):
    """
    Interface for access decisions.

    Called by the REST layer for every post/stream read and by the
    real-time layer when admitting viewers to a stream room.
    """

    async def evaluate(
        self,
        policy: ContentAccessPolicy,
        viewer: Optional[Identity],
        now: Optional[datetime] = None,
    ) -> bool:
        """
        Decide whether ``viewer`` may see the content guarded by ``policy``.

        Never raises for missing records: absence of evidence is a denial.

        Args:
            policy: The content's access policy
            viewer: The requesting identity, or None when anonymous
            now: Evaluation instant (defaults to the current UTC time)

        Returns:
            True if access is granted
        """
        ...


@runtime_checkable
class IPostLookup(Protocol):
    """Reads post records."""

    async def get_post(self, post_id: str) -> Optional[PostRecord]:
        """Get a post by ID, or None if it does not exist."""
        ...
