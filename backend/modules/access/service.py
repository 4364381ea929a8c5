"""
Access evaluator implementation.

Rules are checked in order and the first match wins:

1. free content is visible to everyone, anonymous viewers included
2. anonymous viewers never pass a gated check
3. owners always see their own content
4. subscriber content needs an active, unexpired subscription
5. paid content needs an active subscription or a completed purchase
"""

from datetime import datetime, timezone
from typing import Callable, Optional

from shared.models import Identity

from .interfaces import IAccessEvaluator, ISubscriptionLookup, IPurchaseLookup
from .models import AccessType, ContentAccessPolicy


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


async def evaluate_access(
    policy: ContentAccessPolicy,
    viewer: Optional[Identity],
    subscription_lookup: ISubscriptionLookup,
    purchase_lookup: IPurchaseLookup,
    now: Optional[datetime] = None,
) -> bool:
    """
    Decide whether ``viewer`` may access the content guarded by ``policy``.

    Has no side effects and is safe to call redundantly.
    """
    if policy.access_type == AccessType.FREE:
        return True

    if viewer is None:
        return False

    if viewer.id == policy.owner_id:
        return True

    now = now or _utcnow()

    # A live subscription supersedes any one-time purchase.
    subscription = await subscription_lookup.find_subscription(viewer.id, policy.owner_id)
    if subscription is not None and subscription.grants_access(now):
        return True

    if policy.access_type == AccessType.PAID:
        purchase = await purchase_lookup.find_purchase(viewer.id, policy.content_id)
        return purchase is not None and purchase.is_completed

    return False


class AccessEvaluator(IAccessEvaluator):
    """
    Access evaluator bound to its record lookups.

    The clock is injectable so subscription expiry can be tested at
    exact boundaries.
    """

    def __init__(
        self,
        subscriptions: ISubscriptionLookup,
        purchases: IPurchaseLookup,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._subscriptions = subscriptions
        self._purchases = purchases
        self._clock = clock

    async def evaluate(
        self,
        policy: ContentAccessPolicy,
        viewer: Optional[Identity],
        now: Optional[datetime] = None,
    ) -> bool:
        return await evaluate_access(
            policy,
            viewer,
            self._subscriptions,
            self._purchases,
            now=now or self._clock(),
        )
