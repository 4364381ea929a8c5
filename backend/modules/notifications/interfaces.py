"""
Notifications module interface.

REST controllers depend on INotificationFanout to tell users about new
subscribers, tips, streams going live and so on.
"""

import asyncio
from typing import Any, Iterable, Protocol, runtime_checkable

from .models import NotificationEvent


@runtime_checkable
class INotificationFanout(Protocol):
    """
    Interface for notification delivery.

    All methods return immediately; delivery runs in the background.
    They raise only for malformed input, never for delivery failure.
    """

    def notify_one(self, recipient_id: str, event: NotificationEvent) -> "asyncio.Task[int]":
        """
        Deliver to one user's private channel if they are connected.

        Returns:
            Task resolving to the number of connections reached

        Raises:
            InvalidNotificationError: If the recipient or event is malformed
        """
        ...

    def push_to_user(
        self,
        recipient_id: str,
        channel: str,
        data: dict[str, Any],
    ) -> "asyncio.Task[int]":
        """Deliver a raw event on ``channel`` to one user's connections, if any."""
        ...

    def notify_many(
        self,
        recipient_ids: Iterable[str],
        event: NotificationEvent,
    ) -> "asyncio.Task[int]":
        """Deliver to each recipient independently; partial delivery is normal."""
        ...

    def broadcast_global(
        self,
        event: NotificationEvent,
        channel: str = "notification:new",
    ) -> "asyncio.Task[int]":
        """Deliver to every connected session regardless of identity."""
        ...
