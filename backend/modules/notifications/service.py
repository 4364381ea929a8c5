"""
Notification fan-out implementation.

Delivery is scheduled as a background task so callers (REST handlers,
the tip flow) are never held up by slow or vanished connections.
Tasks are tracked until they finish so they can be drained on shutdown.
"""

import asyncio
import logging
from typing import Any, Iterable

from modules.connections.models import ConnectionHandle
from modules.connections.service import ConnectionIndex, fan_out

from .interfaces import INotificationFanout
from .models import NotificationEvent
from .exceptions import InvalidNotificationError

logger = logging.getLogger(__name__)

NOTIFICATION_CHANNEL = "notification:new"


def _check_event(event: Any) -> NotificationEvent:
    if not isinstance(event, NotificationEvent):
        raise InvalidNotificationError("event must be a NotificationEvent")
    return event


def _check_recipient(recipient_id: Any) -> str:
    if not isinstance(recipient_id, str) or not recipient_id:
        raise InvalidNotificationError("recipient id must be a non-empty string")
    return recipient_id


class NotificationFanout(INotificationFanout):
    """Delivers notification events over users' open connections."""

    def __init__(self, connections: ConnectionIndex):
        self._connections = connections
        self._pending: set[asyncio.Task[int]] = set()

    def _schedule(
        self,
        handles: list[ConnectionHandle],
        channel: str,
        data: dict[str, Any],
    ) -> "asyncio.Task[int]":
        task = asyncio.create_task(self._deliver(handles, channel, data))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _deliver(
        self,
        handles: list[ConnectionHandle],
        channel: str,
        data: dict[str, Any],
    ) -> int:
        delivered = await fan_out(handles, channel, data)
        if delivered < len(handles):
            logger.debug("%s reached %d of %d connections", channel, delivered, len(handles))
        return delivered

    def notify_one(self, recipient_id: str, event: NotificationEvent) -> "asyncio.Task[int]":
        recipient_id = _check_recipient(recipient_id)
        event = _check_event(event)
        handles = self._connections.for_user(recipient_id)
        if not handles:
            logger.debug("Dropped %s for offline user %s", event.type.value, recipient_id)
        return self._schedule(handles, NOTIFICATION_CHANNEL, event.to_wire())

    def push_to_user(
        self,
        recipient_id: str,
        channel: str,
        data: dict[str, Any],
    ) -> "asyncio.Task[int]":
        """Deliver a raw event (e.g. an unread counter) to one user's connections."""
        recipient_id = _check_recipient(recipient_id)
        if not channel:
            raise InvalidNotificationError("channel must be a non-empty string")
        return self._schedule(self._connections.for_user(recipient_id), channel, data)

    def notify_many(
        self,
        recipient_ids: Iterable[str],
        event: NotificationEvent,
    ) -> "asyncio.Task[int]":
        if isinstance(recipient_ids, str):
            raise InvalidNotificationError("recipient ids must be a collection, not a string")
        event = _check_event(event)
        recipients = {_check_recipient(r) for r in recipient_ids}
        handles = [h for r in recipients for h in self._connections.for_user(r)]
        return self._schedule(handles, NOTIFICATION_CHANNEL, event.to_wire())

    def broadcast_global(
        self,
        event: NotificationEvent,
        channel: str = NOTIFICATION_CHANNEL,
    ) -> "asyncio.Task[int]":
        event = _check_event(event)
        if not channel:
            raise InvalidNotificationError("channel must be a non-empty string")
        return self._schedule(self._connections.all(), channel, event.to_wire())

    async def drain(self) -> None:
        """Wait for every scheduled delivery to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    @property
    def pending(self) -> int:
        return len(self._pending)
