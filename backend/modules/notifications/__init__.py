"""
Notifications module.

Best-effort, at-most-once delivery of notification events to connected
users. There is no offline queue: a recipient who is not connected
simply misses the live event.

Public API:
- INotificationFanout: Interface exposed to REST controllers
- NotificationFanout: Implementation over the connection index
- NotificationEvent, NotificationType: Event model
"""

from .interfaces import INotificationFanout
from .models import NotificationEvent, NotificationType
from .service import NotificationFanout
from .exceptions import InvalidNotificationError

__all__ = [
    "INotificationFanout",
    "NotificationEvent",
    "NotificationType",
    "NotificationFanout",
    "InvalidNotificationError",
]
