"""
Notifications module exceptions.

Delivery failures are never raised; only malformed input is.
"""

from shared.exceptions import ValidationError


class InvalidNotificationError(ValidationError):
    """Raised when a notification call has a malformed recipient or event."""

    def __init__(self, reason: str):
        super().__init__(
            f"Invalid notification: {reason}",
            code="INVALID_NOTIFICATION",
            details={"reason": reason},
        )
