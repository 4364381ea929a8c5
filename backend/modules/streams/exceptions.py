"""
Streams module exceptions.

Codes double as the typed reasons sent back on the real-time surface
when a stream join is rejected.
"""

from decimal import Decimal
from typing import Optional

from shared.exceptions import (
    BackstageError,
    NotFoundError,
    AuthorizationError,
    ValidationError,
    ExternalServiceError,
)


class StreamError(BackstageError):
    """Base exception for stream-related errors."""

    pass


class StreamNotFoundError(NotFoundError):
    """Raised when a stream does not exist."""

    def __init__(self, stream_id: str):
        super().__init__(
            f"Stream not found: {stream_id}",
            code="stream-not-found",
            details={"stream_id": stream_id},
        )


class StreamNotLiveError(StreamError):
    """Raised when a stream exists but is scheduled or has ended."""

    def __init__(self, stream_id: str, status: str):
        super().__init__(
            "Stream is not live",
            code="stream-not-live",
            details={"stream_id": stream_id, "status": status},
        )


class StreamAccessDeniedError(AuthorizationError):
    """Raised when a viewer is not entitled to watch a stream."""

    def __init__(self, stream_id: str, access_type: str):
        super().__init__(
            "Not entitled to watch this stream",
            code="access-denied",
            details={"stream_id": stream_id, "access_type": access_type},
        )


class NotStreamOwnerError(AuthorizationError):
    """Raised when someone other than the broadcaster manages a stream."""

    def __init__(self, stream_id: str):
        super().__init__(
            "Only the broadcaster can manage this stream",
            code="not-stream-owner",
            details={"stream_id": stream_id},
        )


class InvalidTipAmountError(ValidationError):
    """Raised when a tip amount is not positive."""

    def __init__(self, amount: Decimal):
        super().__init__(
            f"Invalid tip amount: {amount}",
            code="invalid-tip-amount",
            details={"amount": str(amount)},
        )


class PaymentFailedError(ExternalServiceError):
    """Raised when the payment collaborator rejects a charge."""

    def __init__(self, message: str, provider_error: Optional[str] = None):
        super().__init__(
            message,
            service="payments",
            code="payment-failed",
            details={"provider_error": provider_error} if provider_error else {},
        )
