"""
Streams module.

Live stream admission, tipping and go-live announcements, plus the REST
endpoints that serve stream details with their access decision.

Public API:
- IStreamLookup, ISubscriberLookup, IPaymentGateway: Collaborators consumed
- IStreamService: Interface for stream operations
- StreamRecord, StreamStatus: Stream data
- Stream exceptions: StreamNotFoundError, StreamNotLiveError, etc.
"""

from .interfaces import IStreamLookup, ISubscriberLookup, IPaymentGateway, IStreamService
from .models import (
    StreamStatus,
    StreamRecord,
    StreamDetail,
    TipRequest,
    TipReceipt,
    TipResponse,
    AnnounceResponse,
)
from .exceptions import (
    StreamError,
    StreamNotFoundError,
    StreamNotLiveError,
    StreamAccessDeniedError,
    NotStreamOwnerError,
    InvalidTipAmountError,
    PaymentFailedError,
)

__all__ = [
    # Interfaces
    "IStreamLookup",
    "ISubscriberLookup",
    "IPaymentGateway",
    "IStreamService",
    # Models
    "StreamStatus",
    "StreamRecord",
    "StreamDetail",
    "TipRequest",
    "TipReceipt",
    "TipResponse",
    "AnnounceResponse",
    # Exceptions
    "StreamError",
    "StreamNotFoundError",
    "StreamNotLiveError",
    "StreamAccessDeniedError",
    "NotStreamOwnerError",
    "InvalidTipAmountError",
    "PaymentFailedError",
]
