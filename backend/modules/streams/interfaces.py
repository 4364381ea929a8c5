"""
Streams module interfaces.
"""

from decimal import Decimal
from typing import Optional, Protocol, runtime_checkable

from shared.models import Identity
from modules.access.models import PostAccessResponse

from .models import StreamRecord, StreamDetail, TipReceipt, TipResponse, AnnounceResponse


@runtime_checkable
class IStreamLookup(Protocol):
    """Reads live stream records."""

    async def get_stream(self, stream_id: str) -> Optional[StreamRecord]:
        """Get a stream by ID, or None if it does not exist."""
        ...


@runtime_checkable
class ISubscriberLookup(Protocol):
    """Reads a creator's subscriber list."""

    async def list_active_subscriber_ids(self, creator_id: str) -> list[str]:
        """IDs of users with an active subscription to ``creator_id``."""
        ...


@runtime_checkable
class IPaymentGateway(Protocol):
    """
    Opaque payment collaborator.

    How the charge reaches a payment provider is not this service's concern.
    """

    async def charge_tip(
        self,
        payer_id: str,
        payee_id: str,
        stream_id: str,
        amount: Decimal,
    ) -> TipReceipt:
        """
        Charge a tip.

        Raises:
            PaymentFailedError: If the charge is declined
        """
        ...


@runtime_checkable
class IStreamService(Protocol):
    """Interface for stream operations used by routes and sessions."""

    async def admit(self, stream_id: str, viewer: Identity) -> StreamRecord:
        """
        Check that ``viewer`` may enter the stream's room.

        Raises:
            StreamNotFoundError, StreamNotLiveError, StreamAccessDeniedError
        """
        ...

    async def broadcaster_info(self, stream: StreamRecord) -> Optional[dict]:
        """Public identity of the stream's broadcaster."""
        ...

    async def get_stream_detail(
        self,
        stream_id: str,
        viewer: Optional[Identity],
    ) -> StreamDetail:
        """Stream payload with the viewer's access decision and live counts."""
        ...

    async def get_post_access(
        self,
        post_id: str,
        viewer: Optional[Identity],
    ) -> PostAccessResponse:
        """
        Access decision for a gated post.

        Raises:
            PostNotFoundError: If the post does not exist
        """
        ...

    async def send_tip(
        self,
        stream_id: str,
        tipper: Identity,
        amount: Decimal,
        message: Optional[str] = None,
    ) -> TipResponse:
        """Charge a tip, broadcast it to the room and notify the broadcaster."""
        ...

    async def announce_stream_started(
        self,
        stream_id: str,
        requester: Identity,
    ) -> AnnounceResponse:
        """Tell subscribers and every connected user that a stream went live."""
        ...
