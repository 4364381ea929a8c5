"""
Stream service implementation.

Tip side effects run in sequence: charge, room broadcast, broadcaster
notification. A failed charge stops the flow; once the charge has gone
through, a missed broadcast or notification is logged and not undone.
"""

import logging
from decimal import Decimal
from typing import Any, Optional

from shared.models import Identity
from modules.access.interfaces import IAccessEvaluator, IPostLookup
from modules.access.models import PostAccessResponse
from modules.access.exceptions import PostNotFoundError
from modules.auth.interfaces import IIdentityLookup
from modules.notifications.interfaces import INotificationFanout
from modules.notifications.models import NotificationEvent, NotificationType
from modules.rooms.interfaces import IRoomRegistry
from modules.signalling.interfaces import ISignallingRelay

from .interfaces import (
    IStreamService,
    IStreamLookup,
    ISubscriberLookup,
    IPaymentGateway,
)
from .models import (
    StreamRecord,
    StreamDetail,
    TipResponse,
    AnnounceResponse,
)
from .exceptions import (
    StreamNotFoundError,
    StreamNotLiveError,
    StreamAccessDeniedError,
    NotStreamOwnerError,
    InvalidTipAmountError,
)

logger = logging.getLogger(__name__)


class StreamService(IStreamService):
    """
    Stream operations shared by the REST routes and real-time sessions.
    """

    def __init__(
        self,
        streams: IStreamLookup,
        posts: IPostLookup,
        subscribers: ISubscriberLookup,
        identities: IIdentityLookup,
        access: IAccessEvaluator,
        rooms: IRoomRegistry,
        relay: ISignallingRelay,
        notifications: INotificationFanout,
        payments: IPaymentGateway,
    ):
        self._streams = streams
        self._posts = posts
        self._subscribers = subscribers
        self._identities = identities
        self._access = access
        self._rooms = rooms
        self._relay = relay
        self._notifications = notifications
        self._payments = payments

    async def _get_stream(self, stream_id: str) -> StreamRecord:
        stream = await self._streams.get_stream(stream_id)
        if stream is None:
            raise StreamNotFoundError(stream_id)
        return stream

    async def _get_live_stream(self, stream_id: str) -> StreamRecord:
        stream = await self._get_stream(stream_id)
        if not stream.is_live:
            raise StreamNotLiveError(stream_id, stream.status.value)
        return stream

    async def admit(self, stream_id: str, viewer: Identity) -> StreamRecord:
        stream = await self._get_live_stream(stream_id)
        if not await self._access.evaluate(stream.policy, viewer):
            raise StreamAccessDeniedError(stream_id, stream.access_type.value)
        return stream

    async def broadcaster_info(self, stream: StreamRecord) -> Optional[dict[str, Any]]:
        broadcaster = await self._identities.get_identity(stream.owner_id)
        return broadcaster.public() if broadcaster else None

    async def get_stream_detail(
        self,
        stream_id: str,
        viewer: Optional[Identity],
    ) -> StreamDetail:
        stream = await self._get_stream(stream_id)
        has_access = await self._access.evaluate(stream.policy, viewer)
        stats = self._rooms.stats(stream_id)
        return StreamDetail(
            id=stream.id,
            owner_id=stream.owner_id,
            title=stream.title,
            description=stream.description,
            status=stream.status,
            access_type=stream.access_type,
            price=stream.price,
            broadcaster=await self.broadcaster_info(stream),
            has_access=has_access,
            viewer_count=stats.viewer_count if stats else 0,
            peak_viewers=stats.peak_viewers if stats else 0,
        )

    async def get_post_access(
        self,
        post_id: str,
        viewer: Optional[Identity],
    ) -> PostAccessResponse:
        post = await self._posts.get_post(post_id)
        if post is None:
            raise PostNotFoundError(post_id)
        policy = post.policy
        return PostAccessResponse(
            post_id=post.id,
            access_type=policy.access_type,
            price=policy.price,
            has_access=await self._access.evaluate(policy, viewer),
        )

    async def send_tip(
        self,
        stream_id: str,
        tipper: Identity,
        amount: Decimal,
        message: Optional[str] = None,
    ) -> TipResponse:
        if amount <= 0:
            raise InvalidTipAmountError(amount)

        stream = await self._get_live_stream(stream_id)

        receipt = await self._payments.charge_tip(
            payer_id=tipper.id,
            payee_id=stream.owner_id,
            stream_id=stream.id,
            amount=amount,
        )
        logger.info("Tip %s: %s -> %s on %s", receipt.id, tipper.id, stream.owner_id, stream.id)

        delivered = await self._relay.broadcast_tip(stream.id, tipper, amount, message)

        self._notifications.notify_one(
            stream.owner_id,
            NotificationEvent(
                type=NotificationType.TIP_RECEIVED,
                title="New Tip",
                message=f"{tipper.username} sent you a ${amount} tip!",
                data={"streamId": stream.id, "amount": str(amount), "message": message},
                sender_id=tipper.id,
            ),
        )

        return TipResponse(receipt=receipt, delivered_to=delivered)

    async def announce_stream_started(
        self,
        stream_id: str,
        requester: Identity,
    ) -> AnnounceResponse:
        stream = await self._get_live_stream(stream_id)
        if stream.owner_id != requester.id:
            raise NotStreamOwnerError(stream_id)

        subscriber_ids = await self._subscribers.list_active_subscriber_ids(stream.owner_id)
        broadcaster = await self.broadcaster_info(stream)

        if subscriber_ids:
            self._notifications.notify_many(
                subscriber_ids,
                NotificationEvent(
                    type=NotificationType.LIVE_STREAM_STARTED,
                    title="Live Stream Started",
                    message=f"{requester.username} is now live: {stream.title}",
                    data={"streamId": stream.id},
                    link=f"/live/{stream.id}",
                    sender_id=requester.id,
                ),
            )

        # Explore pages list live streams for everyone, subscribed or not.
        self._notifications.broadcast_global(
            NotificationEvent(
                type=NotificationType.LIVE_STREAM_STARTED,
                title=stream.title,
                message=f"{requester.username} is now live",
                data={"streamId": stream.id, "title": stream.title, "streamer": broadcaster},
                link=f"/live/{stream.id}",
                sender_id=requester.id,
            ),
            channel="stream:new",
        )

        return AnnounceResponse(stream_id=stream.id, subscribers_notified=len(subscriber_ids))
