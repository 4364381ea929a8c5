"""
Stream API endpoints.

Serves stream and post details with the caller's access decision, and
the tip and go-live actions. Domain errors propagate to the app's
exception handler, which maps them to HTTP status codes.
"""

from typing import Optional

from fastapi import APIRouter, Depends

from api.middleware.auth import get_current_identity, get_optional_identity
from api.dependencies import get_stream_service
from api.models import ERROR_RESPONSES
from shared.models import Identity
from modules.access.models import PostAccessResponse

from .interfaces import IStreamService
from .models import StreamDetail, TipRequest, TipResponse, AnnounceResponse

router = APIRouter(responses=ERROR_RESPONSES)
posts_router = APIRouter(responses=ERROR_RESPONSES)


@router.get("/{stream_id}", response_model=StreamDetail)
async def get_stream(
    stream_id: str,
    identity: Optional[Identity] = Depends(get_optional_identity),
    service: IStreamService = Depends(get_stream_service),
) -> StreamDetail:
    """
    Get a stream with the caller's access decision and live viewer counts.

    Anonymous callers only have access to free streams.
    """
    return await service.get_stream_detail(stream_id, identity)


@router.post("/{stream_id}/tips", response_model=TipResponse, status_code=201)
async def send_tip(
    stream_id: str,
    request: TipRequest,
    identity: Identity = Depends(get_current_identity),
    service: IStreamService = Depends(get_stream_service),
) -> TipResponse:
    """
    Tip a live stream.

    The tip is broadcast to everyone in the stream room and the
    broadcaster is notified.
    """
    return await service.send_tip(stream_id, identity, request.amount, request.message)


@router.post("/{stream_id}/announce", response_model=AnnounceResponse)
async def announce_stream(
    stream_id: str,
    identity: Identity = Depends(get_current_identity),
    service: IStreamService = Depends(get_stream_service),
) -> AnnounceResponse:
    """
    Announce that a stream went live.

    Only the broadcaster may announce their own stream.
    """
    return await service.announce_stream_started(stream_id, identity)


@posts_router.get("/{post_id}/access", response_model=PostAccessResponse)
async def get_post_access(
    post_id: str,
    identity: Optional[Identity] = Depends(get_optional_identity),
    service: IStreamService = Depends(get_stream_service),
) -> PostAccessResponse:
    """Whether the caller may see a gated post."""
    return await service.get_post_access(post_id, identity)
