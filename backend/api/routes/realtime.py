"""
Real-time endpoint.

One WebSocket per client. The credential is read from the ``token``
query parameter (browsers cannot set headers on a WebSocket) or from an
``Authorization: Bearer`` header.
"""

import json
import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, WebSocket
from fastapi.websockets import WebSocketDisconnect
from pydantic import BaseModel

from modules.connections.exceptions import TransportClosedError
from modules.connections.interfaces import ITransport

from ..dependencies import ServiceContainer, get_container

logger = logging.getLogger(__name__)

router = APIRouter()


class WebSocketTransport(ITransport):
    """Adapts a Starlette WebSocket to the transport protocol."""

    def __init__(self, websocket: WebSocket):
        self._websocket = websocket

    async def receive_json(self) -> Any:
        """
        Receive one frame.

        Text that is not valid JSON is returned as-is; the session reports
        it back to the client as a malformed message.
        """
        try:
            message = await self._websocket.receive()
        except (WebSocketDisconnect, RuntimeError) as e:
            raise TransportClosedError(str(e))
        if message["type"] == "websocket.disconnect":
            raise TransportClosedError("Peer disconnected")

        raw = message.get("text")
        if raw is None:
            raw = (message.get("bytes") or b"").decode("utf-8", errors="replace")
        try:
            return json.loads(raw)
        except ValueError:
            return raw

    async def send_json(self, data: dict[str, Any]) -> None:
        try:
            await self._websocket.send_json(data)
        except (WebSocketDisconnect, RuntimeError) as e:
            raise TransportClosedError(str(e))

    async def close(self, code: int = 1000, reason: str = "") -> None:
        try:
            await self._websocket.close(code=code, reason=reason)
        except RuntimeError as e:
            raise TransportClosedError(str(e))


def bearer_credential(authorization: Optional[str]) -> Optional[str]:
    """Extract the token from an ``Authorization: Bearer`` header value."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


@router.websocket("/ws")
async def realtime_endpoint(
    websocket: WebSocket,
    token: Optional[str] = Query(default=None),
    container: ServiceContainer = Depends(get_container),
) -> None:
    """
    Serve one real-time connection until the client goes away.

    The socket is accepted before the handshake so a rejected client
    receives a ``connect:error`` event ahead of the close code.
    """
    credential = token or bearer_credential(websocket.headers.get("authorization"))
    await websocket.accept()
    session = container.open_session(WebSocketTransport(websocket))
    await session.serve(credential)


class RealtimeConfigResponse(BaseModel):
    """Client configuration for the real-time surface."""

    endpoint: str
    ice_servers: list[dict[str, Any]]


@router.get("/api/realtime/config", response_model=RealtimeConfigResponse)
async def realtime_config(
    container: ServiceContainer = Depends(get_container),
) -> RealtimeConfigResponse:
    """ICE servers for building peer connections, available without a socket."""
    return RealtimeConfigResponse(endpoint="/ws", ice_servers=container.ice_servers)
