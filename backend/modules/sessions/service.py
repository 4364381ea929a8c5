"""
Connection session implementation.

A session walks Unauthenticated -> Authenticated -> Closed. The
credential is verified once at handshake and the resulting identity is
bound to the connection for its whole lifetime. Inbound messages of one
connection are handled one at a time, in arrival order.
"""

import asyncio
import logging
from decimal import Decimal
from typing import Any, Awaitable, Callable, Optional

from pydantic import BaseModel, ValidationError as PydanticValidationError

from shared.exceptions import AuthenticationError, BackstageError, InternalError
from modules.auth.exceptions import (
    MissingCredentialError,
    InvalidCredentialError,
    BannedIdentityError,
)
from modules.auth.interfaces import ICredentialVerifier
from modules.connections.exceptions import TransportClosedError
from modules.connections.interfaces import ITransport
from modules.connections.models import ConnectionHandle
from modules.connections.service import ConnectionIndex, fan_out
from modules.messaging.interfaces import IMessageStore
from modules.messaging.models import ConversationMessage, MessageType
from modules.notifications.interfaces import INotificationFanout
from modules.notifications.models import NotificationEvent, NotificationType
from modules.rooms.interfaces import IRoomRegistry
from modules.signalling.interfaces import ISignallingRelay
from modules.streams.interfaces import IStreamService
from modules.streams.models import TipResponse

from .interfaces import IConversationLookup
from .models import (
    SessionState,
    InboundMessage,
    StreamRef,
    ConversationRef,
    OfferPayload,
    AnswerPayload,
    IceCandidatePayload,
    ChatPayload,
    ReactionPayload,
    TipPayload,
    MessagePayload,
)
from .exceptions import (
    SessionClosedError,
    NotAuthenticatedError,
    MalformedMessageError,
    UnknownEventError,
    NotAParticipantError,
    NotInStreamError,
    NotInConversationError,
)

logger = logging.getLogger(__name__)

Handler = Callable[[Any], Awaitable[Any]]


def _error_fields(error: PydanticValidationError) -> list[str]:
    return [".".join(str(part) for part in err["loc"]) or "data" for err in error.errors()]


class ConnectionSession:
    """
    Server-side state of one real-time connection.

    Example:
        session = ConnectionSession(transport, verifier, rooms, ...)
        await session.serve(token)  # returns once the peer disconnects
    """

    def __init__(
        self,
        transport: ITransport,
        verifier: ICredentialVerifier,
        rooms: IRoomRegistry,
        conversation_rooms: IRoomRegistry,
        connections: ConnectionIndex,
        relay: ISignallingRelay,
        streams: IStreamService,
        conversations: IConversationLookup,
        messages: IMessageStore,
        notifications: INotificationFanout,
        ice_servers: Optional[list[dict[str, Any]]] = None,
    ):
        self._transport = transport
        self._verifier = verifier
        self._rooms = rooms
        self._conversation_rooms = conversation_rooms
        self._connections = connections
        self._relay = relay
        self._streams = streams
        self._conversations = conversations
        self._messages = messages
        self._notifications = notifications
        self._ice_servers = ice_servers or []

        self.state = SessionState.UNAUTHENTICATED
        self.handle: Optional[ConnectionHandle] = None

        self._routes: dict[str, tuple[type[BaseModel], Handler]] = {
            "stream:join": (StreamRef, lambda m: self.join_stream(m.stream_id)),
            "stream:leave": (StreamRef, lambda m: self.leave_stream(m.stream_id)),
            "webrtc:offer": (OfferPayload, lambda m: self.send_offer(m.stream_id, m.payload)),
            "webrtc:answer": (
                AnswerPayload,
                lambda m: self.send_answer(m.target_handle, m.payload),
            ),
            "webrtc:ice-candidate": (
                IceCandidatePayload,
                lambda m: self.send_ice_candidate(m.stream_id, m.payload, m.target_handle),
            ),
            "stream:chat": (ChatPayload, lambda m: self.send_chat(m.stream_id, m.content)),
            "stream:reaction": (
                ReactionPayload,
                lambda m: self.send_reaction(m.stream_id, m.reaction_tag),
            ),
            "stream:tip": (
                TipPayload,
                lambda m: self.send_tip(m.stream_id, m.amount, m.message),
            ),
            "conversation:join": (
                ConversationRef,
                lambda m: self.join_conversation(m.conversation_id),
            ),
            "conversation:leave": (
                ConversationRef,
                lambda m: self.leave_conversation(m.conversation_id),
            ),
            "message:send": (
                MessagePayload,
                lambda m: self.send_message(m.conversation_id, m.content, m.message_type),
            ),
            "typing:start": (
                ConversationRef,
                lambda m: self.send_typing(m.conversation_id, True),
            ),
            "typing:stop": (
                ConversationRef,
                lambda m: self.send_typing(m.conversation_id, False),
            ),
        }

    @property
    def is_closed(self) -> bool:
        return self.state is SessionState.CLOSED

    def _require_authenticated(self) -> ConnectionHandle:
        if self.state is SessionState.CLOSED:
            raise SessionClosedError()
        if self.state is SessionState.UNAUTHENTICATED or self.handle is None:
            raise NotAuthenticatedError()
        return self.handle

    def _require_stream(self, handle: ConnectionHandle, stream_id: Optional[str]) -> str:
        if not stream_id or stream_id not in handle.stream_rooms:
            raise NotInStreamError(stream_id or "")
        return stream_id

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def authenticate(self, credential: Optional[str]) -> ConnectionHandle:
        """
        Verify the handshake credential and register the connection.

        Raises:
            MissingCredentialError: No credential was presented
            InvalidCredentialError: Bad signature, expired or unknown user
            BannedIdentityError: The user is banned
            SessionClosedError: The session was closed during verification
        """
        if self.state is SessionState.CLOSED:
            raise SessionClosedError()
        if self.handle is not None:
            return self.handle

        identity = await self._verifier.verify(credential)
        if self.state is SessionState.CLOSED:
            raise SessionClosedError()

        self.handle = ConnectionHandle(identity=identity, transport=self._transport)
        self._connections.add(self.handle)
        self.state = SessionState.AUTHENTICATED
        logger.info("Connected %s as %s", self.handle.connection_id, identity.id)
        return self.handle

    async def serve(self, credential: Optional[str]) -> None:
        """
        Run the connection from handshake to disconnect.

        A failed handshake is reported with ``connect:error`` and the
        transport is closed with the failure's close code. Otherwise the
        receive loop runs until the peer goes away, and cleanup always
        completes, even if the serving task is cancelled.
        """
        try:
            await self.authenticate(credential)
        except (MissingCredentialError, InvalidCredentialError, BannedIdentityError) as e:
            await self._reject(e)
            return

        try:
            await self._run()
        finally:
            await asyncio.shield(self.close())

    async def _reject(self, error: AuthenticationError) -> None:
        logger.info("Rejected handshake: %s", error.code)
        self.state = SessionState.CLOSED
        try:
            await self._transport.send_json({"event": "connect:error", "data": error.to_dict()})
            await self._transport.close(code=error.close_code, reason=error.code or "")
        except TransportClosedError:
            logger.debug("Transport gone before handshake rejection was delivered")

    async def _run(self) -> None:
        handle = self._require_authenticated()
        await handle.send(
            "connect:ok",
            {
                "identity": handle.identity.public(),
                "connectionId": handle.connection_id,
                "iceServers": self._ice_servers,
            },
        )
        while self.state is SessionState.AUTHENTICATED:
            try:
                message = await self._transport.receive_json()
            except TransportClosedError:
                break
            await self.handle_message(message)

    async def handle_message(self, message: Any) -> None:
        """
        Dispatch one inbound frame, reporting rejections to this connection only.

        Never raises: a failing handler rejects its own frame and the
        connection keeps serving the next one.
        """
        event = message.get("event") if isinstance(message, dict) else None
        try:
            await self.dispatch(message)
        except SessionClosedError:
            return
        except BackstageError as e:
            logger.debug("Rejected %s from %s: %s", event, self.handle, e.code)
            await self._report(event, e)
        except Exception:
            logger.exception("Unexpected error handling %s from %s", event, self.handle)
            await self._report(event, InternalError())

    async def _report(self, event: Any, error: BackstageError) -> None:
        if self.handle is not None:
            await self.handle.send("error", error.to_event(event if isinstance(event, str) else None))

    async def dispatch(self, message: Any) -> Any:
        """
        Validate an inbound frame and route it to its handler.

        Raises:
            MalformedMessageError: Frame or payload is missing required fields
            UnknownEventError: No handler for the event name
            SessionClosedError: The session is closed
        """
        self._require_authenticated()
        try:
            inbound = InboundMessage.model_validate(message)
        except PydanticValidationError as e:
            raise MalformedMessageError(None, _error_fields(e))

        route = self._routes.get(inbound.event)
        if route is None:
            raise UnknownEventError(inbound.event)

        payload_model, handler = route
        try:
            payload = payload_model.model_validate(inbound.data)
        except PydanticValidationError as e:
            raise MalformedMessageError(
                inbound.event, _error_fields(e)
            )
        return await handler(payload)

    async def close(self) -> None:
        """
        Close the session and release every room membership.

        Idempotent. The session is marked closed before any cleanup runs, so
        operations racing with it are refused.
        """
        if self.state is SessionState.CLOSED:
            return
        self.state = SessionState.CLOSED

        handle = self.handle
        if handle is None:
            return

        handle.is_open = False
        self._connections.remove(handle)

        stream_ids = list(handle.stream_rooms)
        handle.stream_rooms.clear()
        for stream_id in stream_ids:
            await self._leave_stream_room(handle, stream_id)

        conversation_ids = list(handle.conversation_rooms)
        handle.conversation_rooms.clear()
        for conversation_id in conversation_ids:
            await self._conversation_rooms.leave(conversation_id, handle)

        logger.info(
            "Disconnected %s (%d stream rooms, %d conversations)",
            handle.connection_id,
            len(stream_ids),
            len(conversation_ids),
        )

    # ------------------------------------------------------------------
    # Stream rooms
    # ------------------------------------------------------------------

    async def join_stream(self, stream_id: str) -> int:
        """
        Enter a stream's viewer room.

        Returns:
            Viewer count after the join, or 0 if the session closed meanwhile

        Raises:
            StreamNotFoundError, StreamNotLiveError, StreamAccessDeniedError
        """
        handle = self._require_authenticated()
        stream = await self._streams.admit(stream_id, handle.identity)
        broadcaster = await self._streams.broadcaster_info(stream)
        if self.is_closed:
            return 0

        rejoin = stream_id in handle.stream_rooms
        count = await self._rooms.join(stream_id, handle)
        if self.is_closed:
            # close() already ran and did not see this room.
            await self._rooms.leave(stream_id, handle)
            return 0
        handle.stream_rooms.add(stream_id)

        await handle.send(
            "stream:joined",
            {"streamId": stream_id, "broadcasterInfo": broadcaster, "viewerCount": count},
        )
        if not rejoin:
            await self._relay.broadcast_to_stream(
                stream_id, "stream:viewer-count", {"streamId": stream_id, "count": count}
            )
            await self._relay.broadcast_to_stream(
                stream_id,
                "stream:viewer-joined",
                {"streamId": stream_id, "identity": handle.identity.public()},
                exclude=handle,
            )
        return count

    async def leave_stream(self, stream_id: str) -> bool:
        """Leave a stream room. Leaving a room never joined is a no-op."""
        handle = self._require_authenticated()
        if stream_id not in handle.stream_rooms:
            return False
        handle.stream_rooms.discard(stream_id)
        await self._leave_stream_room(handle, stream_id)
        await handle.send("stream:left", {"streamId": stream_id})
        return True

    async def _leave_stream_room(self, handle: ConnectionHandle, stream_id: str) -> None:
        count = await self._rooms.leave(stream_id, handle)
        await self._relay.broadcast_to_stream(
            stream_id, "stream:viewer-count", {"streamId": stream_id, "count": count}
        )
        await self._relay.broadcast_to_stream(
            stream_id,
            "stream:viewer-left",
            {"streamId": stream_id, "identity": handle.identity.public()},
        )

    async def send_offer(self, stream_id: str, payload: Any) -> int:
        handle = self._require_authenticated()
        self._require_stream(handle, stream_id)
        return await self._relay.relay_offer(stream_id, handle, payload)

    async def send_answer(self, target_connection_id: str, payload: Any) -> int:
        handle = self._require_authenticated()
        return await self._relay.relay_answer(target_connection_id, handle, payload)

    async def send_ice_candidate(
        self,
        stream_id: Optional[str],
        payload: Any,
        target_connection_id: Optional[str] = None,
    ) -> int:
        handle = self._require_authenticated()
        if target_connection_id is None:
            self._require_stream(handle, stream_id)
        return await self._relay.relay_ice_candidate(
            stream_id or "",
            handle,
            payload,
            target_connection_id=target_connection_id,
        )

    async def send_chat(self, stream_id: str, content: str) -> int:
        handle = self._require_authenticated()
        self._require_stream(handle, stream_id)
        return await self._relay.broadcast_chat(stream_id, handle.identity, content)

    async def send_reaction(self, stream_id: str, reaction_tag: str) -> int:
        handle = self._require_authenticated()
        self._require_stream(handle, stream_id)
        return await self._relay.broadcast_reaction(stream_id, handle.identity, reaction_tag)

    async def send_tip(
        self,
        stream_id: str,
        amount: Decimal,
        message: Optional[str] = None,
    ) -> TipResponse:
        handle = self._require_authenticated()
        self._require_stream(handle, stream_id)
        return await self._streams.send_tip(stream_id, handle.identity, amount, message)

    # ------------------------------------------------------------------
    # Conversation rooms
    # ------------------------------------------------------------------

    async def join_conversation(self, conversation_id: str) -> bool:
        """
        Enter a conversation room.

        Raises:
            NotAParticipantError: The identity is not a participant; the
                session's membership is left untouched
        """
        handle = self._require_authenticated()
        participants = await self._conversations.get_conversation_participants(conversation_id)
        if not participants or handle.user_id not in participants:
            raise NotAParticipantError(conversation_id)
        if self.is_closed:
            return False

        await self._conversation_rooms.join(conversation_id, handle)
        if self.is_closed:
            await self._conversation_rooms.leave(conversation_id, handle)
            return False
        handle.conversation_rooms.add(conversation_id)
        await handle.send("conversation:joined", {"conversationId": conversation_id})
        return True

    async def leave_conversation(self, conversation_id: str) -> bool:
        handle = self._require_authenticated()
        if conversation_id not in handle.conversation_rooms:
            return False
        handle.conversation_rooms.discard(conversation_id)
        await self._conversation_rooms.leave(conversation_id, handle)
        return True

    def _require_conversation(self, handle: ConnectionHandle, conversation_id: str) -> str:
        if conversation_id not in handle.conversation_rooms:
            raise NotInConversationError(conversation_id)
        return conversation_id

    async def send_typing(self, conversation_id: str, is_typing: bool) -> int:
        """Tell the other participants in the room that this user is (not) typing."""
        handle = self._require_authenticated()
        self._require_conversation(handle, conversation_id)
        others = [
            member
            for member in self._conversation_rooms.members(conversation_id)
            if member is not handle
        ]
        return await fan_out(
            others,
            "user:typing",
            {
                "conversationId": conversation_id,
                "userId": handle.user_id,
                "username": handle.identity.username,
                "isTyping": is_typing,
            },
        )

    async def send_message(
        self,
        conversation_id: str,
        content: str,
        message_type: MessageType = MessageType.TEXT,
    ) -> ConversationMessage:
        """
        Store a message and deliver it to the conversation.

        Everyone in the conversation room, the sender included, receives
        ``message:new``. Every other participant also gets a ``new_message``
        notification and an ``unread:update`` counter on their private
        channel, wherever they are connected.

        Raises:
            NotInConversationError: The connection has not joined the conversation
        """
        handle = self._require_authenticated()
        self._require_conversation(handle, conversation_id)

        message = await self._messages.create_message(
            conversation_id, handle.user_id, content, message_type
        )
        await fan_out(
            self._conversation_rooms.members(conversation_id),
            "message:new",
            {"message": message.to_wire(handle.identity)},
        )

        participants = await self._conversations.get_conversation_participants(conversation_id)
        for recipient_id in participants or []:
            if recipient_id == handle.user_id:
                continue
            self._notifications.notify_one(
                recipient_id,
                NotificationEvent(
                    type=NotificationType.NEW_MESSAGE,
                    title="New Message",
                    message=f"{handle.identity.username} sent you a message",
                    data={"conversationId": conversation_id, "messageId": message.id},
                    link=f"/messages/{conversation_id}",
                    sender_id=handle.user_id,
                ),
            )
            unread = await self._messages.count_unread(conversation_id, recipient_id)
            self._notifications.push_to_user(
                recipient_id,
                "unread:update",
                {"conversationId": conversation_id, "count": unread},
            )
        return message
