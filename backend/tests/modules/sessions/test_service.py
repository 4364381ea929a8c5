"""Tests for connection sessions."""

import asyncio
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from api.dependencies import ServiceContainer
from modules.sessions.exceptions import SessionClosedError, NotAuthenticatedError
from modules.sessions.models import SessionState
from tests.conftest import (
    CREATOR_ID,
    SUBSCRIBER_ID,
    VIEWER_ID,
    BANNED_ID,
    FakeTransport,
    create_test_token,
    make_identity,
    settle,
)


@pytest.fixture
def container(settings, directory):
    return ServiceContainer(settings, directory=directory)


async def connect(container, user_id):
    """Open and authenticate a session for ``user_id``."""
    transport = FakeTransport()
    session = container.open_session(transport)
    await session.authenticate(create_test_token(user_id))
    return session, transport


class TestHandshake:
    @pytest.mark.asyncio
    async def test_authenticate_binds_identity(self, container):
        """Should bind the verified identity and register the connection."""
        session, _ = await connect(container, SUBSCRIBER_ID)

        assert session.state is SessionState.AUTHENTICATED
        assert session.handle.identity.id == SUBSCRIBER_ID
        assert container.connections.get(session.handle.connection_id) is session.handle

    @pytest.mark.asyncio
    async def test_verifier_called_once(self, container):
        """Should verify the credential exactly once per session."""
        verifier = MagicMock()
        verifier.verify = AsyncMock(return_value=make_identity("u1"))
        container._verifier = verifier
        session = container.open_session(FakeTransport())

        await session.authenticate("token")
        await session.authenticate("token")

        verifier.verify.assert_awaited_once_with("token")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "credential,code,close_code",
        [
            (None, "no-credential", 4001),
            ("garbage", "invalid-credential", 4002),
            (create_test_token("ghost"), "invalid-credential", 4002),
            (create_test_token(BANNED_ID), "banned", 4003),
        ],
    )
    async def test_rejected_handshake(self, container, credential, code, close_code):
        """Should report connect:error and close with the reason's code."""
        transport = FakeTransport()
        session = container.open_session(transport)

        await session.serve(credential)

        assert transport.data("connect:error")[0]["error"] == code
        assert transport.closed
        assert transport.close_code == close_code
        assert session.state is SessionState.CLOSED
        assert session.handle is None
        assert len(container.connections) == 0

    @pytest.mark.asyncio
    async def test_operations_before_handshake_refused(self, container):
        """Should refuse operations on an unauthenticated session."""
        session = container.open_session(FakeTransport())
        with pytest.raises(NotAuthenticatedError):
            await session.join_stream("stream-free")

    @pytest.mark.asyncio
    async def test_serve_runs_until_disconnect(self, container):
        """Should greet the client, handle its events and clean up on disconnect."""
        transport = FakeTransport()
        session = container.open_session(transport)
        transport.push("stream:join", {"streamId": "stream-free"})
        transport.disconnect()

        await session.serve(create_test_token(VIEWER_ID))

        hello = transport.data("connect:ok")[0]
        assert hello["identity"]["userId"] == VIEWER_ID
        assert hello["connectionId"] == session.handle.connection_id
        assert hello["iceServers"][0]["urls"].startswith("stun:")
        assert transport.data("stream:joined")[0]["streamId"] == "stream-free"
        assert session.state is SessionState.CLOSED
        assert container.rooms.viewer_count("stream-free") == 0
        assert len(container.connections) == 0


class TestStreamRooms:
    @pytest.mark.asyncio
    async def test_join_announces_to_room(self, container):
        """Should confirm to the joiner, update counts and tell the others."""
        first, first_t = await connect(container, VIEWER_ID)
        second, second_t = await connect(container, SUBSCRIBER_ID)
        await first.join_stream("stream-free")

        count = await second.join_stream("stream-free")

        assert count == 2
        joined = second_t.data("stream:joined")[0]
        assert joined["viewerCount"] == 2
        assert joined["broadcasterInfo"]["userId"] == CREATOR_ID
        assert first_t.data("stream:viewer-count")[-1]["count"] == 2
        assert second_t.data("stream:viewer-count")[-1]["count"] == 2
        assert first_t.data("stream:viewer-joined")[0]["identity"]["userId"] == SUBSCRIBER_ID
        assert second_t.data("stream:viewer-joined") == []

    @pytest.mark.asyncio
    async def test_rejoin_does_not_double_count(self, container):
        """Should keep a single membership when joining twice."""
        session, transport = await connect(container, VIEWER_ID)
        await session.join_stream("stream-free")
        await session.join_stream("stream-free")

        assert container.rooms.viewer_count("stream-free") == 1
        assert len(transport.data("stream:joined")) == 2
        assert len(transport.data("stream:viewer-count")) == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "stream_id,code",
        [
            ("missing", "stream-not-found"),
            ("stream-ended", "stream-not-live"),
            ("stream-subs", "access-denied"),
            ("stream-paid", "access-denied"),
        ],
    )
    async def test_join_rejections_reported_to_requester(self, container, stream_id, code):
        """Should send a typed error event and leave membership untouched."""
        session, transport = await connect(container, VIEWER_ID)

        await session.handle_message({"event": "stream:join", "data": {"streamId": stream_id}})

        error = transport.data("error")[0]
        assert error["code"] == code
        assert error["event"] == "stream:join"
        assert session.handle.stream_rooms == set()
        assert session.state is SessionState.AUTHENTICATED

    @pytest.mark.asyncio
    async def test_leave_updates_room(self, container):
        """Should confirm the leave and update the remaining members."""
        stayer, stayer_t = await connect(container, VIEWER_ID)
        leaver, leaver_t = await connect(container, SUBSCRIBER_ID)
        await stayer.join_stream("stream-free")
        await leaver.join_stream("stream-free")

        assert await leaver.leave_stream("stream-free") is True

        assert leaver_t.data("stream:left") == [{"streamId": "stream-free"}]
        assert stayer_t.data("stream:viewer-count")[-1]["count"] == 1
        assert stayer_t.data("stream:viewer-left")[0]["identity"]["userId"] == SUBSCRIBER_ID
        assert container.rooms.viewer_count("stream-free") == 1

    @pytest.mark.asyncio
    async def test_leave_unjoined_stream_is_noop(self, container):
        """Should ignore leaving a room never joined."""
        session, transport = await connect(container, VIEWER_ID)
        assert await session.leave_stream("stream-free") is False
        assert transport.data("stream:left") == []

    @pytest.mark.asyncio
    async def test_chat_requires_membership(self, container):
        """Should reject chat for a stream the connection has not joined."""
        session, transport = await connect(container, VIEWER_ID)

        await session.handle_message(
            {"event": "stream:chat", "data": {"streamId": "stream-free", "content": "hi"}}
        )

        assert transport.data("error")[0]["code"] == "not-in-stream"
        assert transport.data("stream:chat") == []

    @pytest.mark.asyncio
    async def test_chat_and_reaction_reach_room(self, container):
        """Should fan chat and reactions out to the room, sender included."""
        a, a_t = await connect(container, VIEWER_ID)
        b, b_t = await connect(container, SUBSCRIBER_ID)
        await a.join_stream("stream-free")
        await b.join_stream("stream-free")

        await a.handle_message(
            {"event": "stream:chat", "data": {"streamId": "stream-free", "content": "hello"}}
        )
        await b.handle_message(
            {"event": "stream:reaction", "data": {"streamId": "stream-free", "reactionTag": "clap"}}
        )

        for transport in (a_t, b_t):
            assert transport.data("stream:chat")[0]["content"] == "hello"
            assert transport.data("stream:reaction")[0]["reactionTag"] == "clap"

    @pytest.mark.asyncio
    async def test_tip_event_broadcasts_to_room(self, container):
        """Should run the tip flow for a socket tip."""
        session, transport = await connect(container, SUBSCRIBER_ID)
        await session.join_stream("stream-subs")

        await session.handle_message(
            {
                "event": "stream:tip",
                "data": {"streamId": "stream-subs", "amount": "3.50", "message": "thanks"},
            }
        )
        await container.notifications.drain()

        tip = transport.data("stream:tip")[0]
        assert tip["amount"] == "3.50"
        assert tip["identity"]["userId"] == SUBSCRIBER_ID
        assert container.payments.charges[0].amount == Decimal("3.50")


class TestSignalling:
    @pytest.mark.asyncio
    async def test_offer_answer_exchange(self, container):
        """Should route an offer to viewers and the answer back to its sender."""
        host, host_t = await connect(container, CREATOR_ID)
        viewer, viewer_t = await connect(container, SUBSCRIBER_ID)
        await host.join_stream("stream-subs")
        await viewer.join_stream("stream-subs")

        await host.handle_message(
            {"event": "webrtc:offer", "data": {"streamId": "stream-subs", "payload": {"sdp": "o"}}}
        )
        offer = viewer_t.data("webrtc:offer")[0]
        assert host_t.data("webrtc:offer") == []

        await viewer.handle_message(
            {
                "event": "webrtc:answer",
                "data": {"targetHandle": offer["fromConnectionId"], "payload": {"sdp": "a"}},
            }
        )
        answer = host_t.data("webrtc:answer")[0]
        assert answer["payload"] == {"sdp": "a"}
        assert answer["fromConnectionId"] == viewer.handle.connection_id

    @pytest.mark.asyncio
    async def test_targeted_ice_without_membership(self, container):
        """Should allow targeted candidates outside any stream room."""
        host, host_t = await connect(container, CREATOR_ID)
        viewer, _ = await connect(container, SUBSCRIBER_ID)

        await viewer.handle_message(
            {
                "event": "webrtc:ice-candidate",
                "data": {"targetHandle": host.handle.connection_id, "payload": {"candidate": "c"}},
            }
        )

        assert host_t.data("webrtc:ice-candidate")[0]["payload"] == {"candidate": "c"}

    @pytest.mark.asyncio
    async def test_untargeted_ice_requires_membership(self, container):
        """Should reject room-wide candidates from outside the room."""
        viewer, viewer_t = await connect(container, SUBSCRIBER_ID)

        await viewer.handle_message(
            {"event": "webrtc:ice-candidate", "data": {"streamId": "stream-subs", "payload": {}}}
        )

        assert viewer_t.data("error")[0]["code"] == "not-in-stream"


class TestDispatch:
    @pytest.mark.asyncio
    async def test_unknown_event(self, container):
        """Should report unknown event names."""
        session, transport = await connect(container, VIEWER_ID)
        await session.handle_message({"event": "stream:teleport", "data": {}})
        assert transport.data("error")[0]["code"] == "unknown-event"

    @pytest.mark.asyncio
    async def test_missing_fields(self, container):
        """Should report payloads missing required fields."""
        session, transport = await connect(container, VIEWER_ID)
        await session.handle_message({"event": "stream:join", "data": {}})

        error = transport.data("error")[0]
        assert error["code"] == "malformed-message"
        assert "streamId" in error["details"]["fields"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("frame", ["not json", 42, {"data": {}}, {"event": ""}])
    async def test_malformed_frames(self, container, frame):
        """Should report frames that are not {event, data} objects."""
        session, transport = await connect(container, VIEWER_ID)
        await session.handle_message(frame)
        assert transport.data("error")[0]["code"] == "malformed-message"

    @pytest.mark.asyncio
    async def test_errors_go_to_requester_only(self, container):
        """Should never show one connection's error to another."""
        a, a_t = await connect(container, VIEWER_ID)
        b, b_t = await connect(container, VIEWER_ID)
        await a.join_stream("stream-free")
        await b.join_stream("stream-free")

        await a.handle_message({"event": "nope", "data": {}})

        assert a_t.data("error")
        assert b_t.data("error") == []

    @pytest.mark.asyncio
    async def test_unexpected_handler_error_reported(self, container, directory, caplog):
        """Should turn a non-domain failure into an internal-error frame and log it."""
        session, transport = await connect(container, VIEWER_ID)
        directory.get_stream = AsyncMock(side_effect=RuntimeError("db down"))

        with caplog.at_level("ERROR", logger="modules.sessions.service"):
            await session.handle_message({"event": "stream:join", "data": {"streamId": "stream-free"}})

        error = transport.data("error")[0]
        assert error == {
            "event": "stream:join",
            "code": "internal-error",
            "message": "Internal server error",
            "details": {},
        }
        assert "db down" not in str(error)
        assert any(record.exc_info for record in caplog.records)
        assert session.state is SessionState.AUTHENTICATED

    @pytest.mark.asyncio
    async def test_serve_survives_failing_lookup(self, container, directory):
        """Should keep serving later frames after a handler blows up."""
        directory.get_stream = AsyncMock(side_effect=RuntimeError("db down"))
        transport = FakeTransport()
        session = container.open_session(transport)
        transport.push("stream:join", {"streamId": "stream-free"})
        transport.push("conversation:join", {"conversationId": "conv-1"})
        transport.disconnect()

        await session.serve(create_test_token(SUBSCRIBER_ID))

        assert [frame["event"] for frame in transport.sent] == [
            "connect:ok",
            "error",
            "conversation:joined",
        ]
        assert transport.data("error")[0]["code"] == "internal-error"
        assert session.state is SessionState.CLOSED
        assert len(container.connections) == 0


class TestConversations:
    @pytest.mark.asyncio
    async def test_participant_joins(self, container):
        """Should let a participant join and confirm it."""
        session, transport = await connect(container, SUBSCRIBER_ID)

        assert await session.join_conversation("conv-1") is True

        assert transport.data("conversation:joined") == [{"conversationId": "conv-1"}]
        assert session.handle.conversation_rooms == {"conv-1"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("conversation_id", ["conv-1", "missing"])
    async def test_non_participant_rejected(self, container, conversation_id):
        """Should reject outsiders without touching membership."""
        session, transport = await connect(container, VIEWER_ID)

        await session.handle_message(
            {"event": "conversation:join", "data": {"conversationId": conversation_id}}
        )

        assert transport.data("error")[0]["code"] == "not-a-participant"
        assert session.handle.conversation_rooms == set()
        assert container.conversation_rooms.viewer_count(conversation_id) == 0

    @pytest.mark.asyncio
    async def test_leave_conversation(self, container):
        """Should drop the conversation membership."""
        session, _ = await connect(container, SUBSCRIBER_ID)
        await session.join_conversation("conv-1")

        assert await session.leave_conversation("conv-1") is True
        assert session.handle.conversation_rooms == set()
        assert await session.leave_conversation("conv-1") is False

    @pytest.mark.asyncio
    async def test_typing_reaches_other_participants(self, container):
        """Should relay typing indicators to the other side only."""
        creator, creator_t = await connect(container, CREATOR_ID)
        fan, fan_t = await connect(container, SUBSCRIBER_ID)
        await creator.join_conversation("conv-1")
        await fan.join_conversation("conv-1")

        await fan.handle_message({"event": "typing:start", "data": {"conversationId": "conv-1"}})

        typing = creator_t.data("user:typing")[0]
        assert typing["userId"] == SUBSCRIBER_ID
        assert typing["isTyping"] is True
        assert fan_t.data("user:typing") == []

    @pytest.mark.asyncio
    async def test_typing_requires_membership(self, container):
        """Should reject typing indicators for conversations not joined."""
        fan, fan_t = await connect(container, SUBSCRIBER_ID)
        await fan.handle_message({"event": "typing:stop", "data": {"conversationId": "conv-1"}})
        assert fan_t.data("error")[0]["code"] == "not-in-conversation"


class TestClose:
    @pytest.mark.asyncio
    async def test_disconnect_leaves_every_room_once(self, container, directory):
        """Should send exactly one count update per affected stream room."""
        directory.add_conversation("conv-2", [SUBSCRIBER_ID, VIEWER_ID])
        streams = ["stream-free", "stream-subs", "stream-paid"]

        leaving, leaving_t = await connect(container, SUBSCRIBER_ID)
        watcher, watcher_t = await connect(container, CREATOR_ID)
        for stream_id in streams:
            await watcher.join_stream(stream_id)
            await leaving.join_stream(stream_id)
        await leaving.join_conversation("conv-1")
        await leaving.join_conversation("conv-2")
        watcher_t.sent.clear()
        leaving_t.sent.clear()

        await leaving.close()

        counts = watcher_t.data("stream:viewer-count")
        assert sorted(c["streamId"] for c in counts) == sorted(streams)
        assert all(c["count"] == 1 for c in counts)
        assert len(watcher_t.data("stream:viewer-left")) == 3
        assert leaving_t.sent == []
        for stream_id in streams:
            assert container.rooms.members(stream_id) == [watcher.handle]
        assert container.conversation_rooms.viewer_count("conv-1") == 0
        assert container.conversation_rooms.viewer_count("conv-2") == 0
        assert leaving.handle not in container.connections

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self, container):
        """Should do nothing on a second close."""
        watcher, watcher_t = await connect(container, CREATOR_ID)
        leaving, _ = await connect(container, VIEWER_ID)
        await watcher.join_stream("stream-free")
        await leaving.join_stream("stream-free")
        watcher_t.sent.clear()

        await leaving.close()
        await leaving.close()

        assert len(watcher_t.data("stream:viewer-count")) == 1

    @pytest.mark.asyncio
    async def test_last_member_leaving_removes_room(self, container):
        """Should remove a room whose last member disconnects."""
        session, _ = await connect(container, VIEWER_ID)
        await session.join_stream("stream-free")
        await session.close()
        assert container.rooms.stats("stream-free") is None

    @pytest.mark.asyncio
    async def test_closed_session_refuses_operations(self, container):
        """Should refuse every operation once closed."""
        session, transport = await connect(container, VIEWER_ID)
        await session.close()

        with pytest.raises(SessionClosedError):
            await session.join_stream("stream-free")
        with pytest.raises(SessionClosedError):
            await session.dispatch({"event": "stream:join", "data": {"streamId": "stream-free"}})

        await session.handle_message({"event": "stream:join", "data": {"streamId": "stream-free"}})
        assert transport.data("error") == []

    @pytest.mark.asyncio
    async def test_close_with_dead_transport_completes(self, container):
        """Should finish cleanup even if the peer is unreachable."""
        watcher, watcher_t = await connect(container, CREATOR_ID)
        leaving, leaving_t = await connect(container, VIEWER_ID)
        await watcher.join_stream("stream-free")
        await leaving.join_stream("stream-free")
        leaving_t.fail_sends = True

        await leaving.close()

        assert container.rooms.members("stream-free") == [watcher.handle]
        assert watcher_t.data("stream:viewer-left")

    @pytest.mark.asyncio
    async def test_join_finishing_after_close_is_undone(self, container, directory):
        """Should not leave a ghost member when close races a join."""
        session, _ = await connect(container, VIEWER_ID)
        gate = asyncio.Event()
        original_get_stream = directory.get_stream

        async def slow_get_stream(stream_id):
            await gate.wait()
            return await original_get_stream(stream_id)

        directory.get_stream = slow_get_stream

        join = asyncio.create_task(session.join_stream("stream-free"))
        await settle()
        await session.close()
        gate.set()

        assert await join == 0
        assert container.rooms.viewer_count("stream-free") == 0
        assert session.handle.stream_rooms == set()

    @pytest.mark.asyncio
    async def test_cancelled_serve_still_cleans_up(self, container):
        """Should complete cleanup when the serving task is cancelled."""
        watcher, watcher_t = await connect(container, CREATOR_ID)
        await watcher.join_stream("stream-free")

        transport = FakeTransport()
        session = container.open_session(transport)
        transport.push("stream:join", {"streamId": "stream-free"})
        serving = asyncio.create_task(session.serve(create_test_token(VIEWER_ID)))
        await settle()
        assert container.rooms.viewer_count("stream-free") == 2

        serving.cancel()
        with pytest.raises(asyncio.CancelledError):
            await serving

        assert session.state is SessionState.CLOSED
        assert container.rooms.members("stream-free") == [watcher.handle]
        assert watcher_t.data("stream:viewer-left")


class TestMessaging:
    @pytest.mark.asyncio
    async def test_message_reaches_room_and_is_stored(self, container, directory):
        """Should store the message and deliver message:new to everyone in the room."""
        creator, creator_t = await connect(container, CREATOR_ID)
        fan, fan_t = await connect(container, SUBSCRIBER_ID)
        await creator.join_conversation("conv-1")
        await fan.join_conversation("conv-1")

        await fan.handle_message(
            {"event": "message:send", "data": {"conversationId": "conv-1", "content": "hey"}}
        )

        stored = directory.messages("conv-1")
        assert len(stored) == 1
        assert stored[0].sender_id == SUBSCRIBER_ID
        for transport in (creator_t, fan_t):
            message = transport.data("message:new")[0]["message"]
            assert message["id"] == stored[0].id
            assert message["content"] == "hey"
            assert message["messageType"] == "text"
            assert message["sender"]["userId"] == SUBSCRIBER_ID

    @pytest.mark.asyncio
    async def test_recipient_notified_outside_the_room(self, container):
        """Should notify the other participant and push their unread count."""
        creator, creator_t = await connect(container, CREATOR_ID)
        fan, fan_t = await connect(container, SUBSCRIBER_ID)
        await fan.join_conversation("conv-1")

        await fan.send_message("conv-1", "first")
        await fan.send_message("conv-1", "second")
        await container.notifications.drain()

        assert creator_t.data("message:new") == []
        notifications = creator_t.data("notification:new")
        assert [n["type"] for n in notifications] == ["new_message", "new_message"]
        assert notifications[0]["data"]["conversationId"] == "conv-1"
        assert notifications[0]["sender_id"] == SUBSCRIBER_ID
        assert [u["count"] for u in creator_t.data("unread:update")] == [1, 2]
        assert fan_t.data("notification:new") == []
        assert fan_t.data("unread:update") == []

    @pytest.mark.asyncio
    async def test_offline_recipient(self, container, directory):
        """Should store the message even when nobody else is connected."""
        fan, fan_t = await connect(container, SUBSCRIBER_ID)
        await fan.join_conversation("conv-1")

        message = await fan.send_message("conv-1", "anyone?")
        await container.notifications.drain()

        assert directory.messages("conv-1") == [message]
        assert len(fan_t.data("message:new")) == 1
        assert fan_t.data("error") == []

    @pytest.mark.asyncio
    async def test_requires_membership(self, container, directory):
        """Should reject messages to conversations not joined, storing nothing."""
        fan, fan_t = await connect(container, SUBSCRIBER_ID)

        await fan.handle_message(
            {"event": "message:send", "data": {"conversationId": "conv-1", "content": "hey"}}
        )

        assert fan_t.data("error")[0]["code"] == "not-in-conversation"
        assert directory.messages("conv-1") == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "data",
        [
            {"conversationId": "conv-1"},
            {"conversationId": "conv-1", "content": ""},
            {"conversationId": "conv-1", "content": "x" * 5001},
            {"conversationId": "conv-1", "content": "hi", "messageType": "sticker"},
        ],
    )
    async def test_malformed_message(self, container, data):
        """Should reject missing, empty, oversized or unknown-type messages."""
        fan, fan_t = await connect(container, SUBSCRIBER_ID)
        await fan.join_conversation("conv-1")

        await fan.handle_message({"event": "message:send", "data": data})

        assert fan_t.data("error")[0]["code"] == "malformed-message"
        assert fan_t.data("message:new") == []

    @pytest.mark.asyncio
    async def test_store_failure_keeps_connection(self, container, directory):
        """Should report a failing store as internal-error and keep the session."""
        fan, fan_t = await connect(container, SUBSCRIBER_ID)
        await fan.join_conversation("conv-1")
        directory.create_message = AsyncMock(side_effect=ConnectionError("store down"))

        await fan.handle_message(
            {"event": "message:send", "data": {"conversationId": "conv-1", "content": "hey"}}
        )

        assert fan_t.data("error")[0]["code"] == "internal-error"
        assert fan_t.data("message:new") == []
        assert fan.state is SessionState.AUTHENTICATED
