"""
Shared test fixtures and utilities.

This module provides common test infrastructure used across all test modules.
"""

import asyncio
from datetime import datetime, timezone, timedelta
from decimal import Decimal
from typing import Any, Optional

import jwt  # PyJWT
import pytest

from shared.config import Settings
from shared.models import Identity, UserRole
from modules.access.models import (
    AccessType,
    SubscriptionRecord,
    SubscriptionStatus,
    PurchaseRecord,
    PurchaseStatus,
    PostRecord,
)
from modules.connections.exceptions import TransportClosedError
from modules.connections.models import ConnectionHandle
from modules.directory import InMemoryDirectory
from modules.streams.models import StreamRecord, StreamStatus


# Test JWT secret (only for testing)
TEST_JWT_SECRET = "test-secret-key-for-testing-only"

CREATOR_ID = "creator-1"
SUBSCRIBER_ID = "viewer-sub"
VIEWER_ID = "viewer-free"
BUYER_ID = "viewer-buyer"
BANNED_ID = "banned-1"


def create_test_token(
    user_id: str = SUBSCRIBER_ID,
    expired: bool = False,
    secret: str = TEST_JWT_SECRET,
    **extra_claims: Any,
) -> str:
    """
    Create a test JWT token for authentication.

    Args:
        user_id: User ID to include in the token
        expired: If True, creates an expired token
        secret: Signing secret (pass another one to forge a bad signature)

    Returns:
        JWT token string
    """
    now = datetime.now(timezone.utc)
    exp = now - timedelta(hours=1) if expired else now + timedelta(hours=1)

    payload = {
        "sub": user_id,
        "role": "authenticated",
        "exp": int(exp.timestamp()),
        "iat": int(now.timestamp()),
        **extra_claims,
    }
    return jwt.encode(payload, secret, algorithm="HS256")


_DISCONNECT = object()


class FakeTransport:
    """
    In-memory transport.

    Inbound frames are queued with push(); every outbound frame is kept
    in ``sent``.
    """

    def __init__(self, fail_sends: bool = False):
        self.sent: list[dict[str, Any]] = []
        self.inbound: asyncio.Queue = asyncio.Queue()
        self.fail_sends = fail_sends
        self.closed = False
        self.close_code: Optional[int] = None
        self.close_reason: Optional[str] = None

    async def receive_json(self) -> Any:
        item = await self.inbound.get()
        if item is _DISCONNECT:
            raise TransportClosedError("Peer disconnected")
        return item

    async def send_json(self, data: dict[str, Any]) -> None:
        if self.closed or self.fail_sends:
            raise TransportClosedError()
        self.sent.append(data)

    async def close(self, code: int = 1000, reason: str = "") -> None:
        if self.closed:
            return
        self.closed = True
        self.close_code = code
        self.close_reason = reason

    def push(self, event: str, data: Optional[dict[str, Any]] = None) -> None:
        self.inbound.put_nowait({"event": event, "data": data or {}})

    def disconnect(self) -> None:
        self.inbound.put_nowait(_DISCONNECT)

    def events(self, name: Optional[str] = None) -> list[dict[str, Any]]:
        """Outbound frames, optionally only those of one event name."""
        return [frame for frame in self.sent if name is None or frame["event"] == name]

    def data(self, name: str) -> list[dict[str, Any]]:
        return [frame["data"] for frame in self.events(name)]


def make_identity(user_id: str = "user-1", **fields: Any) -> Identity:
    return Identity(id=user_id, username=fields.pop("username", user_id), **fields)


def make_handle(
    user_id: str = "user-1",
    transport: Optional[FakeTransport] = None,
    **fields: Any,
) -> ConnectionHandle:
    return ConnectionHandle(
        identity=make_identity(user_id, **fields),
        transport=transport or FakeTransport(),
    )


def seed_directory(directory: InMemoryDirectory) -> InMemoryDirectory:
    """Seed a directory with one creator, their audience and their content."""
    now = datetime.now(timezone.utc)

    directory.add_identity(make_identity(CREATOR_ID, username="creator", role=UserRole.CREATOR))
    directory.add_identity(make_identity(SUBSCRIBER_ID, username="subscriber"))
    directory.add_identity(make_identity(VIEWER_ID, username="viewer"))
    directory.add_identity(make_identity(BUYER_ID, username="buyer"))
    directory.add_identity(make_identity(BANNED_ID, username="banned", is_banned=True))

    directory.add_subscription(
        SubscriptionRecord(
            subscriber_id=SUBSCRIBER_ID,
            creator_id=CREATOR_ID,
            status=SubscriptionStatus.ACTIVE,
            current_period_start=now - timedelta(days=1),
            current_period_end=now + timedelta(days=29),
        )
    )
    directory.add_purchase(
        PurchaseRecord(
            user_id=BUYER_ID,
            content_id="stream-paid",
            status=PurchaseStatus.COMPLETED,
            amount=Decimal("9.99"),
        )
    )

    directory.add_stream(
        StreamRecord(
            id="stream-free",
            owner_id=CREATOR_ID,
            title="Open studio",
            access_type=AccessType.FREE,
        )
    )
    directory.add_stream(
        StreamRecord(
            id="stream-subs",
            owner_id=CREATOR_ID,
            title="Backstage",
            access_type=AccessType.SUBSCRIBERS,
        )
    )
    directory.add_stream(
        StreamRecord(
            id="stream-paid",
            owner_id=CREATOR_ID,
            title="Masterclass",
            access_type=AccessType.PAID,
            price=Decimal("9.99"),
        )
    )
    directory.add_stream(
        StreamRecord(
            id="stream-ended",
            owner_id=CREATOR_ID,
            title="Yesterday",
            status=StreamStatus.ENDED,
            access_type=AccessType.FREE,
        )
    )

    directory.add_post(PostRecord(id="post-free", author_id=CREATOR_ID, access_type=AccessType.FREE))
    directory.add_post(
        PostRecord(id="post-subs", author_id=CREATOR_ID, access_type=AccessType.SUBSCRIBERS)
    )
    directory.add_post(
        PostRecord(
            id="post-paid",
            author_id=CREATOR_ID,
            access_type=AccessType.PAID,
            price=Decimal("4.99"),
        )
    )

    directory.add_conversation("conv-1", [CREATOR_ID, SUBSCRIBER_ID])
    return directory


async def settle() -> None:
    """Let scheduled background tasks run."""
    for _ in range(5):
        await asyncio.sleep(0)


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from the environment, with a known JWT secret."""
    return Settings(_env_file=None, jwt_secret=TEST_JWT_SECRET)


@pytest.fixture
def directory() -> InMemoryDirectory:
    """A directory seeded with a creator, their audience and their content."""
    return seed_directory(InMemoryDirectory())


@pytest.fixture
def auth_token() -> str:
    """Create a valid auth token for the subscribed viewer."""
    return create_test_token(user_id=SUBSCRIBER_ID)


@pytest.fixture
def auth_headers(auth_token: str) -> dict[str, str]:
    """Create authorization headers with a valid token."""
    return {"Authorization": f"Bearer {auth_token}"}
