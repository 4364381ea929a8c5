"""
Dependency injection setup for FastAPI.

This module provides the "container" that wires together all module
implementations. Each module exposes its service through an interface,
and this file creates the concrete implementations.

One container is built per application and stored on ``app.state``, so
tests can run several apps side by side with independent rooms and
connection indexes.
"""

import logging
from typing import Any, Optional, TYPE_CHECKING

from starlette.requests import HTTPConnection

from shared.config import Settings, get_settings
from modules.access.service import AccessEvaluator
from modules.auth.service import CredentialVerifier
from modules.connections.service import ConnectionIndex
from modules.directory import InMemoryDirectory, SupabaseDirectory
from modules.notifications.service import NotificationFanout
from modules.rooms.service import RoomRegistry
from modules.sessions.service import ConnectionSession
from modules.signalling.service import SignallingRelay
from modules.streams.payments import InMemoryPaymentGateway
from modules.streams.service import StreamService

# Type checking imports for interfaces (avoids circular imports)
if TYPE_CHECKING:
    from modules.connections.interfaces import ITransport
    from modules.directory.interfaces import IDirectory
    from modules.streams.interfaces import IPaymentGateway, IStreamService

logger = logging.getLogger(__name__)


class ServiceContainer:
    """
    Container for all service instances.

    Process-local state (rooms, connection index, pending notifications)
    lives here, so every session of the app shares it. The directory is
    built at startup when the Supabase backend is configured; the
    in-memory one is used otherwise.

    Example:
        container = ServiceContainer(settings, directory=InMemoryDirectory())
        await container.start()
        session = container.open_session(transport)
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        directory: "Optional[IDirectory]" = None,
        payments: "Optional[IPaymentGateway]" = None,
    ) -> None:
        self.settings = settings or get_settings()
        self._directory = directory
        self.payments = payments or InMemoryPaymentGateway()

        self.rooms = RoomRegistry()
        self.conversation_rooms = RoomRegistry()
        self.connections = ConnectionIndex()
        self.relay = SignallingRelay(self.rooms, self.connections)
        self.notifications = NotificationFanout(self.connections)

        self._verifier: Optional[CredentialVerifier] = None
        self._access: Optional[AccessEvaluator] = None
        self._streams: "Optional[IStreamService]" = None

    async def start(self) -> None:
        """Build the configured directory if none was injected."""
        if self._directory is not None:
            return
        if self.settings.directory_backend == "supabase":
            from shared.database import get_supabase_client

            self._directory = SupabaseDirectory(await get_supabase_client())
            logger.info("Using Supabase directory at %s", self.settings.supabase_url)
        else:
            self._directory = InMemoryDirectory()
            logger.info("Using in-memory directory")

    async def stop(self) -> None:
        """Wait for in-flight notification deliveries."""
        await self.notifications.drain()

    @property
    def directory(self) -> "IDirectory":
        if self._directory is None:
            self._directory = InMemoryDirectory()
        return self._directory

    @property
    def verifier(self) -> CredentialVerifier:
        if self._verifier is None:
            self._verifier = CredentialVerifier(self.directory, self.settings)
        return self._verifier

    @property
    def access(self) -> AccessEvaluator:
        if self._access is None:
            self._access = AccessEvaluator(self.directory, self.directory)
        return self._access

    @property
    def streams(self) -> "IStreamService":
        if self._streams is None:
            self._streams = StreamService(
                streams=self.directory,
                posts=self.directory,
                subscribers=self.directory,
                identities=self.directory,
                access=self.access,
                rooms=self.rooms,
                relay=self.relay,
                notifications=self.notifications,
                payments=self.payments,
            )
        return self._streams

    @property
    def ice_servers(self) -> list[dict[str, Any]]:
        return [{"urls": url} for url in self.settings.ice_servers]

    def open_session(self, transport: "ITransport") -> ConnectionSession:
        """Create the session for a newly accepted connection."""
        return ConnectionSession(
            transport=transport,
            verifier=self.verifier,
            rooms=self.rooms,
            conversation_rooms=self.conversation_rooms,
            connections=self.connections,
            relay=self.relay,
            streams=self.streams,
            conversations=self.directory,
            messages=self.directory,
            notifications=self.notifications,
            ice_servers=self.ice_servers,
        )


# FastAPI dependency functions
# These are the functions that should be used in route Depends() calls.
# HTTPConnection covers both HTTP requests and WebSockets.


def get_container(connection: HTTPConnection) -> ServiceContainer:
    """FastAPI dependency for the app's service container."""
    return connection.app.state.container


def get_verifier(connection: HTTPConnection) -> CredentialVerifier:
    """FastAPI dependency for the credential verifier."""
    return get_container(connection).verifier


def get_stream_service(connection: HTTPConnection) -> "IStreamService":
    """FastAPI dependency for the stream service."""
    return get_container(connection).streams
