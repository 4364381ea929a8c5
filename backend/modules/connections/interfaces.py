"""
Connections module interface.

Sessions and relays talk to clients only through ITransport so they can
be driven by a WebSocket in production and by an in-memory fake in tests.
"""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class ITransport(Protocol):
    """A bidirectional JSON message transport."""

    async def receive_json(self) -> Any:
        """
        Wait for the next inbound frame.

        Raises:
            TransportClosedError: Once the peer has disconnected
        """
        ...

    async def send_json(self, data: dict[str, Any]) -> None:
        """
        Send one outbound frame.

        Raises:
            TransportClosedError: If the peer has disconnected
        """
        ...

    async def close(self, code: int = 1000, reason: str = "") -> None:
        """Close the transport. Closing twice is a no-op."""
        ...
