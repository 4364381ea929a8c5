"""
Connections module exceptions.
"""

from shared.exceptions import BackstageError


class TransportClosedError(BackstageError):
    """Raised by a transport when the peer is no longer reachable."""

    def __init__(self, message: str = "Transport closed"):
        super().__init__(message, code="TRANSPORT_CLOSED")
