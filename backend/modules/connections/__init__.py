"""
Connections module.

Live transport connections and the per-process index used to reach them.

Public API:
- ITransport: What a transport (e.g. a WebSocket) must provide
- ConnectionHandle: A connection bound to an authenticated identity
- ConnectionIndex: Lookup of open connections by ID and by user
- fan_out: Send one event to many connections at once
- TransportClosedError: Raised by transports once the peer is gone
"""

from .interfaces import ITransport
from .models import ConnectionHandle
from .service import ConnectionIndex, fan_out
from .exceptions import TransportClosedError

__all__ = [
    "ITransport",
    "ConnectionHandle",
    "ConnectionIndex",
    "fan_out",
    "TransportClosedError",
]
