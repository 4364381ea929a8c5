"""
Signalling module.

Relays WebRTC negotiation messages between a broadcaster and its viewers
and fans chat, reaction and tip events out to stream rooms. The server
never touches the media itself.

Public API:
- ISignallingRelay: Interface for relay operations
- SignallingRelay: Implementation on top of the room registry
- SignalType, SignallingMessage: Negotiation message models
"""

from .interfaces import ISignallingRelay
from .models import (
    SignalType,
    SignallingMessage,
    ChatBroadcast,
    ReactionBroadcast,
    TipBroadcast,
)
from .service import SignallingRelay
from .exceptions import InvalidSignalError

__all__ = [
    "ISignallingRelay",
    "SignalType",
    "SignallingMessage",
    "ChatBroadcast",
    "ReactionBroadcast",
    "TipBroadcast",
    "SignallingRelay",
    "InvalidSignalError",
]
