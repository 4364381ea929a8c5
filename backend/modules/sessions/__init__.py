"""
Sessions module.

One ConnectionSession per transport connection: authenticates it once,
dispatches its inbound events and cleans up every room membership when
it goes away.

Public API:
- IConversationLookup: Conversation participants consumed by sessions
- ConnectionSession: Per-connection state machine
- SessionState: Unauthenticated -> Authenticated -> Closed
- Session exceptions: NotAParticipantError, NotInStreamError, etc.
"""

from .interfaces import IConversationLookup
from .models import SessionState, InboundMessage
from .service import ConnectionSession
from .exceptions import (
    SessionError,
    SessionClosedError,
    NotAuthenticatedError,
    MalformedMessageError,
    UnknownEventError,
    NotAParticipantError,
    NotInStreamError,
    NotInConversationError,
)

__all__ = [
    "IConversationLookup",
    "SessionState",
    "InboundMessage",
    "ConnectionSession",
    "SessionError",
    "SessionClosedError",
    "NotAuthenticatedError",
    "MalformedMessageError",
    "UnknownEventError",
    "NotAParticipantError",
    "NotInStreamError",
    "NotInConversationError",
]
