"""
Sessions module exceptions.

All of these reject a single operation. They are reported to the
requesting connection as an ``error`` event and the connection stays open,
except for SessionClosedError which means there is nothing left to report to.
"""

from typing import Optional

from shared.exceptions import BackstageError, ValidationError, AuthorizationError


class SessionError(BackstageError):
    """Base exception for session errors."""

    pass


class SessionClosedError(SessionError):
    """Raised when an operation reaches a closed session."""

    def __init__(self) -> None:
        super().__init__("Session is closed", code="session-closed")


class NotAuthenticatedError(SessionError):
    """Raised when an operation reaches a session before its handshake."""

    def __init__(self) -> None:
        super().__init__("Session is not authenticated", code="not-authenticated")


class MalformedMessageError(ValidationError):
    """Raised when an inbound frame is missing required fields."""

    def __init__(self, event: Optional[str], fields: Optional[list[str]] = None):
        super().__init__(
            "Malformed message",
            code="malformed-message",
            details={"event": event, "fields": fields or []},
        )


class UnknownEventError(ValidationError):
    """Raised for inbound event names the server does not handle."""

    def __init__(self, event: str):
        super().__init__(
            f"Unknown event: {event}",
            code="unknown-event",
            details={"event": event},
        )


class NotAParticipantError(AuthorizationError):
    """Raised when joining a conversation the identity is not part of."""

    def __init__(self, conversation_id: str):
        super().__init__(
            "Not authorized to join this conversation",
            code="not-a-participant",
            details={"conversation_id": conversation_id},
        )


class NotInStreamError(AuthorizationError):
    """Raised when sending to a stream room the connection has not joined."""

    def __init__(self, stream_id: str):
        super().__init__(
            "Join the stream before sending to it",
            code="not-in-stream",
            details={"stream_id": stream_id},
        )


class NotInConversationError(AuthorizationError):
    """Raised when sending to a conversation room the connection has not joined."""

    def __init__(self, conversation_id: str):
        super().__init__(
            "Join the conversation before sending to it",
            code="not-in-conversation",
            details={"conversation_id": conversation_id},
        )
