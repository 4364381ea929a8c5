"""
Base exception classes for the Backstage Live backend.

Each module should define its own exceptions that inherit from these bases.
Every error knows how it surfaces on both outer interfaces: the HTTP status
the REST handler answers with, and the ``error`` frame (or, during the
handshake, the close code) of the real-time surface.
"""

from typing import Optional, Any


class BackstageError(Exception):
    """
    Base exception for all Backstage errors.

    All custom exceptions should inherit from this class. Subclasses
    override ``status_code`` and ``close_code`` instead of the handlers
    keeping their own mapping tables.
    """

    status_code: int = 400
    # 1008 is the WebSocket "policy violation" close code.
    close_code: int = 1008

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a dictionary for API responses and handshake errors."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }

    def to_event(self, event: Optional[str]) -> dict[str, Any]:
        """
        Payload of the ``error`` frame sent when an inbound event is rejected.

        Args:
            event: Name of the rejected inbound event, None if the frame had none
        """
        return {
            "event": event,
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class NotFoundError(BackstageError):
    """Resource not found."""

    status_code = 404


class ValidationError(BackstageError):
    """Input validation failed."""

    status_code = 400


class AuthenticationError(BackstageError):
    """Authentication failed (invalid or missing credentials)."""

    status_code = 401
    close_code = 4001


class AuthorizationError(BackstageError):
    """Authorization failed (identity not entitled to the resource)."""

    status_code = 403


class ExternalServiceError(BackstageError):
    """Error communicating with an external service."""

    status_code = 502

    def __init__(
        self,
        message: str,
        service: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, code, details)
        self.service = service
        self.details["service"] = service


class InternalError(BackstageError):
    """
    An unexpected failure while handling a request.

    Carries no detail about the cause; the original exception is logged
    where it was caught.
    """

    status_code = 500
    close_code = 1011

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message, code="internal-error")
