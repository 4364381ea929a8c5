"""API models package."""

from .errors import ErrorResponse, ERROR_RESPONSES

__all__ = ["ErrorResponse", "ERROR_RESPONSES"]
