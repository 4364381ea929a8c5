"""
Signalling module exceptions.

Missing rooms and vanished targets are not errors; only malformed
input is.
"""

from shared.exceptions import ValidationError


class InvalidSignalError(ValidationError):
    """Raised when a relay call is missing a required field."""

    def __init__(self, field_name: str):
        super().__init__(
            f"Missing required field: {field_name}",
            code="malformed-message",
            details={"field": field_name},
        )
