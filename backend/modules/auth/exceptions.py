"""
Authentication module exceptions.

Each failure carries a distinct code so clients can tell a missing
credential from a bad one or a banned account.
"""

from shared.exceptions import AuthenticationError


class MissingCredentialError(AuthenticationError):
    """Raised when no credential is presented."""

    close_code = 4001

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message, code="no-credential")


class InvalidCredentialError(AuthenticationError):
    """Raised when a credential is malformed, expired or names an unknown user."""

    close_code = 4002

    def __init__(self, message: str = "Invalid credential"):
        super().__init__(message, code="invalid-credential")


class BannedIdentityError(AuthenticationError):
    """Raised when the credential belongs to a banned account."""

    close_code = 4003

    def __init__(self, user_id: str):
        super().__init__(
            "Account is banned",
            code="banned",
            details={"user_id": user_id},
        )
