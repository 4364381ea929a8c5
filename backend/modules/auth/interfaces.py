"""
Authentication module interface.

Other modules should depend on ICredentialVerifier, not the concrete
implementation. Sessions call it exactly once, at handshake.
"""

from typing import Protocol, Optional, runtime_checkable

from shared.models import Identity


@runtime_checkable
class IIdentityLookup(Protocol):
    """Reads identity records from the user directory."""

    async def get_identity(self, user_id: str) -> Optional[Identity]:
        """
        Get a user's identity by their ID.

        Returns:
            Identity if found, None otherwise
        """
        ...


@runtime_checkable
class ICredentialVerifier(Protocol):
    """
    Interface for credential verification.

    Turns the opaque credential presented by a client into the
    identity the connection will be bound to.
    """

    async def verify(self, credential: Optional[str]) -> Identity:
        """
        Verify a credential and return the identity it belongs to.

        Args:
            credential: Bearer token presented by the client, if any

        Returns:
            The verified, non-banned identity

        Raises:
            MissingCredentialError: If no credential was presented
            InvalidCredentialError: If the credential is malformed, expired
                or names an unknown user
            BannedIdentityError: If the identity is banned
        """
        ...
