"""
Authentication module.

Verifies the credential a client presents when it opens a real-time
connection (and on REST calls) and resolves it to a platform identity.

Public API:
- ICredentialVerifier: Interface for credential verification
- IIdentityLookup: Identity records the verifier consumes
- CredentialClaims: Decoded token claims
- Auth exceptions: MissingCredentialError, InvalidCredentialError, BannedIdentityError
"""

from .interfaces import ICredentialVerifier, IIdentityLookup
from .models import CredentialClaims
from .exceptions import (
    MissingCredentialError,
    InvalidCredentialError,
    BannedIdentityError,
)

__all__ = [
    # Interfaces
    "ICredentialVerifier",
    "IIdentityLookup",
    # Models
    "CredentialClaims",
    # Exceptions
    "MissingCredentialError",
    "InvalidCredentialError",
    "BannedIdentityError",
]
