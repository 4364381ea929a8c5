"""
Bearer authentication dependencies.

REST calls present the same credential as the real-time handshake, and
are verified by the same CredentialVerifier: signature, expiry, known
user and ban flag.
"""

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from shared.models import Identity
from modules.auth.exceptions import MissingCredentialError, InvalidCredentialError
from modules.auth.service import CredentialVerifier

from ..dependencies import get_verifier

# Bearer token extractor
bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    verifier: CredentialVerifier = Depends(get_verifier),
) -> Identity:
    """
    Dependency that requires authentication.

    Use this for endpoints that require a logged-in user.

    Usage:
        @router.post("/protected")
        async def protected_route(identity: Identity = Depends(get_current_identity)):
            return {"user_id": identity.id}
    """
    if credentials is None:
        raise MissingCredentialError("Missing authorization header")
    return await verifier.verify(credentials.credentials)


async def get_optional_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    verifier: CredentialVerifier = Depends(get_verifier),
) -> Optional[Identity]:
    """
    Dependency that optionally resolves the caller.

    Use this for endpoints that work with or without authentication. A
    bad credential is treated as anonymous; a banned account is still
    refused.
    """
    if credentials is None:
        return None

    try:
        return await verifier.verify(credentials.credentials)
    except InvalidCredentialError:
        return None


# Type aliases for cleaner route definitions
RequireAuth = Depends(get_current_identity)
OptionalAuth = Depends(get_optional_identity)
