"""
Credential verification service.

Validates HS256 access tokens with PyJWT and resolves the subject
against the user directory.
"""

import logging
from typing import Optional

import jwt
from pydantic import ValidationError as PydanticValidationError

from shared.config import Settings, get_settings
from shared.models import Identity

from .interfaces import ICredentialVerifier, IIdentityLookup
from .models import CredentialClaims
from .exceptions import (
    MissingCredentialError,
    InvalidCredentialError,
    BannedIdentityError,
)

logger = logging.getLogger(__name__)


class CredentialVerifier(ICredentialVerifier):
    """
    Implementation of the credential verifier.

    Identity state (including the ban flag) is read once per call. The
    real-time layer calls this once per connection and never re-fetches.
    """

    def __init__(self, identities: IIdentityLookup, settings: Optional[Settings] = None):
        self._identities = identities
        self._settings = settings or get_settings()

    def decode(self, credential: str) -> CredentialClaims:
        """Decode and validate the token signature, expiry and audience."""
        if not self._settings.jwt_secret:
            raise InvalidCredentialError("Server authentication not configured")

        options = {"verify_aud": self._settings.jwt_audience is not None}
        try:
            payload = jwt.decode(
                credential,
                self._settings.jwt_secret,
                algorithms=[self._settings.jwt_algorithm],
                audience=self._settings.jwt_audience,
                options=options,
            )
            return CredentialClaims.model_validate(payload)
        except jwt.ExpiredSignatureError:
            raise InvalidCredentialError("Credential has expired")
        except jwt.InvalidTokenError as e:
            raise InvalidCredentialError(f"Invalid credential: {e}")
        except PydanticValidationError:
            raise InvalidCredentialError("Credential has no subject")

    async def verify(self, credential: Optional[str]) -> Identity:
        if not credential:
            raise MissingCredentialError()

        claims = self.decode(credential)

        identity = await self._identities.get_identity(claims.user_id)
        if identity is None:
            raise InvalidCredentialError("User not found")

        if identity.is_banned:
            logger.info("Rejected banned user %s", identity.id)
            raise BannedIdentityError(identity.id)

        return identity
