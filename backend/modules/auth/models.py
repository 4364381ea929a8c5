"""
Authentication module data models.
"""

from typing import Optional
from pydantic import AliasChoices, BaseModel, Field


class CredentialClaims(BaseModel):
    """
    Decoded access token payload.

    Tokens issued by the REST auth service carry the user ID either as
    the standard ``sub`` claim or as ``userId``.
    """

    user_id: str = Field(..., validation_alias=AliasChoices("sub", "userId"))
    role: Optional[str] = Field(None, description="Role at issue time (informational)")
    exp: Optional[int] = Field(None, description="Expiration timestamp")
    iat: Optional[int] = Field(None, description="Issued at timestamp")

    model_config = {"extra": "ignore"}
