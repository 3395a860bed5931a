"""Verification of access tokens issued by the hosted auth provider.

The service never issues or refreshes tokens itself; it only validates the
HS256 JWTs the provider hands to browsers and extracts the subject.
"""

from dataclasses import dataclass
from typing import Any
from uuid import UUID

from jose import JWTError, jwt

from homebirth.config import settings
from homebirth.core.exceptions import AuthenticationError


@dataclass(frozen=True)
class TokenIdentity:
    """Identity claims extracted from a verified access token."""

    subject: UUID
    email: str | None = None


def decode_access_token(token: str) -> dict[str, Any]:
    """Verify signature, expiry and audience of a provider token."""
    try:
        return jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
        )
    except JWTError as e:
        raise AuthenticationError(f"Token validation failed: {str(e)}")


def verify_token(token: str) -> TokenIdentity:
    """Verify a token and return the identity it was issued for."""
    payload = decode_access_token(token)
    subject = payload.get("sub")
    if not subject:
        raise AuthenticationError("Invalid token payload")
    try:
        subject_id = UUID(str(subject))
    except ValueError:
        raise AuthenticationError("Invalid token subject")
    return TokenIdentity(subject=subject_id, email=payload.get("email"))
