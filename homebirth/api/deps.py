"""API dependencies for authentication and common operations."""

import logging
from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from homebirth.core.exceptions import AuthenticationError, AuthorizationError
from homebirth.core.security import TokenIdentity, verify_token
from homebirth.database import get_db
from homebirth.domain.actor import ActorRole, AuthenticatedActor
from homebirth.models.profile import Profile

logger = logging.getLogger(__name__)

# Security scheme
security = HTTPBearer(auto_error=False)


async def get_current_identity(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> TokenIdentity:
    """Verify the bearer token issued by the auth provider."""
    if credentials is None:
        raise AuthenticationError("Not authenticated")
    try:
        identity = verify_token(credentials.credentials)
    except AuthenticationError as e:
        logger.warning(f"Rejected bearer token on {request.url.path}: {e.detail}")
        raise
    # Lets per-endpoint rate limiters key on the user instead of the IP
    request.state.user_id = identity.subject
    return identity


async def get_current_profile(
    identity: Annotated[TokenIdentity, Depends(get_current_identity)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Profile:
    """Get the caller's profile; a profile must exist before using the marketplace."""
    profile = await db.get(Profile, identity.subject)
    if profile is None:
        raise AuthorizationError("Create your profile first")
    return profile


async def get_current_actor(
    profile: Annotated[Profile, Depends(get_current_profile)],
) -> AuthenticatedActor:
    """Explicit caller identity handed to core operations."""
    return AuthenticatedActor(id=profile.id, role=ActorRole(profile.role))


async def get_current_midwife(
    profile: Annotated[Profile, Depends(get_current_profile)],
) -> Profile:
    """Get current profile and verify it is a midwife."""
    if not profile.is_midwife:
        logger.warning(f"Profile {profile.id} denied midwife access")
        raise AuthorizationError("Midwife access required")
    return profile


async def get_current_admin(
    profile: Annotated[Profile, Depends(get_current_profile)],
) -> Profile:
    """Get current profile and verify it is an admin."""
    if not profile.is_admin:
        logger.warning(f"Profile {profile.id} denied admin access")
        raise AuthorizationError("Admin access required")
    return profile
