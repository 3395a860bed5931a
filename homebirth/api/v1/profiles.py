"""Profile endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from homebirth.api.deps import get_current_identity, get_current_midwife, get_current_profile, get_db
from homebirth.config import settings
from homebirth.core.security import TokenIdentity
from homebirth.models.profile import Profile
from homebirth.schemas.profile import (
    CalendarTokenResponse,
    DashboardResponse,
    ProfileResponse,
    ProfileUpdate,
    PublicProfileResponse,
)
from homebirth.services.profile_service import profile_service, to_public_profile

router = APIRouter()


def _feed_url(token: str) -> str:
    return f"{settings.api_prefix}/calendar/{token}.ics"


@router.get("/me", response_model=ProfileResponse)
async def get_my_profile(
    profile: Annotated[Profile, Depends(get_current_profile)],
) -> Profile:
    """Get the caller's own profile."""
    return profile


@router.put("/me", response_model=ProfileResponse)
async def upsert_my_profile(
    data: ProfileUpdate,
    identity: Annotated[TokenIdentity, Depends(get_current_identity)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Profile:
    """Create or update the caller's profile."""
    return await profile_service.upsert_own_profile(db, identity, data)


@router.post("/me/submit", response_model=ProfileResponse)
async def submit_my_profile(
    midwife: Annotated[Profile, Depends(get_current_midwife)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Profile:
    """Publish the profile and request verification."""
    return await profile_service.submit_for_verification(db, midwife)


@router.get("/me/dashboard", response_model=DashboardResponse)
async def get_my_dashboard(
    midwife: Annotated[Profile, Depends(get_current_midwife)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict:
    """Dashboard statistics for midwives."""
    return await profile_service.dashboard(db, midwife)


@router.put("/me/photo", response_model=ProfileResponse)
async def upload_my_photo(
    midwife: Annotated[Profile, Depends(get_current_midwife)],
    db: Annotated[AsyncSession, Depends(get_db)],
    file: UploadFile = File(...),
) -> Profile:
    """Upload or replace the profile photo."""
    return await profile_service.update_photo(db, midwife, file.file, file.content_type)


@router.get("/me/calendar-token", response_model=CalendarTokenResponse)
async def get_my_calendar_token(
    midwife: Annotated[Profile, Depends(get_current_midwife)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> CalendarTokenResponse:
    """Current calendar feed URL."""
    token = midwife.calendar_token or await profile_service.rotate_calendar_token(db, midwife)
    return CalendarTokenResponse(calendar_token=token, feed_url=_feed_url(token))


@router.post("/me/calendar-token", response_model=CalendarTokenResponse)
async def rotate_my_calendar_token(
    midwife: Annotated[Profile, Depends(get_current_midwife)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> CalendarTokenResponse:
    """Invalidate the old feed URL and issue a new one."""
    token = await profile_service.rotate_calendar_token(db, midwife)
    return CalendarTokenResponse(calendar_token=token, feed_url=_feed_url(token))


@router.get("/{profile_id}", response_model=PublicProfileResponse)
async def get_public_profile(
    profile_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> PublicProfileResponse:
    """Public midwife profile with masked phone."""
    profile = await profile_service.get_public_profile(db, profile_id)
    return to_public_profile(profile)
