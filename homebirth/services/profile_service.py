"""Profile onboarding, publication and dashboard service."""

import logging
import secrets
from typing import BinaryIO
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from homebirth.core.exceptions import NotFoundError, ValidationError
from homebirth.core.security import TokenIdentity
from homebirth.database import after_commit
from homebirth.domain.booking_state import BookingStatus
from homebirth.domain.disclosure import mask_phone
from homebirth.domain.profile import (
    ProfileRole,
    VerificationStatus,
    profile_completion,
)
from homebirth.models.profile import Profile
from homebirth.schemas.profile import ProfileUpdate, PublicProfileResponse
from homebirth.services.audit_service import audit_service
from homebirth.services.booking_service import booking_service
from homebirth.services.storage_service import storage_service

logger = logging.getLogger(__name__)


def new_calendar_token() -> str:
    return secrets.token_urlsafe(24)


def to_public_profile(profile: Profile) -> PublicProfileResponse:
    """Public midwife view; the phone number never leaves unmasked."""
    return PublicProfileResponse(
        id=profile.id,
        display_name=profile.display_name,
        city=profile.city,
        postal_code=profile.postal_code,
        radius_km=profile.radius_km,
        bio=profile.bio,
        qualifications=profile.qualifications or [],
        services=profile.services or [],
        price_model=profile.price_model,
        offers_homebirth=profile.offers_homebirth,
        photo_url=profile.photo_url,
        verification_status=profile.verification_status,
        plan=profile.plan,
        phone_masked=mask_phone(profile.phone),
    )


class ProfileService:
    """Service for profile management."""

    async def upsert_own_profile(
        self,
        db: AsyncSession,
        identity: TokenIdentity,
        data: ProfileUpdate,
    ) -> Profile:
        """Create the caller's profile on first write, update it afterwards.

        The role is fixed at creation; ADMIN is never self-assigned.
        """
        profile = await db.get(Profile, identity.subject)
        if profile is None:
            role = data.role or ProfileRole.CLIENT.value
            profile = Profile(
                id=identity.subject,
                email=identity.email,
                role=role,
                qualifications=[],
                services=[],
                calendar_token=new_calendar_token() if role == ProfileRole.MIDWIFE.value else None,
            )
            db.add(profile)
            logger.info(f"Profile {identity.subject} created as {role}")
        elif data.role and data.role != profile.role:
            raise ValidationError("Role cannot be changed after registration")

        changes = data.model_dump(exclude_unset=True, exclude={"role"})
        for field, value in changes.items():
            if field == "price_model" and value is not None:
                value = value.value
            if field in ("qualifications", "services") and value is None:
                value = []
            setattr(profile, field, value)
        if identity.email and not profile.email:
            profile.email = identity.email

        await db.flush()
        await db.refresh(profile)
        return profile

    async def submit_for_verification(self, db: AsyncSession, profile: Profile) -> Profile:
        """Publish a complete midwife profile and queue it for admin review."""
        if not profile.is_midwife:
            raise ValidationError("Only midwife profiles can be submitted")
        completion = profile_completion(profile)
        if completion < 100:
            raise ValidationError(f"Profile is {completion}% complete; fill in all fields before submitting")

        profile.completed = True
        if profile.verification_status == VerificationStatus.DRAFT.value:
            profile.verification_status = VerificationStatus.PENDING.value
        await db.flush()
        await db.refresh(profile)
        return profile

    async def set_verification_status(
        self,
        db: AsyncSession,
        admin_id: UUID,
        profile_id: UUID,
        status: VerificationStatus,
        ip_address: str | None = None,
    ) -> Profile:
        """Admin decision on a midwife's verification."""
        profile = await db.get(Profile, profile_id)
        if profile is None or not profile.is_midwife:
            raise NotFoundError("Midwife", str(profile_id))

        old_status = profile.verification_status
        profile.verification_status = status.value
        await audit_service.log_verification_change(
            db, admin_id, profile.id, old_status, status.value, ip_address
        )
        await db.flush()
        await db.refresh(profile)
        logger.info(f"Profile {profile.id} verification {old_status} -> {status.value} by {admin_id}")
        return profile

    async def get_public_profile(self, db: AsyncSession, profile_id: UUID) -> Profile:
        profile = await db.get(Profile, profile_id)
        if profile is None or not profile.is_midwife or not profile.completed:
            raise NotFoundError("Midwife", str(profile_id))
        return profile

    async def dashboard(self, db: AsyncSession, profile: Profile) -> dict:
        """Request counts and onboarding progress for the midwife dashboard."""
        counts = await booking_service.count_by_status(db, profile.id)
        return {
            "requested_count": counts.get(BookingStatus.REQUESTED.value, 0),
            "confirmed_count": counts.get(BookingStatus.CONFIRMED.value, 0),
            "profile_completion": profile_completion(profile),
            "plan": profile.plan,
            "verification_status": profile.verification_status,
        }

    async def rotate_calendar_token(self, db: AsyncSession, profile: Profile) -> str:
        """Issue a new calendar token; the old feed URL stops working."""
        if not profile.is_midwife:
            raise ValidationError("Only midwives have a calendar feed")
        profile.calendar_token = new_calendar_token()
        await db.flush()
        return profile.calendar_token

    async def update_photo(
        self,
        db: AsyncSession,
        profile: Profile,
        file: BinaryIO,
        content_type: str | None,
    ) -> Profile:
        """Replace the profile photo; the previous object is removed only after commit."""
        urls = await storage_service.upload_profile_photo(file, str(profile.id), content_type)
        old_url = profile.photo_url
        profile.photo_url = urls["medium"]
        await db.flush()
        await db.refresh(profile)
        if old_url and old_url != profile.photo_url:
            after_commit(db, storage_service.delete_file, old_url)
        return profile


profile_service = ProfileService()
