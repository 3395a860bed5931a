"""Admin panel endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from homebirth.api.deps import get_current_admin, get_db
from homebirth.api.v1.disputes import DisputeResponse
from homebirth.core.middleware import client_ip
from homebirth.domain.dispute_state import DisputeStatus
from homebirth.models.admin import Dispute
from homebirth.models.booking import Booking
from homebirth.models.payment import Payment
from homebirth.models.profile import Profile
from homebirth.schemas.booking import BookingResponse
from homebirth.schemas.payment import PaymentResponse
from homebirth.schemas.profile import ProfileResponse, VerificationUpdate
from homebirth.services.dispute_service import dispute_service
from homebirth.services.profile_service import profile_service

router = APIRouter()

OVERVIEW_LIMIT = 20


class AdminOverview(BaseModel):
    """Latest marketplace activity."""

    bookings: list[BookingResponse]
    payments: list[PaymentResponse]


# ============ OVERVIEW ============


@router.get("/overview", response_model=AdminOverview)
async def get_overview(
    admin: Annotated[Profile, Depends(get_current_admin)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> AdminOverview:
    """Latest bookings and payments."""
    bookings = await db.execute(
        select(Booking).order_by(Booking.created_at.desc()).limit(OVERVIEW_LIMIT)
    )
    payments = await db.execute(
        select(Payment).order_by(Payment.created_at.desc()).limit(OVERVIEW_LIMIT)
    )
    return AdminOverview(
        bookings=[BookingResponse.model_validate(b) for b in bookings.scalars().all()],
        payments=[PaymentResponse.model_validate(p) for p in payments.scalars().all()],
    )


# ============ VERIFICATION ============


@router.get("/profiles/pending", response_model=list[ProfileResponse])
async def get_pending_profiles(
    admin: Annotated[Profile, Depends(get_current_admin)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> list[Profile]:
    """Midwife profiles waiting for verification."""
    result = await db.execute(
        select(Profile)
        .where(Profile.role == "MIDWIFE", Profile.verification_status == "PENDING")
        .order_by(Profile.updated_at.asc())
    )
    return list(result.scalars().all())


@router.patch("/profiles/{profile_id}/verification", response_model=ProfileResponse)
async def set_verification_status(
    profile_id: UUID,
    data: VerificationUpdate,
    request: Request,
    admin: Annotated[Profile, Depends(get_current_admin)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Profile:
    """Set a midwife's verification status."""
    return await profile_service.set_verification_status(
        db, admin.id, profile_id, data.verification_status, client_ip(request)
    )


# ============ DISPUTES ============


@router.get("/disputes", response_model=list[DisputeResponse])
async def list_disputes(
    admin: Annotated[Profile, Depends(get_current_admin)],
    db: Annotated[AsyncSession, Depends(get_db)],
    status_filter: DisputeStatus | None = Query(DisputeStatus.OPEN, alias="status"),
) -> list[Dispute]:
    """Disputes, open ones by default."""
    return await dispute_service.list_disputes(db, status_filter)
