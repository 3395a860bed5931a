"""Dispute endpoints."""

from datetime import datetime
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Request, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession

from homebirth.api.deps import get_current_actor, get_current_admin, get_db
from homebirth.core.middleware import client_ip
from homebirth.domain.actor import AuthenticatedActor
from homebirth.models.admin import Dispute
from homebirth.models.profile import Profile
from homebirth.services.dispute_service import dispute_service

router = APIRouter()


# ============ SCHEMAS ============


class DisputeCreate(BaseModel):
    """Schema for opening a dispute."""

    booking_id: UUID
    reason: str = Field(..., min_length=10, max_length=5000)


class DisputeResolve(BaseModel):
    """Schema for resolving a dispute."""

    resolution: str = Field(..., min_length=10, max_length=5000)


class DisputeResponse(BaseModel):
    """Schema for dispute response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    booking_id: UUID
    raised_by: UUID
    reason: str
    status: str
    resolution: str | None
    resolved_by: UUID | None
    resolved_at: datetime | None
    created_at: datetime


# ============ ENDPOINTS ============


@router.post("", response_model=DisputeResponse, status_code=status.HTTP_201_CREATED)
async def open_dispute(
    data: DisputeCreate,
    request: Request,
    actor: Annotated[AuthenticatedActor, Depends(get_current_actor)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Dispute:
    """Open a dispute on one of the caller's bookings."""
    return await dispute_service.open_dispute(
        db=db,
        actor=actor,
        booking_id=data.booking_id,
        reason=data.reason,
        ip_address=client_ip(request),
    )


@router.get("/{dispute_id}", response_model=DisputeResponse)
async def get_dispute(
    dispute_id: UUID,
    actor: Annotated[AuthenticatedActor, Depends(get_current_actor)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Dispute:
    """Get dispute details."""
    return await dispute_service.get_dispute(db, actor, dispute_id)


@router.post("/{dispute_id}/resolve", response_model=DisputeResponse)
async def resolve_dispute(
    dispute_id: UUID,
    data: DisputeResolve,
    request: Request,
    admin: Annotated[Profile, Depends(get_current_admin)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Dispute:
    """Resolve a dispute (admin only)."""
    return await dispute_service.resolve_dispute(
        db=db,
        dispute_id=dispute_id,
        resolved_by=admin.id,
        resolution=data.resolution,
        ip_address=client_ip(request),
    )
