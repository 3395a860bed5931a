"""Midwife availability endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from homebirth.api.deps import get_current_midwife, get_db
from homebirth.models.profile import Availability, Profile
from homebirth.schemas.profile import AvailabilityCreate, AvailabilityResponse
from homebirth.services.availability_service import availability_service

router = APIRouter()


@router.get("", response_model=list[AvailabilityResponse])
async def list_my_availability(
    midwife: Annotated[Profile, Depends(get_current_midwife)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> list[Availability]:
    return await availability_service.list_for_midwife(db, midwife.id)


@router.post("", response_model=AvailabilityResponse, status_code=status.HTTP_201_CREATED)
async def add_availability(
    data: AvailabilityCreate,
    midwife: Annotated[Profile, Depends(get_current_midwife)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Availability:
    """Add an availability window."""
    return await availability_service.add(db, midwife, data)


@router.delete("/{availability_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_availability(
    availability_id: UUID,
    midwife: Annotated[Profile, Depends(get_current_midwife)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> None:
    """Remove an availability window."""
    await availability_service.delete(db, midwife, availability_id)
