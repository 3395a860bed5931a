"""Booking endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from homebirth.api.deps import get_current_actor, get_db
from homebirth.core.events import EventBus, get_event_bus
from homebirth.core.middleware import booking_limiter, checkout_limiter
from homebirth.domain.actor import AuthenticatedActor
from homebirth.domain.booking_state import BookingStatus
from homebirth.models.booking import Booking
from homebirth.schemas.booking import (
    BookingContactResponse,
    BookingCreate,
    BookingListResponse,
    BookingResponse,
    BookingStatusUpdate,
    CheckoutSessionResponse,
)
from homebirth.services.booking_service import booking_service
from homebirth.services.payment_service import payment_service

router = APIRouter()


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    data: BookingCreate,
    actor: Annotated[AuthenticatedActor, Depends(get_current_actor)],
    _: Annotated[None, Depends(booking_limiter)],
    db: Annotated[AsyncSession, Depends(get_db)],
    events: Annotated[EventBus, Depends(get_event_bus)],
) -> Booking:
    """Request a booking with a midwife."""
    return await booking_service.create_booking(db, actor, data.midwife_id, events)


@router.get("", response_model=BookingListResponse)
async def list_my_bookings(
    actor: Annotated[AuthenticatedActor, Depends(get_current_actor)],
    db: Annotated[AsyncSession, Depends(get_db)],
    status_filter: BookingStatus | None = Query(None, alias="status"),
) -> BookingListResponse:
    """Bookings where the caller is client or midwife."""
    bookings = await booking_service.list_bookings(db, actor, status_filter)
    return BookingListResponse(
        items=[BookingResponse.model_validate(b) for b in bookings],
        total=len(bookings),
    )


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: UUID,
    actor: Annotated[AuthenticatedActor, Depends(get_current_actor)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Booking:
    """Get booking details."""
    return await booking_service.get_booking(db, actor, booking_id)


@router.patch("/{booking_id}/status", response_model=BookingResponse)
async def update_booking_status(
    booking_id: UUID,
    data: BookingStatusUpdate,
    actor: Annotated[AuthenticatedActor, Depends(get_current_actor)],
    db: Annotated[AsyncSession, Depends(get_db)],
    events: Annotated[EventBus, Depends(get_event_bus)],
) -> Booking:
    """Confirm, decline or cancel a booking."""
    return await booking_service.update_status(
        db, actor, booking_id, data.new_status, events, note=data.note
    )


@router.get("/{booking_id}/contact", response_model=BookingContactResponse)
async def get_booking_contact(
    booking_id: UUID,
    actor: Annotated[AuthenticatedActor, Depends(get_current_actor)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> BookingContactResponse:
    """Counterpart phone number; masked until the booking is paid."""
    booking, disclosure = await booking_service.get_contact(db, actor, booking_id)
    return BookingContactResponse(
        booking_id=booking.id,
        status=booking.status,
        phone=disclosure.phone,
        is_masked=disclosure.is_masked,
    )


@router.post("/{booking_id}/checkout", response_model=CheckoutSessionResponse)
async def create_booking_checkout(
    booking_id: UUID,
    actor: Annotated[AuthenticatedActor, Depends(get_current_actor)],
    _: Annotated[None, Depends(checkout_limiter)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> CheckoutSessionResponse:
    """Start the Stripe checkout for a confirmed booking."""
    result = await payment_service.create_booking_checkout(db, actor, booking_id)
    return CheckoutSessionResponse(session_id=result.session_id, url=result.url)
