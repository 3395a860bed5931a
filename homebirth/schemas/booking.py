"""Booking-related Pydantic schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from homebirth.domain.booking_state import BookingStatus


class BookingCreate(BaseModel):
    """Schema for requesting a booking."""

    midwife_id: UUID


class BookingStatusUpdate(BaseModel):
    """Schema for a status change request."""

    new_status: BookingStatus
    note: str | None = Field(None, max_length=2000)


class BookingResponse(BaseModel):
    """Schema for booking response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    client_id: UUID
    midwife_id: UUID
    status: BookingStatus
    note: str | None = None
    canceled_by: str | None = None
    is_boosted: bool = False
    created_at: datetime
    updated_at: datetime | None = None
    paid_at: datetime | None = None


class BookingListResponse(BaseModel):
    """Schema for a caller's bookings."""

    items: list[BookingResponse]
    total: int


class BookingContactResponse(BaseModel):
    """Counterpart phone number as released by the disclosure gate."""

    booking_id: UUID
    status: BookingStatus
    phone: str
    is_masked: bool


class CheckoutSessionResponse(BaseModel):
    """Hosted checkout or billing portal redirect."""

    session_id: str | None = None
    url: str
