"""Profile-related Pydantic schemas."""

import re
from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from homebirth.domain.profile import Plan, PriceModel, VerificationStatus

_PHONE_RE = re.compile(r"^\+?[0-9 ()/\-]{6,30}$")


class ProfileUpdate(BaseModel):
    """Schema for creating or updating the caller's own profile."""

    role: str | None = Field(None, pattern="^(CLIENT|MIDWIFE)$")
    display_name: str | None = Field(None, max_length=200)
    city: str | None = Field(None, max_length=100)
    postal_code: str | None = Field(None, pattern=r"^\d{5}$")
    radius_km: int | None = Field(None, ge=1, le=200)
    bio: str | None = Field(None, max_length=5000)
    qualifications: list[str] | None = Field(None, max_length=30)
    services: list[str] | None = Field(None, max_length=30)
    phone: str | None = None
    price_model: PriceModel | None = None
    offers_homebirth: bool | None = None

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: str | None) -> str | None:
        if v is None or v == "":
            return v
        if not _PHONE_RE.match(v):
            raise ValueError("Phone may only contain digits, spaces, +, -, / and parentheses")
        return v

    @field_validator("qualifications", "services")
    @classmethod
    def strip_entries(cls, v: list[str] | None) -> list[str] | None:
        if v is None:
            return v
        return [item.strip() for item in v if item and item.strip()]


class ProfileResponse(BaseModel):
    """The caller's own profile, phone included."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    role: str
    email: EmailStr | None
    display_name: str | None
    city: str | None
    postal_code: str | None
    radius_km: int
    bio: str | None
    qualifications: list[str]
    services: list[str]
    phone: str | None
    price_model: PriceModel | None
    offers_homebirth: bool
    photo_url: str | None
    verification_status: VerificationStatus
    completed: bool
    plan: Plan
    pro_until: datetime | None
    created_at: datetime


class PublicProfileResponse(BaseModel):
    """Midwife profile as shown to other users; phone is masked."""

    id: UUID
    display_name: str | None
    city: str | None
    postal_code: str | None
    radius_km: int
    bio: str | None
    qualifications: list[str]
    services: list[str]
    price_model: PriceModel | None
    offers_homebirth: bool
    photo_url: str | None
    verification_status: VerificationStatus
    plan: Plan
    phone_masked: str


class DashboardResponse(BaseModel):
    """Midwife dashboard statistics."""

    requested_count: int
    confirmed_count: int
    profile_completion: int
    plan: Plan
    verification_status: VerificationStatus


class CalendarTokenResponse(BaseModel):
    calendar_token: str
    feed_url: str


class VerificationUpdate(BaseModel):
    """Admin schema for setting a midwife's verification status."""

    verification_status: VerificationStatus


class AvailabilityCreate(BaseModel):
    """Schema for adding an availability window."""

    start_date: date
    end_date: date
    note: str | None = Field(None, max_length=1000)

    @model_validator(mode="after")
    def validate_range(self) -> "AvailabilityCreate":
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class AvailabilityResponse(BaseModel):
    """Schema for availability response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    midwife_id: UUID
    start_date: date
    end_date: date
    note: str | None
