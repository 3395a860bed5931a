"""Billing and payment Pydantic schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from homebirth.config import settings


class ExpressCheckoutRequest(BaseModel):
    """Client request to contact several midwives in one paid step."""

    midwife_ids: list[UUID] = Field(..., min_length=1)

    @field_validator("midwife_ids")
    @classmethod
    def validate_midwife_ids(cls, v: list[UUID]) -> list[UUID]:
        unique = list(dict.fromkeys(v))
        if len(unique) > settings.express_booking_max_midwives:
            raise ValueError(
                f"At most {settings.express_booking_max_midwives} midwives can be selected"
            )
        return unique


class PaymentResponse(BaseModel):
    """Schema for payment response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    booking_id: UUID
    amount_cents: int
    currency: str
    status: str
    created_at: datetime


class WebhookAck(BaseModel):
    received: bool = True
    duplicate: bool = False
