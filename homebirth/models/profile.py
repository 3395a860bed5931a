"""Profile-related database models."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import TYPE_CHECKING

from sqlalchemy import JSON, Boolean, Date, DateTime, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from homebirth.database import Base

if TYPE_CHECKING:
    from homebirth.models.booking import Booking


class Profile(Base):
    """Application profile of an identity issued by the auth provider.

    The primary key is the provider's subject id, so there is no local
    registration step: the first authenticated write creates the row.
    """

    __tablename__ = "profiles"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True)
    role: Mapped[str] = mapped_column(
        String(20), nullable=False, default="CLIENT", index=True
    )  # CLIENT, MIDWIFE, ADMIN
    email: Mapped[str | None] = mapped_column(String(255), index=True)
    display_name: Mapped[str | None] = mapped_column(String(200))

    # Midwife practice details
    city: Mapped[str | None] = mapped_column(String(100), index=True)
    postal_code: Mapped[str | None] = mapped_column(String(5), index=True)
    radius_km: Mapped[int] = mapped_column(Integer, default=25)
    bio: Mapped[str | None] = mapped_column(Text)
    qualifications: Mapped[list[str]] = mapped_column(JSON, default=list)
    services: Mapped[list[str]] = mapped_column(JSON, default=list)
    phone: Mapped[str | None] = mapped_column(String(40))
    price_model: Mapped[str | None] = mapped_column(String(20))  # FIX, PERCENT, QUOTE
    offers_homebirth: Mapped[bool] = mapped_column(Boolean, default=True)
    photo_url: Mapped[str | None] = mapped_column(Text)

    # Publication & verification
    verification_status: Mapped[str] = mapped_column(
        String(20), default="DRAFT"
    )  # DRAFT, PENDING, VERIFIED
    completed: Mapped[bool] = mapped_column(Boolean, default=False, index=True)

    # Subscription
    plan: Mapped[str] = mapped_column(String(10), default="FREE")  # FREE, PRO
    pro_until: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    stripe_customer_id: Mapped[str | None] = mapped_column(String(100), unique=True)
    stripe_subscription_id: Mapped[str | None] = mapped_column(String(100))

    # iCal feed
    calendar_token: Mapped[str | None] = mapped_column(String(64), unique=True, index=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    # Relationships
    availability: Mapped[list["Availability"]] = relationship(
        "Availability", back_populates="midwife", cascade="all, delete-orphan"
    )
    bookings_as_client: Mapped[list["Booking"]] = relationship(
        "Booking", back_populates="client", foreign_keys="[Booking.client_id]"
    )
    bookings_as_midwife: Mapped[list["Booking"]] = relationship(
        "Booking", back_populates="midwife", foreign_keys="[Booking.midwife_id]"
    )

    @property
    def is_midwife(self) -> bool:
        return self.role == "MIDWIFE"

    @property
    def is_admin(self) -> bool:
        return self.role == "ADMIN"

    @property
    def is_pro(self) -> bool:
        return self.plan == "PRO"


class Availability(Base):
    """Date window in which a midwife accepts new clients."""

    __tablename__ = "availability"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    midwife_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    start_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    end_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    note: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    # Relationships
    midwife: Mapped["Profile"] = relationship("Profile", back_populates="availability")

    def covers(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date
