"""Booking database model."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Index, String, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from homebirth.database import Base

if TYPE_CHECKING:
    from homebirth.models.payment import Payment
    from homebirth.models.profile import Profile

_ACTIVE_PREDICATE = text("status IN ('REQUESTED', 'CONFIRMED')")


class Booking(Base):
    """Booking request from a client to a midwife."""

    __tablename__ = "bookings"
    __table_args__ = (
        # One open request per client/midwife pair
        Index(
            "uq_bookings_active_pair",
            "client_id",
            "midwife_id",
            unique=True,
            postgresql_where=_ACTIVE_PREDICATE,
            sqlite_where=_ACTIVE_PREDICATE,
        ),
        CheckConstraint(
            "(status = 'PAID' AND paid_at IS NOT NULL) OR (status <> 'PAID' AND paid_at IS NULL)",
            name="ck_bookings_paid_at_matches_status",
        ),
        Index("ix_bookings_pair_created", "client_id", "midwife_id", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    client_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("profiles.id"), nullable=False, index=True
    )
    midwife_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("profiles.id"), nullable=False, index=True
    )

    # Status: REQUESTED, CONFIRMED, DECLINED, PAID, CANCELED
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="REQUESTED", index=True)
    note: Mapped[str | None] = mapped_column(Text)
    canceled_by: Mapped[str | None] = mapped_column(String(20))  # CLIENT, MIDWIFE
    is_boosted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Stripe Checkout Session created for this booking
    checkout_session_id: Mapped[str | None] = mapped_column(String(255), unique=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # Relationships
    client: Mapped["Profile"] = relationship(
        "Profile", back_populates="bookings_as_client", foreign_keys=[client_id]
    )
    midwife: Mapped["Profile"] = relationship(
        "Profile", back_populates="bookings_as_midwife", foreign_keys=[midwife_id]
    )
    payments: Mapped[list["Payment"]] = relationship("Payment", back_populates="booking")

    def is_party(self, profile_id: uuid.UUID | None) -> bool:
        """Whether the given profile is the client or the midwife."""
        return profile_id is not None and profile_id in (self.client_id, self.midwife_id)
