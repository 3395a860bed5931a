"""Dispute service."""

from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from homebirth.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from homebirth.domain.actor import AuthenticatedActor
from homebirth.domain.dispute_state import (
    DisputeStatus,
    assert_dispute_transition,
    can_resolve_dispute,
)
from homebirth.models.admin import Dispute
from homebirth.models.booking import Booking
from homebirth.services.audit_service import audit_service


class DisputeService:
    """Service for the dispute lifecycle."""

    async def open_dispute(
        self,
        db: AsyncSession,
        actor: AuthenticatedActor,
        booking_id: UUID,
        reason: str,
        ip_address: str | None = None,
    ) -> Dispute:
        """Open a dispute on a booking the caller is party to."""
        booking = await db.get(Booking, booking_id)
        if not booking:
            raise NotFoundError("Booking", str(booking_id))
        if not booking.is_party(actor.id):
            raise AuthorizationError("Only parties to the booking can open a dispute")

        dispute = Dispute(
            booking_id=booking_id,
            raised_by=actor.id,
            reason=reason,
            status=DisputeStatus.OPEN.value,
        )
        db.add(dispute)
        await db.flush()
        await db.refresh(dispute)

        await audit_service.log_dispute_action(
            db, actor.id, "dispute_open", dispute.id, None, dispute.status, ip_address
        )
        return dispute

    async def get_dispute(self, db: AsyncSession, actor: AuthenticatedActor, dispute_id: UUID) -> Dispute:
        """Get a dispute visible to the caller (booking party or admin)."""
        dispute = await self._get_dispute(db, dispute_id)
        if actor.is_admin:
            return dispute
        booking = await db.get(Booking, dispute.booking_id)
        if booking is None or not booking.is_party(actor.id):
            raise AuthorizationError("You don't have permission to access this dispute")
        return dispute

    async def list_disputes(self, db: AsyncSession, status: DisputeStatus | None = None) -> list[Dispute]:
        """Admin listing, oldest first."""
        query = select(Dispute).order_by(Dispute.created_at.asc())
        if status:
            query = query.where(Dispute.status == status.value)
        result = await db.execute(query)
        return list(result.scalars().all())

    async def resolve_dispute(
        self,
        db: AsyncSession,
        dispute_id: UUID,
        resolved_by: UUID,
        resolution: str,
        ip_address: str | None = None,
    ) -> Dispute:
        """Resolve a dispute."""
        dispute = await self._get_dispute(db, dispute_id)
        can_resolve, error = can_resolve_dispute(dispute.status)
        if not can_resolve:
            raise ValidationError(error)

        assert_dispute_transition(dispute.status, DisputeStatus.RESOLVED.value)

        old_status = dispute.status
        dispute.status = DisputeStatus.RESOLVED.value
        dispute.resolution = resolution
        dispute.resolved_by = resolved_by
        dispute.resolved_at = datetime.now(UTC)
        await db.flush()
        await db.refresh(dispute)

        await audit_service.log_dispute_action(
            db, resolved_by, "dispute_resolve", dispute.id, old_status, dispute.status, ip_address
        )
        return dispute

    async def _get_dispute(self, db: AsyncSession, dispute_id: UUID) -> Dispute:
        """Get dispute by ID or raise NotFoundError."""
        result = await db.execute(select(Dispute).where(Dispute.id == dispute_id))
        dispute = result.scalar_one_or_none()
        if not dispute:
            raise NotFoundError("Dispute", str(dispute_id))
        return dispute


dispute_service = DisputeService()
