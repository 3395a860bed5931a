"""Midwife availability windows."""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from homebirth.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from homebirth.models.profile import Availability, Profile
from homebirth.schemas.profile import AvailabilityCreate


class AvailabilityService:
    """CRUD over a midwife's own availability windows."""

    async def list_for_midwife(self, db: AsyncSession, midwife_id: UUID) -> list[Availability]:
        result = await db.execute(
            select(Availability)
            .where(Availability.midwife_id == midwife_id)
            .order_by(Availability.start_date.asc())
        )
        return list(result.scalars().all())

    async def add(self, db: AsyncSession, midwife: Profile, data: AvailabilityCreate) -> Availability:
        if data.end_date < data.start_date:
            raise ValidationError("end_date must not be before start_date")
        window = Availability(
            midwife_id=midwife.id,
            start_date=data.start_date,
            end_date=data.end_date,
            note=data.note,
        )
        db.add(window)
        await db.flush()
        await db.refresh(window)
        return window

    async def delete(self, db: AsyncSession, midwife: Profile, availability_id: UUID) -> None:
        window = await db.get(Availability, availability_id)
        if window is None:
            raise NotFoundError("Availability", str(availability_id))
        if window.midwife_id != midwife.id:
            raise AuthorizationError("You can only delete your own availability")
        await db.delete(window)
        await db.flush()


availability_service = AvailabilityService()
