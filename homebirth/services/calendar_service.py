"""iCal feed of a midwife's confirmed and paid bookings."""

from datetime import UTC, datetime, timedelta

from icalendar import Calendar, Event
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from homebirth.core.exceptions import NotFoundError
from homebirth.domain.booking_state import CALENDAR_STATUSES
from homebirth.domain.profile import ProfileRole
from homebirth.models.booking import Booking
from homebirth.models.profile import Profile


class CalendarService:
    """Builds the per-midwife subscription feed."""

    async def build_feed(self, db: AsyncSession, token: str) -> bytes:
        """Render the feed for the midwife owning ``token``.

        Bookings carry no appointment date, so each booking becomes an
        all-day event on the day it was requested.
        """
        result = await db.execute(
            select(Profile).where(
                Profile.calendar_token == token,
                Profile.role == ProfileRole.MIDWIFE.value,
            )
        )
        midwife = result.scalar_one_or_none()
        if midwife is None:
            raise NotFoundError("Calendar")

        bookings = await db.execute(
            select(Booking)
            .options(selectinload(Booking.client))
            .where(
                Booking.midwife_id == midwife.id,
                Booking.status.in_([s.value for s in CALENDAR_STATUSES]),
            )
            .order_by(Booking.created_at.asc())
        )

        calendar = Calendar()
        calendar.add("prodid", "-//Homebirth Match//Bookings//DE")
        calendar.add("version", "2.0")
        calendar.add("x-wr-calname", f"Buchungen für {midwife.display_name or 'Hebamme'}")

        now = datetime.now(UTC)
        for booking in bookings.scalars().all():
            client_name = booking.client.display_name if booking.client else None
            day = booking.created_at.date()
            event = Event()
            event.add("uid", f"{booking.id}@homebirth-match")
            event.add("dtstamp", now)
            event.add("dtstart", day)
            event.add("dtend", day + timedelta(days=1))
            event.add("summary", f"Buchung von {client_name or 'Unbekannt'}")
            event.add(
                "description",
                f"Status: {booking.status}\nBooking ID: {booking.id}\nDatum der Anfrage (kein Termin)",
            )
            calendar.add_component(event)

        return calendar.to_ical()


calendar_service = CalendarService()
