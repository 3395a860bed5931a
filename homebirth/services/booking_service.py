"""Booking request workflow.

Creation is guarded by the database: the conditional insert refuses a new
request while the pair has an open booking or a request inside the cooldown
window, and the partial unique index catches concurrent creators that slip
past the predicate. Status changes are compare-and-swap updates on the
stored status, so a losing concurrent writer sees ``InvalidTransition``
instead of overwriting the winner.
"""

import logging
import uuid
from datetime import UTC, datetime, timedelta
from uuid import UUID

from sqlalchemy import Boolean, DateTime, String, Uuid, and_, func, literal, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from homebirth.config import settings
from homebirth.core.events import BOOKING_CREATED, BOOKING_STATUS_CHANGED, EventBus, defer_event
from homebirth.core.exceptions import (
    AuthorizationError,
    DuplicateActiveBooking,
    InvalidTransition,
    NotFoundError,
    RequestCooldownActive,
)
from homebirth.domain.actor import PAYMENT_HANDLER, ActorRole, AuthenticatedActor
from homebirth.domain.booking_state import ACTIVE_STATUSES, BookingStatus, validate_transition
from homebirth.domain.disclosure import ContactDisclosure, disclose_phone
from homebirth.models.booking import Booking
from homebirth.models.payment import Payment
from homebirth.models.profile import Profile

logger = logging.getLogger(__name__)

_ACTIVE_VALUES = [s.value for s in ACTIVE_STATUSES]


class BookingService:
    """Service for the booking request/response lifecycle."""

    # ============ CREATION ============

    async def create_booking(
        self,
        db: AsyncSession,
        actor: AuthenticatedActor,
        midwife_id: UUID,
        events: EventBus,
    ) -> Booking:
        """Create a REQUESTED booking from the calling client to a midwife.

        Raises:
            AuthorizationError: Caller is not a client
            NotFoundError: Midwife does not exist
            DuplicateActiveBooking: Pair already has a REQUESTED/CONFIRMED booking
            RequestCooldownActive: Pair had a request inside the cooldown window
        """
        if actor.role != ActorRole.CLIENT:
            raise AuthorizationError("Only clients can request bookings")
        await self._get_midwife(db, midwife_id)

        try:
            booking = await self._insert_request(db, actor.id, midwife_id)
        except IntegrityError:
            logger.info(f"Concurrent booking request for pair {actor.id}/{midwife_id} rejected")
            raise DuplicateActiveBooking()

        if booking is None:
            if await self._find_active(db, actor.id, midwife_id) is not None:
                raise DuplicateActiveBooking()
            raise RequestCooldownActive(
                f"You already contacted this midwife within the last "
                f"{settings.booking_cooldown_hours} hours"
            )

        defer_event(db, events, BOOKING_CREATED, self._event_payload(booking))
        return booking

    async def create_express_bookings(
        self,
        db: AsyncSession,
        client_id: UUID,
        midwife_ids: list[UUID],
        events: EventBus,
    ) -> list[Booking]:
        """Create one REQUESTED booking per midwife after an express checkout.

        Pairs that are active, cooling down or point at unknown midwives are
        skipped.
        """
        created = []
        for midwife_id in midwife_ids:
            midwife = await db.get(Profile, midwife_id)
            if midwife is None or midwife.role != ActorRole.MIDWIFE.value:
                logger.warning(f"Express booking skipped unknown midwife {midwife_id}")
                continue
            booking = await self._insert_request(db, client_id, midwife_id)
            if booking is None:
                logger.info(f"Express booking skipped pair {client_id}/{midwife_id}: active or cooling down")
                continue
            created.append(booking)
            defer_event(db, events, BOOKING_CREATED, self._event_payload(booking))
        return created

    async def _insert_request(
        self,
        db: AsyncSession,
        client_id: UUID,
        midwife_id: UUID,
    ) -> Booking | None:
        """INSERT ... SELECT ... WHERE NOT EXISTS; returns None when refused."""
        now = datetime.now(UTC)
        cutoff = now - timedelta(hours=settings.booking_cooldown_hours)
        booking_id = uuid.uuid4()

        blocking = (
            select(Booking.id)
            .where(
                Booking.client_id == client_id,
                Booking.midwife_id == midwife_id,
                or_(Booking.status.in_(_ACTIVE_VALUES), Booking.created_at >= cutoff),
            )
            .exists()
        )
        candidate = select(
            literal(booking_id, Uuid),
            literal(client_id, Uuid),
            literal(midwife_id, Uuid),
            literal(BookingStatus.REQUESTED.value, String),
            literal(False, Boolean),
            literal(now, DateTime(timezone=True)),
            literal(now, DateTime(timezone=True)),
        ).where(~blocking)

        stmt = Booking.__table__.insert().from_select(
            ["id", "client_id", "midwife_id", "status", "is_boosted", "created_at", "updated_at"],
            candidate,
        )
        result = await db.execute(stmt)
        if result.rowcount == 0:
            return None
        return await db.get(Booking, booking_id)

    # ============ READS ============

    async def list_bookings(
        self,
        db: AsyncSession,
        actor: AuthenticatedActor,
        status: BookingStatus | None = None,
    ) -> list[Booking]:
        """Bookings where the caller is client or midwife; boosted requests first."""
        query = select(Booking).where(
            or_(Booking.client_id == actor.id, Booking.midwife_id == actor.id)
        )
        if status:
            query = query.where(Booking.status == status.value)
        query = query.order_by(Booking.is_boosted.desc(), Booking.created_at.desc())
        result = await db.execute(query)
        return list(result.scalars().all())

    async def get_booking(
        self,
        db: AsyncSession,
        actor: AuthenticatedActor,
        booking_id: UUID,
    ) -> Booking:
        """Get a booking visible to the caller (party or admin)."""
        booking = await self._get_booking(db, booking_id)
        if not actor.is_admin and not booking.is_party(actor.id):
            raise AuthorizationError("You don't have permission to access this booking")
        return booking

    async def get_contact(
        self,
        db: AsyncSession,
        actor: AuthenticatedActor,
        booking_id: UUID,
    ) -> tuple[Booking, ContactDisclosure]:
        """Counterpart phone number, masked until the booking is paid."""
        booking = await self._get_booking(db, booking_id)
        if actor.id == booking.client_id:
            counterpart_id = booking.midwife_id
        elif actor.id == booking.midwife_id:
            counterpart_id = booking.client_id
        else:
            logger.warning(f"Contact read on booking {booking_id} denied for {actor.id}")
            raise AuthorizationError("Only parties to the booking can read contact data")

        counterpart = await db.get(Profile, counterpart_id)
        raw_phone = counterpart.phone if counterpart else None
        return booking, disclose_phone(booking.status, booking.paid_at, raw_phone)

    # ============ TRANSITIONS ============

    async def update_status(
        self,
        db: AsyncSession,
        actor: AuthenticatedActor,
        booking_id: UUID,
        new_status: BookingStatus,
        events: EventBus,
        note: str | None = None,
    ) -> Booking:
        """Apply a user-initiated status change.

        The caller's role on this booking is derived from ownership, not from
        the profile: the midwife of the booking acts as MIDWIFE, its client as
        CLIENT. Everyone else is refused before the state machine runs.
        """
        booking = await self._get_booking(db, booking_id)
        if actor.id == booking.midwife_id:
            role = ActorRole.MIDWIFE
        elif actor.id == booking.client_id:
            role = ActorRole.CLIENT
        else:
            logger.warning(f"Status change on booking {booking_id} denied for {actor.id}")
            raise AuthorizationError("Only parties to the booking can change its status")

        current = BookingStatus(booking.status)
        approved = validate_transition(current, new_status, role)
        if approved == current:
            return booking

        values: dict = {"status": approved.value}
        if note is not None:
            values["note"] = note
        if approved == BookingStatus.CANCELED:
            values["canceled_by"] = role.value

        return await self._compare_and_swap(db, booking, current, approved, role, values, events)

    async def complete_payment(
        self,
        db: AsyncSession,
        checkout_session: dict,
        paid_at: datetime,
        events: EventBus,
    ) -> Booking | None:
        """Advance the booking behind a completed Checkout Session to PAID.

        Returns the paid booking, or None when the event does not apply
        (unknown booking, booking not CONFIRMED). Replays are no-ops.
        """
        session_id = checkout_session.get("id")
        metadata = checkout_session.get("metadata") or {}
        booking = await self._find_by_checkout(db, session_id, metadata.get("booking_id"))
        if booking is None:
            logger.warning(f"Payment for checkout session {session_id} matches no booking")
            return None

        current = BookingStatus(booking.status)
        if current == BookingStatus.PAID:
            logger.info(f"Booking {booking.id} already paid, ignoring replay")
            await self._record_payment(db, booking, checkout_session)
            return booking

        try:
            validate_transition(current, BookingStatus.PAID, PAYMENT_HANDLER.role)
        except InvalidTransition:
            logger.warning(f"Payment received for booking {booking.id} in status {current.value}")
            return None

        values: dict = {"status": BookingStatus.PAID.value, "paid_at": paid_at}
        if booking.checkout_session_id is None and session_id:
            values["checkout_session_id"] = session_id
        booking = await self._compare_and_swap(
            db, booking, current, BookingStatus.PAID, PAYMENT_HANDLER.role, values, events
        )
        await self._record_payment(db, booking, checkout_session)
        return booking

    async def _compare_and_swap(
        self,
        db: AsyncSession,
        booking: Booking,
        expected: BookingStatus,
        approved: BookingStatus,
        role: ActorRole,
        values: dict,
        events: EventBus,
    ) -> Booking:
        stmt = (
            update(Booking)
            .where(Booking.id == booking.id, Booking.status == expected.value)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await db.execute(stmt)
        await db.refresh(booking)

        if result.rowcount == 0:
            # Lost the race; identical outcome counts as done
            if booking.status == approved.value:
                return booking
            raise InvalidTransition(booking.status, approved.value, role.value)

        logger.info(f"Booking {booking.id}: {expected.value} -> {approved.value} by {role.value}")
        payload = self._event_payload(booking)
        payload.update(old_status=expected.value, actor_role=role.value)
        defer_event(db, events, BOOKING_STATUS_CHANGED, payload)
        return booking

    async def attach_checkout_session(self, db: AsyncSession, booking: Booking, session_id: str) -> Booking:
        """Remember the Checkout Session created for a booking."""
        booking.checkout_session_id = session_id
        await db.flush()
        await db.refresh(booking)
        return booking

    # ============ BACKGROUND ============

    async def boost_stale_requests(self, db: AsyncSession, now: datetime | None = None) -> int:
        """Flag old unanswered requests to PRO midwives so they sort first."""
        now = now or datetime.now(UTC)
        cutoff = now - timedelta(hours=settings.boost_after_hours)
        pro_midwives = select(Profile.id).where(Profile.plan == "PRO")
        stmt = (
            update(Booking)
            .where(
                and_(
                    Booking.status == BookingStatus.REQUESTED.value,
                    Booking.is_boosted.is_(False),
                    Booking.created_at < cutoff,
                    Booking.midwife_id.in_(pro_midwives),
                )
            )
            .values(is_boosted=True)
            .execution_options(synchronize_session=False)
        )
        result = await db.execute(stmt)
        return result.rowcount or 0

    async def count_by_status(self, db: AsyncSession, midwife_id: UUID) -> dict[str, int]:
        """Booking counts per status for a midwife."""
        result = await db.execute(
            select(Booking.status, func.count(Booking.id))
            .where(Booking.midwife_id == midwife_id)
            .group_by(Booking.status)
        )
        return {status: count for status, count in result.all()}

    # ============ HELPERS ============

    async def _get_booking(self, db: AsyncSession, booking_id: UUID) -> Booking:
        booking = await db.get(Booking, booking_id)
        if not booking:
            raise NotFoundError("Booking", str(booking_id))
        return booking

    async def _get_midwife(self, db: AsyncSession, midwife_id: UUID) -> Profile:
        midwife = await db.get(Profile, midwife_id)
        if not midwife or midwife.role != ActorRole.MIDWIFE.value:
            raise NotFoundError("Midwife", str(midwife_id))
        return midwife

    async def _find_active(self, db: AsyncSession, client_id: UUID, midwife_id: UUID) -> Booking | None:
        result = await db.execute(
            select(Booking).where(
                Booking.client_id == client_id,
                Booking.midwife_id == midwife_id,
                Booking.status.in_(_ACTIVE_VALUES),
            )
        )
        return result.scalar_one_or_none()

    async def _find_by_checkout(
        self,
        db: AsyncSession,
        session_id: str | None,
        booking_ref: str | None,
    ) -> Booking | None:
        if session_id:
            result = await db.execute(select(Booking).where(Booking.checkout_session_id == session_id))
            booking = result.scalar_one_or_none()
            if booking:
                return booking
        if booking_ref:
            try:
                return await db.get(Booking, UUID(str(booking_ref)))
            except ValueError:
                logger.warning(f"Checkout session {session_id} carries malformed booking_id {booking_ref!r}")
        return None

    async def _record_payment(self, db: AsyncSession, booking: Booking, checkout_session: dict) -> None:
        session_id = checkout_session.get("id")
        if not session_id:
            return
        existing = await db.execute(
            select(Payment.id).where(Payment.stripe_checkout_session_id == session_id)
        )
        if existing.scalar_one_or_none() is not None:
            return
        db.add(
            Payment(
                booking_id=booking.id,
                stripe_checkout_session_id=session_id,
                stripe_payment_intent_id=checkout_session.get("payment_intent"),
                amount_cents=checkout_session.get("amount_total") or 0,
                currency=checkout_session.get("currency") or "eur",
                status="completed",
                gateway_response={
                    "payment_status": checkout_session.get("payment_status"),
                    "customer": checkout_session.get("customer"),
                },
            )
        )
        await db.flush()

    @staticmethod
    def _event_payload(booking: Booking) -> dict:
        return {
            "booking_id": str(booking.id),
            "client_id": str(booking.client_id),
            "midwife_id": str(booking.midwife_id),
            "status": booking.status,
        }


# Singleton instance
booking_service = BookingService()
