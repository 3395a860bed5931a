"""Stripe checkout, billing and webhook processing.

Webhook handling order: signature, event-id claim, dispatch. All writes
share the request transaction, so a failure anywhere rolls back the claim
too and Stripe's retry is processed from scratch.
"""

import logging
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from homebirth.config import settings
from homebirth.core.events import EventBus
from homebirth.core.exceptions import (
    AuthorizationError,
    ExternalServiceError,
    NotFoundError,
    ValidationError,
)
from homebirth.core.idempotency import claim_event
from homebirth.domain.actor import ActorRole, AuthenticatedActor
from homebirth.domain.booking_state import BookingStatus
from homebirth.domain.profile import Plan, plan_for_subscription_status
from homebirth.gateways.base import CheckoutResult
from homebirth.models.profile import Profile
from homebirth.services.booking_service import booking_service
from homebirth.services.gateway_service import gateway_service

logger = logging.getLogger(__name__)

EXPRESS_BOOKING_FEATURE = "express_booking"
# Delayed methods (SEPA Direct Debit) complete unpaid and settle later
CHECKOUT_SETTLED_EVENTS = {
    "checkout.session.completed",
    "checkout.session.async_payment_succeeded",
}
SUBSCRIPTION_EVENTS = {
    "customer.subscription.created",
    "customer.subscription.updated",
    "customer.subscription.deleted",
}


def _timestamp(value: int | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromtimestamp(int(value), UTC)


def _period_end(subscription: dict) -> datetime | None:
    """current_period_end lives on the subscription or, in newer API versions, its items."""
    if subscription.get("current_period_end"):
        return _timestamp(subscription["current_period_end"])
    items = (subscription.get("items") or {}).get("data") or []
    if items and items[0].get("current_period_end"):
        return _timestamp(items[0]["current_period_end"])
    return None


class PaymentService:
    """Service for Stripe-backed payments and subscriptions."""

    # ============ CHECKOUT ============

    async def create_booking_checkout(
        self,
        db: AsyncSession,
        actor: AuthenticatedActor,
        booking_id: UUID,
    ) -> CheckoutResult:
        """Checkout Session for a confirmed booking; only its client may pay."""
        booking = await booking_service.get_booking(db, actor, booking_id)
        if booking.client_id != actor.id:
            raise AuthorizationError("Only the client of the booking can pay for it")
        if booking.status != BookingStatus.CONFIRMED.value:
            raise ValidationError(f"Booking is {booking.status}; only CONFIRMED bookings can be paid")
        if not settings.stripe_booking_price_id:
            raise ExternalServiceError("stripe", "Booking price is not configured")

        client = await db.get(Profile, actor.id)
        result = await gateway_service.create_checkout_session(
            mode="payment",
            price_id=settings.stripe_booking_price_id,
            quantity=1,
            success_url=f"{settings.site_url}/dashboard/bookings/{booking.id}?paid=1",
            cancel_url=f"{settings.site_url}/dashboard/bookings/{booking.id}",
            metadata={
                "booking_id": str(booking.id),
                "client_id": str(booking.client_id),
                "midwife_id": str(booking.midwife_id),
            },
            customer_email=client.email if client else None,
        )
        await booking_service.attach_checkout_session(db, booking, result.session_id)
        logger.info(f"Checkout session {result.session_id} created for booking {booking.id}")
        return result

    async def create_subscription_checkout(self, db: AsyncSession, profile: Profile) -> CheckoutResult:
        """Checkout Session for the PRO plan."""
        if not profile.is_midwife:
            raise AuthorizationError("Only midwives can subscribe to PRO")
        if not settings.stripe_pro_price_id:
            raise ExternalServiceError("stripe", "PRO price is not configured")

        customer_id = await self._ensure_customer(db, profile)
        return await gateway_service.create_checkout_session(
            mode="subscription",
            price_id=settings.stripe_pro_price_id,
            quantity=1,
            success_url=f"{settings.site_url}/dashboard?upgraded=1",
            cancel_url=f"{settings.site_url}/dashboard/billing",
            metadata={"user_id": str(profile.id)},
            customer_id=customer_id,
        )

    async def create_billing_portal(self, profile: Profile) -> CheckoutResult:
        """Billing portal for managing an existing subscription."""
        if not profile.stripe_customer_id:
            raise ValidationError("No billing account exists for this profile yet")
        return await gateway_service.create_portal_session(
            profile.stripe_customer_id,
            return_url=f"{settings.site_url}/dashboard/billing",
        )

    async def create_express_checkout(
        self,
        db: AsyncSession,
        profile: Profile,
        midwife_ids: list[UUID],
    ) -> CheckoutResult:
        """Paid checkout that requests several midwives at once."""
        if profile.role != ActorRole.CLIENT.value:
            raise AuthorizationError("Only clients can use express booking")
        if not settings.stripe_express_price_id:
            raise ExternalServiceError("stripe", "Express booking price is not configured")

        result = await db.execute(
            select(Profile.id).where(Profile.id.in_(midwife_ids), Profile.role == ActorRole.MIDWIFE.value)
        )
        found = set(result.scalars().all())
        missing = [str(m) for m in midwife_ids if m not in found]
        if missing:
            raise NotFoundError("Midwife", ", ".join(missing))

        return await gateway_service.create_checkout_session(
            mode="payment",
            price_id=settings.stripe_express_price_id,
            quantity=1,
            success_url=f"{settings.site_url}/dashboard/requests?express=success",
            cancel_url=f"{settings.site_url}/wizard/results",
            metadata={
                "client_id": str(profile.id),
                "midwife_ids": ",".join(str(m) for m in midwife_ids),
                "feature": EXPRESS_BOOKING_FEATURE,
            },
            customer_email=profile.email,
        )

    async def _ensure_customer(self, db: AsyncSession, profile: Profile) -> str:
        if profile.stripe_customer_id:
            return profile.stripe_customer_id
        customer = await gateway_service.create_customer(
            email=profile.email, metadata={"user_id": str(profile.id)}
        )
        profile.stripe_customer_id = customer.customer_id
        await db.flush()
        return customer.customer_id

    # ============ WEBHOOKS ============

    async def handle_webhook(
        self,
        db: AsyncSession,
        payload: bytes,
        signature: str | None,
        events: EventBus,
    ) -> bool:
        """Verify and process one Stripe event.

        Returns:
            False if the event id was already processed, True otherwise.

        Raises:
            WebhookSignatureInvalid: Signature check failed; nothing was written
        """
        event = gateway_service.verify_webhook(payload, signature)
        event_id = event.get("id")
        event_type = event.get("type", "")
        if not event_id:
            raise ValidationError("Webhook event without id")

        if not await claim_event(db, event_id, event_type):
            return False

        data = (event.get("data") or {}).get("object") or {}
        occurred_at = _timestamp(event.get("created")) or datetime.now(UTC)

        if event_type in CHECKOUT_SETTLED_EVENTS:
            await self._on_checkout_completed(db, data, occurred_at, events)
        elif event_type == "checkout.session.async_payment_failed":
            self._on_async_payment_failed(data)
        elif event_type in SUBSCRIPTION_EVENTS:
            await self._on_subscription_changed(db, data)
        elif event_type == "invoice.payment_failed":
            await self._on_invoice_payment_failed(db, data)
        else:
            logger.info(f"Unhandled Stripe event type {event_type} acknowledged")
        return True

    async def _on_checkout_completed(
        self,
        db: AsyncSession,
        session: dict,
        occurred_at: datetime,
        events: EventBus,
    ) -> None:
        metadata = session.get("metadata") or {}
        if session.get("payment_status") == "unpaid":
            logger.info(f"Checkout session {session.get('id')} completed unpaid, waiting for payment")
            return

        if metadata.get("feature") == EXPRESS_BOOKING_FEATURE:
            await self._on_express_booking_paid(db, session, events)
        elif session.get("mode") == "payment":
            await booking_service.complete_payment(db, session, occurred_at, events)
        elif session.get("mode") == "subscription":
            await self._link_customer(db, metadata.get("user_id"), session.get("customer"))

    def _on_async_payment_failed(self, session: dict) -> None:
        metadata = session.get("metadata") or {}
        logger.warning(
            f"Delayed payment failed for checkout session {session.get('id')} "
            f"(booking {metadata.get('booking_id', '-')}); booking stays CONFIRMED"
        )

    async def _on_express_booking_paid(self, db: AsyncSession, session: dict, events: EventBus) -> None:
        metadata = session.get("metadata") or {}
        try:
            client_id = UUID(metadata["client_id"])
            midwife_ids = [UUID(m) for m in metadata.get("midwife_ids", "").split(",") if m.strip()]
        except (KeyError, ValueError):
            logger.error(f"Express booking session {session.get('id')} has malformed metadata")
            return
        created = await booking_service.create_express_bookings(db, client_id, midwife_ids, events)
        logger.info(f"Created {len(created)} express bookings for client {client_id}")

    async def _on_subscription_changed(self, db: AsyncSession, subscription: dict) -> None:
        metadata = subscription.get("metadata") or {}
        profile = await self._resolve_profile(db, metadata.get("user_id"), subscription.get("customer"))
        if profile is None:
            logger.warning(f"Subscription {subscription.get('id')} matches no profile")
            return

        plan = plan_for_subscription_status(subscription.get("status"))
        profile.plan = plan.value
        profile.stripe_subscription_id = subscription.get("id")
        if subscription.get("customer") and not profile.stripe_customer_id:
            profile.stripe_customer_id = subscription["customer"]
        profile.pro_until = _period_end(subscription) if plan == Plan.PRO else None
        await db.flush()
        logger.info(f"Profile {profile.id} plan set to {plan.value} ({subscription.get('status')})")

    async def _on_invoice_payment_failed(self, db: AsyncSession, invoice: dict) -> None:
        profile = await self._resolve_profile(db, None, invoice.get("customer"))
        if profile is None:
            logger.warning(f"Failed invoice {invoice.get('id')} matches no profile")
            return
        profile.plan = Plan.FREE.value
        profile.pro_until = None
        await db.flush()
        logger.info(f"Profile {profile.id} downgraded to FREE after failed invoice")

    async def _link_customer(self, db: AsyncSession, user_id: str | None, customer_id: str | None) -> None:
        if not user_id or not customer_id:
            return
        profile = await self._resolve_profile(db, user_id, None)
        if profile and not profile.stripe_customer_id:
            profile.stripe_customer_id = customer_id
            await db.flush()

    async def _resolve_profile(
        self,
        db: AsyncSession,
        user_id: str | None,
        customer_id: str | None,
    ) -> Profile | None:
        if user_id:
            try:
                profile = await db.get(Profile, UUID(str(user_id)))
            except ValueError:
                profile = None
            if profile:
                return profile
        if customer_id:
            result = await db.execute(select(Profile).where(Profile.stripe_customer_id == customer_id))
            return result.scalar_one_or_none()
        return None


# Singleton instance
payment_service = PaymentService()
