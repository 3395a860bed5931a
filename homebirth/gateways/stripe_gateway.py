"""Stripe payment gateway adapter."""

import json
import logging

import stripe

from homebirth.config import settings
from homebirth.core.exceptions import WebhookSignatureInvalid
from homebirth.gateways.base import (
    CheckoutResult,
    CustomerResult,
    GatewayType,
    PaymentGateway,
)

logger = logging.getLogger(__name__)


class StripeGateway(PaymentGateway):
    """Stripe payment gateway implementation."""

    def __init__(self):
        self.secret_key = settings.stripe_secret_key
        self.webhook_secret = settings.stripe_webhook_secret

    @property
    def gateway_type(self) -> GatewayType:
        return GatewayType.STRIPE

    async def create_checkout_session(
        self,
        mode: str,
        price_id: str,
        quantity: int,
        success_url: str,
        cancel_url: str,
        metadata: dict | None = None,
        customer_id: str | None = None,
        customer_email: str | None = None,
    ) -> CheckoutResult:
        """Create Stripe Checkout Session."""
        if not self.secret_key:
            return CheckoutResult(success=False, error_message="Stripe not configured")

        params: dict = {
            "mode": mode,
            "line_items": [{"price": price_id, "quantity": quantity}],
            "success_url": success_url,
            "cancel_url": cancel_url,
            "metadata": metadata or {},
        }
        if customer_id:
            params["customer"] = customer_id
        elif customer_email:
            params["customer_email"] = customer_email
        if mode == "subscription" and metadata:
            # Subscription events carry their own metadata, not the session's
            params["subscription_data"] = {"metadata": metadata}

        try:
            stripe.api_key = self.secret_key
            session = stripe.checkout.Session.create(**params)
            return CheckoutResult(
                success=True,
                session_id=session.id,
                url=session.url,
                raw_response={"id": session.id, "url": session.url},
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe checkout session failed: {e}")
            return CheckoutResult(success=False, error_message=str(e))

    async def create_customer(self, email: str | None, metadata: dict | None = None) -> CustomerResult:
        """Create Stripe Customer."""
        if not self.secret_key:
            return CustomerResult(success=False, error_message="Stripe not configured")

        try:
            stripe.api_key = self.secret_key
            customer = stripe.Customer.create(email=email, metadata=metadata or {})
            return CustomerResult(success=True, customer_id=customer.id)
        except stripe.StripeError as e:
            logger.error(f"Stripe customer creation failed: {e}")
            return CustomerResult(success=False, error_message=str(e))

    async def create_portal_session(self, customer_id: str, return_url: str) -> CheckoutResult:
        """Create Stripe billing portal session."""
        if not self.secret_key:
            return CheckoutResult(success=False, error_message="Stripe not configured")

        try:
            stripe.api_key = self.secret_key
            portal = stripe.billing_portal.Session.create(customer=customer_id, return_url=return_url)
            return CheckoutResult(success=True, session_id=portal.id, url=portal.url)
        except stripe.StripeError as e:
            logger.error(f"Stripe billing portal failed: {e}")
            return CheckoutResult(success=False, error_message=str(e))

    def verify_webhook(self, payload: bytes, signature: str | None) -> dict:
        """Verify Stripe webhook signature."""
        if not self.webhook_secret:
            logger.error("Stripe webhook secret is not configured")
            raise WebhookSignatureInvalid("Webhook secret not configured")
        if not signature:
            logger.warning("Stripe webhook without signature header rejected")
            raise WebhookSignatureInvalid("Missing Stripe-Signature header")

        try:
            stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except ValueError:
            logger.warning("Stripe webhook with unparseable payload rejected")
            raise WebhookSignatureInvalid("Invalid payload")
        except stripe.SignatureVerificationError:
            logger.warning("Stripe webhook with invalid signature rejected")
            raise WebhookSignatureInvalid()

        # Plain dict for downstream handlers
        return json.loads(payload)
