"""Base payment gateway interface.

All gateway adapters must implement this interface.
Business logic should NOT live in adapters - only gateway communication.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum


class GatewayType(str, Enum):
    """Supported payment gateways."""

    STRIPE = "stripe"


@dataclass
class CheckoutResult:
    """Result of creating a hosted checkout or billing portal session."""

    success: bool
    session_id: str | None = None
    url: str | None = None
    error_message: str | None = None
    raw_response: dict | None = None


@dataclass
class CustomerResult:
    """Result of creating a customer record at the gateway."""

    success: bool
    customer_id: str | None = None
    error_message: str | None = None


class PaymentGateway(ABC):
    """Abstract base class for payment gateways."""

    @property
    @abstractmethod
    def gateway_type(self) -> GatewayType:
        """Return the gateway type."""
        pass

    @abstractmethod
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
        """Create a hosted checkout session.

        Args:
            mode: "payment" for one-off charges, "subscription" for plans
            price_id: Gateway price identifier
            quantity: Line item quantity
            success_url: Redirect after completion
            cancel_url: Redirect after abort
            metadata: Echoed back in webhook events
            customer_id: Existing gateway customer, if any
            customer_email: Prefill for new customers

        Returns:
            CheckoutResult with session id and redirect url
        """
        pass

    @abstractmethod
    async def create_customer(self, email: str | None, metadata: dict | None = None) -> CustomerResult:
        """Create a customer record for recurring billing."""
        pass

    @abstractmethod
    async def create_portal_session(self, customer_id: str, return_url: str) -> CheckoutResult:
        """Create a self-service billing portal session."""
        pass

    @abstractmethod
    def verify_webhook(self, payload: bytes, signature: str | None) -> dict:
        """Verify webhook signature and parse payload.

        Args:
            payload: Raw request body
            signature: Webhook signature header

        Returns:
            Parsed event dict

        Raises:
            WebhookSignatureInvalid: If the payload is not authentic
        """
        pass
