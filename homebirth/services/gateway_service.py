"""Payment gateway service.

Routes payment operations to the appropriate gateway adapter.
No business logic here - only gateway coordination.
"""

from homebirth.core.exceptions import ExternalServiceError
from homebirth.gateways.base import (
    CheckoutResult,
    CustomerResult,
    GatewayType,
    PaymentGateway,
)
from homebirth.gateways.stripe_gateway import StripeGateway


class GatewayService:
    """Service for managing payment gateway operations."""

    def __init__(self):
        self._gateways: dict[GatewayType, PaymentGateway] = {}

    def _get_gateway(self, gateway_type: str | GatewayType = GatewayType.STRIPE) -> PaymentGateway:
        """Get or create gateway instance."""
        gateway_type = GatewayType(gateway_type)
        if gateway_type not in self._gateways:
            self._gateways[gateway_type] = StripeGateway()
        return self._gateways[gateway_type]

    async def create_checkout_session(self, **kwargs) -> CheckoutResult:
        """Create a hosted checkout session; raises if the gateway fails."""
        result = await self._get_gateway().create_checkout_session(**kwargs)
        if not result.success:
            raise ExternalServiceError("stripe", result.error_message)
        return result

    async def create_customer(self, email: str | None, metadata: dict | None = None) -> CustomerResult:
        result = await self._get_gateway().create_customer(email=email, metadata=metadata)
        if not result.success:
            raise ExternalServiceError("stripe", result.error_message)
        return result

    async def create_portal_session(self, customer_id: str, return_url: str) -> CheckoutResult:
        result = await self._get_gateway().create_portal_session(customer_id, return_url)
        if not result.success:
            raise ExternalServiceError("stripe", result.error_message)
        return result

    def verify_webhook(self, payload: bytes, signature: str | None) -> dict:
        """Verify webhook from gateway."""
        return self._get_gateway().verify_webhook(payload, signature)


# Singleton instance
gateway_service = GatewayService()
