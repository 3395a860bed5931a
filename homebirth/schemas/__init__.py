"""Pydantic schemas for API validation."""

from homebirth.schemas.booking import (
    BookingContactResponse,
    BookingCreate,
    BookingListResponse,
    BookingResponse,
    BookingStatusUpdate,
    CheckoutSessionResponse,
)
from homebirth.schemas.payment import ExpressCheckoutRequest, PaymentResponse, WebhookAck
from homebirth.schemas.profile import (
    AvailabilityCreate,
    AvailabilityResponse,
    CalendarTokenResponse,
    DashboardResponse,
    ProfileResponse,
    ProfileUpdate,
    PublicProfileResponse,
    VerificationUpdate,
)
from homebirth.schemas.search import MatchRequest, SearchResponse, SearchResult

__all__ = [
    # Booking
    "BookingCreate",
    "BookingStatusUpdate",
    "BookingResponse",
    "BookingListResponse",
    "BookingContactResponse",
    "CheckoutSessionResponse",
    # Profile
    "ProfileUpdate",
    "ProfileResponse",
    "PublicProfileResponse",
    "DashboardResponse",
    "CalendarTokenResponse",
    "VerificationUpdate",
    "AvailabilityCreate",
    "AvailabilityResponse",
    # Payment
    "ExpressCheckoutRequest",
    "PaymentResponse",
    "WebhookAck",
    # Search
    "MatchRequest",
    "SearchResult",
    "SearchResponse",
]
