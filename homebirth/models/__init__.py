"""Database models."""

from homebirth.models.admin import AuditLog, Dispute
from homebirth.models.booking import Booking
from homebirth.models.location import PostalCode
from homebirth.models.payment import Payment, ProcessedWebhookEvent
from homebirth.models.profile import Availability, Profile

__all__ = [
    # Profile
    "Profile",
    "Availability",
    # Booking
    "Booking",
    # Payment
    "Payment",
    "ProcessedWebhookEvent",
    # Location
    "PostalCode",
    # Admin
    "AuditLog",
    "Dispute",
]
