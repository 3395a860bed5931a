"""Profile enums and onboarding rules."""

from enum import Enum
from typing import Any


class ProfileRole(str, Enum):
    CLIENT = "CLIENT"
    MIDWIFE = "MIDWIFE"
    ADMIN = "ADMIN"


class VerificationStatus(str, Enum):
    DRAFT = "DRAFT"
    PENDING = "PENDING"
    VERIFIED = "VERIFIED"


class Plan(str, Enum):
    FREE = "FREE"
    PRO = "PRO"


class PriceModel(str, Enum):
    FIX = "FIX"
    PERCENT = "PERCENT"
    QUOTE = "QUOTE"


# Fields a midwife must fill in before publishing
COMPLETION_FIELDS = ("city", "postal_code", "bio", "qualifications", "phone", "price_model")

# Stripe subscription statuses that keep the PRO plan
ACTIVE_SUBSCRIPTION_STATUSES = frozenset({"active", "trialing"})


def _is_filled(value: Any) -> bool:
    if isinstance(value, (list, tuple, set)):
        return len(value) > 0
    return bool(value)


def profile_completion(profile: Any) -> int:
    """Percentage (0-100) of completion fields that are filled.

    Works on ORM objects and plain dicts alike.
    """
    filled = 0
    for field in COMPLETION_FIELDS:
        if isinstance(profile, dict):
            value = profile.get(field)
        else:
            value = getattr(profile, field, None)
        if _is_filled(value):
            filled += 1
    return round(filled / len(COMPLETION_FIELDS) * 100)


def plan_for_subscription_status(subscription_status: str | None) -> Plan:
    """Map a Stripe subscription status onto our plan tier."""
    if subscription_status in ACTIVE_SUBSCRIPTION_STATUSES:
        return Plan.PRO
    return Plan.FREE
