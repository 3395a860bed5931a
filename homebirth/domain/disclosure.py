"""Contact disclosure gate.

A midwife's (or client's) phone number is only released to the other party
once the booking is paid. Until then a masked form is returned. The gate
never raises: on any internal error it falls back to the masked/unknown
representation.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime

from homebirth.domain.booking_state import BookingStatus

logger = logging.getLogger(__name__)

MASK_PLACEHOLDER = "••••"
UNKNOWN_PLACEHOLDER = "—"

_STRIP_RE = re.compile(r"[\s\-]")


@dataclass(frozen=True)
class ContactDisclosure:
    """What a caller gets to see of a phone number."""

    phone: str
    is_masked: bool


def mask_phone(raw: str | None) -> str:
    """Mask a phone number, keeping the first 4 and last 3 characters.

    Values of six characters or fewer are returned as-is (masking would hide
    nothing useful); empty values become the unknown placeholder.
    """
    if not raw:
        return UNKNOWN_PLACEHOLDER
    cleaned = _STRIP_RE.sub("", raw)
    if not cleaned:
        return UNKNOWN_PLACEHOLDER
    if len(cleaned) <= 6:
        return cleaned
    return f"{cleaned[:4]} {MASK_PLACEHOLDER} {cleaned[-3:]}"


def is_disclosable(status: BookingStatus | str | None, paid_at: datetime | None) -> bool:
    """Full contact data only once the booking is PAID and stamped."""
    return status == BookingStatus.PAID and paid_at is not None


def disclose_phone(
    status: BookingStatus | str | None,
    paid_at: datetime | None,
    raw_phone: str | None,
) -> ContactDisclosure:
    """Return the full or masked phone number for a booking's counterpart."""
    try:
        if is_disclosable(status, paid_at):
            if not raw_phone:
                return ContactDisclosure(phone=UNKNOWN_PLACEHOLDER, is_masked=False)
            return ContactDisclosure(phone=raw_phone, is_masked=False)
        return ContactDisclosure(phone=mask_phone(raw_phone), is_masked=True)
    except Exception:
        logger.exception("Disclosure gate failed, returning masked placeholder")
        return ContactDisclosure(phone=UNKNOWN_PLACEHOLDER, is_masked=True)
