"""
tests/test_disclosure.py
Phone masking and the disclosure gate.
"""

from datetime import UTC, datetime

from homebirth.domain.booking_state import BookingStatus
from homebirth.domain.disclosure import (
    MASK_PLACEHOLDER,
    UNKNOWN_PLACEHOLDER,
    disclose_phone,
    is_disclosable,
    mask_phone,
)
from homebirth.domain.profile import profile_completion
from homebirth.domain.geo import haversine_km

PHONE = "0151 23456789"


def test_mask_keeps_prefix_and_suffix():
    masked = mask_phone(PHONE)
    assert masked.startswith("0151")
    assert masked.endswith("789")
    assert masked != PHONE
    assert MASK_PLACEHOLDER in masked
    assert "2345" not in masked


def test_mask_strips_separators():
    assert mask_phone("0151-234 567 89") == mask_phone("015123456789")


def test_mask_short_and_empty_values():
    assert mask_phone("12345") == "12345"
    assert mask_phone("") == UNKNOWN_PLACEHOLDER
    assert mask_phone(None) == UNKNOWN_PLACEHOLDER
    assert mask_phone("  -  ") == UNKNOWN_PLACEHOLDER


def test_disclosed_only_when_paid_and_stamped():
    paid_at = datetime.now(UTC)
    assert is_disclosable(BookingStatus.PAID, paid_at)
    assert is_disclosable("PAID", paid_at)
    assert not is_disclosable(BookingStatus.PAID, None)
    for status in (BookingStatus.REQUESTED, BookingStatus.CONFIRMED, BookingStatus.CANCELED):
        assert not is_disclosable(status, paid_at)


def test_gate_returns_raw_phone_after_payment():
    result = disclose_phone(BookingStatus.PAID, datetime.now(UTC), PHONE)
    assert result.phone == PHONE
    assert result.is_masked is False


def test_gate_masks_before_payment():
    result = disclose_phone(BookingStatus.CONFIRMED, None, PHONE)
    assert result.phone == mask_phone(PHONE)
    assert result.is_masked is True


def test_gate_without_phone():
    assert disclose_phone(BookingStatus.PAID, datetime.now(UTC), None).phone == UNKNOWN_PLACEHOLDER
    assert disclose_phone(BookingStatus.REQUESTED, None, None).phone == UNKNOWN_PLACEHOLDER


def test_gate_fails_closed():
    class Broken:
        def __eq__(self, other):
            raise RuntimeError("boom")

    result = disclose_phone(Broken(), datetime.now(UTC), PHONE)
    assert result.is_masked is True
    assert result.phone == UNKNOWN_PLACEHOLDER


# ── Profile helpers ────────────────────────────────────────────────────────────

def test_profile_completion_counts_filled_fields():
    assert profile_completion({}) == 0
    half = {"city": "Berlin", "postal_code": "10115", "bio": "Hallo", "qualifications": []}
    assert profile_completion(half) == 50
    full = {
        "city": "Berlin",
        "postal_code": "10115",
        "bio": "Hallo",
        "qualifications": ["Hebamme"],
        "phone": PHONE,
        "price_model": "FIX",
    }
    assert profile_completion(full) == 100


def test_haversine_berlin_munich():
    distance = haversine_km(52.5200, 13.4050, 48.1351, 11.5820)
    assert 500 < distance < 510
    assert haversine_km(52.52, 13.40, 52.52, 13.40) == 0
