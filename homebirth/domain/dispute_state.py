"""Dispute state machine.

States: OPEN → RESOLVED
"""

from enum import Enum

from homebirth.core.exceptions import ValidationError


class DisputeStatus(str, Enum):
    OPEN = "OPEN"
    RESOLVED = "RESOLVED"


DISPUTE_TRANSITIONS: dict[str, set[str]] = {
    DisputeStatus.OPEN.value: {DisputeStatus.RESOLVED.value},
    DisputeStatus.RESOLVED.value: set(),  # Terminal state
}


def assert_dispute_transition(current_status: str, new_status: str) -> None:
    """Validate dispute state transition."""
    allowed = DISPUTE_TRANSITIONS.get(current_status, set())
    if new_status not in allowed:
        raise ValidationError(f"Invalid dispute transition: {current_status} → {new_status}")


def can_resolve_dispute(status: str) -> tuple[bool, str | None]:
    """Check if dispute can be resolved."""
    if status == DisputeStatus.RESOLVED.value:
        return False, "Dispute is already resolved"
    return True, None
