"""Booking state machine."""

from enum import Enum

from homebirth.core.exceptions import InvalidTransition
from homebirth.domain.actor import ActorRole


class BookingStatus(str, Enum):
    """Lifecycle of a booking request."""

    REQUESTED = "REQUESTED"
    CONFIRMED = "CONFIRMED"
    DECLINED = "DECLINED"
    PAID = "PAID"
    CANCELED = "CANCELED"


# Statuses that block a new request for the same client/midwife pair
ACTIVE_STATUSES = frozenset({BookingStatus.REQUESTED, BookingStatus.CONFIRMED})

# Statuses shown in the midwife's calendar feed
CALENDAR_STATUSES = frozenset({BookingStatus.CONFIRMED, BookingStatus.PAID})

# (from, to) -> roles allowed to perform it
BOOKING_TRANSITIONS: dict[tuple[BookingStatus, BookingStatus], frozenset[ActorRole]] = {
    (BookingStatus.REQUESTED, BookingStatus.CONFIRMED): frozenset({ActorRole.MIDWIFE}),
    (BookingStatus.REQUESTED, BookingStatus.DECLINED): frozenset({ActorRole.MIDWIFE}),
    (BookingStatus.REQUESTED, BookingStatus.CANCELED): frozenset({ActorRole.CLIENT}),
    (BookingStatus.CONFIRMED, BookingStatus.PAID): frozenset({ActorRole.PAYMENT_HANDLER}),
    (BookingStatus.CONFIRMED, BookingStatus.CANCELED): frozenset({ActorRole.CLIENT, ActorRole.MIDWIFE}),
}


def validate_transition(
    current: BookingStatus | str,
    requested: BookingStatus | str,
    actor_role: ActorRole | str,
) -> BookingStatus:
    """Decide whether ``actor_role`` may move a booking from ``current`` to ``requested``.

    Pure decision function: returns the approved status or raises
    ``InvalidTransition``. Requesting the current status is an idempotent
    no-op and is always approved.

    Args:
        current: Status stored on the booking
        requested: Status the caller asks for
        actor_role: Role of the caller

    Returns:
        BookingStatus: The approved new status

    Raises:
        InvalidTransition: If the pair is not in the transition table for this role
    """
    try:
        current = BookingStatus(current)
        requested = BookingStatus(requested)
        actor_role = ActorRole(actor_role)
    except ValueError:
        raise InvalidTransition(str(current), str(requested), str(actor_role))

    if current == requested:
        return requested

    allowed_roles = BOOKING_TRANSITIONS.get((current, requested), frozenset())
    if actor_role not in allowed_roles:
        raise InvalidTransition(current.value, requested.value, actor_role.value)
    return requested
