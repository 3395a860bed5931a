"""Explicit caller identity passed into core operations."""

from dataclasses import dataclass
from enum import Enum
from uuid import UUID


class ActorRole(str, Enum):
    """Who is acting on a resource."""

    CLIENT = "CLIENT"
    MIDWIFE = "MIDWIFE"
    ADMIN = "ADMIN"
    PAYMENT_HANDLER = "PAYMENT_HANDLER"  # webhook processing, never a user


@dataclass(frozen=True)
class AuthenticatedActor:
    """An authenticated caller (or the payment handler) and its role."""

    id: UUID | None
    role: ActorRole

    @property
    def is_admin(self) -> bool:
        return self.role == ActorRole.ADMIN


PAYMENT_HANDLER = AuthenticatedActor(id=None, role=ActorRole.PAYMENT_HANDLER)
