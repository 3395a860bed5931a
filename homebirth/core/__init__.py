"""Core utilities and security modules."""

from homebirth.core.exceptions import (
    AppException,
    AuthenticationError,
    AuthorizationError,
    DuplicateActiveBooking,
    ExternalServiceError,
    InvalidTransition,
    NotFoundError,
    PaymentError,
    RateLimitExceeded,
    RequestCooldownActive,
    ValidationError,
    WebhookSignatureInvalid,
)
from homebirth.core.security import TokenIdentity, verify_token

__all__ = [
    "AppException",
    "AuthenticationError",
    "AuthorizationError",
    "DuplicateActiveBooking",
    "ExternalServiceError",
    "InvalidTransition",
    "NotFoundError",
    "PaymentError",
    "RateLimitExceeded",
    "RequestCooldownActive",
    "ValidationError",
    "WebhookSignatureInvalid",
    "TokenIdentity",
    "verify_token",
]
