"""Custom application exceptions."""

from typing import Any

from fastapi import HTTPException, status


class AppException(HTTPException):
    """Base application exception.

    Every subclass carries a stable machine-readable ``code`` that clients can
    switch on; ``detail`` is the human-readable message.
    """

    code: str = "internal_error"

    def __init__(
        self,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail: str = "An unexpected error occurred",
        headers: dict[str, str] | None = None,
        code: str | None = None,
    ) -> None:
        if code:
            self.code = code
        super().__init__(status_code=status_code, detail=detail, headers=headers)


class ValidationError(AppException):
    """Validation error exception."""

    code = "validation_error"

    def __init__(self, detail: str = "Validation failed", errors: list[dict[str, Any]] | None = None) -> None:
        self.errors = errors
        super().__init__(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=detail)


class NotFoundError(AppException):
    """Resource not found exception."""

    code = "not_found"

    def __init__(self, resource: str = "Resource", identifier: str | None = None) -> None:
        detail = f"{resource} not found"
        if identifier:
            detail = f"{resource} with ID '{identifier}' not found"
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class AuthenticationError(AppException):
    """Authentication failed exception."""

    code = "unauthorized"

    def __init__(self, detail: str = "Authentication failed") -> None:
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class AuthorizationError(AppException):
    """Authorization denied exception."""

    code = "forbidden"

    def __init__(self, detail: str = "You don't have permission to access this resource") -> None:
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class InvalidTransition(AppException):
    """Requested booking status change is not permitted."""

    code = "invalid_transition"

    def __init__(self, current: str, requested: str, actor_role: str | None = None) -> None:
        self.current = current
        self.requested = requested
        self.actor_role = actor_role
        detail = f"Invalid booking transition: {current} → {requested}"
        if actor_role:
            detail = f"{detail} (actor: {actor_role})"
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class DuplicateActiveBooking(AppException):
    """An open booking already exists for this client/midwife pair."""

    code = "already_active"

    def __init__(self, detail: str = "An active booking request already exists for this midwife") -> None:
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class RequestCooldownActive(AppException):
    """A booking request for this pair was made within the cooldown window."""

    code = "cooldown_24h"

    def __init__(self, detail: str = "You already contacted this midwife within the last 24 hours") -> None:
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class WebhookSignatureInvalid(AppException):
    """Payment processor notification failed authenticity check."""

    code = "invalid_signature"

    def __init__(self, detail: str = "Invalid webhook signature") -> None:
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class PaymentError(AppException):
    """Payment processing error."""

    code = "payment_error"

    def __init__(self, detail: str = "Payment processing failed") -> None:
        super().__init__(status_code=status.HTTP_402_PAYMENT_REQUIRED, detail=detail)


class RateLimitExceeded(AppException):
    """Rate limit exceeded exception."""

    code = "rate_limited"

    def __init__(self, detail: str = "Too many requests. Please try again later.") -> None:
        super().__init__(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=detail,
            headers={"Retry-After": "60"},
        )


class ExternalServiceError(AppException):
    """External service error."""

    code = "service_unavailable"

    def __init__(self, service: str, detail: str | None = None) -> None:
        message = f"External service '{service}' is unavailable"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=message)
