"""Request context, response headers and rate limits.

Rate limits are sliding one-minute windows held in Redis sorted sets.
Route dependencies key on the caller's profile once authentication has
run; the prefix middleware only sees the client address. Both let
requests through while Redis is unreachable.
"""

import logging
import time
import uuid

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

import redis.asyncio as redis

from homebirth.config import settings
from homebirth.core.exceptions import RateLimitExceeded

logger = logging.getLogger(__name__)

WINDOW_SECONDS = 60

_redis: redis.Redis | None = None


async def get_limiter_redis() -> redis.Redis:
    """Shared Redis client for all limiters."""
    global _redis
    if _redis is None:
        _redis = redis.from_url(settings.redis_url, encoding="utf-8", decode_responses=True)
    return _redis


def client_ip(request: Request) -> str | None:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


def caller_key(request: Request) -> str:
    """Profile id when authentication already ran, else the client address."""
    user_id = getattr(request.state, "user_id", None)
    if user_id is not None:
        return str(user_id)
    return client_ip(request) or "unknown"


async def hits_in_window(redis_client: redis.Redis, key: str) -> int:
    """Record one hit under ``key`` and return how many were already in the window."""
    now_ns = time.time_ns()
    now = now_ns / 1_000_000_000
    async with redis_client.pipeline(transaction=True) as pipe:
        await pipe.zremrangebyscore(key, 0, now - WINDOW_SECONDS)
        await pipe.zcard(key)
        # nanosecond members keep same-second hits apart
        await pipe.zadd(key, {str(now_ns): now})
        await pipe.expire(key, WINDOW_SECONDS)
        results = await pipe.execute()
    return results[1]


class RateLimiter:
    """Route dependency allowing ``requests_per_minute`` per caller within one scope."""

    def __init__(self, scope: str, requests_per_minute: int):
        self.scope = scope
        self.requests_per_minute = requests_per_minute

    async def get_redis(self) -> redis.Redis:
        return await get_limiter_redis()

    async def check(self, key: str) -> None:
        """Count one hit for ``key``.

        Raises:
            RateLimitExceeded: The window is full
        """
        try:
            seen = await hits_in_window(await self.get_redis(), f"rate:{self.scope}:{key}")
        except redis.RedisError as e:
            logger.warning(f"Rate limiter {self.scope} unavailable, allowing request: {e}")
            return
        if seen >= self.requests_per_minute:
            logger.info(f"Rate limit {self.scope} reached for {key}")
            raise RateLimitExceeded()

    async def __call__(self, request: Request) -> None:
        if not settings.rate_limit_enabled:
            return
        await self.check(caller_key(request))


booking_limiter = RateLimiter("booking", settings.booking_requests_per_minute)
checkout_limiter = RateLimiter("checkout", settings.checkout_requests_per_minute)


class RouteRateLimitMiddleware(BaseHTTPMiddleware):
    """Per-address limits on the path prefixes in ``settings.ip_route_limits``.

    The Stripe webhook and health check are never listed, so Stripe retries and
    uptime checks are not throttled.
    """

    def __init__(self, app, limits: dict[str, int] | None = None):
        super().__init__(app)
        limits = settings.ip_route_limits if limits is None else limits
        # longest prefix first so nested routes can carry their own limit
        self.limiters = [
            (f"{settings.api_prefix}{prefix}", RateLimiter(f"ip{prefix}", per_minute))
            for prefix, per_minute in sorted(limits.items(), key=lambda item: -len(item[0]))
        ]

    def _limiter_for(self, path: str) -> RateLimiter | None:
        for prefix, limiter in self.limiters:
            if path.startswith(prefix):
                return limiter
        return None

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        limiter = self._limiter_for(request.url.path)
        if limiter is None or not settings.rate_limit_enabled:
            return await call_next(request)

        try:
            await limiter.check(client_ip(request) or "unknown")
        except RateLimitExceeded as exc:
            return JSONResponse(
                status_code=exc.status_code,
                content={"detail": exc.detail, "code": exc.code},
                headers={"Retry-After": str(WINDOW_SECONDS)},
            )
        return await call_next(request)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Assigns a request id and logs each request with its caller and duration."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        started = time.perf_counter()
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        request.state.request_id = request_id

        response = await call_next(request)

        duration = time.perf_counter() - started
        response.headers["X-Request-ID"] = request_id
        user_id = getattr(request.state, "user_id", None)
        level = logging.WARNING if duration > settings.slow_request_seconds else logging.INFO
        logger.log(
            level,
            f"{request.method} {request.url.path} -> {response.status_code} "
            f"in {duration:.3f}s (user={user_id or '-'})",
            extra={"request_id": request_id},
        )
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Response headers for an API that returns contact details."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        # calendar feed URLs carry the midwife's token
        response.headers["Referrer-Policy"] = "no-referrer"
        if "authorization" in request.headers and "cache-control" not in response.headers:
            response.headers["Cache-Control"] = "no-store"
        if settings.environment == "production":
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        return response
