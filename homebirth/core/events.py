"""Realtime relay for booking events.

Core operations publish domain events to an ``EventBus``; subscribers
(websocket gateways, notification workers) listen on the Redis channel.
Events are queued on the database session and go out only after that
session commits; a rolled-back transaction publishes nothing. Publishing
is best effort: a relay outage never fails the request that caused the
event.
"""

import json
import logging
from abc import ABC, abstractmethod
from datetime import UTC, datetime
from typing import Any

import redis.asyncio as redis
from sqlalchemy.ext.asyncio import AsyncSession

from homebirth.config import settings
from homebirth.database import after_commit

logger = logging.getLogger(__name__)

BOOKING_STATUS_CHANGED = "booking.status_changed"
BOOKING_CREATED = "booking.created"


class EventBus(ABC):
    """Abstract publisher of domain events."""

    @abstractmethod
    async def publish(self, event_type: str, payload: dict[str, Any]) -> None:
        """Publish an event. Implementations must not raise."""
        pass

    async def close(self) -> None:
        """Release any held connections."""
        return None


def build_envelope(event_type: str, payload: dict[str, Any]) -> dict[str, Any]:
    return {
        "type": event_type,
        "occurred_at": datetime.now(UTC).isoformat(),
        "payload": payload,
    }


class RedisEventBus(EventBus):
    """Redis pub/sub implementation."""

    def __init__(self, redis_url: str | None = None, channel: str | None = None):
        self.redis_url = redis_url or settings.redis_url
        self.channel = channel or settings.events_channel
        self._redis: redis.Redis | None = None

    async def get_redis(self) -> redis.Redis:
        """Get Redis connection."""
        if self._redis is None:
            self._redis = redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
        return self._redis

    async def publish(self, event_type: str, payload: dict[str, Any]) -> None:
        message = json.dumps(build_envelope(event_type, payload), default=str)
        try:
            client = await self.get_redis()
            await client.publish(self.channel, message)
        except redis.RedisError as e:
            logger.warning(f"Failed to publish {event_type} to {self.channel}: {e}")

    async def close(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None


class InMemoryEventBus(EventBus):
    """Collects events in a list. Used in tests and local scripts."""

    def __init__(self):
        self.events: list[dict[str, Any]] = []

    async def publish(self, event_type: str, payload: dict[str, Any]) -> None:
        self.events.append(build_envelope(event_type, payload))

    def of_type(self, event_type: str) -> list[dict[str, Any]]:
        return [e for e in self.events if e["type"] == event_type]

    def clear(self) -> None:
        self.events.clear()


_event_bus: EventBus | None = None


def get_event_bus() -> EventBus:
    """FastAPI dependency returning the process-wide event bus."""
    global _event_bus
    if _event_bus is None:
        _event_bus = RedisEventBus()
    return _event_bus


async def close_event_bus() -> None:
    global _event_bus
    if _event_bus is not None:
        await _event_bus.close()
        _event_bus = None


def defer_event(db: AsyncSession, bus: EventBus, event_type: str, payload: dict[str, Any]) -> None:
    """Publish once ``db`` commits; dropped if it rolls back."""
    after_commit(db, bus.publish, event_type, payload)
