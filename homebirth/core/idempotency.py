"""Idempotency protection for payment processor webhooks.

Stripe delivers events at least once. Each event id is recorded in
``processed_webhook_events`` inside the same transaction as the writes it
causes, so a redelivered event is acknowledged without being reprocessed and
a failed one is retried in full.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from homebirth.models.payment import ProcessedWebhookEvent

logger = logging.getLogger(__name__)


async def is_event_processed(db: AsyncSession, event_id: str) -> bool:
    """Check if a webhook event was already handled."""
    result = await db.execute(
        select(ProcessedWebhookEvent.id).where(ProcessedWebhookEvent.event_id == event_id)
    )
    return result.scalar_one_or_none() is not None


async def claim_event(db: AsyncSession, event_id: str, event_type: str) -> bool:
    """Record an event id before processing it.

    Returns:
        True if the caller should process the event, False if it is a duplicate.
        A concurrent delivery racing past the check fails on the unique key
        at flush, rolling back its whole transaction.
    """
    if await is_event_processed(db, event_id):
        logger.info(f"Skipping already processed webhook event {event_id} ({event_type})")
        return False

    db.add(ProcessedWebhookEvent(event_id=event_id, event_type=event_type))
    await db.flush()
    return True
