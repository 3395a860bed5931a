"""Celery background tasks."""

import asyncio
import logging

from celery import shared_task

from homebirth.database import engine, get_db_context
from homebirth.services.booking_service import booking_service

logger = logging.getLogger(__name__)


def run_async(coro):
    """Run async function in sync context."""
    return asyncio.run(coro)


# ==================== BOOKING TASKS ====================


@shared_task(bind=True, max_retries=3)
def boost_stale_requests(self):
    """Flag REQUESTED bookings to PRO midwives left unanswered for too long.

    Boosted requests sort to the top of the midwife list.
    """
    try:
        boosted = run_async(_boost_stale_requests())
        return {"status": "success", "boosted": boosted}
    except Exception as exc:
        logger.exception("Boosting stale requests failed")
        raise self.retry(exc=exc, countdown=300)


async def _boost_stale_requests() -> int:
    async with get_db_context() as db:
        boosted = await booking_service.boost_stale_requests(db)
    # Pooled connections belong to this event loop
    await engine.dispose()
    if boosted:
        logger.info(f"Boosted {boosted} stale booking requests")
    return boosted
