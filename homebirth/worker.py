"""Celery worker configuration.

Periodic jobs:
- Boosting booking requests that midwives left unanswered
"""

from celery import Celery
from celery.schedules import crontab

from homebirth.config import settings

# Create Celery app
celery_app = Celery(
    "homebirth_tasks",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["homebirth.tasks"],
)

# Celery configuration
celery_app.conf.update(
    # Task settings
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="Europe/Berlin",
    enable_utc=True,

    # Task execution settings
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    task_time_limit=300,  # 5 minutes max
    task_soft_time_limit=240,

    # Worker settings
    worker_prefetch_multiplier=1,

    # Result backend settings
    result_expires=3600,

    # Retry settings
    task_default_retry_delay=60,
    task_max_retries=3,

    # Beat schedule for periodic tasks
    beat_schedule={
        # Boost stale requests hourly
        "boost-stale-requests": {
            "task": "homebirth.tasks.boost_stale_requests",
            "schedule": crontab(minute=0),
        },
    },
)


if __name__ == "__main__":
    celery_app.start()
