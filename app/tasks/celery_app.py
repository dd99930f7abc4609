from datetime import timedelta

from celery import Celery

from app.core.config import settings

celery_app = Celery(
    "slot_booking",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["app.tasks.reminders"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    beat_schedule={
        "remind-upcoming-bookings": {
            "task": "bookings.remind_upcoming",
            "schedule": timedelta(minutes=settings.celery_reminder_interval_minutes),
        },
    },
)
