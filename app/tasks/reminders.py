import logging
from datetime import UTC, datetime, timedelta

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.models import Booking, BookingStatus
from app.db.session import SessionLocal
from app.tasks.celery_app import celery_app

logger = logging.getLogger("app.tasks.reminders")


def find_bookings_due_for_reminder(db: Session, now: datetime | None = None) -> list[Booking]:
    """Confirmed, not yet reminded bookings starting inside the reminder lookahead window."""
    current_time = now or datetime.now(UTC)
    reminder_until = current_time + timedelta(minutes=settings.reminder_lookahead_minutes)

    return list(
        db.scalars(
            select(Booking)
            .where(
                Booking.status == BookingStatus.CONFIRMED.value,
                Booking.reminder_sent_at.is_(None),
                Booking.start_at >= current_time,
                Booking.start_at < reminder_until,
            )
            .order_by(Booking.start_at, Booking.id)
        ).all()
    )


def dispatch_reminders(db: Session, now: datetime | None = None) -> int:
    current_time = now or datetime.now(UTC)
    upcoming = find_bookings_due_for_reminder(db=db, now=current_time)
    for booking in upcoming:
        logger.info(
            "reminder_due booking_id=%s tenant_id=%s resource_id=%s start_at=%s",
            booking.id,
            booking.tenant_id,
            booking.resource_id,
            booking.start_at.isoformat(),
        )
        booking.reminder_sent_at = current_time
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    return len(upcoming)


@celery_app.task(name="bookings.remind_upcoming")
def remind_upcoming_bookings_task() -> dict[str, int]:
    db = SessionLocal()
    try:
        reminder_count = dispatch_reminders(db=db)
        return {"to_remind": reminder_count}
    finally:
        db.close()
