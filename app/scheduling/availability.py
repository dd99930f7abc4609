from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta, tzinfo
from typing import Protocol

from app.core.exceptions import InvalidInputError
from app.db.models.booking import BookingStatus
from app.scheduling.intervals import Interval, clip, subtract, union
from app.scheduling.weekly import WeeklySchedule


class BookingLike(Protocol):
    start_at: datetime
    end_at: datetime
    status: str


@dataclass(frozen=True)
class BookedInterval:
    """Detached copy of a booking's occupancy, safe to share across threads."""

    start_at: datetime
    end_at: datetime
    status: str

    @classmethod
    def of(cls, booking: BookingLike) -> "BookedInterval":
        return cls(start_at=booking.start_at, end_at=booking.end_at, status=booking.status)


def to_utc(day: date, moment: time, tz: tzinfo) -> datetime:
    """Interpret a wall-clock time on ``day`` in ``tz`` and return the UTC instant."""
    return datetime.combine(day, moment, tzinfo=tz).astimezone(UTC)


def iter_days(start_date: date, end_date: date) -> Iterable[date]:
    current = start_date
    while current < end_date:
        yield current
        current += timedelta(days=1)


def query_window(start_date: date, end_date: date, tz: tzinfo) -> Interval:
    """UTC bounds of local calendar days ``[start_date, end_date)``."""
    if end_date <= start_date:
        raise InvalidInputError("end_date must be after start_date")
    return Interval(to_utc(start_date, time.min, tz), to_utc(end_date, time.min, tz))


def working_intervals(schedule: WeeklySchedule, start_date: date, end_date: date, tz: tzinfo) -> list[Interval]:
    emitted: list[Interval] = []
    for day in iter_days(start_date, end_date):
        hours = schedule.for_date(day)
        if hours is None or hours.is_empty:
            continue
        emitted.append(Interval(to_utc(day, hours.start, tz), to_utc(day, hours.end, tz)))
    return union(emitted)


def resolve_free_intervals(
    schedule: WeeklySchedule,
    blockouts: Iterable[Interval],
    start_date: date,
    end_date: date,
    tz: tzinfo,
) -> list[Interval]:
    """Weekly template for the local days in range, minus blockouts clipped to the range."""
    window = query_window(start_date, end_date, tz)
    free = working_intervals(schedule, start_date, end_date, tz)
    return subtract(free, clip(blockouts, window))


def subtract_bookings(free: Iterable[Interval], bookings: Iterable[BookingLike]) -> list[Interval]:
    """Remove every non-cancelled booking from ``free``.

    Pending holds occupy their interval exactly like confirmed bookings.
    """
    busy = [
        Interval(booking.start_at, booking.end_at)
        for booking in bookings
        if booking.status != BookingStatus.CANCELLED.value
    ]
    return subtract(free, busy)
