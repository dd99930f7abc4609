"""Slot computation across a service's resource pool.

Each resource is resolved independently from an immutable snapshot of its
schedule, so the per-resource work can run concurrently without locking.
"""

from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import date, datetime, timedelta, tzinfo

from app.db.models.booking import BookingStatus
from app.scheduling.availability import BookingLike, resolve_free_intervals, subtract_bookings
from app.scheduling.intervals import Interval
from app.scheduling.slots import generate_slots
from app.scheduling.weekly import WeeklySchedule


@dataclass(frozen=True)
class ResourceSchedule:
    resource_id: int
    sort_order: int
    weekly: WeeklySchedule
    blockouts: tuple[Interval, ...] = ()
    bookings: tuple[BookingLike, ...] = ()


@dataclass(frozen=True)
class CandidateSlot:
    start: datetime
    end: datetime
    resource_id: int


def compute_resource_slots(
    schedule: ResourceSchedule,
    start_date: date,
    end_date: date,
    tz: tzinfo,
    duration: timedelta,
    granularity: timedelta,
) -> list[CandidateSlot]:
    free = resolve_free_intervals(schedule.weekly, schedule.blockouts, start_date, end_date, tz)
    free = subtract_bookings(free, schedule.bookings)
    return [
        CandidateSlot(start=slot.start, end=slot.end, resource_id=schedule.resource_id)
        for slot in generate_slots(free, duration, granularity)
    ]


def collect_pool_slots(
    schedules: Sequence[ResourceSchedule],
    start_date: date,
    end_date: date,
    tz: tzinfo,
    duration: timedelta,
    granularity: timedelta,
    max_workers: int = 1,
) -> list[CandidateSlot]:
    """Merge per-resource candidates ordered by start, then resource sort order and id."""

    def run(schedule: ResourceSchedule) -> list[CandidateSlot]:
        return compute_resource_slots(schedule, start_date, end_date, tz, duration, granularity)

    if max_workers > 1 and len(schedules) > 1:
        with ThreadPoolExecutor(max_workers=min(max_workers, len(schedules))) as pool:
            per_resource = list(pool.map(run, schedules))
    else:
        per_resource = [run(schedule) for schedule in schedules]

    rank = {schedule.resource_id: (schedule.sort_order, schedule.resource_id) for schedule in schedules}
    merged = [slot for slots in per_resource for slot in slots]
    merged.sort(key=lambda slot: (slot.start, rank[slot.resource_id]))
    return merged


def _bookings_on_local_day(schedule: ResourceSchedule, day: date, tz: tzinfo) -> int:
    return sum(
        1
        for booking in schedule.bookings
        if booking.status != BookingStatus.CANCELLED.value and booking.start_at.astimezone(tz).date() == day
    )


def pick_resource_for_start(
    slots: Sequence[CandidateSlot],
    schedules: Sequence[ResourceSchedule],
    start: datetime,
    tz: tzinfo,
) -> int | None:
    """Choose the resource for an unpinned booking at ``start``.

    Among resources offering exactly ``start``, the one with the fewest active
    bookings on that local day wins; ties go to the lower sort order, then the
    lower resource id.
    """
    offering = {slot.resource_id for slot in slots if slot.start == start}
    if not offering:
        return None

    day = start.astimezone(tz).date()
    candidates = [schedule for schedule in schedules if schedule.resource_id in offering]
    best = min(
        candidates,
        key=lambda schedule: (
            _bookings_on_local_day(schedule, day, tz),
            schedule.sort_order,
            schedule.resource_id,
        ),
    )
    return best.resource_id
