from collections.abc import Iterable
from datetime import timedelta

from app.core.exceptions import InvalidInputError
from app.scheduling.intervals import Interval, union


def resolve_granularity(
    service_minutes: int | None,
    tenant_minutes: int | None,
    default_minutes: int,
) -> timedelta:
    """Grid step for slot starts: the service override wins over the tenant's, then the default."""
    for minutes in (service_minutes, tenant_minutes):
        if minutes is not None:
            return timedelta(minutes=minutes)
    return timedelta(minutes=default_minutes)


def generate_slots(free: Iterable[Interval], duration: timedelta, granularity: timedelta) -> list[Interval]:
    """Walk each free interval in fixed steps and emit every start that fits ``duration``.

    Candidates may overlap each other; only one of them can end up booked.
    """
    if duration <= timedelta(0):
        raise InvalidInputError("Service duration must be positive")
    if granularity <= timedelta(0):
        raise InvalidInputError("Slot granularity must be positive")

    slots: list[Interval] = []
    for interval in union(free):
        start = interval.start
        while start + duration <= interval.end:
            slots.append(Interval(start, start + duration))
            start += granularity
    return slots
