"""Half-open interval sets.

An interval set is a list of ``Interval`` sorted by start, with no two members
overlapping or touching. Every function accepts unsorted, overlapping input and
returns a normalized set.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta

from app.core.exceptions import InvalidInputError


@dataclass(frozen=True, order=True)
class Interval:
    start: datetime
    end: datetime

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    @property
    def is_empty(self) -> bool:
        return self.start >= self.end

    def overlaps(self, other: "Interval") -> bool:
        return self.start < other.end and other.start < self.end

    def contains(self, other: "Interval") -> bool:
        return self.start <= other.start and other.end <= self.end


def _check_same_awareness(intervals: list[Interval]) -> None:
    aware = {interval.start.tzinfo is not None for interval in intervals}
    aware.update(interval.end.tzinfo is not None for interval in intervals)
    if len(aware) > 1:
        raise InvalidInputError("Cannot mix naive and timezone-aware datetimes in one interval set")


def union(intervals: Iterable[Interval]) -> list[Interval]:
    """Sort, drop empty members and merge overlapping or adjacent ones."""
    items = [interval for interval in intervals if not interval.is_empty]
    _check_same_awareness(items)
    items.sort()

    merged: list[Interval] = []
    for interval in items:
        if merged and interval.start <= merged[-1].end:
            if interval.end > merged[-1].end:
                merged[-1] = Interval(merged[-1].start, interval.end)
            continue
        merged.append(interval)
    return merged


def intersect(a: Iterable[Interval], b: Iterable[Interval]) -> list[Interval]:
    left = union(a)
    right = union(b)
    _check_same_awareness(left + right)

    result: list[Interval] = []
    i = j = 0
    while i < len(left) and j < len(right):
        start = max(left[i].start, right[j].start)
        end = min(left[i].end, right[j].end)
        if start < end:
            result.append(Interval(start, end))
        if left[i].end < right[j].end:
            i += 1
        else:
            j += 1
    return result


def subtract(a: Iterable[Interval], b: Iterable[Interval]) -> list[Interval]:
    """Remove from ``a`` every instant covered by ``b``, splitting members as needed."""
    remaining = union(a)
    removals = union(b)
    _check_same_awareness(remaining + removals)

    result: list[Interval] = []
    j = 0
    for interval in remaining:
        # removals ending before this member cannot touch any later member either
        while j < len(removals) and removals[j].end <= interval.start:
            j += 1

        cursor = interval.start
        k = j
        while k < len(removals) and removals[k].start < interval.end:
            cut = removals[k]
            if cut.start > cursor:
                result.append(Interval(cursor, cut.start))
            cursor = max(cursor, cut.end)
            if cursor >= interval.end:
                break
            k += 1

        if cursor < interval.end:
            result.append(Interval(cursor, interval.end))
    return result


def clip(intervals: Iterable[Interval], window: Interval) -> list[Interval]:
    return intersect(intervals, [window])


def total_duration(intervals: Iterable[Interval]) -> timedelta:
    return sum((interval.duration for interval in union(intervals)), timedelta())
