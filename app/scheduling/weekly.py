from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, time
from enum import Enum
from typing import Protocol


class DayOfWeek(str, Enum):
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"

    @classmethod
    def from_date(cls, value: date) -> "DayOfWeek":
        return _WEEKDAY_ORDER[value.weekday()]


_WEEKDAY_ORDER = tuple(DayOfWeek)


@dataclass(frozen=True)
class DailyHours:
    start: time
    end: time

    @property
    def is_empty(self) -> bool:
        return self.start >= self.end


class WindowLike(Protocol):
    day_of_week: str
    start_time: time
    end_time: time
    is_available: bool


@dataclass(frozen=True)
class WeeklySchedule:
    """Working hours for each of the seven weekdays; ``None`` means closed."""

    monday: DailyHours | None = None
    tuesday: DailyHours | None = None
    wednesday: DailyHours | None = None
    thursday: DailyHours | None = None
    friday: DailyHours | None = None
    saturday: DailyHours | None = None
    sunday: DailyHours | None = None

    def for_day(self, day: DayOfWeek) -> DailyHours | None:
        return getattr(self, day.value)

    def for_date(self, value: date) -> DailyHours | None:
        return self.for_day(DayOfWeek.from_date(value))

    @classmethod
    def from_windows(cls, windows: Iterable[WindowLike]) -> "WeeklySchedule":
        hours: dict[str, DailyHours] = {}
        for window in windows:
            if not window.is_available:
                continue
            day = DayOfWeek(window.day_of_week)
            hours[day.value] = DailyHours(start=window.start_time, end=window.end_time)
        return cls(**hours)
