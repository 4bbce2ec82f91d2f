"""Resolve periodOfTime windows into UTC intervals."""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from ..utils.time import as_aware_utc
from .errors import InvalidFilterValue

PERIOD_DIMENSION = "periodOfTime"
DEFAULT_PERIOD = "upcoming"
PERIODS = ("upcoming", "thisWeek", "nextWeek", "thisMonth", "nextMonth", "past")


@dataclass(frozen=True)
class TimeWindow:
    """Interval [start, end) over event start times; open where a bound is None."""
    period: str
    start: Optional[datetime]
    end: Optional[datetime]
    end_inclusive: bool = False

    def contains(self, value: datetime) -> bool:
        value = as_aware_utc(value)
        if self.start is not None and value < self.start:
            return False
        if self.end is not None:
            if self.end_inclusive:
                return value <= self.end
            return value < self.end
        return True


def _start_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def next_monday(now: datetime) -> datetime:
    """Midnight of the coming Monday; a week ahead when today is Monday."""
    return _start_of_day(now) + timedelta(days=7 - now.weekday())


def first_of_next_month(now: datetime) -> datetime:
    if now.month == 12:
        return _start_of_day(now).replace(year=now.year + 1, month=1, day=1)
    return _start_of_day(now).replace(month=now.month + 1, day=1)


def resolve_time_window(period: str, now: datetime) -> TimeWindow:
    """
    Translate a periodOfTime value into a UTC window anchored at ``now``.

    Args:
        period: upcoming, thisWeek, nextWeek, thisMonth, nextMonth or past
        now: Anchor time (naive values are treated as UTC)

    Returns:
        TimeWindow for the period

    Raises:
        InvalidFilterValue: If the period is not a known window
    """
    now = as_aware_utc(now)
    if period == "past":
        return TimeWindow(period, start=None, end=now, end_inclusive=True)
    if period == "upcoming":
        return TimeWindow(period, start=now, end=None)
    if period == "thisWeek":
        return TimeWindow(period, start=now, end=next_monday(now))
    if period == "nextWeek":
        monday = next_monday(now)
        return TimeWindow(period, start=monday, end=monday + timedelta(days=7))
    if period == "thisMonth":
        return TimeWindow(period, start=now, end=first_of_next_month(now))
    if period == "nextMonth":
        first = first_of_next_month(now)
        return TimeWindow(period, start=first, end=first_of_next_month(first))
    raise InvalidFilterValue(PERIOD_DIMENSION, period, "unknown time window")
