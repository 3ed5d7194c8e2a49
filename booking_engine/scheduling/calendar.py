"""
Calendar primitives over local wall-clock time.

Intervals are half-open ``[start, end)`` on naive datetimes. All engine
arithmetic happens in the tenant's local time reference.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Iterable, Optional

from booking_engine.schemas.scheduling_schema import DayOfWeek


@dataclass(frozen=True, order=True)
class TimeInterval:
    """A half-open span of local time."""
    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValueError(f"Interval end {self.end} precedes start {self.start}")

    @property
    def minutes(self) -> int:
        return minutes_between(self.start, self.end)

    @property
    def is_empty(self) -> bool:
        return self.start == self.end

    def overlaps(self, other: "TimeInterval") -> bool:
        return self.start < other.end and other.start < self.end

    def contains(self, other: "TimeInterval") -> bool:
        return self.start <= other.start and other.end <= self.end

    def clip(self, bounds: "TimeInterval") -> Optional["TimeInterval"]:
        """Return the part of this interval inside ``bounds``, or None."""
        start = max(self.start, bounds.start)
        end = min(self.end, bounds.end)
        if start >= end:
            return None
        return TimeInterval(start, end)


def day_of_week(value: date) -> DayOfWeek:
    return DayOfWeek.from_date(value)


def at(day: date, wall_clock: time) -> datetime:
    return datetime.combine(day, wall_clock)


def day_bounds(day: date) -> TimeInterval:
    start = datetime.combine(day, time.min)
    return TimeInterval(start, start + timedelta(days=1))


def add_minutes(value: datetime, minutes: int) -> datetime:
    return value + timedelta(minutes=minutes)


def minutes_between(start: datetime, end: datetime) -> int:
    return int((end - start).total_seconds() // 60)


def merge_intervals(intervals: Iterable[TimeInterval]) -> list[TimeInterval]:
    """Sort and union intervals. Overlapping or touching spans are joined."""
    merged: list[TimeInterval] = []
    for interval in sorted(i for i in intervals if not i.is_empty):
        if merged and interval.start <= merged[-1].end:
            last = merged[-1]
            merged[-1] = TimeInterval(last.start, max(last.end, interval.end))
        else:
            merged.append(interval)
    return merged


def subtract_interval(intervals: list[TimeInterval], cut: TimeInterval) -> list[TimeInterval]:
    """
    Remove ``cut`` from each interval.

    A cut inside an interval splits it in two, a cut over one edge truncates
    it, and a cut covering it removes it.
    """
    result: list[TimeInterval] = []
    for interval in intervals:
        if not interval.overlaps(cut):
            result.append(interval)
            continue
        if interval.start < cut.start:
            result.append(TimeInterval(interval.start, cut.start))
        if cut.end < interval.end:
            result.append(TimeInterval(cut.end, interval.end))
    return result
