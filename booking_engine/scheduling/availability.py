"""
Availability resolver: working windows minus schedule blocks for one date.

Weekly availability rows are reconciled by union (split shifts stay
separate, accidental overlaps are merged), optionally bounded by the
tenant's business hours, then every schedule block touching the date is
cut out.
"""

import logging
from datetime import date
from typing import Iterable, Optional

from booking_engine.scheduling.calendar import (
    TimeInterval,
    at,
    day_bounds,
    day_of_week,
    merge_intervals,
    subtract_interval,
)
from booking_engine.schemas.scheduling_schema import ScheduleBlock, WeeklyAvailability

logger = logging.getLogger(__name__)


def working_windows(
    availabilities: Iterable[WeeklyAvailability], target_date: date
) -> list[TimeInterval]:
    """Active weekly windows for ``target_date``'s weekday, unioned and sorted."""
    weekday = day_of_week(target_date)
    windows = [
        TimeInterval(at(target_date, a.start_time), at(target_date, a.end_time))
        for a in availabilities
        if a.active and a.day_of_week == weekday
    ]
    merged = merge_intervals(windows)
    if len(merged) < len(windows):
        logger.debug(
            "Merged %d overlapping availability windows into %d on %s",
            len(windows), len(merged), target_date.isoformat(),
        )
    return merged


def block_intervals(blocks: Iterable[ScheduleBlock], target_date: date) -> list[TimeInterval]:
    """Schedule blocks clipped to ``target_date``. Blocks on other days are dropped."""
    bounds = day_bounds(target_date)
    clipped = []
    for block in blocks:
        part = TimeInterval(block.start_time, block.end_time).clip(bounds)
        if part is not None:
            clipped.append(part)
    return clipped


def resolve_open_intervals(
    availabilities: Iterable[WeeklyAvailability],
    blocks: Iterable[ScheduleBlock],
    target_date: date,
    business_hours: Optional[TimeInterval] = None,
) -> list[TimeInterval]:
    """
    Compute the ordered, disjoint open intervals for a professional on a date.

    Args:
        availabilities: The professional's weekly availability rows (any day).
        blocks: The professional's schedule blocks (any date).
        target_date: Day to resolve.
        business_hours: Optional tenant opening window on ``target_date``.

    Returns:
        Disjoint ``[start, end)`` intervals in ascending order. Empty when the
        professional does not work that day or is blocked all day.
    """
    intervals = working_windows(availabilities, target_date)
    if not intervals:
        return []

    if business_hours is not None:
        intervals = [
            part for part in (i.clip(business_hours) for i in intervals)
            if part is not None
        ]

    for cut in block_intervals(blocks, target_date):
        intervals = subtract_interval(intervals, cut)

    return intervals
