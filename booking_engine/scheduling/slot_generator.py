"""
Slot generator: discrete candidate start times inside open intervals.

Three tenant policies are supported:

- FIXED: only the tenant's configured wall-clock times are offered.
- INTERVAL: a grid stepping ``interval_minutes`` from each interval start.
- SERVICE_DURATION: back-to-back slots stepping by duration plus buffer,
  so every offered slot leaves room for its buffer before the next one.

A candidate must fit entirely inside a single open interval; it never
spans a gap (a schedule block or a break between shifts). The trailing
buffer must fit too, except for the last candidate of an interval, which
may end flush with it unless ``SLOT_BUFFER_AT_INTERVAL_END`` is set.
"""

import logging
from datetime import datetime

from booking_engine.errors import ValidationError
from booking_engine.scheduling.calendar import TimeInterval, add_minutes, at
from booking_engine.schemas.scheduling_schema import SlotMode, SlotRule

logger = logging.getLogger(__name__)


def _fits(start: datetime, interval: TimeInterval, minutes: int) -> bool:
    return interval.start <= start and add_minutes(start, minutes) <= interval.end


def _step_through(interval: TimeInterval, step_minutes: int, duration_minutes: int) -> list[datetime]:
    starts = []
    cursor = interval.start
    while _fits(cursor, interval, duration_minutes):
        starts.append(cursor)
        cursor = add_minutes(cursor, step_minutes)
    return starts


def _reserve_buffer(
    starts: list[datetime],
    interval: TimeInterval,
    duration_minutes: int,
    buffer_minutes: int,
    buffer_at_interval_end: bool,
) -> list[datetime]:
    """
    Keep the starts whose buffered span fits inside ``interval``.

    ``starts`` are ascending and already fit without the buffer. The last
    one keeps its place without the buffer when ``buffer_at_interval_end``
    is off; no later start follows it, so its padding protects nothing.
    """
    kept = [s for s in starts if _fits(s, interval, duration_minutes + buffer_minutes)]
    if starts and not buffer_at_interval_end and starts[-1] not in kept:
        kept.append(starts[-1])
    return kept


def generate_candidates(
    open_intervals: list[TimeInterval],
    slot_rule: SlotRule,
    total_duration_minutes: int,
    buffer_at_interval_end: bool = False,
) -> list[datetime]:
    """
    Produce candidate start times for a booking of ``total_duration_minutes``.

    Args:
        open_intervals: Disjoint open intervals for a single date.
        slot_rule: Tenant slotting policy.
        total_duration_minutes: Summed effective duration of the requested services.
        buffer_at_interval_end: Require the trailing buffer to fit even for the
            final slot of an interval.

    Returns:
        Ascending, de-duplicated start times.

    Raises:
        ValidationError: If the duration is not positive.
    """
    if total_duration_minutes <= 0:
        raise ValidationError(
            f"Total duration must be positive, got {total_duration_minutes} minutes."
        )
    buffer = slot_rule.buffer_between_services_minutes
    candidates: set[datetime] = set()

    for interval in open_intervals:
        if slot_rule.mode == SlotMode.FIXED:
            starts = [
                start for start in (at(interval.start.date(), t) for t in slot_rule.fixed_times)
                if _fits(start, interval, total_duration_minutes)
            ]
        elif slot_rule.mode == SlotMode.INTERVAL:
            starts = _step_through(interval, slot_rule.interval_minutes, total_duration_minutes)
        else:
            starts = _step_through(interval, total_duration_minutes + buffer, total_duration_minutes)
        candidates.update(_reserve_buffer(
            starts, interval, total_duration_minutes, buffer, buffer_at_interval_end,
        ))

    ordered = sorted(candidates)
    logger.debug(
        "Generated %d candidates (mode=%s, duration=%d, buffer=%d)",
        len(ordered), slot_rule.mode.value, total_duration_minutes, buffer,
    )
    return ordered
