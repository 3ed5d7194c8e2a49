"""Conflict filter: marks candidate slots against existing bookings."""

import logging
from datetime import datetime
from typing import Iterable, Optional

from booking_engine.scheduling.calendar import TimeInterval, add_minutes
from booking_engine.schemas.booking_schema import Booking
from booking_engine.schemas.scheduling_schema import AvailabilitySlot
from booking_engine.utils import to_iso_minute

logger = logging.getLogger(__name__)


def booking_interval(booking: Booking) -> TimeInterval:
    return TimeInterval(booking.start_time, booking.end_time)


def find_conflicts(
    span: TimeInterval,
    bookings: Iterable[Booking],
    exclude_booking_id: Optional[str] = None,
) -> list[Booking]:
    """Return the active bookings overlapping ``span``.

    Only REQUESTED, CONFIRMED and IN_PROGRESS bookings occupy time; terminal
    statuses never conflict.
    """
    return [
        b for b in bookings
        if b.is_blocking
        and b.id != exclude_booking_id
        and span.overlaps(booking_interval(b))
    ]


def mark_availability(
    candidates: Iterable[datetime],
    existing_bookings: Iterable[Booking],
    span_minutes: int,
    exclude_booking_id: Optional[str] = None,
) -> list[AvailabilitySlot]:
    """
    Mark each candidate start as available or not.

    Args:
        candidates: Start times from the slot generator.
        existing_bookings: The professional's bookings on the same date.
        span_minutes: Minutes each slot occupies (duration plus buffer).
        exclude_booking_id: Booking to ignore, e.g. the one being rescheduled.
    """
    bookings = list(existing_bookings)
    slots = []
    for start in candidates:
        span = TimeInterval(start, add_minutes(start, span_minutes))
        available = not find_conflicts(span, bookings, exclude_booking_id)
        slots.append(AvailabilitySlot(
            start_time=to_iso_minute(span.start),
            end_time=to_iso_minute(span.end),
            available=available,
        ))

    taken = sum(1 for s in slots if not s.available)
    if taken:
        logger.debug("%d of %d candidate slots overlap active bookings", taken, len(slots))
    return slots
