from booking_engine.scheduling.availability import resolve_open_intervals
from booking_engine.scheduling.calendar import TimeInterval, merge_intervals, subtract_interval
from booking_engine.scheduling.conflict_filter import find_conflicts, mark_availability
from booking_engine.scheduling.lifecycle import BookingStateMachine, is_terminal, valid_actions
from booking_engine.scheduling.pricing import compose, effective
from booking_engine.scheduling.slot_generator import generate_candidates

__all__ = [
    "TimeInterval",
    "merge_intervals",
    "subtract_interval",
    "resolve_open_intervals",
    "generate_candidates",
    "mark_availability",
    "find_conflicts",
    "BookingStateMachine",
    "valid_actions",
    "is_terminal",
    "effective",
    "compose",
]
