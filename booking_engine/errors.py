"""
Error taxonomy for the booking engine.

Every failure raised by the scheduling core or the store is one of these.
Callers (API layer, console demo) map them to user-facing responses; the
engine itself never retries and never swallows them.
"""

from typing import Any, Optional


class BookingEngineError(Exception):
    """Base class for all engine errors."""

    retryable: bool = False


class ValidationError(BookingEngineError):
    """Malformed or missing input, or an invalid service combination."""


class NotFoundError(BookingEngineError):
    """A referenced tenant, professional, customer, service or booking does not exist."""

    def __init__(self, entity: str, entity_id: str) -> None:
        super().__init__(f"{entity} '{entity_id}' not found.")
        self.entity = entity
        self.entity_id = entity_id


class InvalidTransitionError(BookingEngineError):
    """Raised when a booking status change is not valid from the current status."""

    def __init__(self, current: Any, requested: Any, allowed: Optional[list[str]] = None) -> None:
        current_value = getattr(current, "value", current)
        requested_value = getattr(requested, "value", requested)
        message = f"Cannot move booking from '{current_value}' to '{requested_value}'."
        if allowed is not None:
            message += f" Valid actions: {allowed}"
        super().__init__(message)
        self.current = current
        self.requested = requested


class SlotConflictError(BookingEngineError):
    """The requested time overlaps an active booking.

    Retryable from the caller's point of view: re-fetch slots and pick
    another time.
    """

    retryable = True

    def __init__(self, message: str, conflicting_ids: Optional[list[str]] = None) -> None:
        super().__init__(message)
        self.conflicting_ids = conflicting_ids or []
