"""
Finite state machine for the booking lifecycle.

Every booking starts REQUESTED and moves only through the transitions
listed below. COMPLETED, CANCELLED, REJECTED and NO_SHOW are terminal.
Transitions are not idempotent: cancelling an already cancelled booking
is an error, not a no-op.

Usage:
    sm = BookingStateMachine(BookingStatus.REQUESTED)
    sm.transition(BookingAction.CONFIRM)
    assert sm.current_status == BookingStatus.CONFIRMED
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from booking_engine.errors import InvalidTransitionError
from booking_engine.schemas.booking_schema import BookingAction, BookingStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Transition:
    """A single valid status transition."""
    from_status: BookingStatus
    to_status: BookingStatus
    action: BookingAction


@dataclass
class StatusEntry:
    """Recorded history entry for a status visit."""
    status: BookingStatus
    entered_at: datetime
    action: Optional[BookingAction] = None


TERMINAL_STATUSES: frozenset[BookingStatus] = frozenset({
    BookingStatus.COMPLETED,
    BookingStatus.CANCELLED,
    BookingStatus.REJECTED,
    BookingStatus.NO_SHOW,
})


class BookingStateMachine:
    """
    Status machine for a single booking.

    Built from the booking's current status; ``transition`` either returns
    the new status or raises ``InvalidTransitionError`` naming the current
    status and the status the action would have led to.
    """

    TRANSITIONS: list[Transition] = [
        # --- Pending request ---
        Transition(BookingStatus.REQUESTED, BookingStatus.CONFIRMED, BookingAction.CONFIRM),
        Transition(BookingStatus.REQUESTED, BookingStatus.REJECTED, BookingAction.REJECT),

        # --- Confirmed ---
        Transition(BookingStatus.CONFIRMED, BookingStatus.IN_PROGRESS, BookingAction.START),
        Transition(BookingStatus.CONFIRMED, BookingStatus.CANCELLED, BookingAction.CANCEL),
        Transition(BookingStatus.CONFIRMED, BookingStatus.NO_SHOW, BookingAction.NO_SHOW),

        # --- In progress ---
        Transition(BookingStatus.IN_PROGRESS, BookingStatus.COMPLETED, BookingAction.COMPLETE),
    ]

    # Status each action leads to, used to report the attempted target.
    ACTION_TARGETS: dict[BookingAction, BookingStatus] = {
        BookingAction.CONFIRM: BookingStatus.CONFIRMED,
        BookingAction.START: BookingStatus.IN_PROGRESS,
        BookingAction.COMPLETE: BookingStatus.COMPLETED,
        BookingAction.CANCEL: BookingStatus.CANCELLED,
        BookingAction.REJECT: BookingStatus.REJECTED,
        BookingAction.NO_SHOW: BookingStatus.NO_SHOW,
    }

    def __init__(self, status: BookingStatus = BookingStatus.REQUESTED) -> None:
        self._current_status = status
        self._history: list[StatusEntry] = [
            StatusEntry(status=status, entered_at=datetime.now())
        ]

    @property
    def current_status(self) -> BookingStatus:
        return self._current_status

    def transition(self, action: BookingAction) -> BookingStatus:
        """
        Apply a staff action.

        Args:
            action: The requested action.

        Returns:
            The new booking status.

        Raises:
            InvalidTransitionError: If the action is not valid from the current status.
        """
        for t in self.TRANSITIONS:
            if t.from_status == self._current_status and t.action == action:
                old_status = self._current_status
                self._current_status = t.to_status
                self._history.append(StatusEntry(
                    status=self._current_status,
                    entered_at=datetime.now(),
                    action=action,
                ))
                logger.debug(
                    "Booking transition: %s -> %s (action: %s)",
                    old_status.value, self._current_status.value, action.value,
                )
                return self._current_status

        raise InvalidTransitionError(
            self._current_status,
            self.ACTION_TARGETS[action],
            allowed=[a.value for a in self.get_valid_actions()],
        )

    def get_valid_actions(self) -> list[BookingAction]:
        """Return all actions valid from the current status."""
        return valid_actions(self._current_status)

    def get_history(self) -> list[StatusEntry]:
        return list(self._history)

    def get_status_trace(self) -> list[str]:
        """Return ordered list of status names visited."""
        return [entry.status.value for entry in self._history]

    def is_terminal(self) -> bool:
        return is_terminal(self._current_status)


def valid_actions(status: BookingStatus) -> list[BookingAction]:
    return [t.action for t in BookingStateMachine.TRANSITIONS if t.from_status == status]


def is_terminal(status: BookingStatus) -> bool:
    return status in TERMINAL_STATUSES


def next_status(status: BookingStatus, action: BookingAction) -> BookingStatus:
    """Status reached by applying ``action`` to ``status``, or raise."""
    return BookingStateMachine(status).transition(action)
