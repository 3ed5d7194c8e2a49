"""Booking data models and request payloads."""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class BookingStatus(str, Enum):
    """All statuses in a booking lifecycle."""
    REQUESTED = "REQUESTED"
    CONFIRMED = "CONFIRMED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    REJECTED = "REJECTED"
    NO_SHOW = "NO_SHOW"


class BookingAction(str, Enum):
    """Staff actions that move a booking between statuses."""
    CONFIRM = "confirm"
    START = "start"
    COMPLETE = "complete"
    CANCEL = "cancel"
    REJECT = "reject"
    NO_SHOW = "no_show"


# Statuses that still occupy the professional's time.
BLOCKING_STATUSES: frozenset[BookingStatus] = frozenset({
    BookingStatus.REQUESTED,
    BookingStatus.CONFIRMED,
    BookingStatus.IN_PROGRESS,
})


class BookingServiceInfo(BaseModel):
    """Price/duration snapshot of one service inside a booking."""
    service_id: str
    service_name: str
    price: Decimal
    duration_minutes: int
    display_order: int


class Booking(BaseModel):
    """A booked appointment. Never deleted; cancellation is a status."""
    id: str
    tenant_id: str
    customer_id: str
    customer_name: str
    professional_id: str
    professional_name: str
    services: list[BookingServiceInfo]
    start_time: datetime
    end_time: datetime
    status: BookingStatus = BookingStatus.REQUESTED
    price: Optional[Decimal] = None
    total_duration_minutes: int
    buffer_minutes: int = 0
    cancellation_reason: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: Optional[datetime] = None

    @property
    def is_blocking(self) -> bool:
        return self.status in BLOCKING_STATUSES



class DailySummary(BaseModel):
    """Bookings starting on one day, counted per status, with completed revenue."""
    day: date
    total: int
    counts: dict[BookingStatus, int]
    completed_revenue: Decimal
