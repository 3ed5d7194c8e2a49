"""Working-hour, schedule block, slot rule and slot wire models."""

from datetime import date, datetime, time
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from booking_engine.utils import new_id


class DayOfWeek(str, Enum):
    MONDAY = "MONDAY"
    TUESDAY = "TUESDAY"
    WEDNESDAY = "WEDNESDAY"
    THURSDAY = "THURSDAY"
    FRIDAY = "FRIDAY"
    SATURDAY = "SATURDAY"
    SUNDAY = "SUNDAY"

    @classmethod
    def from_date(cls, value: date) -> "DayOfWeek":
        return list(cls)[value.weekday()]


class SlotMode(str, Enum):
    FIXED = "FIXED"
    INTERVAL = "INTERVAL"
    SERVICE_DURATION = "SERVICE_DURATION"


def _require_minute_precision(value: time) -> time:
    if value.second or value.microsecond:
        raise ValueError(f"{value.isoformat()} must have minute precision")
    return value


class WeeklyAvailability(BaseModel):
    """Recurring working window for a professional on one weekday."""
    id: str = Field(default_factory=lambda: new_id("AV"))
    professional_id: str
    day_of_week: DayOfWeek
    start_time: time
    end_time: time
    active: bool = True

    @field_validator("start_time", "end_time")
    @classmethod
    def _minute_precision(cls, value: time) -> time:
        return _require_minute_precision(value)

    @model_validator(mode="after")
    def _end_after_start(self) -> "WeeklyAvailability":
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class ScheduleBlock(BaseModel):
    """One-off unavailability (vacation, overrun). Overrides weekly availability."""
    id: str = Field(default_factory=lambda: new_id("BLK"))
    professional_id: str
    start_time: datetime
    end_time: datetime
    reason: Optional[str] = None

    @model_validator(mode="after")
    def _end_after_start(self) -> "ScheduleBlock":
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class SlotRule(BaseModel):
    """
    Tenant slotting policy.

    Exactly one field-set is populated per mode: ``interval_minutes`` for
    INTERVAL, ``fixed_times`` for FIXED, neither for SERVICE_DURATION.
    ``buffer_between_services_minutes`` applies in every mode.
    """
    id: str = Field(default_factory=lambda: new_id("SR"))
    tenant_id: str
    mode: SlotMode
    interval_minutes: Optional[int] = None
    fixed_times: list[time] = Field(default_factory=list)
    buffer_between_services_minutes: int = 0
    active: bool = True

    @field_validator("fixed_times")
    @classmethod
    def _sorted_unique(cls, value: list[time]) -> list[time]:
        for t in value:
            _require_minute_precision(t)
        return sorted(set(value))

    @model_validator(mode="after")
    def _fields_match_mode(self) -> "SlotRule":
        if self.buffer_between_services_minutes < 0:
            raise ValueError("buffer_between_services_minutes must be >= 0")

        if self.mode == SlotMode.INTERVAL:
            if self.interval_minutes is None or self.interval_minutes <= 0:
                raise ValueError("INTERVAL mode requires a positive interval_minutes")
            if self.fixed_times:
                raise ValueError("INTERVAL mode does not accept fixed_times")
        elif self.mode == SlotMode.FIXED:
            if not self.fixed_times:
                raise ValueError("FIXED mode requires at least one fixed time")
            if self.interval_minutes is not None:
                raise ValueError("FIXED mode does not accept interval_minutes")
        elif self.interval_minutes is not None or self.fixed_times:
            raise ValueError(
                "SERVICE_DURATION mode accepts neither interval_minutes nor fixed_times"
            )
        return self

    @classmethod
    def default(cls, tenant_id: str) -> "SlotRule":
        """Rule used when a tenant has no active rule: back-to-back, no buffer."""
        return cls(
            id="SR-DEFAULT",
            tenant_id=tenant_id,
            mode=SlotMode.SERVICE_DURATION,
            buffer_between_services_minutes=0,
        )


class AvailabilitySlot(BaseModel):
    """Slot in API form. Timestamps are ISO 8601 local, truncated to the minute."""
    start_time: str
    end_time: str
    available: bool


class TimeSlot(BaseModel):
    """Slot in display form."""
    time: str
    available: bool
