"""Shared test fixtures and helpers."""

from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Optional

import pytest

from booking_engine.engine import BookingEngine
from booking_engine.schemas.booking_schema import Booking, BookingServiceInfo, BookingStatus
from booking_engine.schemas.catalog_schema import (
    Customer,
    Professional,
    ProfessionalServiceAssignment,
    Service,
    Tenant,
)
from booking_engine.schemas.scheduling_schema import (
    DayOfWeek,
    ScheduleBlock,
    SlotMode,
    SlotRule,
    WeeklyAvailability,
)
from booking_engine.store.memory import InMemoryStore

MONDAY = date(2026, 10, 26)
TUESDAY = date(2026, 10, 27)

TENANT_ID = "TN-1"
PRO_ID = "PRO-1"
OTHER_PRO_ID = "PRO-2"
CUSTOMER_ID = "CUS-1"
CUT_ID = "SVC-CUT"
BEARD_ID = "SVC-BEARD"


@pytest.fixture
def store():
    """Salon with one professional working Monday 09:00-12:00, INTERVAL(30) rule."""
    s = InMemoryStore()
    s.add_tenant(Tenant(
        id=TENANT_ID, slug="salon", name="Salon", open_time=time(8, 0), close_time=time(20, 0),
    ))
    s.add_professional(Professional(id=PRO_ID, tenant_id=TENANT_ID, name="Ana"))
    s.add_professional(Professional(id=OTHER_PRO_ID, tenant_id=TENANT_ID, name="Bruno"))
    s.add_customer(Customer(
        id=CUSTOMER_ID, tenant_id=TENANT_ID, cpf="12345678909", phone="11999990000", name="Carla",
    ))
    s.add_service(Service(
        id=CUT_ID, tenant_id=TENANT_ID, name="Haircut", duration_minutes=30, price=Decimal("50.00"),
    ))
    s.add_service(Service(
        id=BEARD_ID, tenant_id=TENANT_ID, name="Beard Trim", duration_minutes=20, price=Decimal("30.00"),
    ))
    s.assign_service(ProfessionalServiceAssignment(professional_id=PRO_ID, service_id=CUT_ID))
    s.assign_service(ProfessionalServiceAssignment(professional_id=PRO_ID, service_id=BEARD_ID))
    s.add_weekly_availability(WeeklyAvailability(
        professional_id=PRO_ID, day_of_week=DayOfWeek.MONDAY,
        start_time=time(9, 0), end_time=time(12, 0),
    ))
    s.save_slot_rule(SlotRule(
        tenant_id=TENANT_ID, mode=SlotMode.INTERVAL, interval_minutes=30,
        buffer_between_services_minutes=0,
    ))
    return s


@pytest.fixture
def engine(store):
    return BookingEngine(store, buffer_at_interval_end=False)


def at(day: date, hhmm: str) -> datetime:
    hours, minutes = hhmm.split(":")
    return datetime.combine(day, time(int(hours), int(minutes)))


def make_booking(
    start: datetime,
    minutes: int = 30,
    status: BookingStatus = BookingStatus.CONFIRMED,
    booking_id: str = "BK-EXISTING",
    professional_id: str = PRO_ID,
    buffer_minutes: int = 0,
) -> Booking:
    """Helper to create a Booking with sensible defaults."""
    return Booking(
        id=booking_id,
        tenant_id=TENANT_ID,
        customer_id=CUSTOMER_ID,
        customer_name="Carla",
        professional_id=professional_id,
        professional_name="Ana",
        services=[BookingServiceInfo(
            service_id=CUT_ID, service_name="Haircut", price=Decimal("50.00"),
            duration_minutes=minutes, display_order=0,
        )],
        start_time=start,
        end_time=start + timedelta(minutes=minutes + buffer_minutes),
        status=status,
        price=Decimal("50.00"),
        total_duration_minutes=minutes,
        buffer_minutes=buffer_minutes,
    )


def block(start: datetime, end: datetime, reason: Optional[str] = None) -> ScheduleBlock:
    return ScheduleBlock(professional_id=PRO_ID, start_time=start, end_time=end, reason=reason)
