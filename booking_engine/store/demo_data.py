"""
Demo tenant seed data.

Populates a store with one salon, two professionals, a small service menu
with per-professional overrides, weekly shifts and an INTERVAL slot rule,
so the console demo and manual checks have something to schedule against.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Optional

from booking_engine.config import settings
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
from booking_engine.utils import parse_hhmm

logger = logging.getLogger(__name__)

WEEKDAYS = [
    DayOfWeek.MONDAY, DayOfWeek.TUESDAY, DayOfWeek.WEDNESDAY,
    DayOfWeek.THURSDAY, DayOfWeek.FRIDAY,
]


@dataclass(frozen=True)
class DemoIds:
    """Identifiers of the seeded demo records."""
    tenant_id: str
    ana_id: str
    bruno_id: str
    customer_id: str
    haircut_id: str
    beard_id: str
    coloring_id: str


def next_weekday(start: date, weekday: DayOfWeek) -> date:
    """First date on or after ``start`` falling on ``weekday``."""
    offset = (list(DayOfWeek).index(weekday) - start.weekday()) % 7
    return start + timedelta(days=offset)


def seed_demo(store: InMemoryStore, today: Optional[date] = None) -> DemoIds:
    """Seed ``store`` with the demo tenant and return the record ids."""
    today = today or date.today()
    tenant = store.add_tenant(Tenant(
        id="TN-DEMO",
        slug="bella-vista",
        name=settings.demo.tenant_name,
        open_time=parse_hhmm(settings.demo.open_time),
        close_time=parse_hhmm(settings.demo.close_time),
    ))

    ana = store.add_professional(Professional(id="PRO-ANA", tenant_id=tenant.id, name="Ana Souza"))
    bruno = store.add_professional(Professional(id="PRO-BRUNO", tenant_id=tenant.id, name="Bruno Lima"))

    haircut = store.add_service(Service(
        id="SVC-CUT", tenant_id=tenant.id, name="Haircut", duration_minutes=30, price=Decimal("60.00"),
    ))
    beard = store.add_service(Service(
        id="SVC-BEARD", tenant_id=tenant.id, name="Beard Trim", duration_minutes=20, price=Decimal("35.00"),
    ))
    coloring = store.add_service(Service(
        id="SVC-COLOR", tenant_id=tenant.id, name="Coloring", duration_minutes=90, price=Decimal("180.00"),
    ))

    store.assign_service(ProfessionalServiceAssignment(professional_id=ana.id, service_id=haircut.id))
    store.assign_service(ProfessionalServiceAssignment(
        professional_id=ana.id, service_id=coloring.id, custom_price=Decimal("210.00"),
    ))
    store.assign_service(ProfessionalServiceAssignment(
        professional_id=bruno.id, service_id=haircut.id, custom_duration_minutes=45,
    ))
    store.assign_service(ProfessionalServiceAssignment(professional_id=bruno.id, service_id=beard.id))

    for day in WEEKDAYS:
        # Ana works a split shift, Bruno a single afternoon-to-evening shift.
        store.add_weekly_availability(WeeklyAvailability(
            professional_id=ana.id, day_of_week=day, start_time=time(9, 0), end_time=time(12, 0),
        ))
        store.add_weekly_availability(WeeklyAvailability(
            professional_id=ana.id, day_of_week=day, start_time=time(13, 0), end_time=time(18, 0),
        ))
        store.add_weekly_availability(WeeklyAvailability(
            professional_id=bruno.id, day_of_week=day, start_time=time(12, 0), end_time=time(20, 0),
        ))
    store.add_weekly_availability(WeeklyAvailability(
        professional_id=ana.id, day_of_week=DayOfWeek.SATURDAY, start_time=time(9, 0), end_time=time(13, 0),
    ))

    block_day = next_weekday(today, DayOfWeek.WEDNESDAY)
    store.add_schedule_block(ScheduleBlock(
        professional_id=ana.id,
        start_time=datetime.combine(block_day, time(10, 0)),
        end_time=datetime.combine(block_day, time(11, 0)),
        reason="Training",
    ))

    store.save_slot_rule(SlotRule(
        tenant_id=tenant.id, mode=SlotMode.INTERVAL, interval_minutes=30,
        buffer_between_services_minutes=0,
    ))

    customer = store.add_customer(Customer(
        id="CUS-DEMO", tenant_id=tenant.id, cpf="12345678909", phone="11987654321",
        name="Carla Mendes", nickname="Carla",
    ))

    logger.info("Demo tenant '%s' seeded", tenant.name)
    return DemoIds(
        tenant_id=tenant.id,
        ana_id=ana.id,
        bruno_id=bruno.id,
        customer_id=customer.id,
        haircut_id=haircut.id,
        beard_id=beard.id,
        coloring_id=coloring.id,
    )
