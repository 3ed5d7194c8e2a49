"""
In-memory booking store.

In production this contract is backed by the REST API / database that owns
the tenant's data, with the overlap check enforced by a storage constraint.
Here a lock serialises writes so the conflict re-check and the write happen
as one step.
"""

import logging
import threading
from datetime import date, datetime
from typing import Optional

from booking_engine.config import settings
from booking_engine.errors import InvalidTransitionError, NotFoundError, SlotConflictError, ValidationError
from booking_engine.scheduling.calendar import TimeInterval, day_bounds
from booking_engine.scheduling.conflict_filter import booking_interval, find_conflicts
from booking_engine.schemas.booking_schema import Booking, BookingStatus
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
from booking_engine.store.base import BookingStore

logger = logging.getLogger(__name__)


class InMemoryStore(BookingStore):
    """Dict-backed store with atomic check-and-write for bookings."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._tenants: dict[str, Tenant] = {}
        self._professionals: dict[str, Professional] = {}
        self._customers: dict[str, Customer] = {}
        self._services: dict[str, Service] = {}
        self._assignments: dict[str, ProfessionalServiceAssignment] = {}
        self._availabilities: dict[str, WeeklyAvailability] = {}
        self._blocks: dict[str, ScheduleBlock] = {}
        self._slot_rules: dict[str, SlotRule] = {}
        self._bookings: dict[str, Booking] = {}

    # ------------------------------------------------------------------ #
    # Catalog writes
    # ------------------------------------------------------------------ #

    def add_tenant(self, tenant: Tenant) -> Tenant:
        self._tenants[tenant.id] = tenant
        return tenant

    def add_professional(self, professional: Professional) -> Professional:
        self.get_tenant(professional.tenant_id)
        self._professionals[professional.id] = professional
        return professional

    def add_customer(self, customer: Customer) -> Customer:
        self.get_tenant(customer.tenant_id)
        self._customers[customer.id] = customer
        return customer

    def add_service(self, service: Service) -> Service:
        self.get_tenant(service.tenant_id)
        self._services[service.id] = service
        return service

    def assign_service(self, assignment: ProfessionalServiceAssignment) -> ProfessionalServiceAssignment:
        """Assign a service to a professional, replacing any previous assignment."""
        professional = self.get_professional(assignment.professional_id)
        service = self.get_service(assignment.service_id)
        if professional.tenant_id != service.tenant_id:
            raise ValidationError("Professional and service belong to different tenants.")
        for existing in list(self._assignments.values()):
            if (existing.professional_id == assignment.professional_id
                    and existing.service_id == assignment.service_id):
                del self._assignments[existing.id]
        self._assignments[assignment.id] = assignment
        logger.info(
            "Service %s assigned to %s (custom price=%s, custom duration=%s)",
            service.name, professional.name,
            assignment.custom_price, assignment.custom_duration_minutes,
        )
        return assignment

    def unassign_service(self, professional_id: str, service_id: str) -> None:
        for existing in list(self._assignments.values()):
            if existing.professional_id == professional_id and existing.service_id == service_id:
                del self._assignments[existing.id]
                return
        raise NotFoundError("Assignment", f"{professional_id}/{service_id}")

    # ------------------------------------------------------------------ #
    # Scheduling writes
    # ------------------------------------------------------------------ #

    def add_weekly_availability(self, availability: WeeklyAvailability) -> WeeklyAvailability:
        self.get_professional(availability.professional_id)
        self._availabilities[availability.id] = availability
        return availability

    def delete_weekly_availability(self, availability_id: str) -> None:
        if self._availabilities.pop(availability_id, None) is None:
            raise NotFoundError("Availability", availability_id)

    def add_schedule_block(self, block: ScheduleBlock) -> ScheduleBlock:
        self.get_professional(block.professional_id)
        self._blocks[block.id] = block
        logger.info(
            "Schedule block %s for %s: %s -> %s (%s)",
            block.id, block.professional_id, block.start_time, block.end_time,
            block.reason or "no reason",
        )
        return block

    def delete_schedule_block(self, block_id: str) -> None:
        if self._blocks.pop(block_id, None) is None:
            raise NotFoundError("ScheduleBlock", block_id)

    def save_slot_rule(self, rule: SlotRule) -> SlotRule:
        """Store a tenant slot rule. An active rule deactivates the previous one."""
        self.get_tenant(rule.tenant_id)
        minimum = settings.scheduling.min_slot_interval_minutes
        if rule.mode == SlotMode.INTERVAL and rule.interval_minutes < minimum:
            raise ValidationError(
                f"interval_minutes must be >= {minimum}, got {rule.interval_minutes}"
            )
        if rule.active:
            for rule_id, existing in list(self._slot_rules.items()):
                if existing.tenant_id == rule.tenant_id and existing.active and rule_id != rule.id:
                    self._slot_rules[rule_id] = existing.model_copy(update={"active": False})
        self._slot_rules[rule.id] = rule
        logger.info("Slot rule %s saved for tenant %s (mode=%s)", rule.id, rule.tenant_id, rule.mode.value)
        return rule

    # ------------------------------------------------------------------ #
    # BookingStore lookups
    # ------------------------------------------------------------------ #

    def get_tenant(self, tenant_id: str) -> Tenant:
        tenant = self._tenants.get(tenant_id)
        if tenant is None:
            raise NotFoundError("Tenant", tenant_id)
        return tenant

    def get_professional(self, professional_id: str) -> Professional:
        professional = self._professionals.get(professional_id)
        if professional is None:
            raise NotFoundError("Professional", professional_id)
        return professional

    def list_professionals(self, tenant_id: str) -> list[Professional]:
        return [p for p in self._professionals.values() if p.tenant_id == tenant_id]

    def get_customer(self, customer_id: str) -> Customer:
        customer = self._customers.get(customer_id)
        if customer is None:
            raise NotFoundError("Customer", customer_id)
        return customer

    def get_service(self, service_id: str) -> Service:
        service = self._services.get(service_id)
        if service is None:
            raise NotFoundError("Service", service_id)
        return service

    def list_assignments(self, professional_id: str) -> list[ProfessionalServiceAssignment]:
        return [a for a in self._assignments.values() if a.professional_id == professional_id]

    def list_service_assignments(self, service_id: str) -> list[ProfessionalServiceAssignment]:
        return [a for a in self._assignments.values() if a.service_id == service_id]

    def list_weekly_availability(
        self, professional_id: str, day_of_week: Optional[DayOfWeek] = None
    ) -> list[WeeklyAvailability]:
        return [
            a for a in self._availabilities.values()
            if a.professional_id == professional_id
            and (day_of_week is None or a.day_of_week == day_of_week)
        ]

    def list_schedule_blocks(
        self, professional_id: str, target_date: Optional[date] = None
    ) -> list[ScheduleBlock]:
        bounds = day_bounds(target_date) if target_date is not None else None
        return [
            b for b in self._blocks.values()
            if b.professional_id == professional_id
            and (bounds is None or TimeInterval(b.start_time, b.end_time).overlaps(bounds))
        ]

    def get_active_slot_rule(self, tenant_id: str) -> Optional[SlotRule]:
        for rule in self._slot_rules.values():
            if rule.tenant_id == tenant_id and rule.active:
                return rule
        return None

    # ------------------------------------------------------------------ #
    # Bookings
    # ------------------------------------------------------------------ #

    def get_booking(self, booking_id: str) -> Booking:
        booking = self._bookings.get(booking_id)
        if booking is None:
            raise NotFoundError("Booking", booking_id)
        return booking.model_copy(deep=True)

    def list_bookings(self, professional_id: str, target_date: date) -> list[Booking]:
        bounds = day_bounds(target_date)
        return sorted(
            (
                b.model_copy(deep=True) for b in self._bookings.values()
                if b.professional_id == professional_id
                and booking_interval(b).overlaps(bounds)
            ),
            key=lambda b: b.start_time,
        )

    def list_tenant_bookings(
        self, tenant_id: str, target_date: Optional[date] = None
    ) -> list[Booking]:
        bounds = day_bounds(target_date) if target_date is not None else None
        return sorted(
            (
                b.model_copy(deep=True) for b in self._bookings.values()
                if b.tenant_id == tenant_id
                and (bounds is None or booking_interval(b).overlaps(bounds))
            ),
            key=lambda b: b.start_time,
        )

    def insert_booking(self, booking: Booking) -> Booking:
        with self._lock:
            if booking.id in self._bookings:
                raise ValidationError(f"Booking {booking.id} already exists.")
            if booking.is_blocking:
                self._check_overlap(booking)
            self._bookings[booking.id] = booking.model_copy(deep=True)
        logger.debug("Booking %s stored", booking.id)
        return booking

    def update_booking(
        self,
        booking: Booking,
        check_conflicts: bool = False,
        expected_status: Optional[BookingStatus] = None,
    ) -> Booking:
        with self._lock:
            stored = self._bookings.get(booking.id)
            if stored is None:
                raise NotFoundError("Booking", booking.id)
            if expected_status is not None and stored.status != expected_status:
                logger.warning(
                    "Booking %s changed concurrently: expected %s, found %s",
                    booking.id, expected_status.value, stored.status.value,
                )
                raise InvalidTransitionError(stored.status, booking.status)
            if check_conflicts and booking.is_blocking:
                self._check_overlap(booking)
            self._bookings[booking.id] = booking.model_copy(
                deep=True, update={"updated_at": datetime.now()}
            )
            return self._bookings[booking.id].model_copy(deep=True)

    def _check_overlap(self, booking: Booking) -> None:
        """Raise if ``booking`` overlaps another active booking. Caller holds the lock."""
        same_professional = (
            b for b in self._bookings.values() if b.professional_id == booking.professional_id
        )
        conflicts = find_conflicts(
            booking_interval(booking), same_professional, exclude_booking_id=booking.id
        )
        if conflicts:
            ids = [c.id for c in conflicts]
            logger.warning(
                "Slot conflict for professional %s at %s: overlaps %s",
                booking.professional_id, booking.start_time.isoformat(), ids,
            )
            raise SlotConflictError(
                f"Time {booking.start_time:%Y-%m-%d %H:%M} is no longer available.",
                conflicting_ids=ids,
            )

    def reset(self) -> None:
        """Clear all data. Used by test fixtures for isolation."""
        for table in (
            self._tenants, self._professionals, self._customers, self._services,
            self._assignments, self._availabilities, self._blocks,
            self._slot_rules, self._bookings,
        ):
            table.clear()
