"""
Booking engine facade for slot computation and the booking lifecycle.

This is the surface the API layer calls. Every operation takes the tenant
id explicitly, re-reads its inputs from the store and holds no state
between calls:

    Availability resolver -> Slot generator -> Conflict filter  (slots)
    Pricing resolver -> Conflict filter -> atomic store write   (bookings)

The in-memory conflict check is advisory; the store's atomic
check-and-write is what finally guarantees no double booking.
"""

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, Optional, Union

from booking_engine.config import settings
from booking_engine.errors import InvalidTransitionError, NotFoundError, SlotConflictError, ValidationError
from booking_engine.scheduling.availability import resolve_open_intervals
from booking_engine.scheduling.calendar import TimeInterval, add_minutes, at, day_of_week, minutes_between
from booking_engine.scheduling.conflict_filter import find_conflicts, mark_availability
from booking_engine.scheduling.lifecycle import next_status, valid_actions
from booking_engine.scheduling.pricing import (
    compose,
    list_professional_services,
    list_service_professionals,
    total_duration,
    total_price,
)
from booking_engine.scheduling.slot_generator import generate_candidates
from booking_engine.schemas.booking_schema import (
    Booking,
    BookingAction,
    BookingServiceInfo,
    BookingStatus,
    DailySummary,
)
from booking_engine.schemas.catalog_schema import (
    Customer,
    EffectivePricing,
    Professional,
    ServiceProfessional,
    Tenant,
)
from booking_engine.schemas.scheduling_schema import AvailabilitySlot, SlotRule, TimeSlot
from booking_engine.store.base import BookingStore
from booking_engine.utils import format_slot_time, new_id, parse_iso_local

logger = logging.getLogger(__name__)

TimestampInput = Union[datetime, str]


def only_available(slots: Iterable[TimeSlot]) -> list[TimeSlot]:
    """Keep only bookable slots."""
    return [s for s in slots if s.available]


def _coerce_start(value: TimestampInput) -> datetime:
    start = parse_iso_local(value) if isinstance(value, str) else value
    if start.tzinfo is not None:
        raise ValidationError("Start time must be tenant-local, without a UTC offset.")
    if start.second or start.microsecond:
        raise ValidationError(f"Start time {start.isoformat()} must have minute precision.")
    return start


def _coerce_action(action: Union[BookingAction, str]) -> BookingAction:
    try:
        return BookingAction(action)
    except ValueError:
        valid = [a.value for a in BookingAction]
        raise ValidationError(f"Unknown action {action!r}. Valid actions: {valid}") from None


class BookingEngine:
    """Slot computation and booking lifecycle over a ``BookingStore``."""

    def __init__(self, store: BookingStore, buffer_at_interval_end: Optional[bool] = None) -> None:
        self._store = store
        if buffer_at_interval_end is None:
            buffer_at_interval_end = settings.scheduling.buffer_at_interval_end
        self._buffer_at_interval_end = buffer_at_interval_end

    # ------------------------------------------------------------------ #
    # Tenant-scoped lookups
    # ------------------------------------------------------------------ #

    def _tenant(self, tenant_id: str) -> Tenant:
        tenant = self._store.get_tenant(tenant_id)
        if not tenant.active:
            raise ValidationError(f"Tenant '{tenant.name}' is inactive.")
        return tenant

    def _professional(self, tenant_id: str, professional_id: str) -> Professional:
        professional = self._store.get_professional(professional_id)
        if professional.tenant_id != tenant_id:
            raise NotFoundError("Professional", professional_id)
        return professional

    def _customer(self, tenant_id: str, customer_id: str) -> Customer:
        customer = self._store.get_customer(customer_id)
        if customer.tenant_id != tenant_id:
            raise NotFoundError("Customer", customer_id)
        if not customer.active:
            raise ValidationError(f"Customer '{customer.name}' is inactive.")
        return customer

    def _booking(self, tenant_id: str, booking_id: str) -> Booking:
        booking = self._store.get_booking(booking_id)
        if booking.tenant_id != tenant_id:
            raise NotFoundError("Booking", booking_id)
        return booking

    def get_booking(self, tenant_id: str, booking_id: str) -> Booking:
        return self._booking(tenant_id, booking_id)

    def get_slot_rule(self, tenant_id: str) -> SlotRule:
        """Active tenant rule, or the SERVICE_DURATION/zero-buffer default."""
        self._tenant(tenant_id)
        rule = self._store.get_active_slot_rule(tenant_id)
        if rule is None:
            logger.debug("Tenant %s has no active slot rule, using default", tenant_id)
            return SlotRule.default(tenant_id)
        return rule

    # ------------------------------------------------------------------ #
    # Pricing
    # ------------------------------------------------------------------ #

    def quote(
        self, tenant_id: str, professional_id: str, service_ids: list[str]
    ) -> list[BookingServiceInfo]:
        """Effective price/duration snapshot for a professional and service list."""
        self._tenant(tenant_id)
        professional = self._professional(tenant_id, professional_id)
        if not professional.active:
            raise ValidationError(f"Professional '{professional.name}' is inactive.")
        if len(service_ids) > settings.scheduling.max_services_per_booking:
            raise ValidationError(
                f"At most {settings.scheduling.max_services_per_booking} services per booking."
            )

        services = {}
        for service_id in dict.fromkeys(service_ids):
            service = self._store.get_service(service_id)
            if service.tenant_id != tenant_id:
                raise NotFoundError("Service", service_id)
            services[service_id] = service
        return compose(service_ids, services, self._store.list_assignments(professional.id))

    def list_professional_services(self, tenant_id: str, professional_id: str) -> list[EffectivePricing]:
        self._tenant(tenant_id)
        professional = self._professional(tenant_id, professional_id)
        assignments = self._store.list_assignments(professional.id)
        services = {a.service_id: self._store.get_service(a.service_id) for a in assignments}
        return list_professional_services(services, assignments)

    def list_service_professionals(self, tenant_id: str, service_id: str) -> list[ServiceProfessional]:
        self._tenant(tenant_id)
        service = self._store.get_service(service_id)
        if service.tenant_id != tenant_id:
            raise NotFoundError("Service", service_id)
        return list_service_professionals(
            service,
            self._store.list_professionals(tenant_id),
            self._store.list_service_assignments(service_id),
        )

    # ------------------------------------------------------------------ #
    # Availability
    # ------------------------------------------------------------------ #

    def resolve_open_intervals(
        self, tenant_id: str, professional_id: str, target_date: date
    ) -> list[TimeInterval]:
        """Open working intervals for a professional on ``target_date``."""
        tenant = self._tenant(tenant_id)
        professional = self._professional(tenant_id, professional_id)
        return resolve_open_intervals(
            self._store.list_weekly_availability(professional.id, day_of_week(target_date)),
            self._store.list_schedule_blocks(professional.id, target_date),
            target_date,
            business_hours=TimeInterval(
                at(target_date, tenant.open_time), at(target_date, tenant.close_time)
            ),
        )

    def get_availability(
        self,
        tenant_id: str,
        professional_id: str,
        target_date: date,
        service_ids: list[str],
    ) -> list[AvailabilitySlot]:
        """
        Candidate slots for a professional, date and service list, in API form.

        Raises:
            ValidationError: No services, or a service the professional does not perform.
            NotFoundError: Unknown tenant, professional or service.
        """
        items = self.quote(tenant_id, professional_id, service_ids)
        rule = self.get_slot_rule(tenant_id)
        duration = total_duration(items)
        buffer = rule.buffer_between_services_minutes

        intervals = self.resolve_open_intervals(tenant_id, professional_id, target_date)
        candidates = generate_candidates(
            intervals, rule, duration, buffer_at_interval_end=self._buffer_at_interval_end
        )
        bookings = self._store.list_bookings(professional_id, target_date)
        slots = mark_availability(candidates, bookings, duration + buffer)

        logger.info(
            "Availability for %s on %s: %d slots, %d free (%d min, mode=%s)",
            professional_id, target_date.isoformat(), len(slots),
            sum(1 for s in slots if s.available), duration, rule.mode.value,
        )
        return slots

    def get_available_slots(
        self,
        tenant_id: str,
        professional_id: str,
        target_date: date,
        service_ids: list[str],
    ) -> list[TimeSlot]:
        """Candidate slots as ``{"time": "HH:mm", "available": bool}``."""
        return [
            TimeSlot(time=format_slot_time(slot.start_time), available=slot.available)
            for slot in self.get_availability(tenant_id, professional_id, target_date, service_ids)
        ]

    def _require_open(
        self, tenant_id: str, professional_id: str, start: datetime, duration: int, rule: SlotRule
    ) -> None:
        """Require the booking and its buffer to fit an open interval.

        The buffer may only overrun the interval for the slot the generator
        offers last in it.
        """
        intervals = self.resolve_open_intervals(tenant_id, professional_id, start.date())
        buffered = TimeInterval(start, add_minutes(start, duration + rule.buffer_between_services_minutes))
        if any(i.contains(buffered) for i in intervals):
            return
        offered = generate_candidates(
            intervals, rule, duration, buffer_at_interval_end=self._buffer_at_interval_end
        )
        if start not in offered:
            raise ValidationError(
                f"{start:%Y-%m-%d %H:%M} is outside the professional's open hours."
            )

    def _require_free(
        self, professional_id: str, span: TimeInterval, exclude_booking_id: Optional[str] = None
    ) -> None:
        bookings = self._store.list_bookings(professional_id, span.start.date())
        conflicts = find_conflicts(span, bookings, exclude_booking_id=exclude_booking_id)
        if conflicts:
            logger.warning(
                "Requested %s overlaps bookings %s",
                span.start.isoformat(), [b.id for b in conflicts],
            )
            raise SlotConflictError(
                f"Time {span.start:%Y-%m-%d %H:%M} is no longer available.",
                conflicting_ids=[b.id for b in conflicts],
            )

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    def create_booking(
        self,
        tenant_id: str,
        customer_id: str,
        professional_id: str,
        service_ids: list[str],
        start_time: TimestampInput,
    ) -> Booking:
        """
        Create a REQUESTED booking at ``start_time``.

        Prices and durations are copied into the booking at creation so later
        catalog changes do not alter it.

        Raises:
            ValidationError: Bad input, unassigned service, or a time outside open hours.
            NotFoundError: Unknown tenant, customer, professional or service.
            SlotConflictError: The time overlaps an active booking (possibly a
                concurrent one caught by the store).
        """
        start = _coerce_start(start_time)
        customer = self._customer(tenant_id, customer_id)
        items = self.quote(tenant_id, professional_id, service_ids)
        professional = self._professional(tenant_id, professional_id)
        rule = self.get_slot_rule(tenant_id)
        buffer = rule.buffer_between_services_minutes
        duration = total_duration(items)

        self._require_open(tenant_id, professional.id, start, duration, rule)
        span = TimeInterval(start, add_minutes(start, duration + buffer))
        self._require_free(professional.id, span)

        booking = Booking(
            id=new_id("BK"),
            tenant_id=tenant_id,
            customer_id=customer.id,
            customer_name=customer.name,
            professional_id=professional.id,
            professional_name=professional.name,
            services=items,
            start_time=span.start,
            end_time=span.end,
            status=BookingStatus.REQUESTED,
            price=total_price(items),
            total_duration_minutes=duration,
            buffer_minutes=buffer,
        )
        self._store.insert_booking(booking)
        logger.info(
            "Booking created: %s for %s with %s at %s (%d min, %s)",
            booking.id, customer.name, professional.name,
            start.isoformat(), duration, booking.price,
        )
        return booking

    def transition_booking(
        self,
        tenant_id: str,
        booking_id: str,
        action: Union[BookingAction, str],
        reason: Optional[str] = None,
    ) -> Booking:
        """
        Apply a status action (confirm, start, complete, cancel, reject, no_show).

        ``reason`` is recorded for cancel and reject.

        Raises:
            InvalidTransitionError: The action is not valid from the current status;
                the stored booking is left unchanged.
        """
        action = _coerce_action(action)
        booking = self._booking(tenant_id, booking_id)
        new_status = next_status(booking.status, action)

        update: dict = {"status": new_status}
        if action in (BookingAction.CANCEL, BookingAction.REJECT) and reason and reason.strip():
            update["cancellation_reason"] = reason.strip()

        updated = self._store.update_booking(
            booking.model_copy(update=update), expected_status=booking.status
        )
        logger.info(
            "Booking %s: %s -> %s", booking.id, booking.status.value, new_status.value
        )
        return updated

    def confirm_booking(self, tenant_id: str, booking_id: str) -> Booking:
        return self.transition_booking(tenant_id, booking_id, BookingAction.CONFIRM)

    def start_booking(self, tenant_id: str, booking_id: str) -> Booking:
        return self.transition_booking(tenant_id, booking_id, BookingAction.START)

    def complete_booking(self, tenant_id: str, booking_id: str) -> Booking:
        return self.transition_booking(tenant_id, booking_id, BookingAction.COMPLETE)

    def cancel_booking(self, tenant_id: str, booking_id: str, reason: Optional[str] = None) -> Booking:
        return self.transition_booking(tenant_id, booking_id, BookingAction.CANCEL, reason)

    def reject_booking(self, tenant_id: str, booking_id: str, reason: Optional[str] = None) -> Booking:
        return self.transition_booking(tenant_id, booking_id, BookingAction.REJECT, reason)

    def mark_no_show(self, tenant_id: str, booking_id: str) -> Booking:
        return self.transition_booking(tenant_id, booking_id, BookingAction.NO_SHOW)

    def reschedule_booking(
        self, tenant_id: str, booking_id: str, new_start_time: TimestampInput
    ) -> Booking:
        """
        Move a CONFIRMED booking to a new start time, keeping its duration snapshot.

        Raises:
            InvalidTransitionError: The booking is not CONFIRMED.
            ValidationError: The new time is outside open hours.
            SlotConflictError: The new time overlaps another active booking.
        """
        start = _coerce_start(new_start_time)
        booking = self._booking(tenant_id, booking_id)
        if booking.status != BookingStatus.CONFIRMED:
            raise InvalidTransitionError(
                booking.status, "reschedule",
                allowed=[a.value for a in valid_actions(booking.status)],
            )

        span_minutes = minutes_between(booking.start_time, booking.end_time)
        rule = self.get_slot_rule(tenant_id).model_copy(
            update={"buffer_between_services_minutes": booking.buffer_minutes}
        )
        self._require_open(
            tenant_id, booking.professional_id, start, booking.total_duration_minutes, rule
        )
        span = TimeInterval(start, add_minutes(start, span_minutes))
        self._require_free(booking.professional_id, span, exclude_booking_id=booking.id)

        moved = booking.model_copy(update={"start_time": span.start, "end_time": span.end})
        updated = self._store.update_booking(
            moved, check_conflicts=True, expected_status=BookingStatus.CONFIRMED
        )
        logger.info(
            "Booking rescheduled: %s from %s to %s",
            booking.id, booking.start_time.isoformat(), start.isoformat(),
        )
        return updated

    # ------------------------------------------------------------------ #
    # Listing
    # ------------------------------------------------------------------ #

    def list_bookings(
        self,
        tenant_id: str,
        target_date: Optional[date] = None,
        professional_id: Optional[str] = None,
        status: Optional[BookingStatus] = None,
    ) -> list[Booking]:
        """Tenant bookings filtered by date, professional and status."""
        self._tenant(tenant_id)
        return [
            b for b in self._store.list_tenant_bookings(tenant_id, target_date)
            if (professional_id is None or b.professional_id == professional_id)
            and (status is None or b.status == status)
        ]

    def daily_summary(
        self, tenant_id: str, target_date: date, professional_id: Optional[str] = None
    ) -> DailySummary:
        """Per-status counts and completed revenue for bookings starting on ``target_date``."""
        bookings = [
            b for b in self.list_bookings(tenant_id, target_date, professional_id)
            if b.start_time.date() == target_date
        ]
        counts = {status: 0 for status in BookingStatus}
        for booking in bookings:
            counts[booking.status] += 1
        revenue = sum(
            (b.price or Decimal("0") for b in bookings if b.status == BookingStatus.COMPLETED),
            Decimal("0"),
        )
        return DailySummary(
            day=target_date, total=len(bookings), counts=counts, completed_revenue=revenue,
        )
