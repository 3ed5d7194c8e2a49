"""End-to-end tests for slot computation and the booking lifecycle."""

from datetime import time
from decimal import Decimal

import pytest

from booking_engine.engine import BookingEngine, only_available
from booking_engine.errors import (
    InvalidTransitionError,
    NotFoundError,
    SlotConflictError,
    ValidationError,
)
from booking_engine.schemas.booking_schema import BookingStatus
from booking_engine.schemas.catalog_schema import ProfessionalServiceAssignment, Tenant
from booking_engine.schemas.scheduling_schema import SlotMode, SlotRule
from tests.conftest import (
    BEARD_ID,
    CUSTOMER_ID,
    CUT_ID,
    MONDAY,
    OTHER_PRO_ID,
    PRO_ID,
    TENANT_ID,
    TUESDAY,
    at,
    block,
    make_booking,
)


def slot_map(slots) -> dict[str, bool]:
    return {s.time: s.available for s in slots}


def book(engine, start: str, service_ids=None):
    return engine.create_booking(
        TENANT_ID, CUSTOMER_ID, PRO_ID, service_ids or [CUT_ID], at(MONDAY, start)
    )


class TestAvailableSlots:
    def test_open_morning_all_available(self, engine):
        slots = engine.get_available_slots(TENANT_ID, PRO_ID, MONDAY, [CUT_ID])
        assert slot_map(slots) == {
            "09:00": True, "09:30": True, "10:00": True,
            "10:30": True, "11:00": True, "11:30": True,
        }

    def test_schedule_block_removes_slot(self, engine, store):
        store.add_schedule_block(block(at(MONDAY, "10:00"), at(MONDAY, "10:30"), "Dentist"))
        slots = engine.get_available_slots(TENANT_ID, PRO_ID, MONDAY, [CUT_ID])
        assert [s.time for s in slots] == ["09:00", "09:30", "10:30", "11:00", "11:30"]

    def test_confirmed_booking_marks_slot_unavailable(self, engine, store):
        store.insert_booking(make_booking(at(MONDAY, "09:30")))
        slots = slot_map(engine.get_available_slots(TENANT_ID, PRO_ID, MONDAY, [CUT_ID]))
        assert slots["09:30"] is False
        assert slots["09:00"] is True
        assert slots["10:00"] is True

    def test_custom_duration_changes_grid(self, engine, store):
        store.assign_service(ProfessionalServiceAssignment(
            professional_id=PRO_ID, service_id=CUT_ID, custom_duration_minutes=45,
        ))
        slots = engine.get_available_slots(TENANT_ID, PRO_ID, MONDAY, [CUT_ID])
        assert [s.time for s in slots] == ["09:00", "09:30", "10:00", "10:30", "11:00"]

    def test_multi_service_sums_durations(self, engine):
        slots = engine.get_available_slots(TENANT_ID, PRO_ID, MONDAY, [CUT_ID, BEARD_ID])
        assert [s.time for s in slots][-1] == "11:00"

    def test_no_working_day_is_empty(self, engine):
        assert engine.get_available_slots(TENANT_ID, PRO_ID, TUESDAY, [CUT_ID]) == []

    def test_repeated_calls_identical(self, engine, store):
        store.insert_booking(make_booking(at(MONDAY, "10:00")))
        first = engine.get_available_slots(TENANT_ID, PRO_ID, MONDAY, [CUT_ID])
        second = engine.get_available_slots(TENANT_ID, PRO_ID, MONDAY, [CUT_ID])
        assert first == second

    def test_api_form_timestamps(self, engine):
        slot = engine.get_availability(TENANT_ID, PRO_ID, MONDAY, [CUT_ID])[0]
        assert slot.start_time == "2026-10-26T09:00:00"
        assert slot.end_time == "2026-10-26T09:30:00"

    def test_only_available(self, engine, store):
        store.insert_booking(make_booking(at(MONDAY, "09:00")))
        slots = only_available(engine.get_available_slots(TENANT_ID, PRO_ID, MONDAY, [CUT_ID]))
        assert "09:00" not in [s.time for s in slots]
        assert all(s.available for s in slots)

    def test_default_rule_when_none_active(self, store):
        store.reset()
        store.add_tenant(Tenant(
            id="TN-9", slug="bare", name="Bare", open_time=time(8, 0), close_time=time(20, 0),
        ))
        rule = BookingEngine(store).get_slot_rule("TN-9")
        assert rule.mode == SlotMode.SERVICE_DURATION
        assert rule.buffer_between_services_minutes == 0

    def test_buffer_blocks_following_slot(self, engine, store):
        store.save_slot_rule(SlotRule(
            tenant_id=TENANT_ID, mode=SlotMode.INTERVAL, interval_minutes=30,
            buffer_between_services_minutes=10,
        ))
        book(engine, "09:00")
        slots = slot_map(engine.get_available_slots(TENANT_ID, PRO_ID, MONDAY, [CUT_ID]))
        assert slots["09:00"] is False
        assert slots["09:30"] is False
        assert slots["10:00"] is True
        assert slots["11:30"] is True


class TestSlotErrors:
    def test_empty_service_list(self, engine):
        with pytest.raises(ValidationError, match="At least one service"):
            engine.get_available_slots(TENANT_ID, PRO_ID, MONDAY, [])

    def test_service_not_performed_by_professional(self, engine):
        with pytest.raises(ValidationError, match="not assigned"):
            engine.get_available_slots(TENANT_ID, OTHER_PRO_ID, MONDAY, [CUT_ID])

    def test_unknown_service(self, engine):
        with pytest.raises(NotFoundError):
            engine.get_available_slots(TENANT_ID, PRO_ID, MONDAY, ["SVC-NOPE"])

    def test_unknown_professional(self, engine):
        with pytest.raises(NotFoundError):
            engine.get_available_slots(TENANT_ID, "PRO-NOPE", MONDAY, [CUT_ID])

    def test_professional_of_other_tenant(self, engine, store):
        store.add_tenant(Tenant(
            id="TN-2", slug="other", name="Other", open_time=time(8, 0), close_time=time(20, 0),
        ))
        with pytest.raises(NotFoundError):
            engine.get_available_slots("TN-2", PRO_ID, MONDAY, [CUT_ID])

    def test_too_many_services(self, engine):
        with pytest.raises(ValidationError, match="At most"):
            engine.get_available_slots(TENANT_ID, PRO_ID, MONDAY, [CUT_ID] * 11)


class TestCreateBooking:
    def test_creates_requested_booking(self, engine):
        booking = book(engine, "09:00")
        assert booking.id.startswith("BK-")
        assert booking.status == BookingStatus.REQUESTED
        assert booking.end_time == at(MONDAY, "09:30")
        assert booking.price == Decimal("50.00")
        assert booking.customer_name == "Carla"
        assert booking.professional_name == "Ana"

    def test_multi_service_snapshot(self, engine):
        booking = book(engine, "09:00", [CUT_ID, BEARD_ID])
        assert booking.total_duration_minutes == 50
        assert booking.end_time == at(MONDAY, "09:50")
        assert booking.price == Decimal("80.00")
        assert [s.service_id for s in booking.services] == [CUT_ID, BEARD_ID]

    def test_custom_duration_snapshot(self, engine, store):
        store.assign_service(ProfessionalServiceAssignment(
            professional_id=PRO_ID, service_id=CUT_ID, custom_duration_minutes=45,
        ))
        booking = book(engine, "09:00")
        assert booking.end_time == at(MONDAY, "09:45")

    def test_end_time_includes_buffer(self, engine, store):
        store.save_slot_rule(SlotRule(
            tenant_id=TENANT_ID, mode=SlotMode.INTERVAL, interval_minutes=30,
            buffer_between_services_minutes=15,
        ))
        booking = book(engine, "09:00")
        assert booking.buffer_minutes == 15
        assert booking.end_time == at(MONDAY, "09:45")

    def test_buffer_waived_only_for_last_slot(self, engine, store):
        store.save_slot_rule(SlotRule(
            tenant_id=TENANT_ID, mode=SlotMode.INTERVAL, interval_minutes=10,
            buffer_between_services_minutes=15,
        ))
        slots = slot_map(engine.get_available_slots(TENANT_ID, PRO_ID, MONDAY, [CUT_ID]))
        assert "11:20" not in slots
        with pytest.raises(ValidationError, match="open hours"):
            book(engine, "11:20")

        booking = book(engine, "11:30")
        assert booking.end_time == at(MONDAY, "12:15")

    def test_accepts_iso_string(self, engine):
        booking = engine.create_booking(
            TENANT_ID, CUSTOMER_ID, PRO_ID, [CUT_ID], "2026-10-26T10:00:00"
        )
        assert booking.start_time == at(MONDAY, "10:00")

    def test_off_grid_start_within_open_hours(self, engine):
        assert book(engine, "09:10").start_time == at(MONDAY, "09:10")

    def test_second_booking_same_time_conflicts(self, engine):
        first = book(engine, "09:00")
        with pytest.raises(SlotConflictError) as exc_info:
            book(engine, "09:00")
        assert exc_info.value.conflicting_ids == [first.id]
        assert exc_info.value.retryable

    def test_overlapping_start_conflicts(self, engine):
        book(engine, "09:00")
        with pytest.raises(SlotConflictError):
            book(engine, "09:15")

    def test_adjacent_booking_allowed(self, engine):
        book(engine, "09:00")
        assert book(engine, "09:30").start_time == at(MONDAY, "09:30")

    def test_store_rejects_concurrent_write(self, engine, store, monkeypatch):
        store.insert_booking(make_booking(at(MONDAY, "09:00"), booking_id="BK-RACE"))
        monkeypatch.setattr(engine, "_require_free", lambda *args, **kwargs: None)
        with pytest.raises(SlotConflictError) as exc_info:
            book(engine, "09:00")
        assert exc_info.value.conflicting_ids == ["BK-RACE"]
        assert len(engine.list_bookings(TENANT_ID, MONDAY)) == 1

    def test_cancelled_booking_does_not_block(self, engine, store):
        store.insert_booking(make_booking(at(MONDAY, "09:00"), status=BookingStatus.CANCELLED))
        assert book(engine, "09:00").status == BookingStatus.REQUESTED

    def test_outside_open_hours(self, engine):
        with pytest.raises(ValidationError, match="open hours"):
            book(engine, "11:45")

    def test_inside_schedule_block(self, engine, store):
        store.add_schedule_block(block(at(MONDAY, "10:00"), at(MONDAY, "10:30")))
        with pytest.raises(ValidationError, match="open hours"):
            book(engine, "10:00")

    def test_day_off(self, engine):
        with pytest.raises(ValidationError):
            engine.create_booking(TENANT_ID, CUSTOMER_ID, PRO_ID, [CUT_ID], at(TUESDAY, "09:00"))

    def test_seconds_rejected(self, engine):
        with pytest.raises(ValidationError, match="minute precision"):
            engine.create_booking(TENANT_ID, CUSTOMER_ID, PRO_ID, [CUT_ID], "2026-10-26T09:00:30")

    def test_utc_offset_rejected(self, engine):
        with pytest.raises(ValidationError, match="offset"):
            engine.create_booking(
                TENANT_ID, CUSTOMER_ID, PRO_ID, [CUT_ID], "2026-10-26T09:00:00+00:00"
            )

    def test_unknown_customer(self, engine):
        with pytest.raises(NotFoundError):
            engine.create_booking(TENANT_ID, "CUS-NOPE", PRO_ID, [CUT_ID], at(MONDAY, "09:00"))


class TestLifecycle:
    def test_full_happy_path(self, engine):
        booking = book(engine, "09:00")
        assert engine.confirm_booking(TENANT_ID, booking.id).status == BookingStatus.CONFIRMED
        assert engine.start_booking(TENANT_ID, booking.id).status == BookingStatus.IN_PROGRESS
        done = engine.complete_booking(TENANT_ID, booking.id)
        assert done.status == BookingStatus.COMPLETED
        assert done.updated_at is not None

    def test_invalid_transition_leaves_booking_unchanged(self, engine):
        booking = book(engine, "09:00")
        engine.confirm_booking(TENANT_ID, booking.id)
        with pytest.raises(InvalidTransitionError):
            engine.complete_booking(TENANT_ID, booking.id)
        assert engine.get_booking(TENANT_ID, booking.id).status == BookingStatus.CONFIRMED

    def test_stale_read_cannot_overwrite_newer_status(self, engine, monkeypatch):
        booking = book(engine, "09:00")
        engine.confirm_booking(TENANT_ID, booking.id)
        stale = engine.get_booking(TENANT_ID, booking.id)
        engine.cancel_booking(TENANT_ID, booking.id, reason="Customer called")

        monkeypatch.setattr(engine, "_booking", lambda tenant_id, booking_id: stale)
        with pytest.raises(InvalidTransitionError):
            engine.start_booking(TENANT_ID, booking.id)
        monkeypatch.undo()

        current = engine.get_booking(TENANT_ID, booking.id)
        assert current.status == BookingStatus.CANCELLED
        assert current.cancellation_reason == "Customer called"

    def test_cancel_twice_fails(self, engine):
        booking = book(engine, "09:00")
        engine.confirm_booking(TENANT_ID, booking.id)
        engine.cancel_booking(TENANT_ID, booking.id)
        with pytest.raises(InvalidTransitionError):
            engine.cancel_booking(TENANT_ID, booking.id)

    def test_cancel_reason_recorded(self, engine):
        booking = book(engine, "09:00")
        engine.confirm_booking(TENANT_ID, booking.id)
        cancelled = engine.cancel_booking(TENANT_ID, booking.id, "  Client is sick ")
        assert cancelled.cancellation_reason == "Client is sick"

    def test_reject_from_requested(self, engine):
        booking = book(engine, "09:00")
        rejected = engine.reject_booking(TENANT_ID, booking.id, "Fully booked")
        assert rejected.status == BookingStatus.REJECTED
        assert rejected.cancellation_reason == "Fully booked"

    def test_no_show(self, engine):
        booking = book(engine, "09:00")
        engine.confirm_booking(TENANT_ID, booking.id)
        assert engine.mark_no_show(TENANT_ID, booking.id).status == BookingStatus.NO_SHOW

    def test_cancelled_slot_becomes_available(self, engine):
        booking = book(engine, "09:00")
        engine.confirm_booking(TENANT_ID, booking.id)
        engine.cancel_booking(TENANT_ID, booking.id)
        slots = slot_map(engine.get_available_slots(TENANT_ID, PRO_ID, MONDAY, [CUT_ID]))
        assert slots["09:00"] is True

    def test_action_by_name(self, engine):
        booking = book(engine, "09:00")
        assert engine.transition_booking(TENANT_ID, booking.id, "confirm").status == BookingStatus.CONFIRMED

    def test_unknown_action(self, engine):
        booking = book(engine, "09:00")
        with pytest.raises(ValidationError, match="Unknown action"):
            engine.transition_booking(TENANT_ID, booking.id, "archive")

    def test_booking_of_other_tenant_not_found(self, engine, store):
        store.add_tenant(Tenant(
            id="TN-2", slug="other", name="Other", open_time=time(8, 0), close_time=time(20, 0),
        ))
        booking = book(engine, "09:00")
        with pytest.raises(NotFoundError):
            engine.confirm_booking("TN-2", booking.id)


class TestReschedule:
    def _confirmed(self, engine, start: str = "09:00"):
        booking = book(engine, start)
        return engine.confirm_booking(TENANT_ID, booking.id)

    def test_moves_confirmed_booking(self, engine):
        booking = self._confirmed(engine)
        moved = engine.reschedule_booking(TENANT_ID, booking.id, at(MONDAY, "10:30"))
        assert moved.start_time == at(MONDAY, "10:30")
        assert moved.end_time == at(MONDAY, "11:00")
        assert moved.status == BookingStatus.CONFIRMED

    def test_overlapping_its_own_old_time(self, engine):
        booking = self._confirmed(engine)
        moved = engine.reschedule_booking(TENANT_ID, booking.id, at(MONDAY, "09:15"))
        assert moved.start_time == at(MONDAY, "09:15")

    def test_requested_booking_cannot_be_rescheduled(self, engine):
        booking = book(engine, "09:00")
        with pytest.raises(InvalidTransitionError, match="reschedule"):
            engine.reschedule_booking(TENANT_ID, booking.id, at(MONDAY, "10:00"))

    def test_conflict_with_other_booking(self, engine):
        booking = self._confirmed(engine)
        book(engine, "10:00")
        with pytest.raises(SlotConflictError):
            engine.reschedule_booking(TENANT_ID, booking.id, at(MONDAY, "10:00"))
        assert engine.get_booking(TENANT_ID, booking.id).start_time == at(MONDAY, "09:00")

    def test_outside_open_hours(self, engine):
        booking = self._confirmed(engine)
        with pytest.raises(ValidationError):
            engine.reschedule_booking(TENANT_ID, booking.id, at(TUESDAY, "09:00"))

    def test_old_slot_freed(self, engine):
        booking = self._confirmed(engine)
        engine.reschedule_booking(TENANT_ID, booking.id, at(MONDAY, "11:00"))
        slots = slot_map(engine.get_available_slots(TENANT_ID, PRO_ID, MONDAY, [CUT_ID]))
        assert slots["09:00"] is True
        assert slots["11:00"] is False


class TestListings:
    def test_list_bookings_filters(self, engine):
        first = book(engine, "09:00")
        book(engine, "10:00")
        engine.confirm_booking(TENANT_ID, first.id)

        assert len(engine.list_bookings(TENANT_ID, MONDAY)) == 2
        confirmed = engine.list_bookings(TENANT_ID, MONDAY, status=BookingStatus.CONFIRMED)
        assert [b.id for b in confirmed] == [first.id]
        assert engine.list_bookings(TENANT_ID, TUESDAY) == []
        assert engine.list_bookings(TENANT_ID, professional_id=OTHER_PRO_ID) == []

    def test_list_bookings_sorted_by_start(self, engine):
        book(engine, "11:00")
        book(engine, "09:00")
        starts = [b.start_time for b in engine.list_bookings(TENANT_ID, MONDAY)]
        assert starts == sorted(starts)

    def test_professional_services(self, engine):
        services = engine.list_professional_services(TENANT_ID, PRO_ID)
        assert [s.service_id for s in services] == [BEARD_ID, CUT_ID]

    def test_service_professionals(self, engine):
        pros = engine.list_service_professionals(TENANT_ID, CUT_ID)
        assert [p.professional_id for p in pros] == [PRO_ID]

    def test_open_intervals_respect_blocks(self, engine, store):
        store.add_schedule_block(block(at(MONDAY, "10:00"), at(MONDAY, "11:00")))
        intervals = engine.resolve_open_intervals(TENANT_ID, PRO_ID, MONDAY)
        assert [(i.start, i.end) for i in intervals] == [
            (at(MONDAY, "09:00"), at(MONDAY, "10:00")),
            (at(MONDAY, "11:00"), at(MONDAY, "12:00")),
        ]


class TestDailySummary:
    def test_counts_and_completed_revenue(self, engine, store):
        done = book(engine, "09:00")
        for action in (engine.confirm_booking, engine.start_booking, engine.complete_booking):
            action(TENANT_ID, done.id)
        cancelled = book(engine, "10:00")
        engine.cancel_booking(TENANT_ID, cancelled.id)
        book(engine, "11:00", [CUT_ID, BEARD_ID])
        store.insert_booking(make_booking(
            at(TUESDAY, "09:00"), booking_id="BK-TUE", status=BookingStatus.COMPLETED,
        ))

        summary = engine.daily_summary(TENANT_ID, MONDAY)

        assert summary.day == MONDAY
        assert summary.total == 3
        assert summary.counts[BookingStatus.COMPLETED] == 1
        assert summary.counts[BookingStatus.CANCELLED] == 1
        assert summary.counts[BookingStatus.REQUESTED] == 1
        assert summary.counts[BookingStatus.CONFIRMED] == 0
        assert summary.completed_revenue == Decimal("50.00")

    def test_empty_day(self, engine):
        summary = engine.daily_summary(TENANT_ID, TUESDAY)
        assert summary.total == 0
        assert set(summary.counts.values()) == {0}
        assert summary.completed_revenue == Decimal("0")

    def test_filtered_by_professional(self, engine, store):
        store.insert_booking(make_booking(
            at(MONDAY, "09:00"), booking_id="BK-OTHER", professional_id=OTHER_PRO_ID,
            status=BookingStatus.COMPLETED,
        ))
        assert engine.daily_summary(TENANT_ID, MONDAY, OTHER_PRO_ID).completed_revenue == Decimal("50.00")
        assert engine.daily_summary(TENANT_ID, MONDAY, PRO_ID).total == 0
