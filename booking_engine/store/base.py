"""Storage interface consumed by the booking engine.

Any backend (SQL, REST client, in-memory) implements the same contract.
Lookups raise ``NotFoundError``; ``insert_booking`` and ``update_booking``
are atomic check-and-write operations that raise ``SlotConflictError`` when
the booking would overlap another active booking of the same professional.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Optional

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
    SlotRule,
    WeeklyAvailability,
)


class BookingStore(ABC):
    """Data-access and persistence collaborator."""

    # --- Catalog lookups ---

    @abstractmethod
    def get_tenant(self, tenant_id: str) -> Tenant: ...

    @abstractmethod
    def get_professional(self, professional_id: str) -> Professional: ...

    @abstractmethod
    def list_professionals(self, tenant_id: str) -> list[Professional]: ...

    @abstractmethod
    def get_customer(self, customer_id: str) -> Customer: ...

    @abstractmethod
    def get_service(self, service_id: str) -> Service: ...

    @abstractmethod
    def list_assignments(self, professional_id: str) -> list[ProfessionalServiceAssignment]: ...

    @abstractmethod
    def list_service_assignments(self, service_id: str) -> list[ProfessionalServiceAssignment]: ...

    # --- Scheduling inputs ---

    @abstractmethod
    def list_weekly_availability(
        self, professional_id: str, day_of_week: Optional[DayOfWeek] = None
    ) -> list[WeeklyAvailability]: ...

    @abstractmethod
    def list_schedule_blocks(
        self, professional_id: str, target_date: Optional[date] = None
    ) -> list[ScheduleBlock]:
        """Blocks for a professional; with ``target_date``, only those touching that day."""

    @abstractmethod
    def get_active_slot_rule(self, tenant_id: str) -> Optional[SlotRule]: ...

    # --- Bookings ---

    @abstractmethod
    def get_booking(self, booking_id: str) -> Booking: ...

    @abstractmethod
    def list_bookings(self, professional_id: str, target_date: date) -> list[Booking]:
        """All bookings (any status) of a professional touching ``target_date``."""

    @abstractmethod
    def list_tenant_bookings(
        self, tenant_id: str, target_date: Optional[date] = None
    ) -> list[Booking]: ...

    @abstractmethod
    def insert_booking(self, booking: Booking) -> Booking:
        """Persist a new booking, re-checking overlaps atomically.

        Raises:
            SlotConflictError: If an active booking of the same professional overlaps.
        """

    @abstractmethod
    def update_booking(
        self,
        booking: Booking,
        check_conflicts: bool = False,
        expected_status: Optional[BookingStatus] = None,
    ) -> Booking:
        """Replace a stored booking.

        With ``check_conflicts`` the overlap re-check runs atomically with the
        write, ignoring the booking itself. With ``expected_status`` the write
        only happens if the stored booking still has that status.

        Raises:
            NotFoundError: If the booking does not exist.
            SlotConflictError: On overlap when ``check_conflicts`` is set.
            InvalidTransitionError: If the stored status is no longer ``expected_status``.
        """
