"""
Offline console demo: drives the booking engine against seeded demo data.

Uses the real availability resolver, slot generator, conflict filter,
pricing resolver and lifecycle state machine over the in-memory store.
No database, no HTTP.

Usage:
    python console_demo.py
    python console_demo.py --scenario booking
    python console_demo.py --scenario conflict
"""

import argparse
import shlex
from datetime import date
from typing import Optional

from booking_engine.config import settings
from booking_engine.engine import BookingEngine, only_available
from booking_engine.errors import BookingEngineError
from booking_engine.logging_context import request_context
from booking_engine.schemas.scheduling_schema import DayOfWeek
from booking_engine.store.demo_data import next_weekday, seed_demo
from booking_engine.store.memory import InMemoryStore

BLUE = "\033[94m"
GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"

HELP = """Commands:
  slots <professional> <YYYY-MM-DD> <service[,service...]>
  book <professional> <YYYY-MM-DDTHH:MM> <service[,service...]>
  confirm|start|complete|no_show <booking>
  cancel|reject <booking> [reason...]
  reschedule <booking> <YYYY-MM-DDTHH:MM>
  bookings [YYYY-MM-DD]
  summary <YYYY-MM-DD>
  services <professional>
  help | quit"""


class ConsoleSession:
    """Interactive shell over a seeded in-memory tenant."""

    def __init__(self, today: Optional[date] = None) -> None:
        self.store = InMemoryStore()
        self.ids = seed_demo(self.store, today)
        self.engine = BookingEngine(self.store)
        self.tenant_id = self.ids.tenant_id
        self.last_booking_id: Optional[str] = None
        self.monday = next_weekday(today or date.today(), DayOfWeek.MONDAY)

    def say(self, text: str) -> None:
        print(f"{GREEN}{text}{RESET}")

    def system_log(self, text: str) -> None:
        print(f"{DIM}  >> {text}{RESET}")

    def error(self, exc: BookingEngineError) -> None:
        retry = " (retryable)" if exc.retryable else ""
        print(f"{RED}{type(exc).__name__}{retry}: {exc}{RESET}")

    def scenarios(self) -> dict[str, list[str]]:
        """Pre-scripted command lists for --scenario."""
        day = self.monday.isoformat()
        return {
            "booking": [
                f"services {self.ids.ana_id}",
                f"slots {self.ids.ana_id} {day} {self.ids.haircut_id}",
                f"book {self.ids.ana_id} {day}T09:30 {self.ids.haircut_id}",
                "confirm last",
                "start last",
                "complete last",
                f"bookings {day}",
                f"summary {day}",
            ],
            "conflict": [
                f"book {self.ids.bruno_id} {day}T14:00 {self.ids.haircut_id},{self.ids.beard_id}",
                f"book {self.ids.bruno_id} {day}T14:30 {self.ids.beard_id}",
                f"slots {self.ids.bruno_id} {day} {self.ids.beard_id}",
                "confirm last",
                f"reschedule last {day}T16:00",
                "cancel last Customer asked to move to next week",
                "cancel last",
            ],
        }

    def run_scenario(self, scenario: str) -> None:
        """Auto-play a pre-scripted scenario for demo purposes."""
        steps = self.scenarios().get(scenario)
        if not steps:
            print(f"{RED}Unknown scenario: {scenario}{RESET}")
            return

        print()
        print(f"{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  BOOKING ENGINE - Scenario: {scenario}{RESET}")
        print(f"{BOLD}  Tenant: {settings.demo.tenant_name}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")

        for step in steps:
            print(f"\n{BLUE}[staff] {RESET}{step}")
            self.handle(step)

        print(f"\n{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  Scenario '{scenario}' complete.{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")

    def run(self) -> None:
        print()
        print(f"{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  BOOKING ENGINE - {settings.demo.tenant_name}{RESET}")
        print(f"{DIM}  Professionals: {self.ids.ana_id}, {self.ids.bruno_id}{RESET}")
        print(f"{DIM}  Services: {self.ids.haircut_id}, {self.ids.beard_id}, {self.ids.coloring_id}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")
        print(HELP)

        while True:
            try:
                line = input(f"\n{BLUE}[staff] {RESET}").strip()
            except (EOFError, KeyboardInterrupt):
                print()
                break
            if line in ("quit", "exit"):
                break
            if line:
                self.handle(line)

    def handle(self, line: str) -> None:
        """Run one command, printing engine errors instead of raising them."""
        with request_context():
            try:
                self._dispatch(shlex.split(line))
            except BookingEngineError as exc:
                self.error(exc)

    def _booking_ref(self, ref: str) -> str:
        if ref == "last":
            if self.last_booking_id is None:
                raise ValueError("no booking created yet")
            return self.last_booking_id
        return ref

    def _dispatch(self, parts: list[str]) -> None:
        if not parts:
            return
        command, args = parts[0], parts[1:]
        try:
            if command == "slots" and len(args) == 3:
                self._show_slots(args[0], date.fromisoformat(args[1]), args[2].split(","))
            elif command == "book" and len(args) == 3:
                self._book(args[0], args[1], args[2].split(","))
            elif command in ("confirm", "start", "complete", "no_show") and len(args) == 1:
                self._show_booking(self.engine.transition_booking(
                    self.tenant_id, self._booking_ref(args[0]), command,
                ))
            elif command in ("cancel", "reject") and args:
                reason = " ".join(args[1:]) or None
                self._show_booking(self.engine.transition_booking(
                    self.tenant_id, self._booking_ref(args[0]), command, reason,
                ))
            elif command == "reschedule" and len(args) == 2:
                self._show_booking(self.engine.reschedule_booking(
                    self.tenant_id, self._booking_ref(args[0]), args[1],
                ))
            elif command == "bookings":
                target = date.fromisoformat(args[0]) if args else None
                for booking in self.engine.list_bookings(self.tenant_id, target):
                    self._show_booking(booking)
            elif command == "summary" and len(args) == 1:
                self._show_summary(date.fromisoformat(args[0]))
            elif command == "services" and len(args) == 1:
                for pricing in self.engine.list_professional_services(self.tenant_id, args[0]):
                    custom = " (custom)" if pricing.has_custom_price or pricing.has_custom_duration else ""
                    self.say(
                        f"{pricing.service_id:<10} {pricing.service_name:<12} "
                        f"{pricing.duration_minutes:>3} min  {pricing.price}{custom}"
                    )
            else:
                print(HELP)
        except ValueError as exc:
            print(f"{YELLOW}Invalid input: {exc}{RESET}")

    def _show_slots(self, professional_id: str, target: date, service_ids: list[str]) -> None:
        slots = self.engine.get_available_slots(self.tenant_id, professional_id, target, service_ids)
        if not slots:
            self.say(f"No slots on {target.isoformat()}.")
            return
        rendered = " ".join(
            f"{s.time}" if s.available else f"{DIM}{s.time}{RESET}{GREEN}" for s in slots
        )
        self.say(rendered)
        self.system_log(f"{len(only_available(slots))} of {len(slots)} free")

    def _show_summary(self, target: date) -> None:
        summary = self.engine.daily_summary(self.tenant_id, target)
        counts = ", ".join(
            f"{status.value.lower()}={count}" for status, count in summary.counts.items() if count
        )
        self.say(f"{target.isoformat()}: {summary.total} bookings ({counts or 'none'})")
        self.system_log(f"Completed revenue: {summary.completed_revenue}")

    def _book(self, professional_id: str, start: str, service_ids: list[str]) -> None:
        booking = self.engine.create_booking(
            self.tenant_id, self.ids.customer_id, professional_id, service_ids, start,
        )
        self.last_booking_id = booking.id
        self._show_booking(booking)

    def _show_booking(self, booking) -> None:
        services = ", ".join(s.service_name for s in booking.services)
        reason = f" [{booking.cancellation_reason}]" if booking.cancellation_reason else ""
        self.say(
            f"{booking.id} {booking.start_time:%Y-%m-%d %H:%M}-{booking.end_time:%H:%M} "
            f"{booking.professional_name}: {services} ({booking.price}) "
            f"{booking.status.value}{reason}"
        )


def main() -> None:
    parser = argparse.ArgumentParser(description="Offline booking engine console")
    parser.add_argument(
        "--scenario",
        choices=["booking", "conflict"],
        default=None,
        help="Auto-play a pre-scripted scenario instead of interactive mode",
    )
    args = parser.parse_args()

    session = ConsoleSession()
    if args.scenario:
        session.run_scenario(args.scenario)
    else:
        session.run()


if __name__ == "__main__":
    main()
