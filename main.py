"""
Booking engine entry point.

Prints available slots for the seeded demo tenant as JSON, or launches the
interactive console.

Usage:
    Slots:        python main.py slots PRO-ANA 2026-10-26 SVC-CUT
    Console mode: python main.py console
"""

import argparse
import json
import logging
import sys
from datetime import date

from booking_engine.config import settings
from booking_engine.errors import BookingEngineError
from booking_engine.logging_context import request_context

logger = logging.getLogger(__name__)


def _run_slots(professional_id: str, target: str, service_ids: str) -> int:
    """Print slot availability for the demo tenant (no external services)."""
    from booking_engine.engine import BookingEngine
    from booking_engine.store.demo_data import seed_demo
    from booking_engine.store.memory import InMemoryStore

    store = InMemoryStore()
    ids = seed_demo(store)
    engine = BookingEngine(store)
    with request_context():
        try:
            slots = engine.get_available_slots(
                ids.tenant_id, professional_id, date.fromisoformat(target), service_ids.split(","),
            )
        except BookingEngineError as exc:
            logger.error("%s: %s", type(exc).__name__, exc)
            return 1
    print(json.dumps([s.model_dump() for s in slots], indent=2))
    return 0


def _run_console_mode() -> None:
    """Start the offline console demo."""
    from console_demo import ConsoleSession

    session = ConsoleSession()
    session.run()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=settings.app_name)
    sub = parser.add_subparsers(dest="command")
    slots_parser = sub.add_parser("slots", help="List slots for a demo professional")
    slots_parser.add_argument("professional_id")
    slots_parser.add_argument("date", help="YYYY-MM-DD")
    slots_parser.add_argument("service_ids", help="Comma-separated service ids")
    sub.add_parser("console", help="Interactive console demo")
    args = parser.parse_args()

    if args.command == "slots":
        sys.exit(_run_slots(args.professional_id, args.date, args.service_ids))
    _run_console_mode()
