"""Request ID logging context.

Every engine call made inside ``request_context()`` logs with the same
request id, so one availability lookup or booking mutation can be followed
from the engine facade down to the store:

    with request_context():
        engine.create_booking(...)
    # 2026-10-26 09:00:01 [booking_engine.engine] [REQ-1f3a9c2e] INFO: Booking created: ...

The id is attached by a filter on the output handler, so every logger in
the process gets it without per-module setup.
"""

import logging
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional

LOG_FORMAT = "%(asctime)s [%(name)s] [%(request_id)s] %(levelname)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

_request_id: ContextVar[str] = ContextVar("request_id", default="-")


def get_request_id() -> str:
    return _request_id.get()


def new_request_id() -> str:
    return f"REQ-{uuid.uuid4().hex[:8]}"


@contextmanager
def request_context(request_id: Optional[str] = None) -> Iterator[str]:
    """Scope a request id to a block, restoring the previous one on exit."""
    token = _request_id.set(request_id or new_request_id())
    try:
        yield _request_id.get()
    finally:
        _request_id.reset(token)


class RequestIdFilter(logging.Filter):
    """Injects request_id into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = _request_id.get()  # type: ignore[attr-defined]
        return True


def build_handler(stream=None) -> logging.Handler:
    """Stream handler that stamps and prints the request id."""
    handler = logging.StreamHandler(stream)
    handler.addFilter(RequestIdFilter())
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT))
    return handler


def configure_logging(level: str) -> None:
    """Install the request-id handler on the root logger.

    No-op when the root logger already has handlers, like ``basicConfig``.
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        handlers=[build_handler()],
    )
