"""Request ID logging context for tracing one booking flow across modules.

Every reservation wizard gets its own request ID and scopes each user
action to it, so availability lookups, the creation request and the
store write it triggers all carry the same tag. ``load_config`` installs
``RequestIdFilter`` on the root handlers and renders ``%(request_id)s``
in the log format.

Usage:
    from petcare_scheduling.logging_context import new_request_id, request_scope

    with request_scope(new_request_id("RW")):
        booking_service.request_booking(request)
    # 2024-06-10 10:00:00 [petcare_scheduling.booking.service] [RW-1A2B3C4D] INFO: ...
"""

import logging
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator

NO_REQUEST_ID = "-"

_request_id: ContextVar[str] = ContextVar("request_id", default=NO_REQUEST_ID)


def new_request_id(prefix: str = "REQ") -> str:
    """Mint a short correlation ID such as ``RW-1A2B3C4D``."""
    return f"{prefix}-{uuid.uuid4().hex[:8].upper()}"


def set_request_id(request_id: str) -> None:
    """Set the correlation ID for the current context."""
    _request_id.set(request_id)


def get_request_id() -> str:
    """Retrieve the current correlation ID."""
    return _request_id.get()


@contextmanager
def request_scope(request_id: str) -> Iterator[str]:
    """Tag every record logged inside the block with ``request_id``.

    The previous ID is restored on exit, so scopes nest.
    """
    token = _request_id.set(request_id)
    try:
        yield request_id
    finally:
        _request_id.reset(token)


class RequestIdFilter(logging.Filter):
    """Stamps ``request_id`` on records that do not carry one yet."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = _request_id.get()  # type: ignore[attr-defined]
        return True


def install_request_id_filter(handlers) -> None:
    """Attach one ``RequestIdFilter`` to each handler in ``handlers``.

    Handler-level filters also see records propagated from plain
    ``logging.getLogger`` loggers, which keeps ``%(request_id)s`` safe to
    use in a shared format string.
    """
    for handler in handlers:
        if not any(isinstance(f, RequestIdFilter) for f in handler.filters):
            handler.addFilter(RequestIdFilter())


def get_request_logger(name: str) -> logging.Logger:
    """Return a logger that stamps ``request_id`` at the source.

    Used by the modules that run inside a request scope (booking service,
    wizard controller) so the ID survives handlers without the filter,
    such as pytest's ``caplog``.
    """
    logger = logging.getLogger(name)
    if not any(isinstance(f, RequestIdFilter) for f in logger.filters):
        logger.addFilter(RequestIdFilter())
    return logger
