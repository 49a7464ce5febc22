"""Logging helpers shared by the engine and the API.

Every record carries the correlation ID of the request that produced it,
held in a ContextVar so it follows the request across awaits. Operation
and event helpers log a pipe-separated message and pass the same fields
as record extras.

    logger = get_logger(__name__)
    log_booking_operation(logger, "create_order", order_id="ORDER-123", amount=399)
"""

import logging
import uuid
from contextvars import ContextVar
from typing import Any

_correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)
_NO_CORRELATION_ID = "no-correlation-id"


def set_correlation_id(correlation_id: str | None = None) -> str:
    """Bind a correlation ID to the current context, generating one if missing."""
    cid = correlation_id or str(uuid.uuid4())
    _correlation_id.set(cid)
    return cid


def get_correlation_id() -> str | None:
    """Get the current correlation ID, or None if not set."""
    return _correlation_id.get()


def clear_correlation_id() -> None:
    _correlation_id.set(None)


class CorrelationIdFilter(logging.Filter):
    """Logging filter that adds correlation_id to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or _NO_CORRELATION_ID
        return True


class StructuredFormatter(logging.Formatter):
    """Formatter that prefixes every line with the correlation ID."""

    def format(self, record: logging.LogRecord) -> str:
        correlation_id = getattr(record, "correlation_id", None) or _NO_CORRELATION_ID
        return f"[{correlation_id}] {super().format(record)}"


def get_logger(name: str) -> logging.Logger:
    """Return the named logger with the correlation ID filter attached once."""
    logger = logging.getLogger(name)

    if not any(isinstance(f, CorrelationIdFilter) for f in logger.filters):
        logger.addFilter(CorrelationIdFilter())

    return logger


def _structured_message(headline: str, context: dict[str, Any]) -> str:
    """Headline followed by " | key=value" for every non-empty field."""
    parts = [headline]
    parts.extend(f"{key}={value}" for key, value in context.items() if value is not None)
    return " | ".join(parts)


def log_booking_operation(
    logger: logging.Logger,
    operation: str,
    *,
    user_id: str | None = None,
    order_id: str | None = None,
    booking_id: str | None = None,
    property_id: str | None = None,
    amount: int | None = None,
    status: str | None = None,
    error: str | None = None,
    **extra: Any,
) -> None:
    """Log a cart, order, payment or booking operation with structured context.

    Logged at ERROR when error is set, INFO otherwise. Amounts are whole
    currency units.
    """
    fields: dict[str, Any] = {
        "user_id": user_id,
        "order_id": order_id,
        "booking_id": booking_id,
        "property_id": property_id,
        "amount": amount,
        "status": status,
        "error": error,
        **extra,
    }
    context = {key: value for key, value in fields.items() if value is not None}
    message = _structured_message(f"Booking operation: {operation}", context)

    level = logging.ERROR if error else logging.INFO
    logger.log(level, message, extra={"operation": operation, **context})


def log_event_dispatch(
    logger: logging.Logger,
    event_type: str,
    event_id: str,
    *,
    handler: str | None = None,
    result: str | None = None,
    error: str | None = None,
) -> None:
    """Log one step of domain event dispatch.

    result is "handled", "unhandled" (DEBUG) or "error" (ERROR).
    """
    context = {
        key: value
        for key, value in (("handler", handler), ("result", result), ("error", error))
        if value is not None
    }
    message = _structured_message(f"Domain event: {event_type} ({event_id})", context)

    if result == "error":
        level = logging.ERROR
    elif result == "unhandled":
        level = logging.DEBUG
    else:
        level = logging.INFO
    logger.log(level, message, extra={"event_type": event_type, "event_id": event_id, **context})
