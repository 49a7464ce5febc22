"""In-process domain event bus.

Routes events returned by engine transitions to the handlers registered
for their type. Several handlers may listen to one event type; they run
in registration order. A failing handler stops dispatch and its error
propagates to the caller, since the state it was meant to update is now
stale.
"""

from collections.abc import Callable, Iterable

from stayhub.models import DomainEvent
from stayhub.utils.logging import get_logger, log_event_dispatch

logger = get_logger(__name__)

EventHandler = Callable[[DomainEvent], None]


class EventBus:
    """Event bus mapping event types to handlers (1:N)."""

    def __init__(self) -> None:
        self._handlers: dict[type[DomainEvent], list[EventHandler]] = {}

    def register(self, event_type: type[DomainEvent], handler: EventHandler) -> None:
        """Register a handler for an event type."""
        self._handlers.setdefault(event_type, []).append(handler)
        logger.debug("Registered %s for %s", _handler_name(handler), event_type.__name__)

    def handlers_for(self, event_type: type[DomainEvent]) -> list[EventHandler]:
        return list(self._handlers.get(event_type, []))

    def publish(self, events: Iterable[DomainEvent]) -> None:
        """Dispatch events, in order, to their registered handlers.

        Events without handlers are logged at DEBUG and skipped.
        """
        for event in events:
            handlers = self._handlers.get(type(event), [])
            if not handlers:
                log_event_dispatch(logger, event.event_type, event.event_id, result="unhandled")
                continue

            for handler in handlers:
                try:
                    handler(event)
                except Exception as e:
                    log_event_dispatch(
                        logger,
                        event.event_type,
                        event.event_id,
                        handler=_handler_name(handler),
                        result="error",
                        error=str(e),
                    )
                    raise
                log_event_dispatch(
                    logger,
                    event.event_type,
                    event.event_id,
                    handler=_handler_name(handler),
                    result="handled",
                )


def _handler_name(handler: EventHandler) -> str:
    return getattr(handler, "__qualname__", None) or type(handler).__name__
