"""Domain events emitted by engine state transitions.

Engine functions return events alongside the new aggregate state. The
application layer persists the state first, then publishes the events on
the EventBus so follow-up work (bulk booking updates, rating
recalculation) runs as explicit, separately testable handlers.
"""

import datetime as dt
import uuid

from pydantic import BaseModel, ConfigDict, Field

from .enums import BookingStatus, OrderPaymentStatus


def _new_event_id() -> str:
    return f"EVT-{uuid.uuid4().hex[:12].upper()}"


def _now() -> dt.datetime:
    return dt.datetime.now(dt.UTC)


class DomainEvent(BaseModel):
    """Base class for all domain events."""

    model_config = ConfigDict(frozen=True)

    event_id: str = Field(default_factory=_new_event_id)
    occurred_at: dt.datetime = Field(default_factory=_now)

    @property
    def event_type(self) -> str:
        return type(self).__name__


class BookingRequested(DomainEvent):
    """A guest requested a booking directly, outside checkout."""

    booking_id: str
    property_id: str
    guest_id: str


class OrderPlaced(DomainEvent):
    """Checkout created an order and one booking per cart line."""

    order_id: str
    order_number: str
    user_id: str
    booking_ids: list[str]
    total_amount: int


class PaymentSettled(DomainEvent):
    """An order's payment was verified; its bookings should be confirmed."""

    order_id: str
    user_id: str
    booking_ids: list[str]
    transaction_id: str


class PaymentFailed(DomainEvent):
    """A settlement attempt failed and the order was marked failed."""

    order_id: str
    user_id: str
    reason: str


class OrderCancelled(DomainEvent):
    """An order was cancelled; its live bookings should follow."""

    order_id: str
    user_id: str
    booking_ids: list[str]
    payment_status: OrderPaymentStatus


class BookingStatusChanged(DomainEvent):
    """A single booking moved between lifecycle states."""

    booking_id: str
    property_id: str
    previous_status: BookingStatus
    status: BookingStatus


class ReviewPosted(DomainEvent):
    """A review was stored for a property."""

    review_id: str
    property_id: str


class ReviewRemoved(DomainEvent):
    """A review was deleted from a property."""

    review_id: str
    property_id: str
