"""Booking model."""

import datetime as dt

from pydantic import Field

from .enums import BookingPaymentStatus, BookingStatus, CancellationPolicy
from .stay import PricedStay


class Booking(PricedStay):
    """The reservation record for one stay.

    Property, guest and host are shared references by ID. Status and
    payment status move independently of the parent order; they are kept
    in step by event handlers, not by cascade.
    """

    booking_id: str = Field(..., description="Unique booking ID")
    guest_id: str
    host_id: str
    order_id: str | None = Field(default=None, description="Order that created this booking")
    status: BookingStatus = BookingStatus.PENDING
    payment_status: BookingPaymentStatus = BookingPaymentStatus.PENDING
    cancellation_policy: CancellationPolicy = CancellationPolicy.MODERATE
    created_at: dt.datetime
    updated_at: dt.datetime

    @property
    def blocks_dates(self) -> bool:
        """Pending and confirmed bookings hold their dates."""
        return self.status in (BookingStatus.PENDING, BookingStatus.CONFIRMED)

