"""API response wrappers for list and acknowledgement endpoints.

Single aggregates (Cart, Order, Booking, PriceBreakdown) are returned as
their domain models directly.
"""

from pydantic import BaseModel, ConfigDict, Field

from stayhub.models import Booking, Order


class OrderListResponse(BaseModel):
    """The caller's orders, newest first."""

    model_config = ConfigDict(frozen=True)

    orders: list[Order]
    count: int = Field(..., ge=0)


class BookingListResponse(BaseModel):
    """Bookings where the caller is guest (or host), newest first."""

    model_config = ConfigDict(frozen=True)

    bookings: list[Booking]
    count: int = Field(..., ge=0)


class SuccessMessage(BaseModel):
    """Generic acknowledgement."""

    model_config = ConfigDict(frozen=True)

    success: bool = True
    message: str
