"""Checkout service: converts a cart into an order and its bookings.

create_order is pure. It returns the new order, one pending booking per
cart line, the emptied cart and an OrderPlaced event; the repository
layer writes all of them in one transaction.
"""

import datetime as dt
import random
import time
import uuid
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from stayhub.models import (
    Address,
    Booking,
    BookingError,
    Cart,
    DomainEvent,
    ErrorCode,
    Order,
    OrderItem,
    OrderPlaced,
    PaymentMethod,
    PropertySnapshot,
    StayRequest,
)

if TYPE_CHECKING:
    from .availability import AvailabilityService
    from .cart import CartService


class CheckoutResult(BaseModel):
    """Everything checkout produces, ready to persist as one unit."""

    model_config = ConfigDict(frozen=True)

    order: Order
    bookings: list[Booking]
    cart: Cart
    events: list[DomainEvent]


def generate_order_number() -> str:
    """Generate a human-readable order number like ORD-543210-4821.

    Not guaranteed unique: uniqueness is enforced when the order is
    written, and a collision triggers a retry with a new number.
    """
    millis = str(int(time.time() * 1000))
    suffix = random.randint(1000, 9999)
    return f"ORD-{millis[-6:]}-{suffix}"


class CheckoutService:
    """Service for order creation from a cart."""

    def __init__(
        self,
        availability: "AvailabilityService",
        carts: "CartService",
    ) -> None:
        """Initialize checkout service.

        Args:
            availability: Availability service for re-checking each stay
            carts: Cart service used to clear the cart
        """
        self.availability = availability
        self.carts = carts

    def create_order(
        self,
        cart: Cart,
        payment_method: PaymentMethod,
        shipping_address: Address,
        billing_address: Address,
        properties: Mapping[str, PropertySnapshot],
        existing_bookings: Iterable[Booking] = (),
        order_number: str | None = None,
    ) -> CheckoutResult:
        """Create an order and pending bookings from a non-empty cart.

        Every line is re-checked against current property state and live
        bookings, because time has passed since it was added to the cart.
        Priced fields are copied verbatim from the cart lines; nothing is
        re-priced.

        Args:
            cart: The user's cart
            payment_method: Chosen payment method
            shipping_address: Shipping address
            billing_address: Billing address
            properties: Current snapshots of every property in the cart
            existing_bookings: Live bookings of those properties
            order_number: Order number to use (generated when omitted)

        Returns:
            CheckoutResult with order, bookings, cleared cart and events

        Raises:
            BookingError: EMPTY_CART, PROPERTY_NOT_FOUND or a stay validation error
        """
        if not cart.items:
            raise BookingError(code=ErrorCode.EMPTY_CART, details={"user_id": cart.user_id})

        existing = list(existing_bookings)
        now = dt.datetime.now(dt.UTC)
        order_id = self._generate_order_id()

        bookings: list[Booking] = []
        for item in cart.items:
            prop = properties.get(item.property_id)
            if prop is None:
                raise BookingError(
                    code=ErrorCode.PROPERTY_NOT_FOUND,
                    details={"property_id": item.property_id},
                )
            stay = StayRequest(
                property_id=item.property_id,
                check_in=item.check_in,
                check_out=item.check_out,
                guests=item.guests,
                special_requests=item.special_requests,
            )
            self.availability.check_stay(stay, prop, existing)

            bookings.append(
                Booking(
                    booking_id=self._generate_booking_id(),
                    property_id=item.property_id,
                    guest_id=cart.user_id,
                    host_id=prop.host_id,
                    order_id=order_id,
                    check_in=item.check_in,
                    check_out=item.check_out,
                    guests=item.guests,
                    pricing=item.pricing,
                    special_requests=item.special_requests,
                    cancellation_policy=prop.cancellation_policy,
                    created_at=now,
                    updated_at=now,
                )
            )

        items = [
            OrderItem(
                item_id=item.item_id,
                property_id=item.property_id,
                check_in=item.check_in,
                check_out=item.check_out,
                guests=item.guests,
                pricing=item.pricing,
                special_requests=item.special_requests,
            )
            for item in cart.items
        ]
        order = Order(
            order_id=order_id,
            order_number=order_number or generate_order_number(),
            user_id=cart.user_id,
            items=items,
            total_items=len(items),
            subtotal=sum(item.pricing.subtotal for item in items),
            total_fees=sum(item.pricing.fees for item in items),
            total_taxes=sum(item.pricing.taxes for item in items),
            total_amount=sum(item.pricing.total for item in items),
            payment_method=payment_method,
            shipping_address=shipping_address,
            billing_address=billing_address,
            booking_ids=[booking.booking_id for booking in bookings],
            created_at=now,
            updated_at=now,
        )

        event = OrderPlaced(
            order_id=order.order_id,
            order_number=order.order_number,
            user_id=order.user_id,
            booking_ids=order.booking_ids,
            total_amount=order.total_amount,
        )

        return CheckoutResult(
            order=order,
            bookings=bookings,
            cart=self.carts.clear(cart),
            events=[event],
        )

    def _generate_order_id(self) -> str:
        return f"ORDER-{uuid.uuid4().hex[:12].upper()}"

    def _generate_booking_id(self) -> str:
        return f"BKG-{uuid.uuid4().hex[:12].upper()}"
