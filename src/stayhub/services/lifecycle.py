"""Booking and order lifecycle state machines.

Booking status:
    pending -> confirmed    host only
    pending -> cancelled    guest or host
    confirmed -> cancelled  guest or host
    confirmed -> completed  admin only

Order status:
    pending|confirmed -> cancelled  (paid becomes refunded)
    confirmed -> completed          admin only

Every transition returns the new aggregate plus its events and leaves
the input untouched when a rule is violated.
"""

import datetime as dt
import uuid
from collections.abc import Iterable
from typing import TYPE_CHECKING

from stayhub.models import (
    ActorRole,
    Booking,
    BookingError,
    BookingPaymentStatus,
    BookingRequested,
    BookingStatus,
    BookingStatusChanged,
    DomainEvent,
    ErrorCode,
    Order,
    OrderCancelled,
    OrderPaymentStatus,
    OrderStatus,
    PropertySnapshot,
    StayRequest,
)

if TYPE_CHECKING:
    from .availability import AvailabilityService
    from .pricing import PricingService

# Bookings have no failed payment state; a failed order attempt leaves
# its bookings pending.
_BOOKING_PAYMENT_FOR_ORDER = {
    OrderPaymentStatus.PENDING: BookingPaymentStatus.PENDING,
    OrderPaymentStatus.FAILED: BookingPaymentStatus.PENDING,
    OrderPaymentStatus.PAID: BookingPaymentStatus.PAID,
    OrderPaymentStatus.REFUNDED: BookingPaymentStatus.REFUNDED,
}


def booking_payment_status_for(status: OrderPaymentStatus) -> BookingPaymentStatus:
    """Map an order payment status onto the booking payment enum."""
    return _BOOKING_PAYMENT_FOR_ORDER[status]


class LifecycleService:
    """Service for booking and order status transitions."""

    def __init__(
        self,
        pricing: "PricingService",
        availability: "AvailabilityService",
    ) -> None:
        """Initialize lifecycle service.

        Args:
            pricing: Pricing service for direct booking requests
            availability: Availability service for direct booking requests
        """
        self.pricing = pricing
        self.availability = availability

    # === Booking transitions ===

    def request_booking(
        self,
        guest_id: str,
        stay: StayRequest,
        prop: PropertySnapshot,
        existing_bookings: Iterable[Booking] = (),
    ) -> tuple[Booking, list[DomainEvent]]:
        """Create a pending booking outside of checkout.

        Runs the full admissibility check, conflicts included.

        Raises:
            BookingError: SELF_BOOKING or any stay validation error
        """
        if prop.host_id == guest_id:
            raise BookingError(
                code=ErrorCode.SELF_BOOKING,
                details={"property_id": prop.property_id},
            )

        nights = self.availability.check_stay(stay, prop, existing_bookings)
        now = dt.datetime.now(dt.UTC)
        booking = Booking(
            booking_id=f"BKG-{uuid.uuid4().hex[:12].upper()}",
            property_id=stay.property_id,
            guest_id=guest_id,
            host_id=prop.host_id,
            check_in=stay.check_in,
            check_out=stay.check_out,
            guests=stay.guests,
            pricing=self.pricing.price_stay(prop.price_per_night, nights),
            special_requests=stay.special_requests,
            cancellation_policy=prop.cancellation_policy,
            created_at=now,
            updated_at=now,
        )
        event = BookingRequested(
            booking_id=booking.booking_id,
            property_id=booking.property_id,
            guest_id=guest_id,
        )
        return booking, [event]

    def set_booking_status(
        self,
        booking: Booking,
        new_status: BookingStatus,
        role: ActorRole,
    ) -> tuple[Booking, list[DomainEvent]]:
        """Move a booking to a new status on behalf of an actor.

        Args:
            booking: Current booking
            new_status: Requested status
            role: The caller's relation to the booking

        Returns:
            Updated booking and a BookingStatusChanged event

        Raises:
            BookingError: NOT_AUTHORIZED, INVALID_TRANSITION or ALREADY_COMPLETED
        """
        current = booking.status
        payment_status = booking.payment_status

        if new_status == BookingStatus.CONFIRMED:
            self._require_role(booking, role, ActorRole.HOST)
            if current != BookingStatus.PENDING:
                raise self._invalid_transition(booking, new_status)

        elif new_status == BookingStatus.CANCELLED:
            self._require_role(booking, role, ActorRole.GUEST, ActorRole.HOST)
            if current == BookingStatus.COMPLETED:
                raise BookingError(
                    code=ErrorCode.ALREADY_COMPLETED,
                    details={"booking_id": booking.booking_id},
                )
            if current == BookingStatus.CANCELLED:
                raise self._invalid_transition(booking, new_status)
            if payment_status == BookingPaymentStatus.PAID:
                payment_status = BookingPaymentStatus.REFUNDED

        elif new_status == BookingStatus.COMPLETED:
            self._require_role(booking, role, ActorRole.ADMIN)
            if current != BookingStatus.CONFIRMED:
                raise self._invalid_transition(booking, new_status)

        else:
            raise self._invalid_transition(booking, new_status)

        updated = booking.model_copy(
            update={
                "status": new_status,
                "payment_status": payment_status,
                "updated_at": dt.datetime.now(dt.UTC),
            }
        )
        event = BookingStatusChanged(
            booking_id=booking.booking_id,
            property_id=booking.property_id,
            previous_status=current,
            status=new_status,
        )
        return updated, [event]

    def complete_booking(
        self, booking: Booking, role: ActorRole
    ) -> tuple[Booking, list[DomainEvent]]:
        """Mark a confirmed stay as completed (admin only)."""
        return self.set_booking_status(booking, BookingStatus.COMPLETED, role)

    def ensure_deletable(self, booking: Booking, role: ActorRole) -> None:
        """Check that a booking may be hard-deleted.

        Only the guest may delete, and only while the booking is pending.

        Raises:
            BookingError: NOT_AUTHORIZED or INVALID_TRANSITION
        """
        self._require_role(booking, role, ActorRole.GUEST)
        if booking.status != BookingStatus.PENDING:
            raise BookingError(
                code=ErrorCode.INVALID_TRANSITION,
                details={"booking_id": booking.booking_id, "status": booking.status.value},
            )

    # === Order transitions ===

    def cancel_order(self, order: Order) -> tuple[Order, list[DomainEvent]]:
        """Cancel an order; a paid order becomes refunded.

        Raises:
            BookingError: ALREADY_COMPLETED or INVALID_TRANSITION
        """
        if order.order_status == OrderStatus.COMPLETED:
            raise BookingError(
                code=ErrorCode.ALREADY_COMPLETED,
                details={"order_id": order.order_id},
            )
        if order.order_status == OrderStatus.CANCELLED:
            raise BookingError(
                code=ErrorCode.INVALID_TRANSITION,
                details={"order_id": order.order_id, "order_status": order.order_status.value},
            )

        payment_status = order.payment_status
        if payment_status == OrderPaymentStatus.PAID:
            payment_status = OrderPaymentStatus.REFUNDED

        cancelled = order.model_copy(
            update={
                "order_status": OrderStatus.CANCELLED,
                "payment_status": payment_status,
                "updated_at": dt.datetime.now(dt.UTC),
            }
        )
        event = OrderCancelled(
            order_id=order.order_id,
            user_id=order.user_id,
            booking_ids=order.booking_ids,
            payment_status=payment_status,
        )
        return cancelled, [event]

    def complete_order(self, order: Order) -> tuple[Order, list[DomainEvent]]:
        """Mark a confirmed order as completed.

        Raises:
            BookingError: INVALID_TRANSITION unless the order is confirmed
        """
        if order.order_status != OrderStatus.CONFIRMED:
            raise BookingError(
                code=ErrorCode.INVALID_TRANSITION,
                details={"order_id": order.order_id, "order_status": order.order_status.value},
            )
        completed = order.model_copy(
            update={"order_status": OrderStatus.COMPLETED, "updated_at": dt.datetime.now(dt.UTC)}
        )
        return completed, []

    # === Follow-ups applied by event handlers ===

    def confirm_paid(self, booking: Booking) -> Booking | None:
        """Confirm a pending booking whose order was paid.

        Returns None when the booking is not pending and must not change.
        """
        if booking.status != BookingStatus.PENDING:
            return None
        return booking.model_copy(
            update={
                "status": BookingStatus.CONFIRMED,
                "payment_status": BookingPaymentStatus.PAID,
                "updated_at": dt.datetime.now(dt.UTC),
            }
        )

    def cancel_with_order(
        self, booking: Booking, order_payment_status: OrderPaymentStatus
    ) -> Booking | None:
        """Cancel a live booking of a cancelled order.

        Returns None for bookings that are already cancelled or completed.
        """
        if not booking.blocks_dates:
            return None
        return booking.model_copy(
            update={
                "status": BookingStatus.CANCELLED,
                "payment_status": booking_payment_status_for(order_payment_status),
                "updated_at": dt.datetime.now(dt.UTC),
            }
        )

    def _require_role(self, booking: Booking, role: ActorRole, *allowed: ActorRole) -> None:
        if role not in allowed:
            raise BookingError(
                code=ErrorCode.NOT_AUTHORIZED,
                details={"booking_id": booking.booking_id, "role": role.value},
            )

    def _invalid_transition(self, booking: Booking, new_status: BookingStatus) -> BookingError:
        return BookingError(
            code=ErrorCode.INVALID_TRANSITION,
            details={
                "booking_id": booking.booking_id,
                "from": booking.status.value,
                "to": new_status.value,
            },
        )
