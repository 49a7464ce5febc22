"""Marketplace application service.

Loads aggregates, calls the engine services, persists the result, then
publishes the returned events. Authorization by user ID happens here;
the engine services only see roles.
"""

import os
from collections.abc import Iterable
from typing import TYPE_CHECKING

from stayhub.models import (
    ActorRole,
    Address,
    AvailabilityResult,
    Booking,
    BookingError,
    BookingStatus,
    Cart,
    CartItemUpdate,
    DomainEvent,
    ErrorCode,
    Order,
    OrderNumberCollisionError,
    PaymentMethod,
    PriceBreakdown,
    PropertySnapshot,
    ProviderOrder,
    Review,
    ReviewPosted,
    ReviewRemoved,
    StayRequest,
    as_stay_instant,
)
from stayhub.utils.logging import get_logger, log_booking_operation

from .availability import AvailabilityService
from .cart import CartService
from .checkout import CheckoutService
from .event_bus import EventBus
from .handlers import MarketplaceEventHandlers
from .lifecycle import LifecycleService
from .payment_service import PaymentService, SettlementResult
from .pricing import PricingService
from .ratings import RatingService
from .repositories import (
    BookingRepository,
    CartRepository,
    OrderRepository,
    PropertyCatalog,
    ReviewRepository,
)

if TYPE_CHECKING:
    import datetime as dt

    from .dynamodb import DynamoDBService

logger = get_logger(__name__)


def exclusive_writes_enabled() -> bool:
    """Read the BOOKING_EXCLUSIVE_WRITES flag from the environment."""
    return os.getenv("BOOKING_EXCLUSIVE_WRITES", "false").lower() in ("1", "true", "yes")


class MarketplaceService:
    """Entry point for every cart, order, payment and booking operation."""

    MAX_ORDER_NUMBER_ATTEMPTS = 3

    def __init__(
        self,
        db: "DynamoDBService",
        payments: PaymentService | None = None,
        bus: EventBus | None = None,
        exclusive_writes: bool | None = None,
    ) -> None:
        """Initialize marketplace service.

        Args:
            db: DynamoDB service instance
            payments: Payment service (defaults to one backed by the mock provider)
            bus: Event bus; default handlers are registered on it
            exclusive_writes: Lock booked nights so overlapping inserts fail.
                Defaults to the BOOKING_EXCLUSIVE_WRITES env var.
        """
        self.exclusive_writes = (
            exclusive_writes_enabled() if exclusive_writes is None else exclusive_writes
        )

        self.pricing = PricingService()
        self.availability = AvailabilityService(self.pricing, by_night=self.exclusive_writes)
        self.carts = CartService(self.pricing, self.availability)
        self.checkout = CheckoutService(self.availability, self.carts)
        self.lifecycle = LifecycleService(self.pricing, self.availability)
        self.ratings = RatingService()
        self.payments = payments or PaymentService()

        self.catalog = PropertyCatalog(db)
        self.review_store = ReviewRepository(db)
        self.cart_store = CartRepository(db)
        self.order_store = OrderRepository(db)
        self.booking_store = BookingRepository(db)

        self.bus = bus or EventBus()
        MarketplaceEventHandlers(
            bookings=self.booking_store,
            catalog=self.catalog,
            reviews=self.review_store,
            lifecycle=self.lifecycle,
            ratings=self.ratings,
            availability=self.availability,
            exclusive_writes=self.exclusive_writes,
        ).register(self.bus)

    # === Availability and pricing ===

    def check_availability(self, stay: StayRequest) -> AvailabilityResult:
        """Run the full admissibility check for a stay.

        Raises:
            BookingError: PROPERTY_NOT_FOUND or a stay validation error
        """
        prop = self._require_property(stay.property_id)
        existing = self.booking_store.list_for_property(prop.property_id)
        return self.availability.check_availability(stay, prop, existing)

    def price_stay(
        self,
        property_id: str,
        check_in: "dt.datetime | dt.date | str",
        check_out: "dt.datetime | dt.date | str",
    ) -> PriceBreakdown:
        """Quote a stay at the property's current nightly price.

        Raises:
            BookingError: PROPERTY_NOT_FOUND or INVALID_DATE_RANGE
        """
        prop = self._require_property(property_id)
        start, end = as_stay_instant(check_in), as_stay_instant(check_out)
        if end <= start:
            raise BookingError(
                code=ErrorCode.INVALID_DATE_RANGE,
                details={"check_in": start.isoformat(), "check_out": end.isoformat()},
            )
        return self.pricing.price_for_property(prop, start, end)

    # === Cart ===

    def get_cart(self, user_id: str) -> Cart:
        """Return the user's cart, creating an empty one on first access."""
        cart = self.cart_store.get(user_id)
        if cart is None:
            cart = self.carts.new_cart(user_id)
            self.cart_store.save(cart)
        return cart

    def cart_add(self, user_id: str, stay: StayRequest) -> Cart:
        prop = self._require_property(stay.property_id)
        cart = self.carts.add_or_replace(self.get_cart(user_id), stay, prop)
        self.cart_store.save(cart)
        log_booking_operation(
            logger,
            "cart_add",
            user_id=user_id,
            property_id=prop.property_id,
            amount=cart.total_amount,
        )
        return cart

    def cart_update(self, user_id: str, item_id: str, changes: CartItemUpdate) -> Cart:
        cart = self.get_cart(user_id)
        item = cart.find_item(item_id)
        if item is None:
            raise BookingError(code=ErrorCode.CART_ITEM_NOT_FOUND, details={"item_id": item_id})

        prop = self._require_property(item.property_id)
        cart = self.carts.update_item(cart, item_id, changes, prop)
        self.cart_store.save(cart)
        return cart

    def cart_remove(self, user_id: str, item_id: str) -> Cart:
        cart = self.carts.remove_item(self.get_cart(user_id), item_id)
        self.cart_store.save(cart)
        return cart

    def cart_clear(self, user_id: str) -> Cart:
        cart = self.carts.clear(self.get_cart(user_id))
        self.cart_store.save(cart)
        return cart

    # === Orders and payment ===

    def create_order(
        self,
        user_id: str,
        payment_method: PaymentMethod,
        shipping_address: Address,
        billing_address: Address,
    ) -> Order:
        """Check out the user's cart.

        Order, bookings and the emptied cart are written in one
        transaction. A taken order number is retried with a fresh one.

        Raises:
            BookingError: EMPTY_CART, PROPERTY_NOT_FOUND, DATE_RANGE_CONFLICT
                or another stay validation error
            OrderNumberCollisionError: If every attempt drew a taken number
        """
        cart = self.get_cart(user_id)
        if not cart.items:
            raise BookingError(code=ErrorCode.EMPTY_CART, details={"user_id": user_id})

        property_ids = [item.property_id for item in cart.items]
        properties = self.catalog.get_many(property_ids)
        existing = self._bookings_for_properties(property_ids)

        order_number = ""
        for attempt in range(1, self.MAX_ORDER_NUMBER_ATTEMPTS + 1):
            result = self.checkout.create_order(
                cart,
                payment_method,
                shipping_address,
                billing_address,
                properties=properties,
                existing_bookings=existing,
            )
            order_number = result.order.order_number

            night_locks = []
            if self.exclusive_writes:
                for booking in result.bookings:
                    night_locks.extend(
                        self.booking_store.night_lock_requests(
                            booking,
                            self.availability.nights_to_lock(booking.check_in, booking.check_out),
                        )
                    )

            if self.order_store.place(result, night_locks):
                log_booking_operation(
                    logger,
                    "create_order",
                    user_id=user_id,
                    order_id=result.order.order_id,
                    amount=result.order.total_amount,
                    order_number=order_number,
                    bookings=len(result.bookings),
                )
                self.bus.publish(result.events)
                return result.order

            if not self.order_store.order_number_taken(order_number):
                # Nothing else in the transaction can clash but a night lock
                raise BookingError(
                    code=ErrorCode.DATE_RANGE_CONFLICT,
                    details={"reason": "booking_conflict"},
                )
            logger.warning(
                "Order number collision on %s (attempt %d of %d)",
                order_number,
                attempt,
                self.MAX_ORDER_NUMBER_ATTEMPTS,
            )

        raise OrderNumberCollisionError(order_number)

    def get_order(self, order_id: str, user_id: str, is_admin: bool = False) -> Order:
        """Load an order visible to the caller.

        Raises:
            BookingError: ORDER_NOT_FOUND or NOT_AUTHORIZED
        """
        order = self.order_store.get(order_id)
        if order is None:
            raise BookingError(code=ErrorCode.ORDER_NOT_FOUND, details={"order_id": order_id})
        if order.user_id != user_id and not is_admin:
            raise BookingError(code=ErrorCode.NOT_AUTHORIZED, details={"order_id": order_id})
        return order

    def list_orders(self, user_id: str) -> list[Order]:
        return self.order_store.list_for_user(user_id)

    def list_order_bookings(
        self, order_id: str, user_id: str, is_admin: bool = False
    ) -> list[Booking]:
        """Bookings created by an order the caller can see."""
        self.get_order(order_id, user_id, is_admin)
        return self.booking_store.list_for_order(order_id)

    def create_provider_order(self, order_id: str, user_id: str) -> ProviderOrder:
        order = self.get_order(order_id, user_id)
        return self.payments.create_provider_order(order)

    def verify_payment(
        self,
        order_id: str,
        user_id: str,
        provider_order_id: str,
        provider_payment_id: str,
        signature: str,
    ) -> Order:
        """Settle an order from a gateway signature.

        Raises:
            BookingError: SIGNATURE_MISMATCH (after recording the failed
                status), PAYMENT_ALREADY_PROCESSED or INVALID_TRANSITION
        """
        order = self.get_order(order_id, user_id)
        result = self.payments.verify_payment(
            order, provider_order_id, provider_payment_id, signature
        )
        return self._apply_settlement(result)

    def process_payment(self, order_id: str, user_id: str) -> Order:
        """Charge a non-gateway order through the payment provider.

        Raises:
            BookingError: PAYMENT_FAILED (after recording the failed status),
                USE_GATEWAY_FLOW, PAYMENT_ALREADY_PROCESSED or INVALID_TRANSITION
        """
        order = self.get_order(order_id, user_id)
        return self._apply_settlement(self.payments.process_payment(order))

    def cancel_order(self, order_id: str, user_id: str, is_admin: bool = False) -> Order:
        """Cancel an order and, through its event, the order's live bookings.

        Raises:
            BookingError: ORDER_NOT_FOUND, NOT_AUTHORIZED, ALREADY_COMPLETED
                or INVALID_TRANSITION
        """
        order = self.get_order(order_id, user_id, is_admin)
        cancelled, events = self.lifecycle.cancel_order(order)
        self.order_store.save(cancelled)
        log_booking_operation(
            logger,
            "cancel_order",
            user_id=user_id,
            order_id=order_id,
            status=cancelled.payment_status.value,
        )
        self.bus.publish(events)
        return cancelled

    def complete_order(self, order_id: str, user_id: str, is_admin: bool = False) -> Order:
        """Mark a confirmed order completed (administrative callers only)."""
        if not is_admin:
            raise BookingError(code=ErrorCode.NOT_AUTHORIZED, details={"order_id": order_id})
        order = self.get_order(order_id, user_id, is_admin)
        completed, events = self.lifecycle.complete_order(order)
        self.order_store.save(completed)
        self.bus.publish(events)
        return completed

    # === Bookings ===

    def request_booking(self, user_id: str, stay: StayRequest) -> Booking:
        """Create a pending booking directly, outside checkout.

        Raises:
            BookingError: PROPERTY_NOT_FOUND, SELF_BOOKING or a stay validation error
        """
        prop = self._require_property(stay.property_id)
        existing = self.booking_store.list_for_property(prop.property_id)
        booking, events = self.lifecycle.request_booking(user_id, stay, prop, existing)

        nights = None
        if self.exclusive_writes:
            nights = self.availability.nights_to_lock(booking.check_in, booking.check_out)
        if not self.booking_store.create(booking, nights):
            raise BookingError(
                code=ErrorCode.DATE_RANGE_CONFLICT,
                details={"property_id": booking.property_id, "reason": "booking_conflict"},
            )

        log_booking_operation(
            logger,
            "request_booking",
            user_id=user_id,
            booking_id=booking.booking_id,
            property_id=booking.property_id,
            amount=booking.pricing.total,
        )
        self.bus.publish(events)
        return booking

    def get_booking(self, booking_id: str, user_id: str, is_admin: bool = False) -> Booking:
        """Load a booking visible to its guest, its host or an admin."""
        booking = self._require_booking(booking_id)
        self._role_for(booking, user_id, is_admin)
        return booking

    def list_guest_bookings(self, user_id: str) -> list[Booking]:
        return self.booking_store.list_for_guest(user_id)

    def list_host_bookings(self, user_id: str) -> list[Booking]:
        return self.booking_store.list_for_host(user_id)

    def set_booking_status(
        self,
        booking_id: str,
        user_id: str,
        status: BookingStatus,
        is_admin: bool = False,
    ) -> Booking:
        """Confirm or cancel a single booking.

        Raises:
            BookingError: BOOKING_NOT_FOUND, NOT_AUTHORIZED,
                INVALID_TRANSITION or ALREADY_COMPLETED
        """
        booking = self._require_booking(booking_id)
        role = self._role_for(booking, user_id, is_admin)
        updated, events = self.lifecycle.set_booking_status(booking, status, role)
        self._save_transition(booking, updated, events, user_id)
        return updated

    def complete_booking(self, booking_id: str, user_id: str, is_admin: bool = False) -> Booking:
        """Mark a confirmed stay completed (administrative callers only)."""
        booking = self._require_booking(booking_id)
        role = ActorRole.ADMIN if is_admin else self._role_for(booking, user_id, is_admin)
        updated, events = self.lifecycle.complete_booking(booking, role)
        self._save_transition(booking, updated, events, user_id)
        return updated

    def delete_booking(self, booking_id: str, user_id: str, is_admin: bool = False) -> None:
        """Hard-delete a pending booking on behalf of its guest.

        Raises:
            BookingError: BOOKING_NOT_FOUND, NOT_AUTHORIZED or INVALID_TRANSITION
        """
        booking = self._require_booking(booking_id)
        role = self._role_for(booking, user_id, is_admin)
        self.lifecycle.ensure_deletable(booking, role)
        self.booking_store.delete(booking_id)
        self._release_nights(booking)
        log_booking_operation(logger, "delete_booking", user_id=user_id, booking_id=booking_id)

    # === Reviews ===

    def record_review(self, review: Review) -> None:
        """Store a review rating and refresh the property's aggregate."""
        self._require_property(review.property_id)
        self.review_store.save(review)
        self.bus.publish([ReviewPosted(review_id=review.review_id, property_id=review.property_id)])

    def remove_review(self, review_id: str) -> None:
        """Delete a review and refresh the property's aggregate. Unknown IDs are ignored."""
        review = self.review_store.get(review_id)
        if review is None:
            return
        self.review_store.delete(review_id)
        self.bus.publish([ReviewRemoved(review_id=review_id, property_id=review.property_id)])

    # === Helpers ===

    def _apply_settlement(self, result: SettlementResult) -> Order:
        self.order_store.save(result.order)
        self.bus.publish(result.events)
        if result.error_code is not None:
            raise BookingError(code=result.error_code, details={"order_id": result.order.order_id})
        return result.order

    def _save_transition(
        self,
        previous: Booking,
        updated: Booking,
        events: list[DomainEvent],
        user_id: str,
    ) -> None:
        self.booking_store.save(updated)
        if previous.blocks_dates and not updated.blocks_dates:
            self._release_nights(previous)
        log_booking_operation(
            logger,
            "set_booking_status",
            user_id=user_id,
            booking_id=updated.booking_id,
            status=updated.status.value,
        )
        self.bus.publish(events)

    def _release_nights(self, booking: Booking) -> None:
        if not self.exclusive_writes:
            return
        self.booking_store.release_nights(
            booking, self.availability.nights_to_lock(booking.check_in, booking.check_out)
        )

    def _require_property(self, property_id: str) -> PropertySnapshot:
        prop = self.catalog.get(property_id)
        if prop is None:
            raise BookingError(
                code=ErrorCode.PROPERTY_NOT_FOUND, details={"property_id": property_id}
            )
        return prop

    def _require_booking(self, booking_id: str) -> Booking:
        booking = self.booking_store.get(booking_id)
        if booking is None:
            raise BookingError(
                code=ErrorCode.BOOKING_NOT_FOUND, details={"booking_id": booking_id}
            )
        return booking

    def _role_for(self, booking: Booking, user_id: str, is_admin: bool) -> ActorRole:
        if user_id == booking.host_id:
            return ActorRole.HOST
        if user_id == booking.guest_id:
            return ActorRole.GUEST
        if is_admin:
            return ActorRole.ADMIN
        raise BookingError(
            code=ErrorCode.NOT_AUTHORIZED, details={"booking_id": booking.booking_id}
        )

    def _bookings_for_properties(self, property_ids: Iterable[str]) -> list[Booking]:
        existing: list[Booking] = []
        for property_id in dict.fromkeys(property_ids):
            existing.extend(self.booking_store.list_for_property(property_id))
        return existing
