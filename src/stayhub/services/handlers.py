"""Event handlers for follow-up work after order and review transitions.

- PaymentSettled: confirm the paid order's pending bookings
- OrderCancelled: cancel the order's live bookings
- ReviewPosted / ReviewRemoved: recompute the property rating

Bulk booking updates only ever touch the bookings the order itself
created (Order.booking_ids), never other orders of the same guest.
"""

from typing import TYPE_CHECKING

from stayhub.models import OrderCancelled, PaymentSettled, ReviewPosted, ReviewRemoved
from stayhub.utils.logging import get_logger, log_booking_operation

if TYPE_CHECKING:
    from .availability import AvailabilityService
    from .event_bus import EventBus
    from .lifecycle import LifecycleService
    from .ratings import RatingService
    from .repositories import BookingRepository, PropertyCatalog, ReviewRepository

logger = get_logger(__name__)


class MarketplaceEventHandlers:
    """Default handlers wiring engine events to persistence."""

    def __init__(
        self,
        bookings: "BookingRepository",
        catalog: "PropertyCatalog",
        reviews: "ReviewRepository",
        lifecycle: "LifecycleService",
        ratings: "RatingService",
        availability: "AvailabilityService",
        exclusive_writes: bool = False,
    ) -> None:
        self.bookings = bookings
        self.catalog = catalog
        self.reviews = reviews
        self.lifecycle = lifecycle
        self.ratings = ratings
        self.availability = availability
        self.exclusive_writes = exclusive_writes

    def register(self, bus: "EventBus") -> None:
        """Register every default handler on the bus."""
        bus.register(PaymentSettled, self.on_payment_settled)
        bus.register(OrderCancelled, self.on_order_cancelled)
        bus.register(ReviewPosted, self.on_review_changed)
        bus.register(ReviewRemoved, self.on_review_changed)

    def on_payment_settled(self, event: PaymentSettled) -> None:
        confirmed = 0
        for booking in self.bookings.get_many(event.booking_ids):
            updated = self.lifecycle.confirm_paid(booking)
            if updated is None:
                continue
            self.bookings.save(updated)
            confirmed += 1

        log_booking_operation(
            logger,
            "confirm_order_bookings",
            user_id=event.user_id,
            order_id=event.order_id,
            confirmed=confirmed,
        )

    def on_order_cancelled(self, event: OrderCancelled) -> None:
        cancelled = 0
        for booking in self.bookings.get_many(event.booking_ids):
            updated = self.lifecycle.cancel_with_order(booking, event.payment_status)
            if updated is None:
                continue
            self.bookings.save(updated)
            if self.exclusive_writes:
                self.bookings.release_nights(
                    booking,
                    self.availability.nights_to_lock(booking.check_in, booking.check_out),
                )
            cancelled += 1

        log_booking_operation(
            logger,
            "cancel_order_bookings",
            user_id=event.user_id,
            order_id=event.order_id,
            cancelled=cancelled,
        )

    def on_review_changed(self, event: ReviewPosted | ReviewRemoved) -> None:
        ratings = self.ratings.recompute(self.reviews.list_for_property(event.property_id))
        if not self.catalog.update_ratings(event.property_id, ratings):
            logger.warning("Rating update skipped, property %s not found", event.property_id)
            return
        logger.info(
            "Recomputed rating for %s: %.1f (%d reviews)",
            event.property_id,
            ratings.average,
            ratings.count,
        )
