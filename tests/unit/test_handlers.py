"""Unit tests for MarketplaceEventHandlers.

Repositories are replaced by mocks so each handler can be checked in
isolation from DynamoDB.
"""

from collections.abc import Callable
from unittest.mock import MagicMock

import pytest

from stayhub.models import (
    Booking,
    BookingPaymentStatus,
    BookingStatus,
    OrderCancelled,
    OrderPaymentStatus,
    PaymentSettled,
    PropertyRatings,
    PropertySnapshot,
    Review,
    ReviewPosted,
    StayRequest,
)
from stayhub.services.availability import AvailabilityService
from stayhub.services.event_bus import EventBus
from stayhub.services.handlers import MarketplaceEventHandlers
from stayhub.services.lifecycle import LifecycleService
from stayhub.services.ratings import RatingService


@pytest.fixture
def bookings_repo() -> MagicMock:
    return MagicMock()


@pytest.fixture
def catalog() -> MagicMock:
    return MagicMock()


@pytest.fixture
def reviews_repo() -> MagicMock:
    return MagicMock()


@pytest.fixture
def make_handlers(
    bookings_repo: MagicMock,
    catalog: MagicMock,
    reviews_repo: MagicMock,
    lifecycle: LifecycleService,
    availability: AvailabilityService,
) -> Callable[..., MarketplaceEventHandlers]:
    def _make(exclusive_writes: bool = False) -> MarketplaceEventHandlers:
        return MarketplaceEventHandlers(
            bookings=bookings_repo,
            catalog=catalog,
            reviews=reviews_repo,
            lifecycle=lifecycle,
            ratings=RatingService(),
            availability=availability,
            exclusive_writes=exclusive_writes,
        )

    return _make


@pytest.fixture
def booking(
    lifecycle: LifecycleService,
    sample_property: PropertySnapshot,
    make_stay: Callable[..., StayRequest],
) -> Booking:
    booking, _ = lifecycle.request_booking("guest-1", make_stay(), sample_property)
    return booking.model_copy(update={"order_id": "ORDER-1"})


class TestRegister:
    """Tests for handler registration."""

    def test_registers_default_handlers(
        self, make_handlers: Callable[..., MarketplaceEventHandlers]
    ) -> None:
        bus = EventBus()
        make_handlers().register(bus)

        assert len(bus.handlers_for(PaymentSettled)) == 1
        assert len(bus.handlers_for(OrderCancelled)) == 1
        assert len(bus.handlers_for(ReviewPosted)) == 1


class TestOnPaymentSettled:
    """Tests for confirming an order's bookings after payment."""

    def test_confirms_pending_bookings(
        self,
        make_handlers: Callable[..., MarketplaceEventHandlers],
        bookings_repo: MagicMock,
        booking: Booking,
    ) -> None:
        bookings_repo.get_many.return_value = [booking]
        event = PaymentSettled(
            order_id="ORDER-1",
            user_id="guest-1",
            booking_ids=[booking.booking_id],
            transaction_id="TXN-1",
        )

        make_handlers().on_payment_settled(event)

        bookings_repo.get_many.assert_called_once_with([booking.booking_id])
        saved = bookings_repo.save.call_args.args[0]
        assert saved.status == BookingStatus.CONFIRMED
        assert saved.payment_status == BookingPaymentStatus.PAID

    def test_leaves_cancelled_bookings_alone(
        self,
        make_handlers: Callable[..., MarketplaceEventHandlers],
        bookings_repo: MagicMock,
        booking: Booking,
    ) -> None:
        cancelled = booking.model_copy(update={"status": BookingStatus.CANCELLED})
        bookings_repo.get_many.return_value = [cancelled]

        make_handlers().on_payment_settled(
            PaymentSettled(
                order_id="ORDER-1",
                user_id="guest-1",
                booking_ids=[cancelled.booking_id],
                transaction_id="TXN-1",
            )
        )

        bookings_repo.save.assert_not_called()


class TestOnOrderCancelled:
    """Tests for cancelling an order's bookings."""

    def _event(self, booking: Booking, status: OrderPaymentStatus) -> OrderCancelled:
        return OrderCancelled(
            order_id="ORDER-1",
            user_id="guest-1",
            booking_ids=[booking.booking_id],
            payment_status=status,
        )

    def test_cancels_and_copies_refund(
        self,
        make_handlers: Callable[..., MarketplaceEventHandlers],
        bookings_repo: MagicMock,
        booking: Booking,
    ) -> None:
        bookings_repo.get_many.return_value = [booking]

        make_handlers().on_order_cancelled(self._event(booking, OrderPaymentStatus.REFUNDED))

        saved = bookings_repo.save.call_args.args[0]
        assert saved.status == BookingStatus.CANCELLED
        assert saved.payment_status == BookingPaymentStatus.REFUNDED
        bookings_repo.release_nights.assert_not_called()

    def test_releases_nights_when_exclusive(
        self,
        make_handlers: Callable[..., MarketplaceEventHandlers],
        bookings_repo: MagicMock,
        booking: Booking,
    ) -> None:
        bookings_repo.get_many.return_value = [booking]

        make_handlers(exclusive_writes=True).on_order_cancelled(
            self._event(booking, OrderPaymentStatus.PENDING)
        )

        released_booking, nights = bookings_repo.release_nights.call_args.args
        assert released_booking.booking_id == booking.booking_id
        assert len(nights) == 3

    def test_skips_completed_bookings(
        self,
        make_handlers: Callable[..., MarketplaceEventHandlers],
        bookings_repo: MagicMock,
        booking: Booking,
    ) -> None:
        completed = booking.model_copy(update={"status": BookingStatus.COMPLETED})
        bookings_repo.get_many.return_value = [completed]

        make_handlers().on_order_cancelled(self._event(completed, OrderPaymentStatus.REFUNDED))

        bookings_repo.save.assert_not_called()


class TestOnReviewChanged:
    """Tests for rating recalculation."""

    def test_recomputes_and_stores(
        self,
        make_handlers: Callable[..., MarketplaceEventHandlers],
        reviews_repo: MagicMock,
        catalog: MagicMock,
    ) -> None:
        reviews_repo.list_for_property.return_value = [
            Review(review_id="R1", property_id="PROP-001", booking_id="B1", guest_id="g", overall=5),
            Review(review_id="R2", property_id="PROP-001", booking_id="B2", guest_id="g", overall=4),
        ]
        catalog.update_ratings.return_value = True

        make_handlers().on_review_changed(ReviewPosted(review_id="R2", property_id="PROP-001"))

        catalog.update_ratings.assert_called_once_with(
            "PROP-001", PropertyRatings(average=4.5, count=2)
        )

    def test_missing_property_logged(
        self,
        make_handlers: Callable[..., MarketplaceEventHandlers],
        reviews_repo: MagicMock,
        catalog: MagicMock,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        reviews_repo.list_for_property.return_value = []
        catalog.update_ratings.return_value = False

        make_handlers().on_review_changed(ReviewPosted(review_id="R1", property_id="PROP-GONE"))

        assert "PROP-GONE" in caplog.text
