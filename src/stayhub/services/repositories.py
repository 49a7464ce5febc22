"""DynamoDB repositories for marketplace aggregates.

Each repository owns one table (plus its GSIs) and the conversion between
pydantic models and DynamoDB items. Numbers come back from boto3 as
Decimal and are converted to int on read; instants are stored as ISO
strings.

Tables (without prefix):
    properties      property_id
    reviews         review_id;  GSI property_id-index
    carts           user_id
    orders          order_id;   GSI user_id-index
    order-numbers   order_number (uniqueness guard)
    bookings        booking_id; GSIs property_id-index, guest_id-index,
                    host_id-index, order_id-index
    booking-nights  property_id + night (exclusive write locks)
"""

import datetime as dt
from collections.abc import Iterable
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from stayhub.models import (
    Address,
    Booking,
    BookingPaymentStatus,
    BookingStatus,
    CancellationPolicy,
    Cart,
    CartItem,
    GuestCounts,
    Order,
    OrderItem,
    OrderPaymentStatus,
    OrderStatus,
    PaymentDetails,
    PaymentMethod,
    PriceBreakdown,
    PropertyRatings,
    PropertySnapshot,
    Review,
)

if TYPE_CHECKING:
    from .checkout import CheckoutResult
    from .dynamodb import DynamoDBService


# === Shared converters ===


def _parse_datetime(value: str) -> dt.datetime:
    return dt.datetime.fromisoformat(value)


def _guests_to_item(guests: GuestCounts) -> dict[str, Any]:
    return {"adults": guests.adults, "children": guests.children, "infants": guests.infants}


def _item_to_guests(item: dict[str, Any]) -> GuestCounts:
    return GuestCounts(
        adults=int(item["adults"]),
        children=int(item.get("children", 0)),
        infants=int(item.get("infants", 0)),
    )


def _pricing_to_item(pricing: PriceBreakdown) -> dict[str, Any]:
    return pricing.model_dump()


def _item_to_pricing(item: dict[str, Any]) -> PriceBreakdown:
    return PriceBreakdown(
        price_per_night=int(item["price_per_night"]),
        nights=int(item["nights"]),
        subtotal=int(item["subtotal"]),
        cleaning_fee=int(item["cleaning_fee"]),
        service_fee=int(item["service_fee"]),
        taxes=int(item["taxes"]),
        total=int(item["total"]),
    )


def _stay_fields_to_item(stay: CartItem | OrderItem | Booking) -> dict[str, Any]:
    return {
        "property_id": stay.property_id,
        "check_in": stay.check_in.isoformat(),
        "check_out": stay.check_out.isoformat(),
        "guests": _guests_to_item(stay.guests),
        "pricing": _pricing_to_item(stay.pricing),
        "special_requests": stay.special_requests,
    }


def _item_to_stay_fields(item: dict[str, Any]) -> dict[str, Any]:
    return {
        "property_id": item["property_id"],
        "check_in": _parse_datetime(item["check_in"]),
        "check_out": _parse_datetime(item["check_out"]),
        "guests": _item_to_guests(item["guests"]),
        "pricing": _item_to_pricing(item["pricing"]),
        "special_requests": item.get("special_requests"),
    }


def _address_to_item(address: Address) -> dict[str, Any]:
    return address.model_dump()


def _item_to_address(item: dict[str, Any]) -> Address:
    return Address(
        street=item["street"],
        city=item["city"],
        state=item["state"],
        zip_code=item["zip_code"],
        country=item["country"],
    )


def booking_to_item(booking: Booking) -> dict[str, Any]:
    """Convert a Booking to a DynamoDB item."""
    item = _stay_fields_to_item(booking)
    item.update(
        {
            "booking_id": booking.booking_id,
            "guest_id": booking.guest_id,
            "host_id": booking.host_id,
            "order_id": booking.order_id,
            "status": booking.status.value,
            "payment_status": booking.payment_status.value,
            "cancellation_policy": booking.cancellation_policy.value,
            "created_at": booking.created_at.isoformat(),
            "updated_at": booking.updated_at.isoformat(),
        }
    )
    # GSI key attributes must be absent rather than null
    return {k: v for k, v in item.items() if v is not None}


def item_to_booking(item: dict[str, Any]) -> Booking:
    """Convert a DynamoDB item to a Booking."""
    return Booking(
        booking_id=item["booking_id"],
        guest_id=item["guest_id"],
        host_id=item["host_id"],
        order_id=item.get("order_id"),
        status=BookingStatus(item["status"]),
        payment_status=BookingPaymentStatus(item["payment_status"]),
        cancellation_policy=CancellationPolicy(
            item.get("cancellation_policy", CancellationPolicy.MODERATE.value)
        ),
        created_at=_parse_datetime(item["created_at"]),
        updated_at=_parse_datetime(item["updated_at"]),
        **_item_to_stay_fields(item),
    )


def cart_to_item(cart: Cart) -> dict[str, Any]:
    """Convert a Cart to a DynamoDB item."""
    return {
        "user_id": cart.user_id,
        "items": [
            {"item_id": line.item_id, **_stay_fields_to_item(line)} for line in cart.items
        ],
        "total_items": cart.total_items,
        "total_amount": cart.total_amount,
        "updated_at": cart.updated_at.isoformat() if cart.updated_at else None,
    }


def item_to_cart(item: dict[str, Any]) -> Cart:
    """Convert a DynamoDB item to a Cart."""
    updated_at = item.get("updated_at")
    return Cart(
        user_id=item["user_id"],
        items=[
            CartItem(item_id=line["item_id"], **_item_to_stay_fields(line))
            for line in item.get("items", [])
        ],
        total_items=int(item.get("total_items", 0)),
        total_amount=int(item.get("total_amount", 0)),
        updated_at=_parse_datetime(updated_at) if updated_at else None,
    )


def order_to_item(order: Order) -> dict[str, Any]:
    """Convert an Order to a DynamoDB item."""
    details = order.payment_details
    return {
        "order_id": order.order_id,
        "order_number": order.order_number,
        "user_id": order.user_id,
        "items": [
            {"item_id": line.item_id, **_stay_fields_to_item(line)} for line in order.items
        ],
        "total_items": order.total_items,
        "subtotal": order.subtotal,
        "total_fees": order.total_fees,
        "total_taxes": order.total_taxes,
        "total_amount": order.total_amount,
        "payment_method": order.payment_method.value,
        "payment_status": order.payment_status.value,
        "order_status": order.order_status.value,
        "shipping_address": _address_to_item(order.shipping_address),
        "billing_address": _address_to_item(order.billing_address),
        "payment_details": (
            {
                "transaction_id": details.transaction_id,
                "payment_intent_id": details.payment_intent_id,
                "paid_at": details.paid_at.isoformat(),
                "method": details.method.value,
            }
            if details
            else None
        ),
        "booking_ids": list(order.booking_ids),
        "created_at": order.created_at.isoformat(),
        "updated_at": order.updated_at.isoformat(),
    }


def item_to_order(item: dict[str, Any]) -> Order:
    """Convert a DynamoDB item to an Order."""
    details = item.get("payment_details")
    return Order(
        order_id=item["order_id"],
        order_number=item["order_number"],
        user_id=item["user_id"],
        items=[
            OrderItem(item_id=line["item_id"], **_item_to_stay_fields(line))
            for line in item["items"]
        ],
        total_items=int(item["total_items"]),
        subtotal=int(item["subtotal"]),
        total_fees=int(item["total_fees"]),
        total_taxes=int(item["total_taxes"]),
        total_amount=int(item["total_amount"]),
        payment_method=PaymentMethod(item["payment_method"]),
        payment_status=OrderPaymentStatus(item["payment_status"]),
        order_status=OrderStatus(item["order_status"]),
        shipping_address=_item_to_address(item["shipping_address"]),
        billing_address=_item_to_address(item["billing_address"]),
        payment_details=(
            PaymentDetails(
                transaction_id=details["transaction_id"],
                payment_intent_id=details["payment_intent_id"],
                paid_at=_parse_datetime(details["paid_at"]),
                method=PaymentMethod(details["method"]),
            )
            if details
            else None
        ),
        booking_ids=list(item.get("booking_ids", [])),
        created_at=_parse_datetime(item["created_at"]),
        updated_at=_parse_datetime(item["updated_at"]),
    )


# === Repositories ===


class PropertyCatalog:
    """Read access to the property catalog, plus the rating aggregate."""

    TABLE = "properties"

    def __init__(self, db: "DynamoDBService") -> None:
        self.db = db

    def get(self, property_id: str) -> PropertySnapshot | None:
        item = self.db.get_item(self.TABLE, {"property_id": property_id})
        return self._item_to_property(item) if item else None

    def get_many(self, property_ids: Iterable[str]) -> dict[str, PropertySnapshot]:
        """Fetch several properties keyed by ID. Unknown IDs are omitted."""
        keys = [{"property_id": pid} for pid in dict.fromkeys(property_ids)]
        items = self.db.batch_get(self.TABLE, keys)
        return {item["property_id"]: self._item_to_property(item) for item in items}

    def save(self, prop: PropertySnapshot) -> None:
        self.db.put_item(self.TABLE, self._property_to_item(prop))

    def update_ratings(self, property_id: str, ratings: PropertyRatings) -> bool:
        """Store a recomputed rating. Returns False if the property is gone."""
        result = self.db.update_item(
            self.TABLE,
            {"property_id": property_id},
            update_expression="SET ratings = :ratings",
            expression_attribute_values={
                ":ratings": {
                    "average": Decimal(str(ratings.average)),
                    "count": ratings.count,
                }
            },
            condition_expression="attribute_exists(property_id)",
        )
        return result is not None

    def _property_to_item(self, prop: PropertySnapshot) -> dict[str, Any]:
        return {
            "property_id": prop.property_id,
            "host_id": prop.host_id,
            "title": prop.title,
            "price_per_night": prop.price_per_night,
            "max_guests": prop.max_guests,
            "is_active": prop.is_active,
            "cancellation_policy": prop.cancellation_policy.value,
            "ratings": {
                "average": Decimal(str(prop.ratings.average)),
                "count": prop.ratings.count,
            },
        }

    def _item_to_property(self, item: dict[str, Any]) -> PropertySnapshot:
        ratings = item.get("ratings") or {}
        return PropertySnapshot(
            property_id=item["property_id"],
            host_id=item["host_id"],
            title=item.get("title", ""),
            price_per_night=int(item["price_per_night"]),
            max_guests=int(item["max_guests"]),
            is_active=bool(item.get("is_active", True)),
            cancellation_policy=CancellationPolicy(
                item.get("cancellation_policy", CancellationPolicy.MODERATE.value)
            ),
            ratings=PropertyRatings(
                average=float(ratings.get("average", 0)),
                count=int(ratings.get("count", 0)),
            ),
        )


class ReviewRepository:
    """Storage for review ratings."""

    TABLE = "reviews"

    def __init__(self, db: "DynamoDBService") -> None:
        self.db = db

    def get(self, review_id: str) -> Review | None:
        item = self.db.get_item(self.TABLE, {"review_id": review_id})
        return self._item_to_review(item) if item else None

    def save(self, review: Review) -> None:
        self.db.put_item(self.TABLE, review.model_dump())

    def delete(self, review_id: str) -> None:
        self.db.delete_item(self.TABLE, {"review_id": review_id})

    def list_for_property(self, property_id: str) -> list[Review]:
        items = self.db.query_by_gsi(self.TABLE, "property_id-index", "property_id", property_id)
        return [self._item_to_review(item) for item in items]

    def _item_to_review(self, item: dict[str, Any]) -> Review:
        return Review(
            review_id=item["review_id"],
            property_id=item["property_id"],
            booking_id=item["booking_id"],
            guest_id=item["guest_id"],
            overall=int(item["overall"]),
        )


class CartRepository:
    """One cart per user, keyed by user ID."""

    TABLE = "carts"

    def __init__(self, db: "DynamoDBService") -> None:
        self.db = db

    def get(self, user_id: str) -> Cart | None:
        item = self.db.get_item(self.TABLE, {"user_id": user_id})
        return item_to_cart(item) if item else None

    def save(self, cart: Cart) -> None:
        self.db.put_item(self.TABLE, {k: v for k, v in cart_to_item(cart).items() if v is not None})


class OrderRepository:
    """Orders plus the order-number uniqueness guard.

    An order is only ever inserted together with its bookings and the
    emptied cart, in one transaction (see place).
    """

    TABLE = "orders"
    NUMBERS_TABLE = "order-numbers"

    def __init__(self, db: "DynamoDBService") -> None:
        self.db = db

    def get(self, order_id: str) -> Order | None:
        item = self.db.get_item(self.TABLE, {"order_id": order_id})
        return item_to_order(item) if item else None

    def list_for_user(self, user_id: str) -> list[Order]:
        """Orders of a user, newest first."""
        items = self.db.query_by_gsi(self.TABLE, "user_id-index", "user_id", user_id)
        orders = [item_to_order(item) for item in items]
        return sorted(orders, key=lambda o: o.created_at, reverse=True)

    def save(self, order: Order) -> None:
        """Overwrite an existing order after a status transition."""
        self.db.put_item(
            self.TABLE,
            {k: v for k, v in order_to_item(order).items() if v is not None},
        )

    def order_number_taken(self, order_number: str) -> bool:
        return self.db.get_item(self.NUMBERS_TABLE, {"order_number": order_number}) is not None

    def place(
        self,
        result: "CheckoutResult",
        night_locks: list[dict[str, Any]] | None = None,
    ) -> bool:
        """Atomically write a checkout result.

        Writes the order-number guard, the order, every booking, the
        emptied cart and any night locks in a single transaction.

        Args:
            result: Output of CheckoutService.create_order
            night_locks: Transactional Puts from BookingRepository.night_lock_requests

        Returns:
            True if written, False if any condition failed (order number
            taken or a night already locked)
        """
        order = result.order
        transact_items: list[dict[str, Any]] = [
            self.db.put_request(
                self.NUMBERS_TABLE,
                {"order_number": order.order_number, "order_id": order.order_id},
                condition_expression="attribute_not_exists(order_number)",
            ),
            self.db.put_request(
                self.TABLE,
                order_to_item(order),
                condition_expression="attribute_not_exists(order_id)",
            ),
        ]
        transact_items.extend(
            self.db.put_request(
                BookingRepository.TABLE,
                booking_to_item(booking),
                condition_expression="attribute_not_exists(booking_id)",
            )
            for booking in result.bookings
        )
        transact_items.append(self.db.put_request(CartRepository.TABLE, cart_to_item(result.cart)))
        transact_items.extend(night_locks or [])

        return self.db.transact_write(transact_items)


class BookingRepository:
    """Bookings and their optional per-night locks."""

    TABLE = "bookings"
    NIGHTS_TABLE = "booking-nights"

    def __init__(self, db: "DynamoDBService") -> None:
        self.db = db

    def get(self, booking_id: str) -> Booking | None:
        item = self.db.get_item(self.TABLE, {"booking_id": booking_id})
        return item_to_booking(item) if item else None

    def get_many(self, booking_ids: Iterable[str]) -> list[Booking]:
        keys = [{"booking_id": bid} for bid in dict.fromkeys(booking_ids)]
        return [item_to_booking(item) for item in self.db.batch_get(self.TABLE, keys)]

    def list_for_property(self, property_id: str) -> list[Booking]:
        return self._list_by("property_id-index", "property_id", property_id)

    def list_for_guest(self, guest_id: str) -> list[Booking]:
        return self._list_by("guest_id-index", "guest_id", guest_id)

    def list_for_host(self, host_id: str) -> list[Booking]:
        return self._list_by("host_id-index", "host_id", host_id)

    def list_for_order(self, order_id: str) -> list[Booking]:
        return self._list_by("order_id-index", "order_id", order_id)

    def save(self, booking: Booking) -> None:
        """Overwrite a booking after a status change."""
        self.db.put_item(self.TABLE, booking_to_item(booking))

    def create(self, booking: Booking, nights: list[dt.date] | None = None) -> bool:
        """Insert a new booking, locking its nights when given.

        Returns:
            False if a night is already locked by another booking
        """
        transact_items = [
            self.db.put_request(
                self.TABLE,
                booking_to_item(booking),
                condition_expression="attribute_not_exists(booking_id)",
            )
        ]
        if nights:
            transact_items.extend(self.night_lock_requests(booking, nights))
        return self.db.transact_write(transact_items)

    def delete(self, booking_id: str) -> None:
        self.db.delete_item(self.TABLE, {"booking_id": booking_id})

    def night_lock_requests(
        self, booking: Booking, nights: list[dt.date]
    ) -> list[dict[str, Any]]:
        """Transactional Puts claiming each night of a booking's property."""
        return [
            self.db.put_request(
                self.NIGHTS_TABLE,
                {
                    "property_id": booking.property_id,
                    "night": night.isoformat(),
                    "booking_id": booking.booking_id,
                },
                condition_expression="attribute_not_exists(night)",
            )
            for night in nights
        ]

    def release_nights(self, booking: Booking, nights: list[dt.date]) -> int:
        """Release the nights a booking holds.

        Nights held by another booking (or never locked) are left alone.

        Returns:
            Number of locks released
        """
        released = 0
        for night in nights:
            if self.db.delete_item(
                self.NIGHTS_TABLE,
                {"property_id": booking.property_id, "night": night.isoformat()},
                condition_expression="booking_id = :bid",
                expression_attribute_values={":bid": booking.booking_id},
            ):
                released += 1
        return released

    def _list_by(self, index_name: str, key_name: str, value: str) -> list[Booking]:
        items = self.db.query_by_gsi(self.TABLE, index_name, key_name, value)
        bookings = [item_to_booking(item) for item in items]
        return sorted(bookings, key=lambda b: b.created_at, reverse=True)
