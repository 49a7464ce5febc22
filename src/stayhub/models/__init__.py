"""Pydantic models for Stayhub data entities."""

from .booking import Booking
from .cart import Cart, CartItem, CartItemUpdate, GuestCountsUpdate
from .enums import (
    ActorRole,
    BookingPaymentStatus,
    BookingStatus,
    CancellationPolicy,
    OrderPaymentStatus,
    OrderStatus,
    PaymentMethod,
)
from .errors import (
    ERROR_MESSAGES,
    ERROR_RECOVERY,
    BookingError,
    ErrorCode,
    ErrorResponse,
    OrderNumberCollisionError,
)
from .events import (
    BookingRequested,
    BookingStatusChanged,
    DomainEvent,
    OrderCancelled,
    OrderPlaced,
    PaymentFailed,
    PaymentSettled,
    ReviewPosted,
    ReviewRemoved,
)
from .order import Address, ChargeResult, Order, OrderItem, PaymentDetails, ProviderOrder
from .property import PropertyRatings, PropertySnapshot, Review
from .stay import (
    AvailabilityResult,
    GuestCounts,
    PricedStay,
    PriceBreakdown,
    StayRequest,
    as_stay_instant,
)

__all__ = [
    # Enums
    "ActorRole",
    "BookingPaymentStatus",
    "BookingStatus",
    "CancellationPolicy",
    "OrderPaymentStatus",
    "OrderStatus",
    "PaymentMethod",
    # Stay and pricing
    "AvailabilityResult",
    "GuestCounts",
    "PricedStay",
    "PriceBreakdown",
    "StayRequest",
    "as_stay_instant",
    # Property
    "PropertyRatings",
    "PropertySnapshot",
    "Review",
    # Cart
    "Cart",
    "CartItem",
    "CartItemUpdate",
    "GuestCountsUpdate",
    # Order
    "Address",
    "ChargeResult",
    "Order",
    "OrderItem",
    "PaymentDetails",
    "ProviderOrder",
    # Booking
    "Booking",
    # Events
    "BookingRequested",
    "BookingStatusChanged",
    "DomainEvent",
    "OrderCancelled",
    "OrderPlaced",
    "PaymentFailed",
    "PaymentSettled",
    "ReviewPosted",
    "ReviewRemoved",
    # Errors
    "BookingError",
    "ErrorCode",
    "ErrorResponse",
    "ERROR_MESSAGES",
    "ERROR_RECOVERY",
    "OrderNumberCollisionError",
]
