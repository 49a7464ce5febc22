"""Enumeration types for Stayhub data models."""

from enum import Enum


class BookingStatus(str, Enum):
    """Lifecycle status of a booking."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class BookingPaymentStatus(str, Enum):
    """Payment status tracked on a booking."""

    PENDING = "pending"
    PAID = "paid"
    REFUNDED = "refunded"


class OrderStatus(str, Enum):
    """Fulfillment status of an order."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class OrderPaymentStatus(str, Enum):
    """Payment status of an order."""

    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentMethod(str, Enum):
    """Payment methods accepted at checkout."""

    CREDIT_CARD = "credit_card"
    DEBIT_CARD = "debit_card"
    PAYPAL = "paypal"
    STRIPE = "stripe"
    RAZORPAY = "razorpay"


class ActorRole(str, Enum):
    """Role of the caller relative to a booking."""

    GUEST = "guest"
    HOST = "host"
    ADMIN = "admin"


class CancellationPolicy(str, Enum):
    """Host cancellation policy copied onto bookings."""

    FLEXIBLE = "flexible"
    MODERATE = "moderate"
    STRICT = "strict"
