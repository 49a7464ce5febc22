"""Standard error codes for the booking engine.

Every rule violation raised by the engine carries one of these codes.
The REST layer maps them to HTTP statuses and renders an ErrorResponse.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class ErrorCode(str, Enum):
    """Standard error codes for stay, cart, order and booking operations."""

    # Stay validation (ERR_STAY_001-ERR_STAY_005)
    INVALID_DATE_RANGE = "ERR_STAY_001"
    CAPACITY_EXCEEDED = "ERR_STAY_002"
    PROPERTY_UNAVAILABLE = "ERR_STAY_003"
    DATE_RANGE_CONFLICT = "ERR_STAY_004"
    SELF_BOOKING = "ERR_STAY_005"

    # Cart and order (ERR_ORDER_001-ERR_ORDER_002)
    EMPTY_CART = "ERR_ORDER_001"
    CART_ITEM_NOT_FOUND = "ERR_ORDER_002"

    # Payment (ERR_PAY_001-ERR_PAY_004)
    SIGNATURE_MISMATCH = "ERR_PAY_001"
    PAYMENT_ALREADY_PROCESSED = "ERR_PAY_002"
    PAYMENT_FAILED = "ERR_PAY_003"
    USE_GATEWAY_FLOW = "ERR_PAY_004"

    # Lifecycle (ERR_STATE_001-ERR_STATE_002)
    INVALID_TRANSITION = "ERR_STATE_001"
    ALREADY_COMPLETED = "ERR_STATE_002"

    # Lookup and access (ERR_ACCESS_001-ERR_ACCESS_005)
    PROPERTY_NOT_FOUND = "ERR_ACCESS_001"
    ORDER_NOT_FOUND = "ERR_ACCESS_002"
    BOOKING_NOT_FOUND = "ERR_ACCESS_003"
    NOT_AUTHORIZED = "ERR_ACCESS_004"
    AUTH_REQUIRED = "ERR_ACCESS_005"


# Human-readable error messages
ERROR_MESSAGES: dict[ErrorCode, str] = {
    # Stay errors
    ErrorCode.INVALID_DATE_RANGE: "Check-out date must be after check-in date",
    ErrorCode.CAPACITY_EXCEEDED: "Number of guests exceeds the property's maximum capacity",
    ErrorCode.PROPERTY_UNAVAILABLE: "Property is not available for booking",
    ErrorCode.DATE_RANGE_CONFLICT: "Property is not available for the selected dates",
    ErrorCode.SELF_BOOKING: "You cannot book your own property",
    # Cart and order errors
    ErrorCode.EMPTY_CART: "Cart is empty",
    ErrorCode.CART_ITEM_NOT_FOUND: "Cart item not found",
    # Payment errors
    ErrorCode.SIGNATURE_MISMATCH: "Payment verification failed. Invalid signature.",
    ErrorCode.PAYMENT_ALREADY_PROCESSED: "Order payment has already been processed",
    ErrorCode.PAYMENT_FAILED: "Payment failed",
    ErrorCode.USE_GATEWAY_FLOW: "This order must be paid through the payment gateway flow",
    # Lifecycle errors
    ErrorCode.INVALID_TRANSITION: "Status change is not allowed from the current state",
    ErrorCode.ALREADY_COMPLETED: "Completed bookings and orders cannot be cancelled",
    # Lookup and access errors
    ErrorCode.PROPERTY_NOT_FOUND: "Property not found",
    ErrorCode.ORDER_NOT_FOUND: "Order not found",
    ErrorCode.BOOKING_NOT_FOUND: "Booking not found",
    ErrorCode.NOT_AUTHORIZED: "Not authorized to perform this action",
    ErrorCode.AUTH_REQUIRED: "Authentication required to perform this action",
}

# Recovery suggestions for API clients
ERROR_RECOVERY: dict[ErrorCode, str] = {
    # Stay error recovery
    ErrorCode.INVALID_DATE_RANGE: "Choose a check-out date after the check-in date",
    ErrorCode.CAPACITY_EXCEEDED: "Reduce the number of guests or choose a larger property",
    ErrorCode.PROPERTY_UNAVAILABLE: "Choose another property",
    ErrorCode.DATE_RANGE_CONFLICT: "Choose different dates and check availability again",
    ErrorCode.SELF_BOOKING: "Book a property hosted by someone else",
    # Cart and order recovery
    ErrorCode.EMPTY_CART: "Add at least one stay to the cart before checkout",
    ErrorCode.CART_ITEM_NOT_FOUND: "Reload the cart and try again",
    # Payment recovery
    ErrorCode.SIGNATURE_MISMATCH: "Start a new payment attempt for the order",
    ErrorCode.PAYMENT_ALREADY_PROCESSED: "Check the order's payment status",
    ErrorCode.PAYMENT_FAILED: "Try again or use a different payment method",
    ErrorCode.USE_GATEWAY_FLOW: "Create a provider order and verify the gateway signature",
    # Lifecycle recovery
    ErrorCode.INVALID_TRANSITION: "Reload the record and check its current status",
    ErrorCode.ALREADY_COMPLETED: "Contact support about completed stays",
    # Lookup and access recovery
    ErrorCode.PROPERTY_NOT_FOUND: "Verify the property ID",
    ErrorCode.ORDER_NOT_FOUND: "Verify the order ID",
    ErrorCode.BOOKING_NOT_FOUND: "Verify the booking ID",
    ErrorCode.NOT_AUTHORIZED: "Sign in as the guest or host of this record",
    ErrorCode.AUTH_REQUIRED: "Sign in and retry the request",
}


class ErrorResponse(BaseModel):
    """Standard error body returned for failed operations."""

    model_config = ConfigDict(strict=True)

    success: bool = False
    error_code: ErrorCode
    message: str
    recovery: str
    details: Optional[dict[str, str]] = None

    @classmethod
    def from_code(
        cls,
        code: ErrorCode,
        details: Optional[dict[str, str]] = None,
    ) -> "ErrorResponse":
        """Create an ErrorResponse from an error code.

        Args:
            code: The error code
            details: Optional additional context about the error

        Returns:
            An ErrorResponse with the message and recovery hint for the code.
        """
        return cls(
            error_code=code,
            message=ERROR_MESSAGES[code],
            recovery=ERROR_RECOVERY[code],
            details=details,
        )


class BookingError(Exception):
    """Exception raised by booking engine operations.

    Can be caught and converted to an ErrorResponse for API responses.
    """

    def __init__(
        self,
        code: ErrorCode,
        details: Optional[dict[str, str]] = None,
    ):
        self.code = code
        self.message = ERROR_MESSAGES[code]
        self.recovery = ERROR_RECOVERY[code]
        self.details = details
        super().__init__(self.message)

    def to_error_response(self) -> ErrorResponse:
        """Convert this exception to an ErrorResponse."""
        return ErrorResponse.from_code(self.code, self.details)


class OrderNumberCollisionError(Exception):
    """Raised when a generated order number is already taken.

    This is an integrity failure of the number generator, not a user
    mistake. Checkout retries with a fresh number and surfaces this
    only when every attempt collides.
    """

    def __init__(self, order_number: str) -> None:
        self.order_number = order_number
        super().__init__(f"Order number already in use: {order_number}")
