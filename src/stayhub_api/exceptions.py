"""Translation of engine errors into JSON error responses.

Status codes by ErrorCode family:
- 400 Bad Request: Validation/business rule violations
- 401 Unauthorized: No caller identity
- 402 Payment Required: Declined charges
- 403 Forbidden: Caller is not the guest, host or owner
- 404 Not Found: Unknown property, order, booking or cart line
- 409 Conflict: Dates already taken
- 500 Internal Server Error: Integrity failures (e.g. order number collisions)

Usage:
    from stayhub_api.exceptions import register_exception_handlers
    register_exception_handlers(app)
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_401_UNAUTHORIZED,
    HTTP_402_PAYMENT_REQUIRED,
    HTTP_403_FORBIDDEN,
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
    HTTP_500_INTERNAL_SERVER_ERROR,
)

from stayhub.models import BookingError, ErrorCode, OrderNumberCollisionError
from stayhub.services.ssm_service import SSMServiceError
from stayhub.utils.logging import get_logger

logger = get_logger(__name__)

ERROR_CODE_TO_HTTP_STATUS: dict[ErrorCode, int] = {
    # Stay validation -> 400 Bad Request
    ErrorCode.INVALID_DATE_RANGE: HTTP_400_BAD_REQUEST,
    ErrorCode.CAPACITY_EXCEEDED: HTTP_400_BAD_REQUEST,
    ErrorCode.PROPERTY_UNAVAILABLE: HTTP_400_BAD_REQUEST,
    ErrorCode.SELF_BOOKING: HTTP_400_BAD_REQUEST,
    # Dates taken -> 409 Conflict
    ErrorCode.DATE_RANGE_CONFLICT: HTTP_409_CONFLICT,
    # Cart and order
    ErrorCode.EMPTY_CART: HTTP_400_BAD_REQUEST,
    ErrorCode.CART_ITEM_NOT_FOUND: HTTP_404_NOT_FOUND,
    # Payment
    ErrorCode.SIGNATURE_MISMATCH: HTTP_400_BAD_REQUEST,
    ErrorCode.PAYMENT_ALREADY_PROCESSED: HTTP_400_BAD_REQUEST,
    ErrorCode.PAYMENT_FAILED: HTTP_402_PAYMENT_REQUIRED,
    ErrorCode.USE_GATEWAY_FLOW: HTTP_400_BAD_REQUEST,
    # Lifecycle
    ErrorCode.INVALID_TRANSITION: HTTP_400_BAD_REQUEST,
    ErrorCode.ALREADY_COMPLETED: HTTP_400_BAD_REQUEST,
    # Lookup and access
    ErrorCode.PROPERTY_NOT_FOUND: HTTP_404_NOT_FOUND,
    ErrorCode.ORDER_NOT_FOUND: HTTP_404_NOT_FOUND,
    ErrorCode.BOOKING_NOT_FOUND: HTTP_404_NOT_FOUND,
    ErrorCode.NOT_AUTHORIZED: HTTP_403_FORBIDDEN,
    ErrorCode.AUTH_REQUIRED: HTTP_401_UNAUTHORIZED,
}

INTERNAL_ERROR_BODY = {
    "success": False,
    "error_code": "ERR_INTERNAL",
    "message": "An unexpected error occurred",
    "recovery": "Please try again later or contact support",
    "details": None,
}


def get_http_status_for_error(code: ErrorCode) -> int:
    """Status for a code; anything unmapped is a 400."""
    return ERROR_CODE_TO_HTTP_STATUS.get(code, HTTP_400_BAD_REQUEST)


async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    """Convert a BookingError to an ErrorResponse body with its mapped status."""
    return JSONResponse(
        status_code=get_http_status_for_error(exc.code),
        content=exc.to_error_response().model_dump(mode="json"),
    )


async def internal_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle integrity and configuration failures with a generic 500.

    The real cause is logged; the client only sees ERR_INTERNAL.
    """
    logger.error("Internal error on %s %s: %s", request.method, request.url.path, exc)

    return JSONResponse(
        status_code=HTTP_500_INTERNAL_SERVER_ERROR,
        content=INTERNAL_ERROR_BODY,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the engine error handlers to app."""
    app.add_exception_handler(BookingError, booking_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(OrderNumberCollisionError, internal_error_handler)
    app.add_exception_handler(SSMServiceError, internal_error_handler)
