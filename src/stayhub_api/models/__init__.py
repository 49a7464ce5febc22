"""API-layer request and response models."""

from stayhub_api.models.requests import (
    AddressBody,
    BookingStatusRequest,
    CartItemPatchRequest,
    CheckoutRequest,
    GuestsBody,
    GuestsPatch,
    PriceQuoteRequest,
    StayBody,
    VerifyPaymentRequest,
)
from stayhub_api.models.responses import BookingListResponse, OrderListResponse, SuccessMessage

__all__ = [
    "AddressBody",
    "BookingListResponse",
    "BookingStatusRequest",
    "CartItemPatchRequest",
    "CheckoutRequest",
    "GuestsBody",
    "GuestsPatch",
    "OrderListResponse",
    "PriceQuoteRequest",
    "StayBody",
    "SuccessMessage",
    "VerifyPaymentRequest",
]
