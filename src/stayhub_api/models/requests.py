"""API request bodies.

These use strict=False so ISO date strings from JSON coerce; each body
converts itself into the strict domain model the services take. The user
ID is never part of a body, it comes from the x-user-id header.
"""

import datetime as dt
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from stayhub.models import (
    Address,
    BookingStatus,
    CartItemUpdate,
    GuestCounts,
    GuestCountsUpdate,
    PaymentMethod,
    StayRequest,
    as_stay_instant,
)


class GuestsBody(BaseModel):
    """Guest party composition."""

    model_config = ConfigDict(strict=False)

    adults: int = Field(..., ge=1, description="Number of adults", examples=[2])
    children: int = Field(default=0, ge=0, description="Number of children", examples=[1])
    infants: int = Field(default=0, ge=0, description="Number of infants", examples=[0])

    def to_domain(self) -> GuestCounts:
        return GuestCounts(adults=self.adults, children=self.children, infants=self.infants)


class StayBody(BaseModel):
    """A stay at one property, used by cart insertion and direct booking."""

    model_config = ConfigDict(
        # Note: strict=False allows string-to-datetime coercion from JSON
        strict=False,
        json_schema_extra={
            "examples": [
                {
                    "property_id": "PROP-001",
                    "check_in": "2025-06-01",
                    "check_out": "2025-06-04",
                    "guests": {"adults": 2, "children": 1, "infants": 0},
                    "special_requests": "Late arrival around 10pm",
                }
            ]
        },
    )

    property_id: str = Field(..., min_length=1, description="Property to stay at")
    check_in: dt.datetime = Field(..., description="Check-in date or datetime (ISO 8601)")
    check_out: dt.datetime = Field(..., description="Check-out date or datetime (ISO 8601)")
    guests: GuestsBody
    special_requests: str | None = Field(default=None, max_length=500)

    @field_validator("check_in", "check_out", mode="before")
    @classmethod
    def _normalise_instant(cls, value: Any) -> Any:
        return as_stay_instant(value)

    def to_domain(self) -> StayRequest:
        return StayRequest(
            property_id=self.property_id,
            check_in=self.check_in,
            check_out=self.check_out,
            guests=self.guests.to_domain(),
            special_requests=self.special_requests,
        )


class PriceQuoteRequest(BaseModel):
    """Request a price quote for a property and date range."""

    model_config = ConfigDict(strict=False)

    property_id: str = Field(..., min_length=1)
    check_in: dt.datetime
    check_out: dt.datetime

    @field_validator("check_in", "check_out", mode="before")
    @classmethod
    def _normalise_instant(cls, value: Any) -> Any:
        return as_stay_instant(value)


class GuestsPatch(BaseModel):
    """Partial guest count change."""

    model_config = ConfigDict(strict=False)

    adults: int | None = Field(default=None, ge=1)
    children: int | None = Field(default=None, ge=0)
    infants: int | None = Field(default=None, ge=0)


class CartItemPatchRequest(BaseModel):
    """Partial update of a cart line. Only fields that are sent change."""

    model_config = ConfigDict(strict=False)

    check_in: dt.datetime | None = None
    check_out: dt.datetime | None = None
    guests: GuestsPatch | None = None
    special_requests: str | None = Field(default=None, max_length=500)

    @field_validator("check_in", "check_out", mode="before")
    @classmethod
    def _normalise_instant(cls, value: Any) -> Any:
        return None if value is None else as_stay_instant(value)

    def to_domain(self) -> CartItemUpdate:
        changes: dict[str, Any] = {}
        if "check_in" in self.model_fields_set:
            changes["check_in"] = self.check_in
        if "check_out" in self.model_fields_set:
            changes["check_out"] = self.check_out
        if self.guests is not None:
            changes["guests"] = GuestCountsUpdate(
                adults=self.guests.adults,
                children=self.guests.children,
                infants=self.guests.infants,
            )
        if "special_requests" in self.model_fields_set:
            changes["special_requests"] = self.special_requests
        return CartItemUpdate(**changes)


class AddressBody(BaseModel):
    """Postal address."""

    model_config = ConfigDict(strict=False)

    street: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    zip_code: str = Field(..., min_length=1)
    country: str = Field(..., min_length=1)

    def to_domain(self) -> Address:
        return Address(
            street=self.street,
            city=self.city,
            state=self.state,
            zip_code=self.zip_code,
            country=self.country,
        )


class CheckoutRequest(BaseModel):
    """Check out the caller's cart."""

    model_config = ConfigDict(
        strict=False,
        json_schema_extra={
            "examples": [
                {
                    "payment_method": "razorpay",
                    "shipping_address": {
                        "street": "12 MG Road",
                        "city": "Bengaluru",
                        "state": "KA",
                        "zip_code": "560001",
                        "country": "IN",
                    },
                }
            ]
        },
    )

    payment_method: PaymentMethod
    shipping_address: AddressBody
    billing_address: AddressBody | None = Field(
        default=None,
        description="Defaults to the shipping address",
    )


class VerifyPaymentRequest(BaseModel):
    """Gateway references returned to the client after payment."""

    model_config = ConfigDict(strict=False)

    provider_order_id: str = Field(..., min_length=1)
    provider_payment_id: str = Field(..., min_length=1)
    signature: str = Field(..., min_length=1)


class BookingStatusRequest(BaseModel):
    """Requested booking status (confirmed or cancelled)."""

    model_config = ConfigDict(strict=False)

    status: BookingStatus
