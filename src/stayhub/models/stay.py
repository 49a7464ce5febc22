"""Stay request and pricing models."""

import datetime as dt
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def as_stay_instant(value: Any) -> Any:
    """Normalise a check-in/check-out value to a naive UTC datetime.

    Bare dates (or ISO date strings) mean midnight. Aware datetimes are
    converted to UTC and stripped of tzinfo so every stored instant is
    comparable with every other.
    """
    if isinstance(value, str) and len(value) == 10:
        value = dt.date.fromisoformat(value)
    elif isinstance(value, str):
        value = dt.datetime.fromisoformat(value.replace("Z", "+00:00"))

    if isinstance(value, dt.datetime):
        if value.tzinfo is not None:
            value = value.astimezone(dt.UTC).replace(tzinfo=None)
        return value
    if isinstance(value, dt.date):
        return dt.datetime.combine(value, dt.time.min)
    return value


class GuestCounts(BaseModel):
    """Guest party composition for a stay."""

    model_config = ConfigDict(frozen=True)

    adults: int = Field(..., ge=1, description="Number of adults (at least 1)")
    children: int = Field(default=0, ge=0, description="Number of children")
    infants: int = Field(default=0, ge=0, description="Number of infants")

    @property
    def total(self) -> int:
        """Total head count checked against property capacity."""
        return self.adults + self.children + self.infants


class StayRequest(BaseModel):
    """A requested stay at one property.

    Date ordering is not enforced here: the availability checker reports
    it as INVALID_DATE_RANGE so callers get a domain error.
    """

    model_config = ConfigDict(strict=True, frozen=True)

    property_id: str = Field(..., min_length=1)
    check_in: dt.datetime
    check_out: dt.datetime
    guests: GuestCounts
    special_requests: str | None = Field(default=None, max_length=500)

    @field_validator("check_in", "check_out", mode="before")
    @classmethod
    def _normalise_instant(cls, value: Any) -> Any:
        return as_stay_instant(value)


class PriceBreakdown(BaseModel):
    """Derived pricing for a stay. Amounts are whole currency units."""

    model_config = ConfigDict(frozen=True)

    price_per_night: int = Field(..., ge=0)
    nights: int = Field(..., ge=1)
    subtotal: int = Field(..., ge=0)
    cleaning_fee: int = Field(..., ge=0)
    service_fee: int = Field(..., ge=0)
    taxes: int = Field(..., ge=0)
    total: int = Field(..., ge=0)

    @property
    def fees(self) -> int:
        """Cleaning plus service fee, the order-level 'fees' line."""
        return self.cleaning_fee + self.service_fee


class PricedStay(BaseModel):
    """A stay together with the pricing computed for it."""

    model_config = ConfigDict(frozen=True)

    property_id: str
    check_in: dt.datetime
    check_out: dt.datetime
    guests: GuestCounts
    pricing: PriceBreakdown
    special_requests: str | None = Field(default=None, max_length=500)

    @field_validator("check_in", "check_out", mode="before")
    @classmethod
    def _normalise_instant(cls, value: Any) -> Any:
        return as_stay_instant(value)

    @property
    def total_guests(self) -> int:
        return self.guests.total


class AvailabilityResult(BaseModel):
    """Outcome of an admissibility check for a stay."""

    model_config = ConfigDict(frozen=True)

    ok: bool
    nights: int = Field(..., ge=0)
    property_id: str
    check_in: dt.datetime
    check_out: dt.datetime
