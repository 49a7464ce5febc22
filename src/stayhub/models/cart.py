"""Cart models.

A cart belongs to exactly one user and holds at most one line per
property. Totals are derived from the lines and recomputed by the cart
service after every change.
"""

import datetime as dt
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .stay import PricedStay, as_stay_instant


class CartItem(PricedStay):
    """One priced stay in a cart."""

    item_id: str = Field(..., description="Unique line ID within the cart")


class Cart(BaseModel):
    """A user's editable collection of priced stays."""

    model_config = ConfigDict(frozen=True)

    user_id: str = Field(..., description="Owning user")
    items: list[CartItem] = Field(default_factory=list)
    total_items: int = Field(default=0, ge=0)
    total_amount: int = Field(default=0, ge=0)
    updated_at: dt.datetime | None = None

    def find_item(self, item_id: str) -> CartItem | None:
        """Return the line with the given ID, if present."""
        return next((item for item in self.items if item.item_id == item_id), None)


class GuestCountsUpdate(BaseModel):
    """Partial guest count change; unset fields keep their value."""

    model_config = ConfigDict(strict=True, frozen=True)

    adults: int | None = Field(default=None, ge=1)
    children: int | None = Field(default=None, ge=0)
    infants: int | None = Field(default=None, ge=0)


class CartItemUpdate(BaseModel):
    """Partial changes to a cart line. Only set fields are applied."""

    model_config = ConfigDict(strict=True, frozen=True)

    check_in: dt.datetime | None = None
    check_out: dt.datetime | None = None
    guests: GuestCountsUpdate | None = None
    special_requests: str | None = Field(default=None, max_length=500)

    @field_validator("check_in", "check_out", mode="before")
    @classmethod
    def _normalise_instant(cls, value: Any) -> Any:
        return None if value is None else as_stay_instant(value)
