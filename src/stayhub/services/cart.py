"""Cart service for aggregating priced stays before checkout.

All operations are pure: they take the current Cart and return a new one
with totals recomputed. Persisting the result is the caller's job.

Cart insertion validates date range, active flag and capacity only.
Overlap with other guests' bookings is checked again when bookings are
actually created at checkout.
"""

import datetime as dt
import uuid
from typing import TYPE_CHECKING

from stayhub.models import (
    BookingError,
    Cart,
    CartItem,
    CartItemUpdate,
    ErrorCode,
    GuestCounts,
    PropertySnapshot,
    StayRequest,
)

if TYPE_CHECKING:
    from .availability import AvailabilityService
    from .pricing import PricingService


class CartService:
    """Service for cart mutations and totals."""

    def __init__(
        self,
        pricing: "PricingService",
        availability: "AvailabilityService",
    ) -> None:
        """Initialize cart service.

        Args:
            pricing: Pricing service instance
            availability: Availability service instance
        """
        self.pricing = pricing
        self.availability = availability

    def new_cart(self, user_id: str) -> Cart:
        """Create an empty cart for a user."""
        return Cart(user_id=user_id, items=[], updated_at=dt.datetime.now(dt.UTC))

    def add_or_replace(
        self,
        cart: Cart,
        stay: StayRequest,
        prop: PropertySnapshot,
    ) -> Cart:
        """Add a stay to the cart, replacing any line for the same property.

        A replaced line keeps its position and its item ID.

        Args:
            cart: Current cart
            stay: Stay to add
            prop: Current state of the stay's property

        Returns:
            New cart with recomputed totals

        Raises:
            BookingError: If the stay fails date, active or capacity checks
        """
        nights = self.availability.check_stay(stay, prop, check_conflicts=False)
        pricing = self.pricing.price_stay(prop.price_per_night, nights)

        existing = next(
            (item for item in cart.items if item.property_id == stay.property_id), None
        )
        new_item = CartItem(
            item_id=existing.item_id if existing else self._generate_item_id(),
            property_id=stay.property_id,
            check_in=stay.check_in,
            check_out=stay.check_out,
            guests=stay.guests,
            pricing=pricing,
            special_requests=stay.special_requests,
        )

        if existing:
            items = [new_item if item is existing else item for item in cart.items]
        else:
            items = [*cart.items, new_item]

        return self._with_items(cart, items)

    def update_item(
        self,
        cart: Cart,
        item_id: str,
        changes: CartItemUpdate,
        prop: PropertySnapshot,
    ) -> Cart:
        """Apply partial changes to a line, then re-validate and re-price it.

        Args:
            cart: Current cart
            item_id: Line to change
            changes: Fields to change; unset fields keep their value
            prop: Current state of the line's property

        Returns:
            New cart with the line re-priced and totals recomputed

        Raises:
            BookingError: CART_ITEM_NOT_FOUND, or a stay validation error
        """
        item = cart.find_item(item_id)
        if item is None:
            raise BookingError(
                code=ErrorCode.CART_ITEM_NOT_FOUND,
                details={"item_id": item_id},
            )

        guests = item.guests
        if changes.guests is not None:
            patch = changes.guests
            guests = GuestCounts(
                adults=guests.adults if patch.adults is None else patch.adults,
                children=guests.children if patch.children is None else patch.children,
                infants=guests.infants if patch.infants is None else patch.infants,
            )

        special_requests = item.special_requests
        if "special_requests" in changes.model_fields_set:
            special_requests = changes.special_requests

        stay = StayRequest(
            property_id=item.property_id,
            check_in=changes.check_in or item.check_in,
            check_out=changes.check_out or item.check_out,
            guests=guests,
            special_requests=special_requests,
        )
        nights = self.availability.check_stay(stay, prop, check_conflicts=False)

        updated = CartItem(
            item_id=item.item_id,
            property_id=stay.property_id,
            check_in=stay.check_in,
            check_out=stay.check_out,
            guests=stay.guests,
            pricing=self.pricing.price_stay(prop.price_per_night, nights),
            special_requests=stay.special_requests,
        )
        items = [updated if line.item_id == item_id else line for line in cart.items]
        return self._with_items(cart, items)

    def remove_item(self, cart: Cart, item_id: str) -> Cart:
        """Remove one line. Removing an unknown line leaves the cart as is."""
        return self._with_items(cart, [item for item in cart.items if item.item_id != item_id])

    def clear(self, cart: Cart) -> Cart:
        """Remove every line from the cart."""
        return self._with_items(cart, [])

    def _with_items(self, cart: Cart, items: list[CartItem]) -> Cart:
        """Return a copy of the cart holding items, with totals recomputed."""
        return cart.model_copy(
            update={
                "items": items,
                "total_items": len(items),
                "total_amount": sum(item.pricing.total for item in items),
                "updated_at": dt.datetime.now(dt.UTC),
            }
        )

    def _generate_item_id(self) -> str:
        return f"ITEM-{uuid.uuid4().hex[:12].upper()}"
