"""Cart endpoints.

The cart belongs to the caller identified by x-user-id and holds at most
one line per property. Adding a stay for a property already in the cart
replaces that line. Every response carries recomputed totals.
"""

from fastapi import APIRouter, Depends
from starlette.status import HTTP_201_CREATED

from stayhub.models import Cart
from stayhub.services.marketplace import MarketplaceService
from stayhub_api.dependencies import get_current_user_id, get_marketplace_service
from stayhub_api.models import CartItemPatchRequest, StayBody

router = APIRouter(tags=["cart"])


@router.get(
    "/cart",
    summary="Get my cart",
    response_model=Cart,
    responses={401: {"description": "x-user-id header required"}},
)
async def get_cart(
    user_id: str = Depends(get_current_user_id),
    service: MarketplaceService = Depends(get_marketplace_service),
) -> Cart:
    """Return the caller's cart, creating an empty one on first access."""
    return service.get_cart(user_id)


@router.post(
    "/cart/items",
    summary="Add a stay to the cart",
    description="""
Add a priced stay to the cart.

Validates the date range, that the property is active and the party
size. Overlap with other bookings is only checked at checkout.
""",
    response_model=Cart,
    status_code=HTTP_201_CREATED,
    responses={
        400: {"description": "Invalid dates, inactive property or too many guests"},
        404: {"description": "Property not found"},
    },
)
async def add_cart_item(
    body: StayBody,
    user_id: str = Depends(get_current_user_id),
    service: MarketplaceService = Depends(get_marketplace_service),
) -> Cart:
    return service.cart_add(user_id, body.to_domain())


@router.patch(
    "/cart/items/{item_id}",
    summary="Update a cart line",
    description="Change dates, guests or special requests of one line and re-price it.",
    response_model=Cart,
    responses={
        400: {"description": "Changed stay fails validation"},
        404: {"description": "Cart line or property not found"},
    },
)
async def update_cart_item(
    item_id: str,
    body: CartItemPatchRequest,
    user_id: str = Depends(get_current_user_id),
    service: MarketplaceService = Depends(get_marketplace_service),
) -> Cart:
    return service.cart_update(user_id, item_id, body.to_domain())


@router.delete(
    "/cart/items/{item_id}",
    summary="Remove a cart line",
    description="Removing a line that is not in the cart leaves the cart unchanged.",
    response_model=Cart,
)
async def remove_cart_item(
    item_id: str,
    user_id: str = Depends(get_current_user_id),
    service: MarketplaceService = Depends(get_marketplace_service),
) -> Cart:
    return service.cart_remove(user_id, item_id)


@router.delete("/cart", summary="Clear my cart", response_model=Cart)
async def clear_cart(
    user_id: str = Depends(get_current_user_id),
    service: MarketplaceService = Depends(get_marketplace_service),
) -> Cart:
    return service.cart_clear(user_id)
