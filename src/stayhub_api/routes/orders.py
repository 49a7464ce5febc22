"""Order endpoints for checkout, payment and cancellation.

Checkout turns the caller's cart into an order with one pending booking
per line. Payment then settles the order, either through the gateway
flow (provider order, then signature verification) or by a direct
charge for non-gateway methods. Settling confirms the order's own
bookings; cancelling cancels them.
"""

from fastapi import APIRouter, Depends
from starlette.status import HTTP_201_CREATED

from stayhub.models import Order, ProviderOrder
from stayhub.services.marketplace import MarketplaceService
from stayhub_api.dependencies import get_current_user_id, get_is_admin, get_marketplace_service
from stayhub_api.models import (
    BookingListResponse,
    CheckoutRequest,
    OrderListResponse,
    VerifyPaymentRequest,
)

router = APIRouter(tags=["orders"])


@router.post(
    "/orders",
    summary="Check out my cart",
    description="""
Create an order from the caller's cart.

Every line is re-checked against current bookings. The order, its
pending bookings and the emptied cart are written atomically.

**Notes:**
- Billing address defaults to the shipping address
- Amounts are copied from the cart lines, not re-priced
""",
    response_description="Created order",
    response_model=Order,
    status_code=HTTP_201_CREATED,
    responses={
        400: {"description": "Cart is empty or a line no longer validates"},
        404: {"description": "A property in the cart no longer exists"},
        409: {"description": "Dates of a line were booked in the meantime"},
    },
)
async def create_order(
    body: CheckoutRequest,
    user_id: str = Depends(get_current_user_id),
    service: MarketplaceService = Depends(get_marketplace_service),
) -> Order:
    shipping = body.shipping_address.to_domain()
    billing = body.billing_address.to_domain() if body.billing_address else shipping
    return service.create_order(user_id, body.payment_method, shipping, billing)


@router.get("/orders", summary="Get my orders", response_model=OrderListResponse)
async def list_orders(
    user_id: str = Depends(get_current_user_id),
    service: MarketplaceService = Depends(get_marketplace_service),
) -> OrderListResponse:
    orders = service.list_orders(user_id)
    return OrderListResponse(orders=orders, count=len(orders))


@router.get(
    "/orders/{order_id}",
    summary="Get an order",
    response_model=Order,
    responses={
        403: {"description": "Order belongs to another user"},
        404: {"description": "Order not found"},
    },
)
async def get_order(
    order_id: str,
    user_id: str = Depends(get_current_user_id),
    is_admin: bool = Depends(get_is_admin),
    service: MarketplaceService = Depends(get_marketplace_service),
) -> Order:
    return service.get_order(order_id, user_id, is_admin)


@router.get(
    "/orders/{order_id}/bookings",
    summary="Get the bookings of an order",
    response_model=BookingListResponse,
    responses={
        403: {"description": "Order belongs to another user"},
        404: {"description": "Order not found"},
    },
)
async def list_order_bookings(
    order_id: str,
    user_id: str = Depends(get_current_user_id),
    is_admin: bool = Depends(get_is_admin),
    service: MarketplaceService = Depends(get_marketplace_service),
) -> BookingListResponse:
    bookings = service.list_order_bookings(order_id, user_id, is_admin)
    return BookingListResponse(bookings=bookings, count=len(bookings))


@router.post(
    "/orders/{order_id}/provider-order",
    summary="Create a gateway order",
    description="""
Create the payment gateway order the client pays against.

The amount is the order total in minor currency units and the receipt
is the order number. Only unpaid orders qualify.
""",
    response_model=ProviderOrder,
    responses={400: {"description": "Order payment has already been processed"}},
)
async def create_provider_order(
    order_id: str,
    user_id: str = Depends(get_current_user_id),
    service: MarketplaceService = Depends(get_marketplace_service),
) -> ProviderOrder:
    return service.create_provider_order(order_id, user_id)


@router.post(
    "/orders/{order_id}/verify-payment",
    summary="Verify a gateway payment",
    description="""
Verify the gateway signature and settle the order.

On a signature mismatch the order's payment status is recorded as
`failed` before the error is returned; payment can then be retried.
""",
    response_model=Order,
    responses={400: {"description": "Invalid signature or order already paid"}},
)
async def verify_payment(
    order_id: str,
    body: VerifyPaymentRequest,
    user_id: str = Depends(get_current_user_id),
    service: MarketplaceService = Depends(get_marketplace_service),
) -> Order:
    return service.verify_payment(
        order_id,
        user_id,
        provider_order_id=body.provider_order_id,
        provider_payment_id=body.provider_payment_id,
        signature=body.signature,
    )


@router.post(
    "/orders/{order_id}/payment",
    summary="Pay an order directly",
    description="Charge a non-gateway order through the payment provider.",
    response_model=Order,
    responses={
        400: {"description": "Gateway orders must use verify-payment"},
        402: {"description": "Charge declined"},
    },
)
async def process_payment(
    order_id: str,
    user_id: str = Depends(get_current_user_id),
    service: MarketplaceService = Depends(get_marketplace_service),
) -> Order:
    return service.process_payment(order_id, user_id)


@router.put(
    "/orders/{order_id}/cancel",
    summary="Cancel an order",
    description="Cancel the order and its live bookings. A paid order is refunded.",
    response_model=Order,
    responses={400: {"description": "Completed orders cannot be cancelled"}},
)
async def cancel_order(
    order_id: str,
    user_id: str = Depends(get_current_user_id),
    is_admin: bool = Depends(get_is_admin),
    service: MarketplaceService = Depends(get_marketplace_service),
) -> Order:
    return service.cancel_order(order_id, user_id, is_admin)


@router.put(
    "/orders/{order_id}/complete",
    summary="Complete an order (admin)",
    response_model=Order,
    responses={403: {"description": "Administrators only"}},
)
async def complete_order(
    order_id: str,
    user_id: str = Depends(get_current_user_id),
    is_admin: bool = Depends(get_is_admin),
    service: MarketplaceService = Depends(get_marketplace_service),
) -> Order:
    return service.complete_order(order_id, user_id, is_admin)
