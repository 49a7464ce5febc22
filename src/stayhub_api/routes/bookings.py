"""Booking endpoints.

Provides REST endpoints for:
- Requesting a booking directly, outside checkout
- Listing bookings as guest or as host
- Confirming (host) or cancelling (guest or host) a booking
- Completing a stay (admin)
- Deleting a pending booking (guest)
"""

from fastapi import APIRouter, Depends
from starlette.status import HTTP_201_CREATED

from stayhub.models import Booking
from stayhub.services.marketplace import MarketplaceService
from stayhub_api.dependencies import get_current_user_id, get_is_admin, get_marketplace_service
from stayhub_api.models import BookingListResponse, BookingStatusRequest, StayBody, SuccessMessage

router = APIRouter(tags=["bookings"])


@router.post(
    "/bookings",
    summary="Request a booking",
    description="""
Request a booking for a single stay.

Runs the full availability check, including overlap with pending and
confirmed bookings. Hosts cannot book their own property.
""",
    response_model=Booking,
    status_code=HTTP_201_CREATED,
    responses={
        400: {"description": "Invalid dates, inactive property, too many guests or own property"},
        404: {"description": "Property not found"},
        409: {"description": "Dates overlap an existing booking"},
    },
)
async def request_booking(
    body: StayBody,
    user_id: str = Depends(get_current_user_id),
    service: MarketplaceService = Depends(get_marketplace_service),
) -> Booking:
    return service.request_booking(user_id, body.to_domain())


@router.get("/bookings", summary="Get my bookings", response_model=BookingListResponse)
async def list_my_bookings(
    user_id: str = Depends(get_current_user_id),
    service: MarketplaceService = Depends(get_marketplace_service),
) -> BookingListResponse:
    bookings = service.list_guest_bookings(user_id)
    return BookingListResponse(bookings=bookings, count=len(bookings))


@router.get(
    "/bookings/host",
    summary="Get bookings of my properties",
    response_model=BookingListResponse,
)
async def list_host_bookings(
    user_id: str = Depends(get_current_user_id),
    service: MarketplaceService = Depends(get_marketplace_service),
) -> BookingListResponse:
    bookings = service.list_host_bookings(user_id)
    return BookingListResponse(bookings=bookings, count=len(bookings))


@router.get(
    "/bookings/{booking_id}",
    summary="Get a booking",
    response_model=Booking,
    responses={
        403: {"description": "Caller is neither guest nor host"},
        404: {"description": "Booking not found"},
    },
)
async def get_booking(
    booking_id: str,
    user_id: str = Depends(get_current_user_id),
    is_admin: bool = Depends(get_is_admin),
    service: MarketplaceService = Depends(get_marketplace_service),
) -> Booking:
    return service.get_booking(booking_id, user_id, is_admin)


@router.put(
    "/bookings/{booking_id}/status",
    summary="Confirm or cancel a booking",
    description="""
Change a booking's status.

**Rules:**
- `confirmed`: host only, from `pending`
- `cancelled`: guest or host, from `pending` or `confirmed`; paid bookings become refunded
- Completed bookings cannot be cancelled
""",
    response_model=Booking,
    responses={
        400: {"description": "Transition not allowed from the current status"},
        403: {"description": "Caller may not make this change"},
        404: {"description": "Booking not found"},
    },
)
async def update_booking_status(
    booking_id: str,
    body: BookingStatusRequest,
    user_id: str = Depends(get_current_user_id),
    is_admin: bool = Depends(get_is_admin),
    service: MarketplaceService = Depends(get_marketplace_service),
) -> Booking:
    return service.set_booking_status(booking_id, user_id, body.status, is_admin)


@router.put(
    "/bookings/{booking_id}/complete",
    summary="Complete a stay (admin)",
    response_model=Booking,
    responses={403: {"description": "Administrators only"}},
)
async def complete_booking(
    booking_id: str,
    user_id: str = Depends(get_current_user_id),
    is_admin: bool = Depends(get_is_admin),
    service: MarketplaceService = Depends(get_marketplace_service),
) -> Booking:
    return service.complete_booking(booking_id, user_id, is_admin)


@router.delete(
    "/bookings/{booking_id}",
    summary="Delete a pending booking",
    description="Only the guest may delete, and only while the booking is pending.",
    response_model=SuccessMessage,
)
async def delete_booking(
    booking_id: str,
    user_id: str = Depends(get_current_user_id),
    is_admin: bool = Depends(get_is_admin),
    service: MarketplaceService = Depends(get_marketplace_service),
) -> SuccessMessage:
    service.delete_booking(booking_id, user_id, is_admin)
    return SuccessMessage(message="Booking deleted")
