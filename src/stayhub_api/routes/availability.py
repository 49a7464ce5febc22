"""Availability endpoint for checking whether a stay can be booked.

Dates may be bare ISO dates (midnight) or ISO datetimes. Check-out is
exclusive: a stay ending on another's check-in day does not conflict.
"""

import datetime as dt

from fastapi import APIRouter, Depends, Query

from stayhub.models import AvailabilityResult, GuestCounts, StayRequest
from stayhub.services.marketplace import MarketplaceService
from stayhub_api.dependencies import get_marketplace_service

router = APIRouter(tags=["availability"])


@router.get(
    "/availability",
    summary="Check stay availability",
    description="""
Check whether a property can be booked for a date range and party size.

Runs the same checks as booking creation, in order: date range,
property active, capacity, then overlap with pending or confirmed
bookings.

**Notes:**
- `nights` is the ceiling of whole days between check-in and check-out
- Inadmissible stays return the matching error code (400/404/409)
""",
    response_description="Admissible stay with its night count",
    response_model=AvailabilityResult,
    responses={
        200: {
            "description": "Stay is admissible",
            "content": {
                "application/json": {
                    "example": {
                        "ok": True,
                        "nights": 3,
                        "property_id": "PROP-001",
                        "check_in": "2025-06-01T00:00:00",
                        "check_out": "2025-06-04T00:00:00",
                    }
                }
            },
        },
        400: {"description": "Invalid date range, capacity exceeded or property inactive"},
        404: {"description": "Property not found"},
        409: {"description": "Dates overlap an existing booking"},
    },
)
async def check_availability(
    property_id: str = Query(..., min_length=1, description="Property ID"),
    check_in: dt.datetime | dt.date = Query(..., description="Check-in (ISO 8601)"),
    check_out: dt.datetime | dt.date = Query(..., description="Check-out (ISO 8601)"),
    adults: int = Query(default=1, ge=1, description="Number of adults"),
    children: int = Query(default=0, ge=0, description="Number of children"),
    infants: int = Query(default=0, ge=0, description="Number of infants"),
    service: MarketplaceService = Depends(get_marketplace_service),
) -> AvailabilityResult:
    stay = StayRequest(
        property_id=property_id,
        check_in=check_in,
        check_out=check_out,
        guests=GuestCounts(adults=adults, children=children, infants=infants),
    )
    return service.check_availability(stay)
