"""Pricing endpoint for stay quotes.

All amounts are whole currency units. Each fee line (cleaning 10%,
service 15%, taxes 8% of the subtotal) is rounded on its own.
"""

from fastapi import APIRouter, Depends

from stayhub.models import PriceBreakdown
from stayhub.services.marketplace import MarketplaceService
from stayhub_api.dependencies import get_marketplace_service
from stayhub_api.models import PriceQuoteRequest

router = APIRouter(tags=["pricing"])


@router.post(
    "/pricing/quote",
    summary="Quote a stay",
    description="""
Calculate the price breakdown for a stay at a property's current nightly rate.

Does not check capacity or conflicts; use GET /api/availability for that.
""",
    response_description="Price breakdown",
    response_model=PriceBreakdown,
    responses={
        200: {
            "description": "Quote calculated",
            "content": {
                "application/json": {
                    "example": {
                        "price_per_night": 100,
                        "nights": 3,
                        "subtotal": 300,
                        "cleaning_fee": 30,
                        "service_fee": 45,
                        "taxes": 24,
                        "total": 399,
                    }
                }
            },
        },
        400: {"description": "Check-out is not after check-in"},
        404: {"description": "Property not found"},
    },
)
async def quote_stay(
    body: PriceQuoteRequest,
    service: MarketplaceService = Depends(get_marketplace_service),
) -> PriceBreakdown:
    """Quote a stay at the property's current price."""
    return service.price_stay(body.property_id, body.check_in, body.check_out)
