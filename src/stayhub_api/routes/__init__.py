"""API routes package.

Routers are organized by domain:

- health: Health check endpoints
- availability: Stay admissibility checks
- pricing: Stay quotes
- cart: Cart management
- orders: Checkout, payment and order cancellation
- bookings: Direct booking requests and the booking lifecycle

All routers are registered in main.py with /api prefix.
"""

from stayhub_api.routes.availability import router as availability_router
from stayhub_api.routes.bookings import router as bookings_router
from stayhub_api.routes.cart import router as cart_router
from stayhub_api.routes.health import router as health_router
from stayhub_api.routes.orders import router as orders_router
from stayhub_api.routes.pricing import router as pricing_router

__all__ = [
    "availability_router",
    "bookings_router",
    "cart_router",
    "health_router",
    "orders_router",
    "pricing_router",
]
