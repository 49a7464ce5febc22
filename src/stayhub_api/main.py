"""Stayhub REST API.

Serves the marketplace engine over HTTP, locally through uvicorn and on
Lambda through Mangum. Every route lives under /api.
"""

import logging
from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from mangum import Mangum

from stayhub.utils.logging import CorrelationIdFilter, StructuredFormatter
from stayhub_api.exceptions import register_exception_handlers
from stayhub_api.middleware.correlation import CorrelationIdMiddleware
from stayhub_api.routes import (
    availability_router,
    bookings_router,
    cart_router,
    health_router,
    orders_router,
    pricing_router,
)

_handler = logging.StreamHandler()
_handler.setFormatter(StructuredFormatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
_handler.addFilter(CorrelationIdFilter())
logging.basicConfig(level=logging.INFO, handlers=[_handler])

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Stayhub API",
    description="REST API for stay availability, pricing, checkout and bookings",
    version="0.1.0",
)

# Local frontend origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(CorrelationIdMiddleware)

register_exception_handlers(app)

app.include_router(health_router, prefix="/api")
app.include_router(availability_router, prefix="/api")
app.include_router(pricing_router, prefix="/api")
app.include_router(cart_router, prefix="/api")
app.include_router(orders_router, prefix="/api")
app.include_router(bookings_router, prefix="/api")


@app.get("/api/ping")
async def ping() -> dict[str, Any]:
    """Liveness check that skips the engine entirely."""
    return {
        "status": "ok",
        "timestamp": datetime.now(UTC).isoformat(),
        "service": "stayhub-api",
    }


# API Gateway entry point
handler = Mangum(app, lifespan="off")


def run_server(host: str = "0.0.0.0", port: int = 8080, reload: bool = True) -> None:
    """Serve the app with uvicorn, reloading on source changes unless told not to."""
    import uvicorn

    if reload:
        # reload needs an import string, not the app object
        uvicorn.run("stayhub_api.main:app", host=host, port=port, reload=True, reload_dirs=["src"])
    else:
        uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run_server()
