"""
FastAPI application factory.

* Registers routes for grouping and admin.
* Maps ``ConfigurationError`` to 422 responses.
* Applies rate-limiting middleware.
* Swagger / OpenAPI UI available at ``/docs``.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from src.api.middleware import limiter
from src.api.routes import admin, grouping
from src.domain.policy import ConfigurationError

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def _configuration_error_handler(
    request: Request, exc: ConfigurationError
) -> JSONResponse:
    logger.warning("Rejected request with invalid configuration: %s", exc)
    return JSONResponse(status_code=422, content={"detail": str(exc)})


def create_app() -> FastAPI:
    app = FastAPI(
        title="Ride Grouping Engine API",
        description=(
            "Groups pending ride requests into shared trips, orders each "
            "trip's pickups and drop-offs, and adapts group size to "
            "traffic.  Stateless: every call is computed from its body."
        ),
        version="1.0.0",
    )

    # Rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_exception_handler(ConfigurationError, _configuration_error_handler)

    # Routers
    app.include_router(grouping.router, prefix="/api/v1")
    app.include_router(admin.router, prefix="/api/v1")

    return app
