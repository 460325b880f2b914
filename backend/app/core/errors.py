"""
Operation-scoped failures.
Each public operation fails with its own code (tours_failed, hotels_failed...)
so the client can attribute the failure to the right part of the page.
Details stay in the server log.
"""

from fastapi import Request
from fastapi.responses import JSONResponse
import logging

logger = logging.getLogger(__name__)

TOURS_FAILED = "tours_failed"
DEPARTURES_FAILED = "departures_failed"
COUNTRIES_FAILED = "countries_failed"
RESORTS_FAILED = "resorts_failed"
HOTELS_FAILED = "hotels_failed"
MEAL_PLANS_FAILED = "meal_plans_failed"


class CatalogError(Exception):
    def __init__(self, code: str, status_code: int = 500):
        self.code = code
        self.status_code = status_code
        super().__init__(code)


async def catalog_error_handler(request: Request, exc: CatalogError) -> JSONResponse:
    """Generic, non-leaking error body; the cause was already logged by the route."""
    logger.warning(f"{request.method} {request.url.path} failed: {exc.code}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.code})
