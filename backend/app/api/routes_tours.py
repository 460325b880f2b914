"""
Tour search routes.

  GET  /tours          -- filters in the query string
  POST /tours/search   -- filters in a JSON body

Both transports feed the same normalizer, so identical filters give
identical pages.
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.engine import Engine
import logging

from app.core.errors import CatalogError, TOURS_FAILED
from app.core.rate_limiting import limiter, SEARCH_LIMIT
from app.db.database import get_engine
from app.services.filters import TourFilters, filters_from_body, filters_from_query
from app.services.tour_search import TourSearchPage, TourSearchService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["tours"])


def get_tour_search_service(engine: Engine = Depends(get_engine)) -> TourSearchService:
    """FastAPI dependency for the search service."""
    return TourSearchService(engine)


async def _run_search(filters: TourFilters, service: TourSearchService) -> TourSearchPage:
    try:
        return await service.search(filters)
    except Exception as e:
        logger.error(
            f"Tour search failed for {filters.model_dump(exclude_defaults=True)}: {e!r}",
            exc_info=True,
        )
        raise CatalogError(TOURS_FAILED) from e


@router.get("/tours", response_model=TourSearchPage)
@limiter.limit(SEARCH_LIMIT)
async def list_tours(
    request: Request,
    service: TourSearchService = Depends(get_tour_search_service),
):
    """
    Paginated tour search.
    Unparseable parameters are ignored rather than rejected.
    """
    return await _run_search(filters_from_query(request.query_params), service)


@router.post("/tours/search", response_model=TourSearchPage)
@limiter.limit(SEARCH_LIMIT)
async def search_tours(
    request: Request,
    service: TourSearchService = Depends(get_tour_search_service),
):
    """Same search as GET /tours, filters taken from the request body."""
    try:
        body = await request.json()
    except ValueError:
        body = {}
    return await _run_search(filters_from_body(body), service)
