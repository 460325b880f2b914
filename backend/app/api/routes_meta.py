"""
Reference-data routes that populate the search filter controls.

  GET  /meta/departures
  GET  /meta/countries
  GET  /meta/resorts?countryId=
  GET  /meta/hotels?resortIds=1,2
  POST /meta/hotels            {"resortIds": [1, 2]}
  GET  /meta/meal-plans
"""

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel
from typing import Any, Callable, List, Optional
import logging

from app.core.errors import (
    CatalogError,
    COUNTRIES_FAILED,
    DEPARTURES_FAILED,
    HOTELS_FAILED,
    MEAL_PLANS_FAILED,
    RESORTS_FAILED,
)
from app.core.rate_limiting import limiter, META_LIMIT
from app.db.repositories import CatalogRepository, get_catalog_repository
from app.services.filters import int_list, int_or_none

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/meta", tags=["meta"])


# ---------------------------------------------------------------------------
# Response Models
# ---------------------------------------------------------------------------

class NamedItem(BaseModel):
    id: int
    name: str


class HotelItem(BaseModel):
    id: int
    name: str
    stars: int
    resort_id: int


class MealPlanItem(BaseModel):
    id: int
    code: str
    name: str


def _lookup(error_code: str, fetch: Callable[..., List[Any]], *args) -> List[Any]:
    try:
        return fetch(*args)
    except Exception as e:
        logger.error(f"Reference lookup {fetch.__name__} failed: {e!r}", exc_info=True)
        raise CatalogError(error_code) from e


# ---------------------------------------------------------------------------
# ENDPOINTS
# ---------------------------------------------------------------------------

@router.get("/departures", response_model=List[NamedItem])
@limiter.limit(META_LIMIT)
def list_departures(request: Request, repo: CatalogRepository = Depends(get_catalog_repository)):
    """Departure cities, by name."""
    return _lookup(DEPARTURES_FAILED, repo.list_departure_cities)


@router.get("/countries", response_model=List[NamedItem])
@limiter.limit(META_LIMIT)
def list_countries(request: Request, repo: CatalogRepository = Depends(get_catalog_repository)):
    """Destination countries, by name."""
    return _lookup(COUNTRIES_FAILED, repo.list_countries)


@router.get("/resorts", response_model=List[NamedItem])
@limiter.limit(META_LIMIT)
def list_resorts(
    request: Request,
    countryId: Optional[str] = Query(None, description="Only resorts of this country"),
    repo: CatalogRepository = Depends(get_catalog_repository),
):
    """Resorts by name. An unparseable countryId lists every resort."""
    return _lookup(RESORTS_FAILED, repo.list_resorts, int_or_none(countryId))


@router.get("/hotels", response_model=List[HotelItem])
@limiter.limit(META_LIMIT)
def list_hotels(
    request: Request,
    resortIds: Optional[List[str]] = Query(None, description="Resort ids, comma-separated or repeated"),
    repo: CatalogRepository = Depends(get_catalog_repository),
):
    """Hotels, best rated first. No resort ids means all hotels."""
    return _lookup(HOTELS_FAILED, repo.list_hotels, int_list(resortIds))


@router.post("/hotels", response_model=List[HotelItem])
@limiter.limit(META_LIMIT)
async def list_hotels_for_resorts(
    request: Request,
    repo: CatalogRepository = Depends(get_catalog_repository),
):
    """Same as GET /meta/hotels, resort ids taken from {"resortIds": [...]}."""
    try:
        body = await request.json()
    except ValueError:
        body = {}
    resort_ids = int_list(body.get("resortIds")) if isinstance(body, dict) else []
    return _lookup(HOTELS_FAILED, repo.list_hotels, resort_ids)


@router.get("/meal-plans", response_model=List[MealPlanItem])
@limiter.limit(META_LIMIT)
def list_meal_plans(request: Request, repo: CatalogRepository = Depends(get_catalog_repository)):
    """Meal plans in catalog order."""
    return _lookup(MEAL_PLANS_FAILED, repo.list_meal_plans)
