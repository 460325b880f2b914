"""
Repository pattern for reference ("meta") data.
Read-only lookups that populate the search filter controls.
"""

from typing import List, Optional, Dict, Any, Sequence
from sqlalchemy.orm import Session
from sqlalchemy import select
from fastapi import Depends
import logging

from app.db.models import DepartureCity, Country, Resort, Hotel, MealPlan
from app.db.database import get_db

logger = logging.getLogger(__name__)


class CatalogRepository:
    """
    Repository for the lookup lists of the tour catalog.
    Store errors propagate to the caller.
    """

    def __init__(self, db: Session):
        self.db = db

    def _rows(self, stmt) -> List[Dict[str, Any]]:
        return [dict(row) for row in self.db.execute(stmt).mappings().all()]

    def list_departure_cities(self) -> List[Dict[str, Any]]:
        """Departure cities ordered by name."""
        return self._rows(
            select(DepartureCity.id, DepartureCity.name).order_by(DepartureCity.name)
        )

    def list_countries(self) -> List[Dict[str, Any]]:
        """Destination countries ordered by name."""
        return self._rows(select(Country.id, Country.name).order_by(Country.name))

    def list_resorts(self, country_id: Optional[int] = None) -> List[Dict[str, Any]]:
        """Resorts ordered by name, optionally restricted to one country."""
        stmt = select(Resort.id, Resort.name)
        if country_id is not None:
            stmt = stmt.where(Resort.country_id == country_id)
        return self._rows(stmt.order_by(Resort.name))

    def list_hotels(self, resort_ids: Optional[Sequence[int]] = None) -> List[Dict[str, Any]]:
        """
        Hotels ordered by stars (best first), then name.
        An empty or missing resort set returns every hotel.
        """
        stmt = select(Hotel.id, Hotel.name, Hotel.stars, Hotel.resort_id)
        if resort_ids:
            stmt = stmt.where(Hotel.resort_id.in_(list(resort_ids)))
        rows = self._rows(stmt.order_by(Hotel.stars.desc(), Hotel.name))
        logger.debug(f"Hotel lookup for resorts {list(resort_ids or [])} returned {len(rows)} rows")
        return rows

    def list_meal_plans(self) -> List[Dict[str, Any]]:
        """Meal plans in catalog order."""
        return self._rows(select(MealPlan.id, MealPlan.code, MealPlan.name).order_by(MealPlan.id))


def get_catalog_repository(db: Session = Depends(get_db)) -> CatalogRepository:
    """FastAPI dependency for the catalog repository."""
    return CatalogRepository(db)
