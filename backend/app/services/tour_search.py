"""
Tour search execution.

Runs the page query and the count query for one TourFilters record side by
side, each on its own pooled connection, and merges them into one page
envelope. The two reads are independent: under concurrent catalog writes,
total and len(items) may disagree. If either read fails, or the pair exceeds
the per-request timeout, the whole search fails.
"""

from __future__ import annotations
from datetime import date
from typing import Any, Dict, List, Optional
import asyncio
import logging

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.engine import Engine
from sqlalchemy.sql import Select

from app.core.config import settings
from app.core.monitoring import track_performance
from app.services.filters import TourFilters
from app.services.query_builder import build_search_queries

logger = logging.getLogger(__name__)


class TourItem(BaseModel):
    """One result card, renderable without further lookups."""
    id: int
    title: str
    start_date: date
    nights: int
    price: float
    currency: str
    with_flight: bool
    available: bool
    is_hot: bool
    popularity: int
    country: str
    resort: str
    hotel: str
    stars: int
    meal_code: str
    meal_name: str
    photos: List[str] = Field(default_factory=list)


class TourSearchPage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    page: int
    page_size: int = Field(alias="pageSize")
    total: int
    items: List[TourItem]


def _row_to_item(row: Dict[str, Any]) -> TourItem:
    data = dict(row)
    data["price"] = float(data["price"])
    data["photos"] = list(data.get("photos") or [])
    return TourItem.model_validate(data)


class TourSearchService:
    """Executes tour searches against a pooled engine."""

    def __init__(self, engine: Engine, timeout: Optional[float] = None):
        self.engine = engine
        self.timeout = timeout if timeout is not None else settings.search_timeout_seconds

    @track_performance("tour list query")
    def _fetch_items(self, stmt: Select) -> List[TourItem]:
        with self.engine.connect() as conn:
            rows = conn.execute(stmt).mappings().all()
        return [_row_to_item(row) for row in rows]

    @track_performance("tour count query")
    def _fetch_total(self, stmt: Select) -> int:
        with self.engine.connect() as conn:
            total = conn.execute(stmt).scalar()
        return int(total or 0)

    @track_performance("tour search")
    async def search(self, filters: TourFilters) -> TourSearchPage:
        queries = build_search_queries(filters)

        # both reads share one deadline; a timeout abandons the pair
        items, total = await asyncio.wait_for(
            asyncio.gather(
                asyncio.to_thread(self._fetch_items, queries.list_query),
                asyncio.to_thread(self._fetch_total, queries.count_query),
            ),
            timeout=self.timeout,
        )

        logger.debug(f"Tour search page {filters.page}: {len(items)} of {total}")
        return TourSearchPage(page=filters.page, page_size=filters.page_size, total=total, items=items)
