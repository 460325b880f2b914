"""
Tour search query composition.

One join plan and one ordered predicate list are built per request and reused
verbatim by both the page query and the count query, so the reported total
always matches the rows the pages are cut from. Every filter value is a bound
parameter; the SQL text only ever contains static clauses and the ordering
picked by the SortOrder enum.

Prices are stored in roubles. The price shown, filtered and sorted on is
    tour.price_rub / currency_rate.rate_to_rub
with currency_rate joined on the requested currency code. An unknown code
joins nothing and produces an empty page rather than an error.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Tuple
import logging

from sqlalchemy import Boolean, Float, func, literal, select, true, type_coerce
from sqlalchemy.sql import Select
from sqlalchemy.sql.elements import ColumnElement

from app.db.models import Country, CurrencyRate, Hotel, MealPlan, Resort, Tour
from app.services.filters import SortOrder, TourFilters

logger = logging.getLogger(__name__)

# Converted price in the requested currency
PRICE = Tour.price_rub / CurrencyRate.rate_to_rub

_ORDERINGS: Dict[SortOrder, Tuple] = {
    SortOrder.PRICE_ASC: (PRICE.asc(), Tour.id.desc()),
    SortOrder.PRICE_DESC: (PRICE.desc(), Tour.id.desc()),
    SortOrder.POPULARITY: (Tour.popularity.desc(), Tour.id.desc()),
    SortOrder.NEWEST: (Tour.created_at.desc(), Tour.id.desc()),
}

RESULT_COLUMNS = (
    Tour.id,
    Tour.title,
    Tour.start_date,
    Tour.nights,
    type_coerce(PRICE, Float).label("price"),
    CurrencyRate.code.label("currency"),
    Tour.with_flight,
    Tour.available,
    Tour.is_hot,
    Tour.popularity,
    Country.name.label("country"),
    Resort.name.label("resort"),
    Hotel.name.label("hotel"),
    Hotel.stars,
    MealPlan.code.label("meal_code"),
    MealPlan.name.label("meal_name"),
    Tour.photos,
)


@dataclass(frozen=True)
class SearchQueries:
    list_query: Select
    count_query: Select


def _from_tours(stmt: Select, currency: str) -> Select:
    return (
        stmt.select_from(Tour)
        .join(Hotel, Hotel.id == Tour.hotel_id)
        .join(Country, Country.id == Tour.country_id)
        .join(Resort, Resort.id == Tour.resort_id)
        .join(MealPlan, MealPlan.id == Tour.meal_plan_id)
        .join(CurrencyRate, CurrencyRate.code == currency)
    )


def build_predicates(filters: TourFilters) -> List[ColumnElement]:
    """Zero or one clause per filter, in a fixed order; absent filters add nothing."""
    where: List[ColumnElement] = []

    if filters.from_id is not None:
        where.append(Tour.departure_city_id == filters.from_id)
    if filters.country_id is not None:
        where.append(Tour.country_id == filters.country_id)
    if filters.date_from is not None:
        where.append(Tour.start_date >= filters.date_from)
    if filters.date_to is not None:
        where.append(Tour.start_date <= filters.date_to)
    if filters.nights_min is not None:
        where.append(Tour.nights >= filters.nights_min)
    if filters.nights_max is not None:
        where.append(Tour.nights <= filters.nights_max)
    if filters.meal_plan_id is not None:
        where.append(Tour.meal_plan_id == filters.meal_plan_id)
    if filters.stars_min is not None:
        where.append(Hotel.stars >= filters.stars_min)

    if filters.resort_ids:
        where.append(Tour.resort_id.in_(filters.resort_ids))
    if filters.hotel_ids:
        where.append(Tour.hotel_id.in_(filters.hotel_ids))

    if filters.with_flight is not None:
        where.append(Tour.with_flight == literal(filters.with_flight, Boolean))
    if filters.available_only:
        where.append(Tour.available == true())

    # occupancy, checked against the hotel's limits
    if filters.adults is not None:
        where.append(Hotel.max_adults >= filters.adults)
    if filters.children is not None:
        where.append(Hotel.max_children >= filters.children)

    if filters.price_min is not None:
        where.append(PRICE >= filters.price_min)
    if filters.price_max is not None:
        where.append(PRICE <= filters.price_max)

    return where


def build_search_queries(filters: TourFilters) -> SearchQueries:
    """Page query (ordered, limited) and count query over the same FROM/WHERE."""
    where = build_predicates(filters)

    list_query = (
        _from_tours(select(*RESULT_COLUMNS), filters.currency)
        .where(*where)
        .order_by(*_ORDERINGS[filters.sort])
        .limit(filters.page_size)
        .offset(filters.offset)
    )
    count_query = _from_tours(select(func.count().label("total")), filters.currency).where(*where)

    logger.debug(f"Tour search: {len(where)} predicates, sort={filters.sort.value}, currency={filters.currency}")
    return SearchQueries(list_query=list_query, count_query=count_query)
