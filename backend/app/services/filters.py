"""
Tour search filter normalization.

Raw filters arrive either as query-string parameters or as a JSON body and
are loosely typed: numbers as strings, id sets as "1,2,3" or [1, "2"],
booleans as "true"/"false". Everything is normalized here, once, into a
strictly typed TourFilters record. Malformed values never raise; they
degrade to "no constraint" (or to the default for page/pageSize/currency/sort).
"""

from __future__ import annotations
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional
import logging
import math
import re

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.core.config import settings

logger = logging.getLogger(__name__)

BIGINT_MIN = -(2 ** 63)
BIGINT_MAX = 2 ** 63 - 1

# Fields that accept several values; every other repeated query key keeps its first value
LIST_FIELDS = frozenset({"resortIds", "hotelIds", "resort_ids", "hotel_ids"})

SUPPORTED_CURRENCIES = ("rub", "usd")
DEFAULT_CURRENCY = "rub"

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


class SortOrder(str, Enum):
    """Result ordering. Every mode breaks ties by tour id, newest id first."""
    PRICE_ASC = "price_asc"
    PRICE_DESC = "price_desc"
    POPULARITY = "popularity"
    NEWEST = "newest"


# ---------------------------------------------------------------------------
# Scalar parsers
# ---------------------------------------------------------------------------

def _leading_int(value: Any) -> Optional[int]:
    if value is None or value == "" or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    match = _LEADING_INT.match(str(value))
    return int(match.group(1)) if match else None


def int_or_none(value: Any) -> Optional[int]:
    """
    Leading integer of the value ("12abc" -> 12, "7.9" -> 7), else None.
    Integers outside the BIGINT range are None too: no column can match them.
    """
    number = _leading_int(value)
    if number is None or not BIGINT_MIN <= number <= BIGINT_MAX:
        return None
    return number


def number_or_none(value: Any) -> Optional[float]:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def bool_or_none(value: Any) -> Optional[bool]:
    """True/False literals or case-insensitive "true"/"false"; anything else is None."""
    if isinstance(value, bool):
        return value
    if value is None or value == "":
        return None
    text = str(value).lower()
    if text == "true":
        return True
    if text == "false":
        return False
    return None


def int_list(value: Any) -> List[int]:
    """
    Accepts [1, 2], ["1", "2"], "1,2" (or a list of such strings).
    Non-numeric entries are dropped, duplicates removed, order kept.
    """
    if value is None or value == "" or value == []:
        return []
    items = value if isinstance(value, (list, tuple)) else [value]
    ids: List[int] = []
    for item in items:
        parts = item.split(",") if isinstance(item, str) else [item]
        for part in parts:
            parsed = int_or_none(part.strip() if isinstance(part, str) else part)
            if parsed is not None:
                ids.append(parsed)
    return list(dict.fromkeys(ids))


def date_or_none(value: Any) -> Optional[date]:
    """YYYY-MM-DD (a trailing time part is ignored); unparseable text is None."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        logger.debug(f"Ignoring unparseable date filter: {value!r}")
        return None


def pick_currency(value: Any) -> str:
    currency = str(value or DEFAULT_CURRENCY).lower()
    return currency if currency in SUPPORTED_CURRENCIES else DEFAULT_CURRENCY


def pick_sort(value: Any) -> SortOrder:
    try:
        return SortOrder(value)
    except (ValueError, TypeError):
        return SortOrder.PRICE_ASC


# ---------------------------------------------------------------------------
# Filter record
# ---------------------------------------------------------------------------

class TourFilters(BaseModel):
    """
    Normalized search request. Wire names are camelCase (pageSize, fromId...).
    None / [] means "no constraint". For the id and count fields below, an
    explicit 0 is also "no constraint"; children keeps 0 as a real value.
    """
    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    page: int = 1
    page_size: int = Field(None, alias="pageSize", validate_default=True)
    currency: str = DEFAULT_CURRENCY
    sort: SortOrder = SortOrder.PRICE_ASC

    from_id: Optional[int] = Field(None, alias="fromId")
    country_id: Optional[int] = Field(None, alias="countryId")
    date_from: Optional[date] = Field(None, alias="dateFrom")
    date_to: Optional[date] = Field(None, alias="dateTo")
    nights_min: Optional[int] = Field(None, alias="nightsMin")
    nights_max: Optional[int] = Field(None, alias="nightsMax")
    adults: Optional[int] = None
    children: Optional[int] = None
    stars_min: Optional[int] = Field(None, alias="starsMin")
    meal_plan_id: Optional[int] = Field(None, alias="mealPlanId")
    price_min: Optional[float] = Field(None, alias="priceMin")
    price_max: Optional[float] = Field(None, alias="priceMax")
    resort_ids: List[int] = Field(default_factory=list, alias="resortIds")
    hotel_ids: List[int] = Field(default_factory=list, alias="hotelIds")
    with_flight: Optional[bool] = Field(None, alias="withFlight")
    available_only: Optional[bool] = Field(None, alias="availableOnly")

    @field_validator("page", mode="before")
    @classmethod
    def _page(cls, v):
        # keeps (page - 1) * page_size within a BIGINT OFFSET
        last_page = BIGINT_MAX // settings.max_page_size
        return min(last_page, max(1, _leading_int(v) or 1))

    @field_validator("page_size", mode="before")
    @classmethod
    def _page_size(cls, v):
        return min(settings.max_page_size, max(1, _leading_int(v) or settings.default_page_size))

    @field_validator("currency", mode="before")
    @classmethod
    def _currency(cls, v):
        return pick_currency(v)

    @field_validator("sort", mode="before")
    @classmethod
    def _sort(cls, v):
        return pick_sort(v)

    @field_validator(
        "from_id", "country_id", "nights_min", "nights_max",
        "adults", "stars_min", "meal_plan_id", mode="before",
    )
    @classmethod
    def _nonzero_int(cls, v):
        return int_or_none(v) or None

    @field_validator("children", mode="before")
    @classmethod
    def _int(cls, v):
        return int_or_none(v)

    @field_validator("date_from", "date_to", mode="before")
    @classmethod
    def _date(cls, v):
        return date_or_none(v)

    @field_validator("price_min", "price_max", mode="before")
    @classmethod
    def _number(cls, v):
        return number_or_none(v)

    @field_validator("resort_ids", "hotel_ids", mode="before")
    @classmethod
    def _ids(cls, v):
        return int_list(v)

    @field_validator("with_flight", "available_only", mode="before")
    @classmethod
    def _flag(cls, v):
        return bool_or_none(v)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


def normalize_filters(raw: Optional[Mapping[str, Any]]) -> TourFilters:
    """Single entry point: loosely typed mapping -> TourFilters. Never raises on input."""
    if not isinstance(raw, Mapping):
        raw = {}
    return TourFilters.model_validate(dict(raw))


# ---------------------------------------------------------------------------
# Transport adapters
# ---------------------------------------------------------------------------

def query_params_to_mapping(params) -> Dict[str, Any]:
    """
    Flatten a multi-valued query string (starlette QueryParams or similar).
    Id-set keys collect every value; any other key keeps its first one.
    """
    mapping: Dict[str, Any] = {}
    for key in params.keys():
        values = params.getlist(key)
        mapping[key] = values if key in LIST_FIELDS else values[0]
    return mapping


def filters_from_query(params) -> TourFilters:
    return normalize_filters(query_params_to_mapping(params))


def filters_from_body(body: Any) -> TourFilters:
    return normalize_filters(body if isinstance(body, Mapping) else {})
