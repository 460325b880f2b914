"""Tests for search query composition (no database needed)."""

import pytest
from sqlalchemy.dialects import postgresql, sqlite

from app.services.filters import normalize_filters
from app.services.query_builder import PRICE, build_predicates, build_search_queries


def _sql(stmt, dialect=None):
    return str(stmt.compile(dialect=dialect or sqlite.dialect()))


def _params(stmt):
    return stmt.compile(dialect=sqlite.dialect()).params


# --- predicates ---


def test_no_filters_no_predicates():
    assert build_predicates(normalize_filters({})) == []


@pytest.mark.parametrize("raw", [
    {"resortIds": ""},
    {"resortIds": []},
    {"hotelIds": "x,y"},
    {"availableOnly": False},
    {"availableOnly": "false"},
    {"withFlight": "maybe"},
    {"adults": 0},
    {"priceMin": ""},
])
def test_absent_or_empty_filters_add_nothing(raw):
    assert build_predicates(normalize_filters(raw)) == []


@pytest.mark.parametrize("raw", [
    {"availableOnly": True},
    {"withFlight": False},
    {"children": 0},
    {"priceMin": 0},
    {"resortIds": "10"},
    {"starsMin": "4"},
])
def test_each_present_filter_adds_one_predicate(raw):
    assert len(build_predicates(normalize_filters(raw))) == 1


def test_all_filters():
    f = normalize_filters({
        "fromId": 1, "countryId": 7, "dateFrom": "2025-06-01", "dateTo": "2025-06-30",
        "nightsMin": 7, "nightsMax": 14, "adults": 2, "children": 0, "starsMin": 4,
        "mealPlanId": 2, "priceMin": 100, "priceMax": 2000, "resortIds": "10,11",
        "hotelIds": "100", "withFlight": True, "availableOnly": True,
    })
    assert len(build_predicates(f)) == 16


# --- list / count queries ---


def test_count_query_has_no_ordering_or_paging():
    queries = build_search_queries(normalize_filters({"countryId": 7, "sort": "popularity"}))
    count_sql = _sql(queries.count_query)
    assert "count(*)" in count_sql
    assert "ORDER BY" not in count_sql
    assert "LIMIT" not in count_sql
    assert "OFFSET" not in count_sql


def test_list_and_count_share_joins_and_where():
    f = normalize_filters({"countryId": 7, "nightsMin": 7, "resortIds": "10,11", "priceMax": 900,
                           "availableOnly": True})
    queries = build_search_queries(f)
    list_sql = _sql(queries.list_query)
    count_sql = _sql(queries.count_query)

    list_from_where = list_sql[list_sql.index("FROM"):list_sql.index("ORDER BY")].strip()
    count_from_where = count_sql[count_sql.index("FROM"):].strip()
    assert list_from_where == count_from_where


def test_currency_join_uses_requested_code():
    queries = build_search_queries(normalize_filters({"currency": "usd"}))
    sql = _sql(queries.count_query)
    assert "JOIN currency_rate ON currency_rate.code = ?" in sql
    assert "usd" in _params(queries.count_query).values()


def test_filter_values_are_bound_not_inlined():
    f = normalize_filters({"countryId": 987654, "priceMin": 4321.5, "dateFrom": "2031-12-25"})
    queries = build_search_queries(f)
    for stmt in (queries.list_query, queries.count_query):
        sql = _sql(stmt)
        assert "987654" not in sql
        assert "4321.5" not in sql
        assert "2031" not in sql
        params = _params(stmt).values()
        assert 987654 in params
        assert 4321.5 in params


def test_paging_is_bound():
    queries = build_search_queries(normalize_filters({"page": 3, "pageSize": 20}))
    params = _params(queries.list_query)
    assert 20 in params.values()
    assert 40 in params.values()


def test_price_expression_shared_by_select_where_and_order():
    queries = build_search_queries(normalize_filters({"priceMin": 10, "sort": "price_desc"}))
    sql = _sql(queries.list_query)
    price_sql = _sql(PRICE)
    assert sql.count(price_sql) == 3
    assert f"ORDER BY {price_sql} DESC, tour.id DESC" in sql


@pytest.mark.parametrize("sort,order_by", [
    ("price_asc", "ORDER BY {price} ASC, tour.id DESC"),
    ("popularity", "ORDER BY tour.popularity DESC, tour.id DESC"),
    ("newest", "ORDER BY tour.created_at DESC, tour.id DESC"),
    ("bogus", "ORDER BY {price} ASC, tour.id DESC"),
])
def test_sort_orders(sort, order_by):
    queries = build_search_queries(normalize_filters({"sort": sort}))
    assert order_by.format(price=_sql(PRICE)) in _sql(queries.list_query)


def test_id_sets_compile_for_postgresql():
    queries = build_search_queries(normalize_filters({"resortIds": "10,11", "hotelIds": "100"}))
    sql = _sql(queries.count_query, postgresql.dialect())
    assert "tour.resort_id IN" in sql
    assert "tour.hotel_id IN" in sql
