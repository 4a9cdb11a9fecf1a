import copy
from datetime import date

import pytest

from insightflow.errors import FilterValueError
from insightflow.modules.widgets.domain.config import DashboardFilter
from insightflow.modules.widgets.domain.filters import (
    apply_dashboard_filters,
    default_filter_values,
    merge_active_values,
    resolve_date_preset,
)

CATEGORY = DashboardFilter(id="category", label="Category", type="SELECT", options=["Electronics", "Furniture"])
PERIOD = DashboardFilter(id="period", label="Period", type="DATE_RANGE")
SEARCH = DashboardFilter(id="search", label="Search", type="TEXT")
FILTERS = [CATEGORY, PERIOD, SEARCH]
MAPPING = {"category": "category", "period": "date", "search": "category"}


def _months(rows):
    return [row["month"] for row in rows]


def test_select_matches_equal_values(sales_rows) -> None:
    result = apply_dashboard_filters(sales_rows, MAPPING, FILTERS, {"category": "Electronics"})
    assert _months(result) == ["Jan", "Mar", "Jul"]


def test_select_all_sentinel_keeps_every_row(sales_rows) -> None:
    assert apply_dashboard_filters(sales_rows, MAPPING, FILTERS, {"category": "All"}) == sales_rows


def test_unmapped_undefined_or_empty_filters_are_ignored(sales_rows) -> None:
    assert apply_dashboard_filters(sales_rows, {}, FILTERS, {"category": "Electronics"}) == sales_rows
    assert apply_dashboard_filters(sales_rows, MAPPING, [], {"category": "Electronics"}) == sales_rows
    assert apply_dashboard_filters(sales_rows, None, FILTERS, {"category": "Electronics"}) == sales_rows
    for empty in (None, "", {}):
        assert apply_dashboard_filters(sales_rows, MAPPING, FILTERS, {"category": empty}) == sales_rows


def test_date_range_is_inclusive(sales_rows) -> None:
    value = {"start": "2024-02-01", "end": "2024-04-01"}
    result = apply_dashboard_filters(sales_rows, MAPPING, FILTERS, {"period": value})
    assert _months(result) == ["Feb", "Mar", "Apr"]


def test_date_range_with_one_bound(sales_rows) -> None:
    result = apply_dashboard_filters(sales_rows, MAPPING, FILTERS, {"period": {"start": "2024-06-01"}})
    assert _months(result) == ["Jun", "Jul"]
    result = apply_dashboard_filters(sales_rows, MAPPING, FILTERS, {"period": {"end": "2024-01-31T23:59:59Z"}})
    assert _months(result) == ["Jan"]


def test_date_range_keeps_rows_without_a_date_and_drops_unparseable_ones() -> None:
    rows = [
        {"id": 1, "date": "2024-03-10"},
        {"id": 2},
        {"id": 3, "date": ""},
        {"id": 4, "date": "not a date"},
    ]
    result = apply_dashboard_filters(rows, MAPPING, FILTERS, {"period": {"start": "2024-03-01"}})
    assert [row["id"] for row in result] == [1, 2, 3]


def test_date_range_rejects_bad_bounds(sales_rows) -> None:
    with pytest.raises(FilterValueError):
        apply_dashboard_filters(sales_rows, MAPPING, FILTERS, {"period": {"start": "yesterday"}})
    with pytest.raises(FilterValueError):
        apply_dashboard_filters(sales_rows, MAPPING, FILTERS, {"period": "2024-01-01"})


def test_text_is_case_insensitive_substring(sales_rows) -> None:
    result = apply_dashboard_filters(sales_rows, MAPPING, FILTERS, {"search": "ELEC"})
    assert _months(result) == ["Jan", "Mar", "Jul"]


def test_text_excludes_rows_without_the_field() -> None:
    rows = [{"category": "Furniture"}, {"other": "Furniture"}]
    assert apply_dashboard_filters(rows, MAPPING, FILTERS, {"search": "furn"}) == [{"category": "Furniture"}]


def test_filters_combine_with_and(sales_rows) -> None:
    active = {"category": "Electronics", "period": {"start": "2024-02-01", "end": "2024-07-31"}}
    assert _months(apply_dashboard_filters(sales_rows, MAPPING, FILTERS, active)) == ["Mar", "Jul"]


def test_input_rows_are_not_mutated(sales_rows) -> None:
    snapshot = copy.deepcopy(sales_rows)
    apply_dashboard_filters(sales_rows, MAPPING, FILTERS, {"category": "Furniture", "search": "f"})
    assert sales_rows == snapshot


def test_date_presets() -> None:
    today = date(2024, 3, 15)
    assert resolve_date_preset("7_DAYS", today).model_dump() == {"start": "2024-03-08", "end": "2024-03-15"}
    assert resolve_date_preset("30_DAYS", today).model_dump() == {"start": "2024-02-14", "end": "2024-03-15"}
    assert resolve_date_preset("THIS_MONTH", today).model_dump() == {"start": "2024-03-01", "end": "2024-03-15"}
    assert resolve_date_preset("LAST_MONTH", today).model_dump() == {"start": "2024-02-01", "end": "2024-02-29"}
    assert resolve_date_preset("ALL", today) is None


def test_last_month_wraps_the_year() -> None:
    assert resolve_date_preset("LAST_MONTH", date(2024, 1, 10)).model_dump() == {
        "start": "2023-12-01",
        "end": "2023-12-31",
    }


def test_active_values_merge_defaults_values_and_presets() -> None:
    filters = [
        CATEGORY.model_copy(update={"default_value": "Furniture"}),
        PERIOD,
        SEARCH,
    ]
    assert default_filter_values(filters) == {"category": "Furniture"}

    custom = {"start": "2024-01-01", "end": "2024-01-31"}
    active = merge_active_values(filters, {"period": custom}, {"period": "CUSTOM"}, date(2024, 3, 15))
    assert active == {"category": "Furniture", "period": custom}

    active = merge_active_values(filters, {"period": custom, "category": "All"}, {"period": "ALL"}, date(2024, 3, 15))
    assert active == {"category": "All", "period": None}

    active = merge_active_values(filters, None, {"period": "THIS_MONTH"}, date(2024, 3, 15))
    assert active["period"] == {"start": "2024-03-01", "end": "2024-03-15"}


def test_select_compares_text_forms_of_numeric_fields(sales_rows) -> None:
    churn = DashboardFilter(id="churn", label="Churn", type="SELECT", options=["100", "200"])
    result = apply_dashboard_filters(sales_rows, {"churn": "churn"}, [churn], {"churn": "200"})
    assert _months(result) == ["Feb"]
    assert len(apply_dashboard_filters(sales_rows, {"churn": "churn"}, [churn], {"churn": "All"})) == 7
