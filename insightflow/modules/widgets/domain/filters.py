from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Any, Iterable, Literal, Mapping

from pydantic import BaseModel

from insightflow.errors import FilterValueError
from insightflow.modules.widgets.domain.config import DashboardFilter
from insightflow.modules.widgets.domain.values import to_text

ALL_OPTION = "All"

DatePreset = Literal["ALL", "7_DAYS", "30_DAYS", "THIS_MONTH", "LAST_MONTH", "CUSTOM"]


class DateRangeValue(BaseModel):
    start: str | None = None
    end: str | None = None


def _parse_moment(raw: Any) -> datetime | None:
    if isinstance(raw, datetime):
        moment = raw
    elif isinstance(raw, date):
        moment = datetime(raw.year, raw.month, raw.day)
    else:
        text = str(raw).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            moment = datetime.fromisoformat(text)
        except ValueError:
            return None
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


def _parse_bound(raw: str | None, label: str) -> datetime | None:
    if not raw:
        return None
    moment = _parse_moment(raw)
    if moment is None:
        raise FilterValueError(f"Date range {label} '{raw}' is not an ISO date")
    return moment


def _is_unset(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (str, dict, list)) and not value:
        return True
    return False


def _select_matcher(field: str, value: Any):
    def matches(row: Mapping[str, Any]) -> bool:
        return value == ALL_OPTION or to_text(row.get(field)) == to_text(value)

    return matches


def _date_range_matcher(field: str, value: Any):
    if isinstance(value, DateRangeValue):
        bounds = value
    elif isinstance(value, Mapping):
        bounds = DateRangeValue.model_validate(dict(value))
    else:
        raise FilterValueError("Date range filter value must be an object with 'start' and/or 'end'")
    start = _parse_bound(bounds.start, "start")
    end = _parse_bound(bounds.end, "end")

    def matches(row: Mapping[str, Any]) -> bool:
        raw = row.get(field)
        if _is_unset(raw):
            return True
        if start is None and end is None:
            return True
        moment = _parse_moment(raw)
        if moment is None:
            return False
        if start is not None and moment < start:
            return False
        if end is not None and moment > end:
            return False
        return True

    return matches


def _text_matcher(field: str, value: Any):
    needle = to_text(value).casefold()

    def matches(row: Mapping[str, Any]) -> bool:
        if field not in row or row[field] is None:
            return False
        return needle in to_text(row[field]).casefold()

    return matches


_MATCHERS = {
    "SELECT": _select_matcher,
    "DATE_RANGE": _date_range_matcher,
    "TEXT": _text_matcher,
}


def apply_dashboard_filters(
    rows: Iterable[dict[str, Any]],
    filter_mapping: Mapping[str, str] | None,
    filters: Iterable[DashboardFilter],
    active_values: Mapping[str, Any],
) -> list[dict[str, Any]]:
    """
    Keep the rows that satisfy every dashboard filter this widget is wired to.

    A filter only applies when the widget maps it to a row field, the dashboard
    defines it and it currently has a value. Applicable filters are AND-ed.
    """
    mapping = filter_mapping or {}
    definitions = {item.id: item for item in filters}
    matchers = []
    for filter_id, value in active_values.items():
        field = mapping.get(filter_id)
        definition = definitions.get(filter_id)
        if not field or definition is None or _is_unset(value):
            continue
        matchers.append(_MATCHERS[definition.type](field, value))

    result = list(rows)
    for matches in matchers:
        result = [row for row in result if matches(row)]
    return result


def default_filter_values(filters: Iterable[DashboardFilter]) -> dict[str, Any]:
    return {item.id: item.default_value for item in filters if not _is_unset(item.default_value)}


def resolve_date_preset(preset: DatePreset, today: date) -> DateRangeValue | None:
    """Translate a quick-pick into a concrete range. CUSTOM is the caller's to fill."""
    if preset == "7_DAYS":
        return DateRangeValue(start=(today - timedelta(days=7)).isoformat(), end=today.isoformat())
    if preset == "30_DAYS":
        return DateRangeValue(start=(today - timedelta(days=30)).isoformat(), end=today.isoformat())
    if preset == "THIS_MONTH":
        return DateRangeValue(start=today.replace(day=1).isoformat(), end=today.isoformat())
    if preset == "LAST_MONTH":
        last_day = today.replace(day=1) - timedelta(days=1)
        return DateRangeValue(start=last_day.replace(day=1).isoformat(), end=last_day.isoformat())
    return None


def merge_active_values(
    filters: Iterable[DashboardFilter],
    values: Mapping[str, Any] | None,
    presets: Mapping[str, DatePreset] | None,
    today: date,
) -> dict[str, Any]:
    """Defaults first, then explicit values, then date presets (CUSTOM keeps the explicit value)."""
    definitions = list(filters)
    active = default_filter_values(definitions)
    active.update(values or {})
    for filter_id, preset in (presets or {}).items():
        if preset == "CUSTOM":
            continue
        resolved = resolve_date_preset(preset, today)
        active[filter_id] = resolved.model_dump() if resolved else None
    return active
