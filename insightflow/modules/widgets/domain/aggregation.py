from __future__ import annotations

from typing import Any, Iterable

from insightflow.modules.widgets.domain.config import AggregationType
from insightflow.modules.widgets.domain.values import round2, to_number, to_text

DEFAULT_AGGREGATION: AggregationType = "SUM"


def reduce_values(values: list[float], aggregation: AggregationType | None) -> int | float:
    """Collapse numbers with one operator and round to 2 decimals. Empty input reduces to 0."""
    if not values:
        return 0
    op = aggregation or DEFAULT_AGGREGATION
    if op == "SUM":
        result = sum(values)
    elif op == "AVG":
        result = sum(values) / len(values)
    elif op == "MIN":
        result = min(values)
    elif op == "MAX":
        result = max(values)
    elif op == "COUNT":
        result = float(len(values))
    else:
        result = values[0]
    return round2(result)


def aggregate_rows(
    rows: Iterable[dict[str, Any]],
    group_field: str,
    value_field: str,
    aggregation: AggregationType | None,
) -> list[dict[str, Any]]:
    """
    Group rows by the string form of `group_field` and reduce `value_field` per group.

    Groups come out in first-encounter order, one row each:
    `{group_field: key, value_field: reduced}`.
    """
    groups: dict[str, list[float]] = {}
    for row in rows:
        key = to_text(row.get(group_field))
        groups.setdefault(key, []).append(to_number(row.get(value_field)))

    return [
        {group_field: key, value_field: reduce_values(values, aggregation)}
        for key, values in groups.items()
    ]
