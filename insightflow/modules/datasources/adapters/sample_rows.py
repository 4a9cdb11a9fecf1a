from __future__ import annotations

import random
from typing import Any

from insightflow.modules.widgets.domain.config import ChartType
from insightflow.modules.widgets.domain.ports import RowSet, RowSourcePort, SourceSelection


def generate_sales_data() -> list[dict[str, Any]]:
    return [
        {"month": "Jan", "revenue": 4000, "profit": 2400, "churn": 100, "status": "Active", "category": "Electronics", "date": "2024-01-01"},
        {"month": "Feb", "revenue": 3000, "profit": 1398, "churn": 200, "status": "Active", "category": "Furniture", "date": "2024-02-01"},
        {"month": "Mar", "revenue": 2000, "profit": 9800, "churn": 150, "status": "Active", "category": "Electronics", "date": "2024-03-01"},
        {"month": "Apr", "revenue": 2780, "profit": 3908, "churn": 180, "status": "Inactive", "category": "Clothing", "date": "2024-04-01"},
        {"month": "May", "revenue": 1890, "profit": 4800, "churn": 220, "status": "Inactive", "category": "Furniture", "date": "2024-05-01"},
        {"month": "Jun", "revenue": 2390, "profit": 3800, "churn": 190, "status": "Active", "category": "Clothing", "date": "2024-06-01"},
        {"month": "Jul", "revenue": 3490, "profit": 4300, "churn": 170, "status": "Active", "category": "Electronics", "date": "2024-07-01"},
    ]


def generate_scatter_data(count: int = 50, seed: int | None = None) -> list[dict[str, Any]]:
    rng = random.Random(seed)
    return [
        {
            "x": rng.randrange(100),
            "y": rng.randrange(100),
            "z": rng.randrange(500),
            "route_type": "Express" if index % 2 == 0 else "Standard",
        }
        for index in range(count)
    ]


class SampleRowSource(RowSourcePort):
    """Stands in for live source execution: saved queries and tabular sources return the sales sample."""

    def __init__(self, scatter_seed: int | None = None) -> None:
        self._scatter_seed = scatter_seed

    def resolve(self, selection: SourceSelection, chart_type: ChartType) -> RowSet:
        if selection.kind == "datasource" and chart_type == "SCATTER":
            rows = generate_scatter_data(seed=self._scatter_seed)
        else:
            rows = generate_sales_data()
        fields = list(rows[0].keys()) if rows else []
        return RowSet(rows=rows, fields=fields)
