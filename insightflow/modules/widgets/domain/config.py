from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

ChartType = Literal["BAR", "LINE", "PIE", "AREA", "SCATTER", "HEATMAP", "TABLE", "HTML", "INDICATOR"]
AggregationType = Literal["NONE", "SUM", "AVG", "MIN", "MAX", "COUNT"]
FilterType = Literal["SELECT", "DATE_RANGE", "TEXT"]

CHART_TYPES: tuple[str, ...] = ("BAR", "LINE", "PIE", "AREA", "SCATTER", "HEATMAP", "TABLE", "HTML", "INDICATOR")
DEFAULT_COLORS: list[str] = ["#3b82f6", "#10b981", "#f59e0b", "#8b5cf6", "#ef4444"]
HTML_PLACEHOLDER = '<div class="p-4">Edit HTML content</div>'

MIN_WIDTH = 1
MAX_WIDTH = 3
MIN_HEIGHT = 150
DEFAULT_HEIGHT = 300


class WidgetConfig(BaseModel):
    x_axis: str | None = None
    data_keys: list[str] = Field(default_factory=list)
    aggregation: AggregationType | None = None
    colors: list[str] | None = None
    html_content: str | None = None
    query_id: str | None = None
    filter_mapping: dict[str, str] = Field(default_factory=dict)

    @field_validator("filter_mapping", mode="before")
    @classmethod
    def default_mapping(cls, value: Any) -> Any:
        return {} if value is None else value


class WidgetLayout(BaseModel):
    w: int = Field(default=MIN_WIDTH, ge=MIN_WIDTH, le=MAX_WIDTH)
    h: int = Field(default=DEFAULT_HEIGHT, ge=MIN_HEIGHT)


class Widget(BaseModel):
    id: str
    type: ChartType
    title: str
    data: list[dict[str, Any]] = Field(default_factory=list)
    config: WidgetConfig = Field(default_factory=WidgetConfig)
    layout: WidgetLayout = Field(default_factory=WidgetLayout)


class DashboardFilter(BaseModel):
    id: str
    label: str
    type: FilterType
    options: list[str] | None = None
    default_value: Any | None = None


def default_layout(chart_type: ChartType) -> WidgetLayout:
    return WidgetLayout(w=MAX_WIDTH if chart_type == "TABLE" else MIN_WIDTH, h=DEFAULT_HEIGHT)


def clamp_width(width: int) -> int:
    return min(MAX_WIDTH, max(MIN_WIDTH, width))


def clamp_height(height: int) -> int:
    return max(MIN_HEIGHT, height)


def missing_required_fields(
    chart_type: ChartType,
    *,
    x_axis: str | None,
    value_field: str | None,
    columns: list[str],
) -> list[str]:
    """Fields the chart type needs before its preview can be computed or saved."""
    if chart_type == "HTML":
        return []
    if chart_type == "TABLE":
        return [] if columns else ["columns"]
    if chart_type == "INDICATOR":
        return [] if value_field else ["value_field"]
    missing: list[str] = []
    if not x_axis:
        missing.append("x_axis")
    if not value_field:
        missing.append("value_field")
    return missing


@dataclass
class WidgetConfigValidationError(Exception):
    field_errors: dict[str, list[str]]

    def to_detail(self) -> dict[str, Any]:
        return {
            "message": "Widget config validation failed",
            "field_errors": self.field_errors,
        }


def _add_error(errors: dict[str, list[str]], key: str, message: str) -> None:
    errors.setdefault(key, []).append(message)


def validate_widget_fields(
    *,
    title: str,
    chart_type: ChartType,
    x_axis: str | None,
    value_field: str | None,
    columns: list[str],
) -> None:
    errors: dict[str, list[str]] = {}
    if not title.strip():
        _add_error(errors, "title", "Widget title is required")
    for field in missing_required_fields(chart_type, x_axis=x_axis, value_field=value_field, columns=columns):
        if field == "columns":
            _add_error(errors, field, "Table widget requires at least one selected column")
        elif field == "value_field":
            _add_error(errors, field, f"{chart_type.capitalize()} widget requires a value field")
        else:
            _add_error(errors, field, f"{chart_type.capitalize()} widget requires an x-axis field")
    if errors:
        raise WidgetConfigValidationError(errors)
