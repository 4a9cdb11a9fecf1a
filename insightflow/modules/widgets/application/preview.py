from __future__ import annotations

import re
import uuid
from typing import Any, Iterable, Literal

from pydantic import BaseModel, Field

from insightflow.modules.widgets.domain.aggregation import aggregate_rows, reduce_values
from insightflow.modules.widgets.domain.config import (
    DEFAULT_COLORS,
    HTML_PLACEHOLDER,
    AggregationType,
    ChartType,
    DashboardFilter,
    Widget,
    WidgetConfig,
    default_layout,
    missing_required_fields,
    validate_widget_fields,
)
from insightflow.modules.widgets.domain.ports import RowSet, RowSourcePort, SourceSelection
from insightflow.modules.widgets.domain.values import is_scalar, to_number, to_text

FieldSlot = Literal["X_AXIS", "VALUE", "COLUMNS", "FILTER"]

DEFAULT_SAMPLE_SIZE = 5


class WidgetDraft(BaseModel):
    title: str = ""
    chart_type: ChartType = "BAR"
    source: SourceSelection | None = None
    x_axis: str | None = None
    value_field: str | None = None
    columns: list[str] = Field(default_factory=list)
    aggregation: AggregationType = "SUM"
    filter_mapping: dict[str, str] = Field(default_factory=dict)
    editing_widget_id: str | None = None

    def missing_fields(self) -> list[str]:
        return missing_required_fields(
            self.chart_type,
            x_axis=self.x_axis,
            value_field=self.value_field,
            columns=self.columns,
        )

    @property
    def can_save(self) -> bool:
        return bool(self.title.strip()) and not self.missing_fields()


def validate_draft_for_save(draft: WidgetDraft) -> None:
    validate_widget_fields(
        title=draft.title,
        chart_type=draft.chart_type,
        x_axis=draft.x_axis,
        value_field=draft.value_field,
        columns=draft.columns,
    )


def _project_row(row: dict[str, Any], columns: list[str]) -> dict[str, Any]:
    projected: dict[str, Any] = {}
    for column in columns:
        value = row.get(column)
        projected[column] = value if is_scalar(value) else ""
    return projected


def build_preview(
    draft: WidgetDraft,
    raw_rows: list[dict[str, Any]],
    sample_size: int = DEFAULT_SAMPLE_SIZE,
) -> list[dict[str, Any]]:
    """
    Derive the rows a widget would show from the raw rows of its source.

    Incomplete configurations produce an empty preview instead of an error.
    """
    chart_type = draft.chart_type
    if chart_type == "TABLE":
        if not draft.columns:
            return [dict(row) for row in raw_rows[:sample_size]]
        return [_project_row(row, draft.columns) for row in raw_rows]
    if chart_type == "HTML":
        return []
    if draft.missing_fields():
        return []
    if chart_type == "INDICATOR":
        if draft.value_field is None:
            return []
        values = [to_number(row.get(draft.value_field)) for row in raw_rows]
        return [{draft.value_field: reduce_values(values, draft.aggregation)}]
    if draft.x_axis is None or draft.value_field is None:
        return []
    return aggregate_rows(raw_rows, draft.x_axis, draft.value_field, draft.aggregation)


def filter_id_for(field: str) -> str:
    return re.sub(r"\s+", "_", field.lower())


def filter_label_for(field: str) -> str:
    return field[:1].upper() + field[1:]


def distinct_options(rows: Iterable[dict[str, Any]], field: str) -> list[str]:
    seen: dict[str, None] = {}
    for row in rows:
        if field in row and row[field] is not None:
            seen.setdefault(to_text(row[field]), None)
    return list(seen)


class LivePreviewEngine:
    """
    Keeps a draft and its preview in sync.

    The preview is recomputed only when an input that shapes it changes:
    source, x-axis, value field, aggregation, chart type or table columns.
    """

    def __init__(
        self,
        row_source: RowSourcePort,
        *,
        draft: WidgetDraft | None = None,
        sample_size: int = DEFAULT_SAMPLE_SIZE,
    ) -> None:
        self._row_source = row_source
        self._sample_size = sample_size
        self._draft = draft or WidgetDraft()
        self._raw: RowSet = RowSet()
        self._raw_key: tuple[Any, ...] | None = None
        self._preview: list[dict[str, Any]] = []
        self._fingerprint: tuple[Any, ...] | None = None
        self.recompute_count = 0
        self._refresh()

    @property
    def draft(self) -> WidgetDraft:
        return self._draft

    @property
    def preview(self) -> list[dict[str, Any]]:
        return self._preview

    @property
    def fields(self) -> list[str]:
        return list(self._raw.fields)

    @property
    def raw_rows(self) -> list[dict[str, Any]]:
        return self._raw.rows

    def _shape(self) -> tuple[Any, ...]:
        draft = self._draft
        source = (draft.source.kind, draft.source.id) if draft.source else None
        return (
            source,
            draft.x_axis,
            draft.value_field,
            draft.aggregation,
            draft.chart_type,
            tuple(draft.columns),
        )

    def _load_rows(self) -> None:
        draft = self._draft
        if draft.source is None:
            self._raw = RowSet()
            self._raw_key = None
            return
        key = (draft.source.kind, draft.source.id, draft.chart_type)
        if key != self._raw_key:
            self._raw = self._row_source.resolve(draft.source, draft.chart_type)
            self._raw_key = key

    def _refresh(self) -> None:
        shape = self._shape()
        if shape == self._fingerprint:
            return
        self._load_rows()
        self._preview = build_preview(self._draft, self._raw.rows, self._sample_size)
        self._fingerprint = shape
        self.recompute_count += 1

    def _update(self, **changes: Any) -> None:
        self._draft = self._draft.model_copy(update=changes)
        self._refresh()

    def set_title(self, title: str) -> None:
        self._update(title=title)

    def set_chart_type(self, chart_type: ChartType) -> None:
        self._update(chart_type=chart_type)

    def set_aggregation(self, aggregation: AggregationType) -> None:
        self._update(aggregation=aggregation)

    def select_source(self, source: SourceSelection | None) -> None:
        self._update(source=source)

    def remove_column(self, field: str) -> None:
        self._update(columns=[item for item in self._draft.columns if item != field])

    def assign_field(
        self,
        slot: FieldSlot,
        field: str,
        dashboard_filters: Iterable[DashboardFilter] = (),
    ) -> DashboardFilter | None:
        """
        Put a source field into a builder slot.

        For the FILTER slot the widget is mapped to a dashboard filter derived
        from the field name; the new SELECT filter is returned when the
        dashboard does not define it yet.
        """
        if slot == "X_AXIS":
            self._update(x_axis=field)
        elif slot == "VALUE":
            self._update(value_field=field)
        elif slot == "COLUMNS":
            if field not in self._draft.columns:
                self._update(columns=[*self._draft.columns, field])
        elif slot == "FILTER":
            filter_id = filter_id_for(field)
            self._update(filter_mapping={**self._draft.filter_mapping, filter_id: field})
            if any(item.id == filter_id for item in dashboard_filters):
                return None
            return DashboardFilter(
                id=filter_id,
                label=filter_label_for(field),
                type="SELECT",
                options=distinct_options(self._raw.rows, field),
            )
        else:
            raise ValueError(f"Unknown field slot '{slot}'")
        return None


def freeze_widget(draft: WidgetDraft, preview: list[dict[str, Any]], existing: Widget | None = None) -> Widget:
    """Build the widget saved for a draft; its data is a snapshot of the preview."""
    chart_type = draft.chart_type
    is_table = chart_type == "TABLE"
    config: dict[str, Any] = {
        "x_axis": None if chart_type in ("TABLE", "INDICATOR") else draft.x_axis,
        "data_keys": list(draft.columns) if is_table else ([draft.value_field] if draft.value_field else []),
        "colors": list(DEFAULT_COLORS),
        "aggregation": None if is_table else draft.aggregation,
        "filter_mapping": dict(draft.filter_mapping),
        "query_id": draft.source.id if draft.source and draft.source.kind == "saved_query" else None,
    }
    data = [dict(row) for row in preview]

    if existing is None:
        config["html_content"] = HTML_PLACEHOLDER if chart_type == "HTML" else None
        return Widget(
            id=uuid.uuid4().hex,
            type=chart_type,
            title=draft.title,
            data=data,
            config=WidgetConfig.model_validate(config),
            layout=default_layout(chart_type),
        )

    merged = {**existing.config.model_dump(), **config}
    if chart_type == "HTML" and not merged.get("html_content"):
        merged["html_content"] = HTML_PLACEHOLDER
    return existing.model_copy(
        update={
            "type": chart_type,
            "title": draft.title,
            "data": data,
            "config": WidgetConfig.model_validate(merged),
        }
    )


def draft_from_widget(widget: Widget, fallback_source: SourceSelection | None) -> WidgetDraft:
    """Reopen a saved widget in the builder."""
    config = widget.config
    if config.query_id:
        source: SourceSelection | None = SourceSelection(kind="saved_query", id=config.query_id)
    else:
        source = fallback_source
    is_table = widget.type == "TABLE"
    return WidgetDraft(
        title=widget.title,
        chart_type=widget.type,
        source=source,
        x_axis=config.x_axis,
        value_field=None if is_table or not config.data_keys else config.data_keys[0],
        columns=list(config.data_keys) if is_table else [],
        aggregation=config.aggregation or "SUM",
        filter_mapping=dict(config.filter_mapping),
        editing_widget_id=widget.id,
    )
