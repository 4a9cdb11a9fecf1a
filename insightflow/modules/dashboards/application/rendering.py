from __future__ import annotations

from typing import Any, Mapping

from insightflow.modules.dashboards.domain.models import Dashboard
from insightflow.modules.widgets.domain.config import Widget
from insightflow.modules.widgets.domain.filters import apply_dashboard_filters


def render_widget(widget: Widget, dashboard: Dashboard, active_values: Mapping[str, Any]) -> Widget:
    """Filter the widget's saved snapshot. Rows are never re-aggregated at view time."""
    rows = apply_dashboard_filters(widget.data, widget.config.filter_mapping, dashboard.filters, active_values)
    return widget.model_copy(update={"data": rows})


def render_dashboard(dashboard: Dashboard, active_values: Mapping[str, Any]) -> Dashboard:
    return dashboard.model_copy(
        update={"widgets": [render_widget(widget, dashboard, active_values) for widget in dashboard.widgets]}
    )
