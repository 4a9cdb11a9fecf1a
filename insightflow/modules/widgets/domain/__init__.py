from insightflow.modules.widgets.domain.aggregation import aggregate_rows, reduce_values
from insightflow.modules.widgets.domain.config import (
    DashboardFilter,
    Widget,
    WidgetConfig,
    WidgetConfigValidationError,
    WidgetLayout,
    missing_required_fields,
)
from insightflow.modules.widgets.domain.filters import DateRangeValue, apply_dashboard_filters, merge_active_values

__all__ = [
    "DashboardFilter",
    "DateRangeValue",
    "Widget",
    "WidgetConfig",
    "WidgetConfigValidationError",
    "WidgetLayout",
    "aggregate_rows",
    "apply_dashboard_filters",
    "merge_active_values",
    "missing_required_fields",
    "reduce_values",
]
