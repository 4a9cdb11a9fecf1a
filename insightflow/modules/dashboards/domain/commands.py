from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Protocol

from insightflow.errors import NotFoundError
from insightflow.modules.dashboards.domain.models import Dashboard
from insightflow.modules.widgets.domain.config import DashboardFilter, Widget, clamp_height, clamp_width


class DashboardCommand(Protocol):
    """A single edit of a dashboard. `apply` never mutates its input."""

    def apply(self, dashboard: Dashboard) -> Dashboard:
        raise NotImplementedError

    def describe(self, dashboard: Dashboard) -> str:
        raise NotImplementedError


def _require_widget(dashboard: Dashboard, widget_id: str) -> int:
    index = dashboard.widget_index(widget_id)
    if index is None:
        raise NotFoundError("widget", widget_id)
    return index


def _with_widgets(dashboard: Dashboard, widgets: list[Widget]) -> Dashboard:
    return dashboard.model_copy(update={"widgets": widgets})


@dataclass(frozen=True)
class RenameDashboard:
    name: str
    description: str | None = None

    def apply(self, dashboard: Dashboard) -> Dashboard:
        update: dict[str, str | None] = {"name": self.name}
        if self.description is not None:
            update["description"] = self.description
        return dashboard.model_copy(update=update)

    def describe(self, dashboard: Dashboard) -> str:
        return f"Renamed dashboard to {self.name}"


@dataclass(frozen=True)
class AddWidget:
    widget: Widget

    def apply(self, dashboard: Dashboard) -> Dashboard:
        return _with_widgets(dashboard, [*dashboard.widgets, self.widget])

    def describe(self, dashboard: Dashboard) -> str:
        return f"Added widget {self.widget.title} to {dashboard.name}"


@dataclass(frozen=True)
class ReplaceWidget:
    widget: Widget

    def apply(self, dashboard: Dashboard) -> Dashboard:
        index = _require_widget(dashboard, self.widget.id)
        widgets = list(dashboard.widgets)
        widgets[index] = self.widget
        return _with_widgets(dashboard, widgets)

    def describe(self, dashboard: Dashboard) -> str:
        return f"Updated widget {self.widget.title} on {dashboard.name}"


@dataclass(frozen=True)
class RemoveWidget:
    widget_id: str

    def apply(self, dashboard: Dashboard) -> Dashboard:
        _require_widget(dashboard, self.widget_id)
        return _with_widgets(dashboard, [item for item in dashboard.widgets if item.id != self.widget_id])

    def describe(self, dashboard: Dashboard) -> str:
        return f"Removed widget {self.widget_id} from {dashboard.name}"


@dataclass(frozen=True)
class MoveWidget:
    widget_id: str
    direction: Literal["UP", "DOWN"]

    def apply(self, dashboard: Dashboard) -> Dashboard:
        index = _require_widget(dashboard, self.widget_id)
        swap = index - 1 if self.direction == "UP" else index + 1
        if swap < 0 or swap >= len(dashboard.widgets):
            return dashboard
        widgets = list(dashboard.widgets)
        widgets[index], widgets[swap] = widgets[swap], widgets[index]
        return _with_widgets(dashboard, widgets)

    def describe(self, dashboard: Dashboard) -> str:
        return f"Moved widget {self.widget_id} {self.direction.lower()} on {dashboard.name}"


@dataclass(frozen=True)
class ReorderWidget:
    from_index: int
    to_index: int

    def apply(self, dashboard: Dashboard) -> Dashboard:
        size = len(dashboard.widgets)
        if self.from_index == self.to_index:
            return dashboard
        for position in (self.from_index, self.to_index):
            if not 0 <= position < size:
                raise NotFoundError("widget_position", str(position))
        widgets = list(dashboard.widgets)
        moved = widgets.pop(self.from_index)
        widgets.insert(self.to_index, moved)
        return _with_widgets(dashboard, widgets)

    def describe(self, dashboard: Dashboard) -> str:
        return f"Reordered widgets on {dashboard.name}"


@dataclass(frozen=True)
class ResizeWidth:
    widget_id: str
    delta: int

    def apply(self, dashboard: Dashboard) -> Dashboard:
        index = _require_widget(dashboard, self.widget_id)
        widget = dashboard.widgets[index]
        layout = widget.layout.model_copy(update={"w": clamp_width(widget.layout.w + self.delta)})
        widgets = list(dashboard.widgets)
        widgets[index] = widget.model_copy(update={"layout": layout})
        return _with_widgets(dashboard, widgets)

    def describe(self, dashboard: Dashboard) -> str:
        return f"Resized widget {self.widget_id} on {dashboard.name}"


@dataclass(frozen=True)
class ResizeHeight:
    widget_id: str
    height: int

    def apply(self, dashboard: Dashboard) -> Dashboard:
        index = _require_widget(dashboard, self.widget_id)
        widget = dashboard.widgets[index]
        layout = widget.layout.model_copy(update={"h": clamp_height(self.height)})
        widgets = list(dashboard.widgets)
        widgets[index] = widget.model_copy(update={"layout": layout})
        return _with_widgets(dashboard, widgets)

    def describe(self, dashboard: Dashboard) -> str:
        return f"Resized widget {self.widget_id} on {dashboard.name}"


@dataclass(frozen=True)
class AddFilter:
    filter: DashboardFilter

    def apply(self, dashboard: Dashboard) -> Dashboard:
        if dashboard.has_filter(self.filter.id):
            return dashboard
        return dashboard.model_copy(update={"filters": [*dashboard.filters, self.filter]})

    def describe(self, dashboard: Dashboard) -> str:
        return f"Added filter {self.filter.label} to {dashboard.name}"


@dataclass(frozen=True)
class RemoveFilter:
    filter_id: str

    def apply(self, dashboard: Dashboard) -> Dashboard:
        if not dashboard.has_filter(self.filter_id):
            raise NotFoundError("filter", self.filter_id)
        return dashboard.model_copy(
            update={"filters": [item for item in dashboard.filters if item.id != self.filter_id]}
        )

    def describe(self, dashboard: Dashboard) -> str:
        return f"Removed filter {self.filter_id} from {dashboard.name}"
