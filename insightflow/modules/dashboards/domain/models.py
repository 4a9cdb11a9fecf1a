from __future__ import annotations

from pydantic import BaseModel, Field

from insightflow.modules.widgets.domain.config import DashboardFilter, Widget


class Dashboard(BaseModel):
    id: str
    workspace_id: str
    name: str
    description: str | None = None
    widgets: list[Widget] = Field(default_factory=list)
    filters: list[DashboardFilter] = Field(default_factory=list)

    def widget_index(self, widget_id: str) -> int | None:
        for index, widget in enumerate(self.widgets):
            if widget.id == widget_id:
                return index
        return None

    def has_filter(self, filter_id: str) -> bool:
        return any(item.id == filter_id for item in self.filters)
