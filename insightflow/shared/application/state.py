from __future__ import annotations

from dataclasses import dataclass, field

from insightflow.modules.audit.domain.models import AuditLogEntry
from insightflow.modules.dashboards.domain.models import Dashboard
from insightflow.modules.datasources.domain.models import DataSource
from insightflow.modules.workspaces.domain.models import SavedQuery, Workspace


@dataclass(slots=True)
class WorkspaceState:
    """In-process copy of everything the services read from; storage is the durable side."""

    workspaces: dict[str, Workspace] = field(default_factory=dict)
    dashboards: dict[str, Dashboard] = field(default_factory=dict)
    data_sources: dict[str, DataSource] = field(default_factory=dict)
    saved_queries: dict[str, SavedQuery] = field(default_factory=dict)
    logs: list[AuditLogEntry] = field(default_factory=list)

    def dashboards_of(self, workspace_id: str) -> list[Dashboard]:
        return [item for item in self.dashboards.values() if item.workspace_id == workspace_id]

    def data_sources_of(self, workspace_id: str) -> list[DataSource]:
        return [item for item in self.data_sources.values() if item.workspace_id == workspace_id]

    def saved_queries_of(self, workspace_id: str) -> list[SavedQuery]:
        return [item for item in self.saved_queries.values() if item.workspace_id == workspace_id]
