from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import Any, Mapping

from insightflow.errors import ConfirmationRequiredError, NotFoundError
from insightflow.modules.audit.application.services import AuditLogService
from insightflow.modules.auth.domain.models import UserIdentity
from insightflow.modules.dashboards.application.rendering import render_dashboard
from insightflow.modules.dashboards.domain.commands import DashboardCommand, RemoveWidget
from insightflow.modules.dashboards.domain.models import Dashboard
from insightflow.modules.dashboards.domain.ports import DashboardRepositoryPort
from insightflow.modules.widgets.domain.filters import DatePreset, merge_active_values
from insightflow.shared.application.collections import restore_at
from insightflow.shared.application.optimistic import persist_or_rollback
from insightflow.shared.application.state import WorkspaceState

logger = logging.getLogger("uvicorn.error")


class DashboardStore:
    """
    Canonical dashboards of the running process.

    Every mutation updates local state first, then awaits the repository write,
    then records an audit entry. A failed write restores the previous value,
    unless a later write has already replaced it, and surfaces as a
    `PersistenceError`. Last write wins.
    """

    def __init__(
        self,
        state: WorkspaceState,
        repository: DashboardRepositoryPort,
        audit: AuditLogService,
    ) -> None:
        self._state = state
        self._repository = repository
        self._audit = audit

    def load(self) -> None:
        self._state.dashboards = {item.id: item for item in self._repository.list_all()}

    def list_dashboards(self, workspace_id: str | None = None) -> list[Dashboard]:
        if workspace_id is None:
            return list(self._state.dashboards.values())
        return self._state.dashboards_of(workspace_id)

    def get(self, dashboard_id: str) -> Dashboard:
        dashboard = self._state.dashboards.get(dashboard_id)
        if dashboard is None:
            raise NotFoundError("dashboard", dashboard_id)
        return dashboard

    async def create_dashboard(
        self,
        *,
        workspace_id: str,
        name: str,
        description: str | None,
        actor: UserIdentity,
    ) -> Dashboard:
        if workspace_id not in self._state.workspaces:
            raise NotFoundError("workspace", workspace_id)
        dashboard = Dashboard(
            id=uuid.uuid4().hex,
            workspace_id=workspace_id,
            name=name,
            description=description,
        )
        await self._save(None, dashboard)
        await self._audit.append(actor, "Create Dashboard", f'Created dashboard "{name}"')
        return dashboard

    async def execute(self, dashboard_id: str, command: DashboardCommand, actor: UserIdentity) -> Dashboard:
        previous = self.get(dashboard_id)
        updated = command.apply(previous)
        if updated is previous:
            return previous
        await self._save(previous, updated)
        await self._audit.append(actor, "Update Dashboard", command.describe(previous))
        return updated

    async def remove_widget(
        self,
        dashboard_id: str,
        widget_id: str,
        actor: UserIdentity,
        *,
        confirmed: bool,
    ) -> Dashboard:
        if not confirmed:
            raise ConfirmationRequiredError("remove this widget")
        return await self.execute(dashboard_id, RemoveWidget(widget_id), actor)

    async def delete_dashboard(self, dashboard_id: str, actor: UserIdentity, *, confirmed: bool) -> None:
        dashboard = self.get(dashboard_id)
        if not confirmed:
            raise ConfirmationRequiredError("delete this dashboard")
        position = list(self._state.dashboards).index(dashboard_id)
        del self._state.dashboards[dashboard_id]

        def undo() -> None:
            if dashboard_id not in self._state.dashboards:
                restore_at(self._state.dashboards, dashboard_id, dashboard, position)

        await persist_or_rollback(
            lambda: self._repository.delete(dashboard_id),
            undo,
            event="dashboard.delete",
            context={"dashboard_id": dashboard_id},
        )
        await self._audit.append(actor, "Delete Dashboard", f'Deleted dashboard "{dashboard.name}"')

    def render(
        self,
        dashboard_id: str,
        values: Mapping[str, Any] | None = None,
        presets: Mapping[str, DatePreset] | None = None,
        *,
        today: date | None = None,
    ) -> tuple[Dashboard, dict[str, Any]]:
        dashboard = self.get(dashboard_id)
        active = merge_active_values(dashboard.filters, values, presets, today or date.today())
        return render_dashboard(dashboard, active), active

    async def _save(self, previous: Dashboard | None, updated: Dashboard) -> None:
        self._state.dashboards[updated.id] = updated

        def undo() -> None:
            if self._state.dashboards.get(updated.id) is not updated:
                return
            if previous is None:
                self._state.dashboards.pop(updated.id, None)
            else:
                self._state.dashboards[updated.id] = previous

        await persist_or_rollback(
            lambda: self._repository.save(updated),
            undo,
            event="dashboard.save",
            context={"dashboard_id": updated.id},
        )
        logger.info(
            "insightflow.dashboard.saved | %s",
            {"dashboard_id": updated.id, "widgets": len(updated.widgets), "filters": len(updated.filters)},
        )
