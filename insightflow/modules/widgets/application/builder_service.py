from __future__ import annotations

import logging

from insightflow.errors import NotFoundError
from insightflow.modules.auth.domain.models import UserIdentity
from insightflow.modules.dashboards.application.store import DashboardStore
from insightflow.modules.dashboards.domain.commands import AddFilter, AddWidget, ReplaceWidget
from insightflow.modules.dashboards.domain.models import Dashboard
from insightflow.modules.widgets.application.builder_registry import BuilderSession, WidgetBuilderRegistry
from insightflow.modules.widgets.application.preview import (
    FieldSlot,
    LivePreviewEngine,
    WidgetDraft,
    draft_from_widget,
    freeze_widget,
    validate_draft_for_save,
)
from insightflow.modules.widgets.domain.config import AggregationType, ChartType, Widget
from insightflow.modules.widgets.domain.ports import RowSourcePort, SourceSelection
from insightflow.shared.application.state import WorkspaceState

logger = logging.getLogger("uvicorn.error")


class WidgetBuilderService:
    """Drives builder sessions: draft edits go to the preview engine, saves go to the dashboard store."""

    def __init__(
        self,
        *,
        state: WorkspaceState,
        registry: WidgetBuilderRegistry,
        store: DashboardStore,
        row_source: RowSourcePort,
        sample_size: int,
    ) -> None:
        self._state = state
        self._registry = registry
        self._store = store
        self._row_source = row_source
        self._sample_size = sample_size

    def _fallback_source(self, dashboard: Dashboard) -> SourceSelection | None:
        sources = self._state.data_sources_of(dashboard.workspace_id)
        if not sources:
            return None
        return SourceSelection(kind="datasource", id=sources[0].id)

    def _check_source(self, dashboard: Dashboard, source: SourceSelection) -> None:
        if source.kind == "datasource":
            item = self._state.data_sources.get(source.id)
            resource = "data_source"
        else:
            item = self._state.saved_queries.get(source.id)
            resource = "saved_query"
        if item is None or item.workspace_id != dashboard.workspace_id:
            raise NotFoundError(resource, source.id)

    async def open(self, dashboard_id: str, actor: UserIdentity, *, widget_id: str | None = None) -> BuilderSession:
        dashboard = self._store.get(dashboard_id)
        if widget_id is None:
            draft = WidgetDraft()
        else:
            index = dashboard.widget_index(widget_id)
            if index is None:
                raise NotFoundError("widget", widget_id)
            draft = draft_from_widget(dashboard.widgets[index], self._fallback_source(dashboard))
        engine = LivePreviewEngine(self._row_source, draft=draft, sample_size=self._sample_size)
        return await self._registry.open(dashboard_id=dashboard_id, user_id=actor.id, engine=engine)

    async def get(self, session_id: str, actor: UserIdentity) -> BuilderSession:
        session = await self._registry.get(session_id)
        if session.user_id != actor.id:
            raise NotFoundError("builder_session", session_id)
        return session

    async def set_title(self, session_id: str, title: str, actor: UserIdentity) -> BuilderSession:
        session = await self.get(session_id, actor)
        session.engine.set_title(title)
        return session

    async def set_chart_type(self, session_id: str, chart_type: ChartType, actor: UserIdentity) -> BuilderSession:
        session = await self.get(session_id, actor)
        session.engine.set_chart_type(chart_type)
        return session

    async def set_aggregation(
        self,
        session_id: str,
        aggregation: AggregationType,
        actor: UserIdentity,
    ) -> BuilderSession:
        session = await self.get(session_id, actor)
        session.engine.set_aggregation(aggregation)
        return session

    async def select_source(
        self,
        session_id: str,
        source: SourceSelection | None,
        actor: UserIdentity,
    ) -> BuilderSession:
        session = await self.get(session_id, actor)
        if source is not None:
            self._check_source(self._store.get(session.dashboard_id), source)
        session.engine.select_source(source)
        return session

    async def assign_field(
        self,
        session_id: str,
        slot: FieldSlot,
        field: str,
        actor: UserIdentity,
    ) -> BuilderSession:
        session = await self.get(session_id, actor)
        dashboard = self._store.get(session.dashboard_id)
        new_filter = session.engine.assign_field(slot, field, dashboard.filters)
        if new_filter is not None:
            # filters belong to the dashboard, so they are written right away
            await self._store.execute(dashboard.id, AddFilter(new_filter), actor)
        return session

    async def remove_column(self, session_id: str, field: str, actor: UserIdentity) -> BuilderSession:
        session = await self.get(session_id, actor)
        session.engine.remove_column(field)
        return session

    async def save(self, session_id: str, actor: UserIdentity) -> Widget:
        session = await self.get(session_id, actor)
        draft = session.engine.draft
        validate_draft_for_save(draft)
        dashboard = self._store.get(session.dashboard_id)

        if draft.editing_widget_id is None:
            widget = freeze_widget(draft, session.engine.preview)
            await self._store.execute(dashboard.id, AddWidget(widget), actor)
        else:
            index = dashboard.widget_index(draft.editing_widget_id)
            if index is None:
                raise NotFoundError("widget", draft.editing_widget_id)
            widget = freeze_widget(draft, session.engine.preview, dashboard.widgets[index])
            await self._store.execute(dashboard.id, ReplaceWidget(widget), actor)

        await self._registry.close(session_id)
        logger.info(
            "insightflow.builder.saved | %s",
            {"dashboard_id": dashboard.id, "widget_id": widget.id, "type": widget.type, "rows": len(widget.data)},
        )
        return widget

    async def cancel(self, session_id: str, actor: UserIdentity) -> None:
        await self.get(session_id, actor)
        await self._registry.close(session_id)
