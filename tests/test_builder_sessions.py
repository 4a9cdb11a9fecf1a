import asyncio

import pytest

from insightflow.errors import NotFoundError
from insightflow.modules.auth.domain.models import UserIdentity
from insightflow.modules.datasources.domain.models import CsvConnection
from insightflow.modules.widgets.application.builder_registry import WidgetBuilderRegistry
from insightflow.modules.widgets.application.preview import LivePreviewEngine
from insightflow.modules.widgets.domain.ports import SourceSelection


async def _dashboard_with_source(services, actor):
    workspace = await services.workspaces.create(name="Sales", description="", actor=actor)
    source = await services.data_sources.add_data_source(
        workspace_id=workspace.id,
        name="Orders",
        connection=CsvConnection(file_name="orders.csv"),
        actor=actor,
    )
    dashboard = await services.dashboards.create_dashboard(
        workspace_id=workspace.id, name="Overview", description=None, actor=actor
    )
    return dashboard, source


def test_expired_sessions_are_gone() -> None:
    registry = WidgetBuilderRegistry(ttl_seconds=0)

    async def scenario():
        session = await registry.open(dashboard_id="d-1", user_id="u-1", engine=LivePreviewEngine(None))
        with pytest.raises(NotFoundError):
            await registry.get(session.id)

    asyncio.run(scenario())


def test_sessions_belong_to_their_user(services, actor) -> None:
    intruder = UserIdentity(id="user-2", email="other@example.com", name="other")

    async def scenario():
        dashboard, _source = await _dashboard_with_source(services, actor)
        session = await services.builder.open(dashboard.id, actor)
        with pytest.raises(NotFoundError):
            await services.builder.get(session.id, intruder)
        await services.builder.cancel(session.id, actor)
        with pytest.raises(NotFoundError):
            await services.builder.get(session.id, actor)

    asyncio.run(scenario())


def test_source_must_belong_to_dashboard_workspace(services, actor) -> None:
    async def scenario():
        dashboard, _source = await _dashboard_with_source(services, actor)
        _other_dashboard, foreign = await _dashboard_with_source(services, actor)
        session = await services.builder.open(dashboard.id, actor)
        with pytest.raises(NotFoundError):
            await services.builder.select_source(session.id, SourceSelection(kind="datasource", id=foreign.id), actor)

    asyncio.run(scenario())


def test_editing_a_widget_replaces_it_in_place(services, actor) -> None:
    async def scenario():
        dashboard, source = await _dashboard_with_source(services, actor)
        session = await services.builder.open(dashboard.id, actor)
        await services.builder.set_title(session.id, "Revenue", actor)
        await services.builder.select_source(session.id, SourceSelection(kind="datasource", id=source.id), actor)
        await services.builder.assign_field(session.id, "X_AXIS", "month", actor)
        await services.builder.assign_field(session.id, "VALUE", "revenue", actor)
        created = await services.builder.save(session.id, actor)

        editing = await services.builder.open(dashboard.id, actor, widget_id=created.id)
        assert editing.engine.draft.editing_widget_id == created.id
        assert editing.engine.draft.source == SourceSelection(kind="datasource", id=source.id)
        await services.builder.set_chart_type(editing.id, "LINE", actor)
        await services.builder.set_aggregation(editing.id, "MAX", actor)
        edited = await services.builder.save(editing.id, actor)
        return dashboard.id, created, edited

    dashboard_id, created, edited = asyncio.run(scenario())
    widgets = services.dashboards.get(dashboard_id).widgets
    assert [item.id for item in widgets] == [created.id]
    assert widgets[0].type == "LINE"
    assert edited.config.aggregation == "MAX"
    assert edited.layout == created.layout
