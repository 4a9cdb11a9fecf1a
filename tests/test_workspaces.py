import asyncio

import pytest

from insightflow.container import AppServices
from insightflow.errors import ConfirmationRequiredError, NotFoundError, PersistenceError
from insightflow.modules.datasources.domain.models import CsvConnection


async def _populate(services, actor, name):
    workspace = await services.workspaces.create(name=name, description="", actor=actor)
    dashboard = await services.dashboards.create_dashboard(
        workspace_id=workspace.id, name=f"{name} overview", description=None, actor=actor
    )
    source = await services.data_sources.add_data_source(
        workspace_id=workspace.id,
        name=f"{name} orders",
        connection=CsvConnection(file_name="orders.csv"),
        actor=actor,
    )
    query = await services.saved_queries.save(
        workspace_id=workspace.id, name="Top customers", sql="SELECT * FROM customers", actor=actor
    )
    return workspace, dashboard, source, query


def test_create_workspace_sets_owner_and_audits(services, actor) -> None:
    workspace = asyncio.run(services.workspaces.create(name="Marketing", description="Campaigns", actor=actor))

    assert workspace.owner_id == actor.id
    assert services.workspaces.list_workspaces() == [workspace]
    latest = services.audit.recent(1)[0]
    assert (latest.action, latest.details) == ("Create Workspace", 'Created workspace "Marketing"')


def test_saved_query_is_scoped_to_its_workspace(services, actor) -> None:
    workspace, _dashboard, _source, query = asyncio.run(_populate(services, actor, "Sales"))

    assert query.description == "Saved Query"
    assert query.last_run_at is not None
    assert services.saved_queries.list_queries(workspace.id) == [query]
    assert services.saved_queries.list_queries("other") == []
    assert services.audit.recent(1)[0].details == 'Saved query "Top customers"'
    with pytest.raises(NotFoundError):
        asyncio.run(services.saved_queries.save(workspace_id="missing", name="q", sql="SELECT 1", actor=actor))


def test_delete_requires_confirmation(services, actor) -> None:
    workspace = asyncio.run(services.workspaces.create(name="Ops", description="", actor=actor))
    with pytest.raises(ConfirmationRequiredError):
        asyncio.run(services.workspaces.delete(workspace.id, actor, confirmed=False))
    assert services.workspaces.get(workspace.id) == workspace


def test_delete_cascades_in_memory_and_in_storage(settings, session_factory, services, actor) -> None:
    doomed = asyncio.run(_populate(services, actor, "Doomed"))
    kept = asyncio.run(_populate(services, actor, "Kept"))

    asyncio.run(services.workspaces.delete(doomed[0].id, actor, confirmed=True))

    assert list(services.state.workspaces) == [kept[0].id]
    assert list(services.state.dashboards) == [kept[1].id]
    assert list(services.state.data_sources) == [kept[2].id]
    assert list(services.state.saved_queries) == [kept[3].id]
    assert services.audit.recent(1)[0].action == "Delete Workspace"

    reloaded = AppServices.build(settings, session_factory=session_factory)
    reloaded.load()
    assert list(reloaded.state.workspaces) == [kept[0].id]
    assert list(reloaded.state.dashboards) == [kept[1].id]
    assert list(reloaded.state.data_sources) == [kept[2].id]
    assert list(reloaded.state.saved_queries) == [kept[3].id]


def test_failed_delete_restores_everything(services, actor) -> None:
    workspace, dashboard, source, query = asyncio.run(_populate(services, actor, "Sales"))

    async def failing_delete(_workspace_id):
        raise RuntimeError("database unavailable")

    services.workspaces._repository.delete = failing_delete
    with pytest.raises(PersistenceError):
        asyncio.run(services.workspaces.delete(workspace.id, actor, confirmed=True))

    assert services.state.workspaces[workspace.id] == workspace
    assert services.state.dashboards[dashboard.id] == dashboard
    assert services.state.data_sources[source.id] == source
    assert services.state.saved_queries[query.id] == query
