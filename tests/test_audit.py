import asyncio
from datetime import datetime, timedelta, timezone

from insightflow.container import AppServices
from insightflow.modules.audit.application.services import AuditLogService
from insightflow.modules.auth.domain.models import UserIdentity
from insightflow.shared.application.state import WorkspaceState


class FailingAuditRepository:
    def recent(self, limit):
        return []

    async def append(self, entry):
        raise RuntimeError("audit table locked")


def _clock(start: datetime):
    ticks = iter(range(1000))

    def now() -> datetime:
        return start + timedelta(seconds=next(ticks))

    return now


def test_entries_are_newest_first(services, actor) -> None:
    async def scenario():
        await services.audit.append(actor, "Create Workspace", 'Created workspace "A"')
        await services.audit.append(actor, "Save Query", 'Saved query "B"')

    asyncio.run(scenario())
    assert [entry.action for entry in services.audit.recent()] == ["Save Query", "Create Workspace"]
    assert services.audit.recent(1)[0].user_id == actor.id


def test_failed_append_drops_entry_without_raising(actor) -> None:
    audit = AuditLogService(WorkspaceState(), FailingAuditRepository())
    entry = asyncio.run(audit.append(actor, "Create Workspace", "x"))
    assert entry.action == "Create Workspace"
    assert audit.recent() == []


def test_search_matches_action_details_and_user(services, actor) -> None:
    other = UserIdentity(id="user-2", email="bruno@example.com", name="Bruno")

    async def scenario():
        await services.audit.append(actor, "Create Workspace", 'Created workspace "Finance"')
        await services.audit.append(other, "Save Query", 'Saved query "Churn"')
        await services.audit.append(actor, "Data Refresh Failed", 'Failed to refresh source "CRM"')

    asyncio.run(scenario())
    assert [entry.action for entry in services.audit.search("refresh")] == ["Data Refresh Failed"]
    assert [entry.action for entry in services.audit.search("FINANCE")] == ["Create Workspace"]
    assert [entry.user for entry in services.audit.search("bruno")] == ["Bruno"]
    assert len(services.audit.search("   ")) == 3


def test_load_keeps_most_recent_entries(settings, session_factory, actor) -> None:
    state = WorkspaceState()
    services = AppServices.build(settings, session_factory=session_factory)
    audit = AuditLogService(state, services.audit._repository, now_fn=_clock(datetime(2024, 3, 15, tzinfo=timezone.utc)))

    async def scenario():
        for index in range(5):
            await audit.append(actor, "Save Query", f'Saved query "q{index}"')

    asyncio.run(scenario())
    reloaded = AuditLogService(WorkspaceState(), services.audit._repository)
    reloaded.load(limit=3)
    entries = reloaded.recent()
    assert [entry.details for entry in entries] == ['Saved query "q4"', 'Saved query "q3"', 'Saved query "q2"']
    assert entries[0].timestamp == datetime(2024, 3, 15, 0, 0, 4, tzinfo=timezone.utc)
