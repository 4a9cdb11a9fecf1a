from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Callable

from insightflow.errors import BadRequestError, ConflictError, NotFoundError
from insightflow.modules.audit.application.services import AuditLogService
from insightflow.modules.auth.domain.models import UserIdentity
from insightflow.modules.datasources.domain.models import (
    ConnectionSettings,
    CronInterval,
    DataSource,
    Schedule,
    ScheduleMode,
    compute_next_sync_at,
    schedule_for_save,
)
from insightflow.modules.datasources.domain.ports import DataSourceRepositoryPort, SourceFetcherPort
from insightflow.shared.application.optimistic import persist_or_rollback
from insightflow.shared.application.state import WorkspaceState

logger = logging.getLogger("uvicorn.error")

SYSTEM_ACTOR = UserIdentity(id="system", email="scheduler@insightflow.local", name="Scheduler", role="ADMIN")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DataSourceService:
    def __init__(
        self,
        state: WorkspaceState,
        repository: DataSourceRepositoryPort,
        fetcher: SourceFetcherPort,
        audit: AuditLogService,
        *,
        timezone_name: str = "UTC",
        now_fn: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._state = state
        self._repository = repository
        self._fetcher = fetcher
        self._audit = audit
        self._timezone_name = timezone_name
        self._now_fn = now_fn

    def now(self) -> datetime:
        return self._now_fn()

    def load(self) -> None:
        # nothing survives a restart mid-sync, so stale flags are cleared on load
        sources = {}
        for item in self._repository.list_all():
            if item.schedule.is_syncing:
                item = item.model_copy(update={"schedule": item.schedule.model_copy(update={"is_syncing": False})})
            sources[item.id] = item
        self._state.data_sources = sources

    def list_sources(self, workspace_id: str | None = None) -> list[DataSource]:
        if workspace_id is None:
            return list(self._state.data_sources.values())
        return self._state.data_sources_of(workspace_id)

    def get(self, source_id: str) -> DataSource:
        source = self._state.data_sources.get(source_id)
        if source is None:
            raise NotFoundError("data_source", source_id)
        return source

    async def add_data_source(
        self,
        *,
        workspace_id: str,
        name: str,
        connection: ConnectionSettings,
        actor: UserIdentity,
    ) -> DataSource:
        if workspace_id not in self._state.workspaces:
            raise NotFoundError("workspace", workspace_id)
        source = DataSource(
            id=uuid.uuid4().hex,
            workspace_id=workspace_id,
            name=name,
            type=connection.type,
            connection=connection,
            status="connected",
            schedule=Schedule(mode="MANUAL"),
        )
        await self._write(None, source, event="data_source.create")
        await self._audit.append(actor, "Add Data Source", f'Connected source "{name}"')
        return source

    async def update_schedule(
        self,
        source_id: str,
        *,
        mode: ScheduleMode,
        interval: CronInterval | None,
        actor: UserIdentity,
    ) -> DataSource:
        previous = self.get(source_id)
        if mode == "AUTO" and interval is None:
            raise BadRequestError("invalid_schedule", "AUTO schedule requires an interval")
        requested = previous.schedule.model_copy(update={"mode": mode, "interval": interval})
        schedule = schedule_for_save(requested, self.now(), self._timezone_name)
        updated = previous.model_copy(update={"schedule": schedule})
        await self._write(previous, updated, event="data_source.schedule")
        await self._audit.append(actor, "Update Schedule", f"Updated schedule for source {source_id}")
        return updated

    async def trigger_refresh(self, source_id: str, actor: UserIdentity) -> DataSource:
        """
        Run one sync of a source: mark it syncing, fetch, then record the outcome.

        Fetch failures are recorded on the source (status `error`) rather than
        raised. A source that is already syncing is rejected with a conflict.
        """
        source = self.get(source_id)
        if source.schedule.is_syncing:
            raise ConflictError("refresh_in_progress", f"Data source '{source_id}' is already syncing")

        syncing = source.model_copy(update={"schedule": source.schedule.model_copy(update={"is_syncing": True})})
        await self._write(source, syncing, event="data_source.sync_start")

        try:
            await self._fetcher.fetch(syncing)
        except Exception as exc:
            logger.warning(
                "insightflow.refresh.failed | %s",
                {"data_source_id": source_id, "error": str(exc)},
            )
            return await self._finish(
                source_id,
                syncing,
                status="error",
                error_message=str(exc) or exc.__class__.__name__,
                actor=actor,
            )

        logger.info("insightflow.refresh.succeeded | %s", {"data_source_id": source_id})
        return await self._finish(source_id, syncing, status="connected", error_message=None, actor=actor)

    async def _finish(
        self,
        source_id: str,
        syncing: DataSource,
        *,
        status: str,
        error_message: str | None,
        actor: UserIdentity,
    ) -> DataSource:
        # a schedule change may have landed while the fetch was running
        current = self._state.data_sources.get(source_id)
        if current is None:
            return syncing.model_copy(update={"schedule": syncing.schedule.model_copy(update={"is_syncing": False})})

        schedule_update: dict[str, object] = {"is_syncing": False}
        if status == "connected":
            now = self.now()
            schedule_update["last_synced_at"] = now
            schedule_update["next_sync_at"] = (
                compute_next_sync_at(current.schedule.interval, now, self._timezone_name)
                if current.schedule.mode == "AUTO"
                else None
            )
        done = current.model_copy(
            update={
                "status": status,
                "last_error_message": error_message,
                "schedule": current.schedule.model_copy(update=schedule_update),
            }
        )
        idle = current.model_copy(update={"schedule": current.schedule.model_copy(update={"is_syncing": False})})
        await self._write(idle, done, event="data_source.sync_finish")
        if status == "connected":
            await self._audit.append(actor, "Data Refresh Success", f'Refreshed source "{done.name}"')
        else:
            await self._audit.append(actor, "Data Refresh Failed", f'Failed to refresh source "{done.name}"')
        return done

    async def _write(self, previous: DataSource | None, updated: DataSource, *, event: str) -> None:
        self._state.data_sources[updated.id] = updated

        def undo() -> None:
            if self._state.data_sources.get(updated.id) is not updated:
                return
            if previous is None:
                self._state.data_sources.pop(updated.id, None)
            else:
                self._state.data_sources[updated.id] = previous

        await persist_or_rollback(
            lambda: self._repository.save(updated),
            undo,
            event=event,
            context={"data_source_id": updated.id},
        )
