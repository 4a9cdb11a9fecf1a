from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Callable

from insightflow.errors import ConfirmationRequiredError, NotFoundError
from insightflow.modules.audit.application.services import AuditLogService
from insightflow.modules.auth.domain.models import UserIdentity
from insightflow.modules.workspaces.domain.models import SavedQuery, Workspace
from insightflow.modules.workspaces.domain.ports import SavedQueryRepositoryPort, WorkspaceRepositoryPort
from insightflow.shared.application.collections import restore_at
from insightflow.shared.application.optimistic import persist_or_rollback
from insightflow.shared.application.state import WorkspaceState


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class WorkspaceService:
    def __init__(self, state: WorkspaceState, repository: WorkspaceRepositoryPort, audit: AuditLogService) -> None:
        self._state = state
        self._repository = repository
        self._audit = audit

    def load(self) -> None:
        self._state.workspaces = {item.id: item for item in self._repository.list_all()}

    def list_workspaces(self) -> list[Workspace]:
        return list(self._state.workspaces.values())

    def get(self, workspace_id: str) -> Workspace:
        workspace = self._state.workspaces.get(workspace_id)
        if workspace is None:
            raise NotFoundError("workspace", workspace_id)
        return workspace

    async def create(self, *, name: str, description: str, actor: UserIdentity) -> Workspace:
        workspace = Workspace(id=uuid.uuid4().hex, name=name, description=description, owner_id=actor.id)
        self._state.workspaces[workspace.id] = workspace

        def undo() -> None:
            if self._state.workspaces.get(workspace.id) is workspace:
                self._state.workspaces.pop(workspace.id, None)

        await persist_or_rollback(
            lambda: self._repository.save(workspace),
            undo,
            event="workspace.create",
            context={"workspace_id": workspace.id},
        )
        await self._audit.append(actor, "Create Workspace", f'Created workspace "{name}"')
        return workspace

    async def delete(self, workspace_id: str, actor: UserIdentity, *, confirmed: bool) -> None:
        """Delete a workspace with its dashboards, data sources and saved queries."""
        workspace = self.get(workspace_id)
        if not confirmed:
            raise ConfirmationRequiredError("delete this workspace and everything in it")

        removed: list[tuple[dict[str, Any], str, Any, int]] = [
            (self._state.workspaces, workspace_id, workspace, list(self._state.workspaces).index(workspace_id))
        ]
        for items in (self._state.dashboards, self._state.data_sources, self._state.saved_queries):
            for position, (key, value) in enumerate(list(items.items())):
                if value.workspace_id == workspace_id:
                    removed.append((items, key, value, position))
        for items, key, _value, _position in removed:
            items.pop(key, None)

        def undo() -> None:
            for items, key, value, position in removed:
                if key not in items:
                    restore_at(items, key, value, position)

        await persist_or_rollback(
            lambda: self._repository.delete(workspace_id),
            undo,
            event="workspace.delete",
            context={"workspace_id": workspace_id},
        )
        await self._audit.append(actor, "Delete Workspace", f'Deleted workspace "{workspace.name}"')


class SavedQueryService:
    def __init__(
        self,
        state: WorkspaceState,
        repository: SavedQueryRepositoryPort,
        audit: AuditLogService,
        *,
        now_fn: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._state = state
        self._repository = repository
        self._audit = audit
        self._now_fn = now_fn

    def load(self) -> None:
        self._state.saved_queries = {item.id: item for item in self._repository.list_all()}

    def list_queries(self, workspace_id: str) -> list[SavedQuery]:
        return self._state.saved_queries_of(workspace_id)

    def get(self, query_id: str) -> SavedQuery:
        query = self._state.saved_queries.get(query_id)
        if query is None:
            raise NotFoundError("saved_query", query_id)
        return query

    async def save(self, *, workspace_id: str, name: str, sql: str, actor: UserIdentity) -> SavedQuery:
        if workspace_id not in self._state.workspaces:
            raise NotFoundError("workspace", workspace_id)
        query = SavedQuery(
            id=uuid.uuid4().hex,
            workspace_id=workspace_id,
            name=name,
            sql=sql,
            description="Saved Query",
            last_run_at=self._now_fn(),
        )
        self._state.saved_queries[query.id] = query

        def undo() -> None:
            if self._state.saved_queries.get(query.id) is query:
                self._state.saved_queries.pop(query.id, None)

        await persist_or_rollback(
            lambda: self._repository.save(query),
            undo,
            event="saved_query.save",
            context={"query_id": query.id},
        )
        await self._audit.append(actor, "Save Query", f'Saved query "{name}"')
        return query
