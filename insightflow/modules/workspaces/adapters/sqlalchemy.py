from __future__ import annotations

from datetime import timezone

from sqlalchemy.orm import sessionmaker

from insightflow import models
from insightflow.modules.workspaces.domain.models import SavedQuery, Workspace
from insightflow.modules.workspaces.domain.ports import SavedQueryRepositoryPort, WorkspaceRepositoryPort


class SqlAlchemyWorkspaceRepository(WorkspaceRepositoryPort):
    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def list_all(self) -> list[Workspace]:
        with self._session_factory() as db:
            rows = db.query(models.Workspace).order_by(models.Workspace.created_at).all()
            return [
                Workspace(id=row.id, name=row.name, description=row.description or "", owner_id=row.owner_id)
                for row in rows
            ]

    async def save(self, workspace: Workspace) -> None:
        with self._session_factory() as db:
            row = db.get(models.Workspace, workspace.id)
            if row is None:
                row = models.Workspace(id=workspace.id)
                db.add(row)
            row.name = workspace.name
            row.description = workspace.description
            row.owner_id = workspace.owner_id
            db.commit()

    async def delete(self, workspace_id: str) -> None:
        with self._session_factory() as db:
            row = db.get(models.Workspace, workspace_id)
            if row is None:
                return
            db.delete(row)
            db.commit()


class SqlAlchemySavedQueryRepository(SavedQueryRepositoryPort):
    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def list_all(self) -> list[SavedQuery]:
        with self._session_factory() as db:
            rows = db.query(models.SavedQuery).order_by(models.SavedQuery.created_at).all()
            return [
                SavedQuery(
                    id=row.id,
                    workspace_id=row.workspace_id,
                    name=row.name,
                    sql=row.sql,
                    description=row.description or "",
                    last_run_at=row.last_run_at.replace(tzinfo=timezone.utc) if row.last_run_at else None,
                )
                for row in rows
            ]

    async def save(self, query: SavedQuery) -> None:
        with self._session_factory() as db:
            row = db.get(models.SavedQuery, query.id)
            if row is None:
                row = models.SavedQuery(id=query.id, workspace_id=query.workspace_id)
                db.add(row)
            row.name = query.name
            row.sql = query.sql
            row.description = query.description
            row.last_run_at = query.last_run_at
            db.commit()
