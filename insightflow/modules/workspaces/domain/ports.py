from __future__ import annotations

from typing import Protocol

from insightflow.modules.workspaces.domain.models import SavedQuery, Workspace


class WorkspaceRepositoryPort(Protocol):
    def list_all(self) -> list[Workspace]:
        raise NotImplementedError

    async def save(self, workspace: Workspace) -> None:
        raise NotImplementedError

    async def delete(self, workspace_id: str) -> None:
        """Removes the workspace and everything it owns."""
        raise NotImplementedError


class SavedQueryRepositoryPort(Protocol):
    def list_all(self) -> list[SavedQuery]:
        raise NotImplementedError

    async def save(self, query: SavedQuery) -> None:
        raise NotImplementedError
