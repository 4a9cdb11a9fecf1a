from __future__ import annotations

from typing import Protocol

from insightflow.modules.dashboards.domain.models import Dashboard


class DashboardRepositoryPort(Protocol):
    def list_all(self) -> list[Dashboard]:
        raise NotImplementedError

    async def save(self, dashboard: Dashboard) -> None:
        raise NotImplementedError

    async def delete(self, dashboard_id: str) -> None:
        raise NotImplementedError
