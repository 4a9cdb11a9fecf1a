from __future__ import annotations

from sqlalchemy.orm import sessionmaker

from insightflow import models
from insightflow.modules.dashboards.domain.models import Dashboard
from insightflow.modules.dashboards.domain.ports import DashboardRepositoryPort


class SqlAlchemyDashboardRepository(DashboardRepositoryPort):
    """Widgets and filters live as nested JSON inside the dashboard row."""

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def list_all(self) -> list[Dashboard]:
        with self._session_factory() as db:
            rows = db.query(models.Dashboard).order_by(models.Dashboard.created_at).all()
            return [
                Dashboard.model_validate(
                    {
                        "id": row.id,
                        "workspace_id": row.workspace_id,
                        "name": row.name,
                        "description": row.description,
                        "widgets": row.widgets or [],
                        "filters": row.filters or [],
                    }
                )
                for row in rows
            ]

    async def save(self, dashboard: Dashboard) -> None:
        payload = dashboard.model_dump(mode="json")
        with self._session_factory() as db:
            row = db.get(models.Dashboard, dashboard.id)
            if row is None:
                row = models.Dashboard(id=dashboard.id, workspace_id=dashboard.workspace_id)
                db.add(row)
            row.name = dashboard.name
            row.description = dashboard.description
            row.widgets = payload["widgets"]
            row.filters = payload["filters"]
            db.commit()

    async def delete(self, dashboard_id: str) -> None:
        with self._session_factory() as db:
            row = db.get(models.Dashboard, dashboard_id)
            if row is None:
                return
            db.delete(row)
            db.commit()
