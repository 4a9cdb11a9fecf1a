from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.orm import sessionmaker

from insightflow.modules.audit.adapters.sqlalchemy import SqlAlchemyAuditLogRepository
from insightflow.modules.audit.application.services import AuditLogService
from insightflow.modules.auth.adapters.sqlalchemy import SqlAlchemyProfileRepository
from insightflow.modules.auth.application.session import IdentityResolver, SessionManager
from insightflow.modules.dashboards.adapters.sqlalchemy import SqlAlchemyDashboardRepository
from insightflow.modules.dashboards.application.store import DashboardStore
from insightflow.modules.datasources.adapters.fetcher import SimulatedFetcher
from insightflow.modules.datasources.adapters.sample_rows import SampleRowSource
from insightflow.modules.datasources.adapters.sqlalchemy import SqlAlchemyDataSourceRepository
from insightflow.modules.datasources.application.scheduler import RefreshScheduler
from insightflow.modules.datasources.application.services import DataSourceService
from insightflow.modules.datasources.domain.ports import SourceFetcherPort
from insightflow.modules.security import CredentialEncryption
from insightflow.modules.widgets.application.builder_registry import WidgetBuilderRegistry
from insightflow.modules.widgets.application.builder_service import WidgetBuilderService
from insightflow.modules.widgets.domain.ports import RowSourcePort
from insightflow.modules.workspaces.adapters.sqlalchemy import (
    SqlAlchemySavedQueryRepository,
    SqlAlchemyWorkspaceRepository,
)
from insightflow.modules.workspaces.application.services import SavedQueryService, WorkspaceService
from insightflow.shared.application.state import WorkspaceState
from insightflow.shared.infrastructure.database import Base, build_engine, build_session_factory
from insightflow.shared.infrastructure.settings import Settings

logger = logging.getLogger("uvicorn.error")


@dataclass
class AppServices:
    """Everything a request handler needs, built once per application."""

    settings: Settings
    state: WorkspaceState
    sessions: SessionManager
    identities: IdentityResolver
    audit: AuditLogService
    workspaces: WorkspaceService
    saved_queries: SavedQueryService
    dashboards: DashboardStore
    data_sources: DataSourceService
    scheduler: RefreshScheduler
    builder: WidgetBuilderService

    @classmethod
    def build(
        cls,
        settings: Settings,
        *,
        session_factory: sessionmaker | None = None,
        row_source: RowSourcePort | None = None,
        fetcher: SourceFetcherPort | None = None,
    ) -> "AppServices":
        if session_factory is None:
            engine = build_engine(settings.database_url, echo=settings.database_echo)
            Base.metadata.create_all(bind=engine)
            session_factory = build_session_factory(engine)

        vault = CredentialEncryption(settings.encryption_key)
        state = WorkspaceState()
        audit = AuditLogService(state, SqlAlchemyAuditLogRepository(session_factory))
        dashboards = DashboardStore(state, SqlAlchemyDashboardRepository(session_factory), audit)
        data_sources = DataSourceService(
            state,
            SqlAlchemyDataSourceRepository(session_factory, vault),
            fetcher or SimulatedFetcher(settings.refresh_simulated_delay_seconds),
            audit,
            timezone_name=settings.scheduler_timezone,
        )
        return cls(
            settings=settings,
            state=state,
            sessions=SessionManager(),
            identities=IdentityResolver(SqlAlchemyProfileRepository(session_factory)),
            audit=audit,
            workspaces=WorkspaceService(state, SqlAlchemyWorkspaceRepository(session_factory), audit),
            saved_queries=SavedQueryService(state, SqlAlchemySavedQueryRepository(session_factory), audit),
            dashboards=dashboards,
            data_sources=data_sources,
            scheduler=RefreshScheduler(data_sources, tick_seconds=settings.scheduler_tick_seconds),
            builder=WidgetBuilderService(
                state=state,
                registry=WidgetBuilderRegistry(settings.builder_session_ttl_seconds),
                store=dashboards,
                row_source=row_source or SampleRowSource(),
                sample_size=settings.preview_table_sample_rows,
            ),
        )

    def load(self) -> None:
        self.workspaces.load()
        self.dashboards.load()
        self.data_sources.load()
        self.saved_queries.load()
        self.audit.load(self.settings.audit_log_recent_limit)
        logger.info(
            "insightflow.state.loaded | %s",
            {
                "workspaces": len(self.state.workspaces),
                "dashboards": len(self.state.dashboards),
                "data_sources": len(self.state.data_sources),
                "saved_queries": len(self.state.saved_queries),
                "logs": len(self.state.logs),
            },
        )

    async def startup(self) -> None:
        self.load()
        if self.settings.scheduler_enabled:
            self.scheduler.start()

    async def shutdown(self) -> None:
        await self.scheduler.stop()
