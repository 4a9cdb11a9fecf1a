from __future__ import annotations

from datetime import timezone

from sqlalchemy.orm import sessionmaker

from insightflow import models
from insightflow.modules.audit.domain.models import AuditLogEntry
from insightflow.modules.audit.domain.ports import AuditLogRepositoryPort


class SqlAlchemyAuditLogRepository(AuditLogRepositoryPort):
    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def recent(self, limit: int) -> list[AuditLogEntry]:
        with self._session_factory() as db:
            rows = (
                db.query(models.AuditLog)
                .order_by(models.AuditLog.timestamp.desc())
                .limit(limit)
                .all()
            )
            return [
                AuditLogEntry(
                    id=row.id,
                    timestamp=row.timestamp.replace(tzinfo=timezone.utc) if row.timestamp.tzinfo is None else row.timestamp,
                    user=row.user_name,
                    user_id=row.user_id,
                    action=row.action,
                    details=row.details or "",
                )
                for row in rows
            ]

    async def append(self, entry: AuditLogEntry) -> None:
        with self._session_factory() as db:
            db.add(
                models.AuditLog(
                    id=entry.id,
                    timestamp=entry.timestamp,
                    user_id=entry.user_id,
                    user_name=entry.user,
                    action=entry.action,
                    details=entry.details,
                )
            )
            db.commit()
