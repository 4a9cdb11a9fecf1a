from __future__ import annotations

from typing import Protocol

from insightflow.modules.audit.domain.models import AuditLogEntry


class AuditLogRepositoryPort(Protocol):
    def recent(self, limit: int) -> list[AuditLogEntry]:
        raise NotImplementedError

    async def append(self, entry: AuditLogEntry) -> None:
        raise NotImplementedError
