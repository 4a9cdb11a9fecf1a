from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Callable

from insightflow.modules.audit.domain.models import AuditLogEntry
from insightflow.modules.audit.domain.ports import AuditLogRepositoryPort
from insightflow.modules.auth.domain.models import UserIdentity
from insightflow.shared.application.state import WorkspaceState

logger = logging.getLogger("uvicorn.error")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditLogService:
    """Append-only action trail, newest entry first."""

    def __init__(
        self,
        state: WorkspaceState,
        repository: AuditLogRepositoryPort,
        *,
        now_fn: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._state = state
        self._repository = repository
        self._now_fn = now_fn

    def load(self, limit: int) -> None:
        self._state.logs = self._repository.recent(limit)

    async def append(self, actor: UserIdentity, action: str, details: str) -> AuditLogEntry:
        entry = AuditLogEntry(
            id=uuid.uuid4().hex,
            timestamp=self._now_fn(),
            user=actor.name,
            user_id=actor.id,
            action=action,
            details=details,
        )
        self._state.logs.insert(0, entry)
        try:
            await self._repository.append(entry)
        except Exception as exc:
            # the audited action already succeeded; only the trail entry is dropped
            if entry in self._state.logs:
                self._state.logs.remove(entry)
            logger.warning(
                "insightflow.audit.persist_failed | %s",
                {"action": action, "user_id": actor.id, "error": str(exc)},
            )
        return entry

    def recent(self, limit: int | None = None) -> list[AuditLogEntry]:
        if limit is None:
            return list(self._state.logs)
        return self._state.logs[:limit]

    def search(self, term: str) -> list[AuditLogEntry]:
        needle = term.strip().casefold()
        if not needle:
            return self.recent()
        return [
            entry
            for entry in self._state.logs
            if needle in entry.action.casefold()
            or needle in entry.details.casefold()
            or needle in entry.user.casefold()
        ]
