from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from insightflow.errors import NotFoundError
from insightflow.modules.widgets.application.preview import LivePreviewEngine


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class BuilderSession:
    id: str
    dashboard_id: str
    user_id: str
    engine: LivePreviewEngine
    updated_at: datetime


class WidgetBuilderRegistry:
    """Open widget drafts keyed by builder session id; idle sessions expire after the TTL."""

    def __init__(self, ttl_seconds: int) -> None:
        self._ttl_seconds = ttl_seconds
        self._lock = asyncio.Lock()
        self._items: dict[str, BuilderSession] = {}

    async def open(self, *, dashboard_id: str, user_id: str, engine: LivePreviewEngine) -> BuilderSession:
        async with self._lock:
            self._evict_expired()
            session = BuilderSession(
                id=uuid.uuid4().hex,
                dashboard_id=dashboard_id,
                user_id=user_id,
                engine=engine,
                updated_at=_utcnow(),
            )
            self._items[session.id] = session
            return session

    async def get(self, session_id: str) -> BuilderSession:
        async with self._lock:
            item = self._items.get(session_id)
            if item is None or self._expired(item):
                self._items.pop(session_id, None)
                raise NotFoundError("builder_session", session_id)
            item.updated_at = _utcnow()
            return item

    async def close(self, session_id: str) -> None:
        async with self._lock:
            self._items.pop(session_id, None)

    def _expired(self, item: BuilderSession) -> bool:
        return item.updated_at + timedelta(seconds=self._ttl_seconds) <= _utcnow()

    def _evict_expired(self) -> None:
        for session_id in [key for key, item in self._items.items() if self._expired(item)]:
            self._items.pop(session_id, None)
