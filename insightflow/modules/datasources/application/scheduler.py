from __future__ import annotations

import asyncio
import logging
from datetime import datetime

from insightflow.modules.datasources.application.services import SYSTEM_ACTOR, DataSourceService
from insightflow.modules.datasources.domain.models import DataSource, is_due

logger = logging.getLogger("uvicorn.error")


class RefreshScheduler:
    """
    Periodic trigger for AUTO data sources.

    Each due source is refreshed in its own task so a slow fetch never delays
    the next tick. In-flight refreshes run to completion on `stop()`.
    """

    def __init__(self, service: DataSourceService, *, tick_seconds: float = 30.0) -> None:
        self._service = service
        self._tick_seconds = tick_seconds
        self._in_flight: dict[str, asyncio.Task[None]] = {}
        self._loop_task: asyncio.Task[None] | None = None
        self._stopping: asyncio.Event | None = None

    @property
    def running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    @property
    def in_flight(self) -> set[str]:
        return set(self._in_flight)

    def due_sources(self, now: datetime) -> list[DataSource]:
        return [
            source
            for source in self._service.list_sources()
            if source.id not in self._in_flight and is_due(source, now)
        ]

    def tick(self, now: datetime | None = None) -> list[str]:
        moment = now or self._service.now()
        triggered: list[str] = []
        for source in self.due_sources(moment):
            logger.info(
                "insightflow.scheduler.trigger | %s",
                {"data_source_id": source.id, "name": source.name, "next_sync_at": str(source.schedule.next_sync_at)},
            )
            task = asyncio.create_task(self._refresh(source.id))
            self._in_flight[source.id] = task
            task.add_done_callback(lambda _task, source_id=source.id: self._in_flight.pop(source_id, None))
            triggered.append(source.id)
        return triggered

    async def _refresh(self, source_id: str) -> None:
        try:
            await self._service.trigger_refresh(source_id, SYSTEM_ACTOR)
        except Exception as exc:
            logger.warning(
                "insightflow.scheduler.refresh_failed | %s",
                {"data_source_id": source_id, "error": repr(exc)},
            )

    async def _run(self) -> None:
        stopping = self._stopping
        if stopping is None:
            return
        while not stopping.is_set():
            self.tick()
            try:
                await asyncio.wait_for(stopping.wait(), timeout=self._tick_seconds)
            except asyncio.TimeoutError:
                continue

    def start(self) -> None:
        if self.running:
            return
        self._stopping = asyncio.Event()
        self._loop_task = asyncio.create_task(self._run())
        logger.info("insightflow.scheduler.started | %s", {"tick_seconds": self._tick_seconds})

    async def drain(self) -> None:
        pending = list(self._in_flight.values())
        if pending:
            await asyncio.gather(*pending)

    async def stop(self) -> None:
        if self._loop_task is not None and self._stopping is not None:
            self._stopping.set()
            await self._loop_task
            self._loop_task = None
        await self.drain()
        logger.info("insightflow.scheduler.stopped | %s", {"tick_seconds": self._tick_seconds})
