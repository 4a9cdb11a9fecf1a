from __future__ import annotations

import asyncio

from insightflow.modules.datasources.domain.models import DataSource
from insightflow.modules.datasources.domain.ports import SourceFetcherPort


class SimulatedFetcher(SourceFetcherPort):
    """Fixed-delay no-op standing in for the real connector sync."""

    def __init__(self, delay_seconds: float) -> None:
        self._delay_seconds = delay_seconds

    async def fetch(self, source: DataSource) -> None:
        _ = source
        await asyncio.sleep(self._delay_seconds)
