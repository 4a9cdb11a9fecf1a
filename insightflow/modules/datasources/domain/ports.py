from __future__ import annotations

from typing import Protocol

from insightflow.modules.datasources.domain.models import DataSource


class DataSourceRepositoryPort(Protocol):
    def list_all(self) -> list[DataSource]:
        raise NotImplementedError

    async def save(self, source: DataSource) -> None:
        raise NotImplementedError


class SourceFetcherPort(Protocol):
    async def fetch(self, source: DataSource) -> None:
        raise NotImplementedError
