from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Protocol

from pydantic import BaseModel

from insightflow.modules.widgets.domain.config import ChartType

SourceKind = Literal["datasource", "saved_query"]


class SourceSelection(BaseModel):
    kind: SourceKind
    id: str


@dataclass(slots=True)
class RowSet:
    rows: list[dict[str, Any]] = field(default_factory=list)
    fields: list[str] = field(default_factory=list)


class RowSourcePort(Protocol):
    def resolve(self, selection: SourceSelection, chart_type: ChartType) -> RowSet:
        raise NotImplementedError
