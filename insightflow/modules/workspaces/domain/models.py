from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class Workspace(BaseModel):
    id: str
    name: str
    description: str = ""
    owner_id: str


class SavedQuery(BaseModel):
    id: str
    workspace_id: str
    name: str
    sql: str
    description: str = ""
    last_run_at: datetime | None = None
