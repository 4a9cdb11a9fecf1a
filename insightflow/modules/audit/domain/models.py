from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class AuditLogEntry(BaseModel):
    id: str
    timestamp: datetime
    user: str
    user_id: str | None = None
    action: str
    details: str = ""
