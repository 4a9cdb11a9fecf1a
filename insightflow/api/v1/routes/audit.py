from typing import Optional

from fastapi import APIRouter, Depends, Query

from insightflow.container import AppServices
from insightflow.dependencies import get_current_user, get_services
from insightflow.modules.audit.domain.models import AuditLogEntry
from insightflow.modules.auth.domain.models import UserIdentity

router = APIRouter(prefix="/audit", tags=["audit"])


@router.get("", response_model=list[AuditLogEntry])
async def list_audit_logs(
    q: Optional[str] = Query(default=None),
    limit: int = Query(default=50, ge=1, le=500),
    _user: UserIdentity = Depends(get_current_user),
    services: AppServices = Depends(get_services),
):
    entries = services.audit.search(q) if q else services.audit.recent()
    return entries[:limit]
