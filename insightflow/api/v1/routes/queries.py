from fastapi import APIRouter, Depends, Query, status

from insightflow.container import AppServices
from insightflow.dependencies import get_current_user, get_services
from insightflow.modules.auth.domain.models import UserIdentity
from insightflow.modules.workspaces.domain.models import SavedQuery
from insightflow.schemas import SavedQueryCreateRequest

router = APIRouter(prefix="/queries", tags=["queries"])


@router.get("", response_model=list[SavedQuery])
async def list_saved_queries(
    workspace_id: str = Query(...),
    _user: UserIdentity = Depends(get_current_user),
    services: AppServices = Depends(get_services),
):
    services.workspaces.get(workspace_id)
    return services.saved_queries.list_queries(workspace_id)


@router.post("", response_model=SavedQuery, status_code=status.HTTP_201_CREATED)
async def save_query(
    request: SavedQueryCreateRequest,
    user: UserIdentity = Depends(get_current_user),
    services: AppServices = Depends(get_services),
):
    return await services.saved_queries.save(
        workspace_id=request.workspace_id,
        name=request.name,
        sql=request.sql,
        actor=user,
    )
