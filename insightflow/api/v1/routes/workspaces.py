from fastapi import APIRouter, Depends, Query, status

from insightflow.container import AppServices
from insightflow.dependencies import get_current_user, get_services
from insightflow.modules.auth.domain.models import UserIdentity
from insightflow.modules.workspaces.domain.models import Workspace
from insightflow.schemas import WorkspaceCreateRequest

router = APIRouter(prefix="/workspaces", tags=["workspaces"])


@router.get("", response_model=list[Workspace])
async def list_workspaces(
    _user: UserIdentity = Depends(get_current_user),
    services: AppServices = Depends(get_services),
):
    return services.workspaces.list_workspaces()


@router.post("", response_model=Workspace, status_code=status.HTTP_201_CREATED)
async def create_workspace(
    request: WorkspaceCreateRequest,
    user: UserIdentity = Depends(get_current_user),
    services: AppServices = Depends(get_services),
):
    return await services.workspaces.create(name=request.name, description=request.description, actor=user)


@router.delete("/{workspace_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_workspace(
    workspace_id: str,
    confirm: bool = Query(default=False),
    user: UserIdentity = Depends(get_current_user),
    services: AppServices = Depends(get_services),
):
    """Deletes the workspace with its dashboards, data sources and saved queries."""
    await services.workspaces.delete(workspace_id, user, confirmed=confirm)
