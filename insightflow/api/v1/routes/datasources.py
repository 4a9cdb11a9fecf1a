from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from insightflow.container import AppServices
from insightflow.dependencies import get_current_user, get_services
from insightflow.modules.auth.domain.models import UserIdentity
from insightflow.modules.datasources.domain.models import DataSource
from insightflow.schemas import DataSourceCreateRequest, ScheduleUpdateRequest

router = APIRouter(prefix="/datasources", tags=["datasources"])


@router.get("", response_model=list[DataSource])
async def list_data_sources(
    workspace_id: Optional[str] = Query(default=None),
    _user: UserIdentity = Depends(get_current_user),
    services: AppServices = Depends(get_services),
):
    return services.data_sources.list_sources(workspace_id)


@router.post("", response_model=DataSource, status_code=status.HTTP_201_CREATED)
async def add_data_source(
    request: DataSourceCreateRequest,
    user: UserIdentity = Depends(get_current_user),
    services: AppServices = Depends(get_services),
):
    return await services.data_sources.add_data_source(
        workspace_id=request.workspace_id,
        name=request.name,
        connection=request.connection,
        actor=user,
    )


@router.get("/{source_id}", response_model=DataSource)
async def get_data_source(
    source_id: str,
    _user: UserIdentity = Depends(get_current_user),
    services: AppServices = Depends(get_services),
):
    return services.data_sources.get(source_id)


@router.put("/{source_id}/schedule", response_model=DataSource)
async def update_schedule(
    source_id: str,
    request: ScheduleUpdateRequest,
    user: UserIdentity = Depends(get_current_user),
    services: AppServices = Depends(get_services),
):
    return await services.data_sources.update_schedule(
        source_id,
        mode=request.mode,
        interval=request.interval,
        actor=user,
    )


@router.post("/{source_id}/refresh", response_model=DataSource)
async def refresh_data_source(
    source_id: str,
    user: UserIdentity = Depends(get_current_user),
    services: AppServices = Depends(get_services),
):
    """Runs one sync and returns the source with its outcome recorded."""
    return await services.data_sources.trigger_refresh(source_id, user)
