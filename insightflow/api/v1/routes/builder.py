from fastapi import APIRouter, Depends, HTTPException, status

from insightflow.container import AppServices
from insightflow.dependencies import get_current_user, get_services
from insightflow.modules.auth.domain.models import UserIdentity
from insightflow.modules.widgets.application.builder_registry import BuilderSession
from insightflow.modules.widgets.domain.config import Widget, WidgetConfigValidationError
from insightflow.schemas import (
    BuilderEditRequest,
    BuilderFieldRequest,
    BuilderOpenRequest,
    BuilderStateResponse,
)

router = APIRouter(prefix="/builder/sessions", tags=["builder"])


def _state(session: BuilderSession) -> BuilderStateResponse:
    engine = session.engine
    return BuilderStateResponse(
        session_id=session.id,
        dashboard_id=session.dashboard_id,
        draft=engine.draft,
        fields=engine.fields,
        preview=engine.preview,
        can_save=engine.draft.can_save,
        missing_fields=engine.draft.missing_fields(),
    )


@router.post("", response_model=BuilderStateResponse, status_code=status.HTTP_201_CREATED)
async def open_builder(
    request: BuilderOpenRequest,
    user: UserIdentity = Depends(get_current_user),
    services: AppServices = Depends(get_services),
):
    """Start a widget draft; passing `widget_id` reopens an existing widget for editing."""
    session = await services.builder.open(request.dashboard_id, user, widget_id=request.widget_id)
    return _state(session)


@router.get("/{session_id}", response_model=BuilderStateResponse)
async def get_builder(
    session_id: str,
    user: UserIdentity = Depends(get_current_user),
    services: AppServices = Depends(get_services),
):
    return _state(await services.builder.get(session_id, user))


@router.patch("/{session_id}", response_model=BuilderStateResponse)
async def edit_builder(
    session_id: str,
    request: BuilderEditRequest,
    user: UserIdentity = Depends(get_current_user),
    services: AppServices = Depends(get_services),
):
    session = await services.builder.get(session_id, user)
    if "source" in request.model_fields_set:
        session = await services.builder.select_source(session_id, request.source, user)
    if request.chart_type is not None:
        session = await services.builder.set_chart_type(session_id, request.chart_type, user)
    if request.aggregation is not None:
        session = await services.builder.set_aggregation(session_id, request.aggregation, user)
    if request.title is not None:
        session = await services.builder.set_title(session_id, request.title, user)
    return _state(session)


@router.post("/{session_id}/fields", response_model=BuilderStateResponse)
async def assign_field(
    session_id: str,
    request: BuilderFieldRequest,
    user: UserIdentity = Depends(get_current_user),
    services: AppServices = Depends(get_services),
):
    return _state(await services.builder.assign_field(session_id, request.slot, request.field, user))


@router.delete("/{session_id}/columns/{field}", response_model=BuilderStateResponse)
async def remove_column(
    session_id: str,
    field: str,
    user: UserIdentity = Depends(get_current_user),
    services: AppServices = Depends(get_services),
):
    return _state(await services.builder.remove_column(session_id, field, user))


@router.post("/{session_id}/save", response_model=Widget)
async def save_widget(
    session_id: str,
    user: UserIdentity = Depends(get_current_user),
    services: AppServices = Depends(get_services),
):
    try:
        return await services.builder.save(session_id, user)
    except WidgetConfigValidationError as exc:
        raise HTTPException(status_code=400, detail=exc.to_detail())


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def cancel_builder(
    session_id: str,
    user: UserIdentity = Depends(get_current_user),
    services: AppServices = Depends(get_services),
):
    await services.builder.cancel(session_id, user)
