from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status

from insightflow.container import AppServices
from insightflow.dependencies import get_current_user, get_services
from insightflow.errors import NotFoundError
from insightflow.modules.auth.domain.models import UserIdentity
from insightflow.modules.dashboards.domain.commands import (
    AddFilter,
    MoveWidget,
    RemoveFilter,
    RenameDashboard,
    ReorderWidget,
    ResizeHeight,
    ResizeWidth,
)
from insightflow.modules.dashboards.domain.models import Dashboard
from insightflow.modules.widgets.application.export import drill_down, embed_snippet, export_csv, export_filename
from insightflow.modules.widgets.domain.config import DashboardFilter, Widget
from insightflow.schemas import (
    DashboardCreateRequest,
    DashboardRenderResponse,
    DashboardUpdateRequest,
    DrillDownRequest,
    EmbedResponse,
    FilterValuesRequest,
    WidgetDataResponse,
    WidgetLayoutRequest,
    WidgetMoveRequest,
    WidgetReorderRequest,
)

router = APIRouter(prefix="/dashboards", tags=["dashboards"])


def _rendered_widget(
    services: AppServices,
    dashboard_id: str,
    widget_id: str,
    request: FilterValuesRequest,
) -> Widget:
    dashboard, _active = services.dashboards.render(dashboard_id, request.values, request.presets)
    index = dashboard.widget_index(widget_id)
    if index is None:
        raise NotFoundError("widget", widget_id)
    return dashboard.widgets[index]


@router.get("", response_model=list[Dashboard])
async def list_dashboards(
    workspace_id: Optional[str] = Query(default=None),
    _user: UserIdentity = Depends(get_current_user),
    services: AppServices = Depends(get_services),
):
    return services.dashboards.list_dashboards(workspace_id)


@router.post("", response_model=Dashboard, status_code=status.HTTP_201_CREATED)
async def create_dashboard(
    request: DashboardCreateRequest,
    user: UserIdentity = Depends(get_current_user),
    services: AppServices = Depends(get_services),
):
    return await services.dashboards.create_dashboard(
        workspace_id=request.workspace_id,
        name=request.name,
        description=request.description,
        actor=user,
    )


@router.get("/{dashboard_id}", response_model=Dashboard)
async def get_dashboard(
    dashboard_id: str,
    _user: UserIdentity = Depends(get_current_user),
    services: AppServices = Depends(get_services),
):
    return services.dashboards.get(dashboard_id)


@router.patch("/{dashboard_id}", response_model=Dashboard)
async def update_dashboard(
    dashboard_id: str,
    request: DashboardUpdateRequest,
    user: UserIdentity = Depends(get_current_user),
    services: AppServices = Depends(get_services),
):
    return await services.dashboards.execute(
        dashboard_id,
        RenameDashboard(name=request.name, description=request.description),
        user,
    )


@router.delete("/{dashboard_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_dashboard(
    dashboard_id: str,
    confirm: bool = Query(default=False),
    user: UserIdentity = Depends(get_current_user),
    services: AppServices = Depends(get_services),
):
    await services.dashboards.delete_dashboard(dashboard_id, user, confirmed=confirm)


@router.post("/{dashboard_id}/render", response_model=DashboardRenderResponse)
async def render_dashboard(
    dashboard_id: str,
    request: FilterValuesRequest,
    _user: UserIdentity = Depends(get_current_user),
    services: AppServices = Depends(get_services),
):
    """Dashboard with every widget's snapshot narrowed by the active filter values."""
    dashboard, active = services.dashboards.render(dashboard_id, request.values, request.presets)
    return DashboardRenderResponse(dashboard=dashboard, active_values=active)


@router.get("/{dashboard_id}/embed", response_model=EmbedResponse)
async def get_embed_snippet(
    dashboard_id: str,
    _user: UserIdentity = Depends(get_current_user),
    services: AppServices = Depends(get_services),
):
    dashboard = services.dashboards.get(dashboard_id)
    return EmbedResponse(snippet=embed_snippet(services.settings.public_base_url, dashboard.id))


# ==================== WIDGETS ====================

@router.post("/{dashboard_id}/widgets/reorder", response_model=Dashboard)
async def reorder_widgets(
    dashboard_id: str,
    request: WidgetReorderRequest,
    user: UserIdentity = Depends(get_current_user),
    services: AppServices = Depends(get_services),
):
    return await services.dashboards.execute(
        dashboard_id,
        ReorderWidget(from_index=request.from_index, to_index=request.to_index),
        user,
    )


@router.post("/{dashboard_id}/widgets/{widget_id}/move", response_model=Dashboard)
async def move_widget(
    dashboard_id: str,
    widget_id: str,
    request: WidgetMoveRequest,
    user: UserIdentity = Depends(get_current_user),
    services: AppServices = Depends(get_services),
):
    return await services.dashboards.execute(dashboard_id, MoveWidget(widget_id, request.direction), user)


@router.patch("/{dashboard_id}/widgets/{widget_id}/layout", response_model=Dashboard)
async def resize_widget(
    dashboard_id: str,
    widget_id: str,
    request: WidgetLayoutRequest,
    user: UserIdentity = Depends(get_current_user),
    services: AppServices = Depends(get_services),
):
    dashboard = services.dashboards.get(dashboard_id)
    if request.width_delta is not None:
        dashboard = await services.dashboards.execute(dashboard_id, ResizeWidth(widget_id, request.width_delta), user)
    if request.height is not None:
        dashboard = await services.dashboards.execute(dashboard_id, ResizeHeight(widget_id, request.height), user)
    return dashboard


@router.delete("/{dashboard_id}/widgets/{widget_id}", response_model=Dashboard)
async def remove_widget(
    dashboard_id: str,
    widget_id: str,
    confirm: bool = Query(default=False),
    user: UserIdentity = Depends(get_current_user),
    services: AppServices = Depends(get_services),
):
    return await services.dashboards.remove_widget(dashboard_id, widget_id, user, confirmed=confirm)


@router.post("/{dashboard_id}/widgets/{widget_id}/data", response_model=WidgetDataResponse)
async def get_widget_data(
    dashboard_id: str,
    widget_id: str,
    request: FilterValuesRequest,
    _user: UserIdentity = Depends(get_current_user),
    services: AppServices = Depends(get_services),
):
    widget = _rendered_widget(services, dashboard_id, widget_id, request)
    return WidgetDataResponse(widget_id=widget.id, rows=widget.data, row_count=len(widget.data))


@router.post("/{dashboard_id}/widgets/{widget_id}/drill-down")
async def drill_down_widget(
    dashboard_id: str,
    widget_id: str,
    request: DrillDownRequest,
    _user: UserIdentity = Depends(get_current_user),
    services: AppServices = Depends(get_services),
):
    widget = _rendered_widget(services, dashboard_id, widget_id, request)
    return {"widget_id": widget.id, "title": widget.title, "row": drill_down(widget.data, request.index)}


@router.post("/{dashboard_id}/widgets/{widget_id}/export")
async def export_widget(
    dashboard_id: str,
    widget_id: str,
    request: FilterValuesRequest,
    _user: UserIdentity = Depends(get_current_user),
    services: AppServices = Depends(get_services),
):
    widget = _rendered_widget(services, dashboard_id, widget_id, request)
    return Response(
        content=export_csv(widget.data),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{export_filename(widget.title)}"'},
    )


# ==================== FILTERS ====================

@router.post("/{dashboard_id}/filters", response_model=Dashboard, status_code=status.HTTP_201_CREATED)
async def add_filter(
    dashboard_id: str,
    request: DashboardFilter,
    user: UserIdentity = Depends(get_current_user),
    services: AppServices = Depends(get_services),
):
    return await services.dashboards.execute(dashboard_id, AddFilter(request), user)


@router.delete("/{dashboard_id}/filters/{filter_id}", response_model=Dashboard)
async def remove_filter(
    dashboard_id: str,
    filter_id: str,
    user: UserIdentity = Depends(get_current_user),
    services: AppServices = Depends(get_services),
):
    return await services.dashboards.execute(dashboard_id, RemoveFilter(filter_id), user)
