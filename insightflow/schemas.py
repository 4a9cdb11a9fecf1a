from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

from insightflow.modules.auth.domain.models import UserIdentity
from insightflow.modules.dashboards.domain.models import Dashboard
from insightflow.modules.datasources.domain.models import ConnectionSettings, CronInterval, ScheduleMode
from insightflow.modules.widgets.application.preview import FieldSlot, WidgetDraft
from insightflow.modules.widgets.domain.config import AggregationType, ChartType
from insightflow.modules.widgets.domain.filters import DatePreset
from insightflow.modules.widgets.domain.ports import SourceSelection

# ==================== SESSIONS ====================

class SessionStartRequest(BaseModel):
    user_id: str = Field(min_length=1)
    email: str = Field(min_length=3)


class SessionResponse(BaseModel):
    token: str
    user: UserIdentity


# ==================== WORKSPACES / QUERIES ====================

class WorkspaceCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: str = ""


class SavedQueryCreateRequest(BaseModel):
    workspace_id: str
    name: str = Field(min_length=1, max_length=255)
    sql: str = Field(min_length=1)


# ==================== DASHBOARDS ====================

class DashboardCreateRequest(BaseModel):
    workspace_id: str
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None


class DashboardUpdateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None


class WidgetMoveRequest(BaseModel):
    direction: Literal["UP", "DOWN"]


class WidgetReorderRequest(BaseModel):
    from_index: int = Field(ge=0)
    to_index: int = Field(ge=0)


class WidgetLayoutRequest(BaseModel):
    width_delta: Optional[int] = None
    height: Optional[int] = None


class FilterValuesRequest(BaseModel):
    values: dict[str, Any] = Field(default_factory=dict)
    presets: dict[str, DatePreset] = Field(default_factory=dict)


class DrillDownRequest(FilterValuesRequest):
    index: int = Field(ge=0)


class DashboardRenderResponse(BaseModel):
    dashboard: Dashboard
    active_values: dict[str, Any]


class WidgetDataResponse(BaseModel):
    widget_id: str
    rows: list[dict[str, Any]]
    row_count: int


class EmbedResponse(BaseModel):
    snippet: str


# ==================== WIDGET BUILDER ====================

class BuilderOpenRequest(BaseModel):
    dashboard_id: str
    widget_id: Optional[str] = None


class BuilderEditRequest(BaseModel):
    title: Optional[str] = None
    chart_type: Optional[ChartType] = None
    aggregation: Optional[AggregationType] = None
    source: Optional[SourceSelection] = None


class BuilderFieldRequest(BaseModel):
    slot: FieldSlot
    field: str = Field(min_length=1)


class BuilderStateResponse(BaseModel):
    session_id: str
    dashboard_id: str
    draft: WidgetDraft
    fields: list[str]
    preview: list[dict[str, Any]]
    can_save: bool
    missing_fields: list[str]


# ==================== DATA SOURCES ====================

class DataSourceCreateRequest(BaseModel):
    workspace_id: str
    name: str = Field(min_length=1, max_length=255)
    connection: ConnectionSettings


class ScheduleUpdateRequest(BaseModel):
    mode: ScheduleMode
    interval: Optional[CronInterval] = None
