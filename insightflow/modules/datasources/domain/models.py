from __future__ import annotations

from datetime import datetime, time, timedelta, timezone
from typing import Annotated, ClassVar, Literal, Union
from zoneinfo import ZoneInfo

from pydantic import BaseModel, Field, SecretStr, model_validator

DataSourceType = Literal["CSV", "JSON", "POSTGRES", "MONGO", "REST_API"]
DataSourceStatus = Literal["connected", "error", "pending"]
ScheduleMode = Literal["MANUAL", "AUTO"]
CronInterval = Literal["15m", "30m", "1h", "midnight"]

INTERVAL_DELTAS: dict[str, timedelta] = {
    "15m": timedelta(minutes=15),
    "30m": timedelta(minutes=30),
    "1h": timedelta(hours=1),
}


class _ConnectionSettings(BaseModel):
    secret_fields: ClassVar[tuple[str, ...]] = ()


class CsvConnection(_ConnectionSettings):
    type: Literal["CSV"] = "CSV"
    file_name: str
    delimiter: str = ","
    has_header: bool = True


class JsonConnection(_ConnectionSettings):
    type: Literal["JSON"] = "JSON"
    file_name: str
    records_path: str | None = None


class PostgresConnection(_ConnectionSettings):
    secret_fields: ClassVar[tuple[str, ...]] = ("password",)

    type: Literal["POSTGRES"] = "POSTGRES"
    host: str
    port: int = 5432
    database: str | None = None
    username: str | None = None
    password: SecretStr | None = None


class MongoConnection(_ConnectionSettings):
    secret_fields: ClassVar[tuple[str, ...]] = ("password",)

    type: Literal["MONGO"] = "MONGO"
    host: str
    port: int = 27017
    database: str | None = None
    username: str | None = None
    password: SecretStr | None = None


class RestApiConnection(_ConnectionSettings):
    secret_fields: ClassVar[tuple[str, ...]] = ("auth_token",)

    type: Literal["REST_API"] = "REST_API"
    endpoint: str
    auth_token: SecretStr | None = None


ConnectionSettings = Annotated[
    Union[CsvConnection, JsonConnection, PostgresConnection, MongoConnection, RestApiConnection],
    Field(discriminator="type"),
]


class Schedule(BaseModel):
    mode: ScheduleMode = "MANUAL"
    interval: CronInterval | None = None
    last_synced_at: datetime | None = None
    next_sync_at: datetime | None = None
    is_syncing: bool = False

    @model_validator(mode="after")
    def validate_interval(self) -> "Schedule":
        if self.mode == "AUTO" and self.interval is None:
            raise ValueError("AUTO schedule requires an interval")
        return self


class DataSource(BaseModel):
    id: str
    workspace_id: str
    name: str
    type: DataSourceType
    connection: ConnectionSettings
    status: DataSourceStatus = "connected"
    schedule: Schedule = Field(default_factory=Schedule)
    last_error_message: str | None = None

    @model_validator(mode="after")
    def validate_connection_type(self) -> "DataSource":
        if self.connection.type != self.type:
            raise ValueError("connection.type must match data source type")
        return self


def compute_next_sync_at(interval: CronInterval | None, now: datetime, tz_name: str = "UTC") -> datetime | None:
    """Next run relative to `now`; midnight means the start of the next calendar day in `tz_name`."""
    if interval is None:
        return None
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    if interval == "midnight":
        tz = ZoneInfo(tz_name)
        local_now = now.astimezone(tz)
        next_day = local_now.date() + timedelta(days=1)
        return datetime.combine(next_day, time.min, tzinfo=tz).astimezone(timezone.utc)
    return now + INTERVAL_DELTAS[interval]


def schedule_for_save(schedule: Schedule, now: datetime, tz_name: str = "UTC") -> Schedule:
    next_sync_at = compute_next_sync_at(schedule.interval, now, tz_name) if schedule.mode == "AUTO" else None
    return schedule.model_copy(update={"next_sync_at": next_sync_at})


def is_due(source: DataSource, now: datetime) -> bool:
    schedule = source.schedule
    if schedule.mode != "AUTO" or schedule.is_syncing or schedule.next_sync_at is None:
        return False
    next_sync_at = schedule.next_sync_at
    if next_sync_at.tzinfo is None:
        next_sync_at = next_sync_at.replace(tzinfo=timezone.utc)
    return now >= next_sync_at
