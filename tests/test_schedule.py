from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from insightflow.modules.datasources.domain.models import (
    CsvConnection,
    DataSource,
    Schedule,
    compute_next_sync_at,
    is_due,
    schedule_for_save,
)

NOW = datetime(2024, 3, 15, 13, 20, tzinfo=timezone.utc)


def _source(schedule: Schedule) -> DataSource:
    return DataSource(
        id="ds-1",
        workspace_id="ws-1",
        name="Sales",
        type="CSV",
        connection=CsvConnection(file_name="sales.csv"),
        schedule=schedule,
    )


def test_fixed_intervals_are_relative_to_now() -> None:
    assert compute_next_sync_at("15m", NOW) == NOW + timedelta(minutes=15)
    assert compute_next_sync_at("30m", NOW) == NOW + timedelta(minutes=30)
    assert compute_next_sync_at("1h", NOW) == NOW + timedelta(hours=1)
    assert compute_next_sync_at(None, NOW) is None


def test_midnight_is_start_of_next_day() -> None:
    assert compute_next_sync_at("midnight", NOW) == datetime(2024, 3, 16, tzinfo=timezone.utc)
    assert compute_next_sync_at("midnight", datetime(2024, 12, 31, 23, 59)) == datetime(2025, 1, 1, tzinfo=timezone.utc)


def test_midnight_follows_configured_timezone() -> None:
    # 02:00 UTC is still the previous evening in Sao Paulo (UTC-3)
    now = datetime(2024, 3, 15, 2, 0, tzinfo=timezone.utc)
    assert compute_next_sync_at("midnight", now, "America/Sao_Paulo") == datetime(2024, 3, 15, 3, 0, tzinfo=timezone.utc)


def test_saving_a_schedule_recomputes_next_run() -> None:
    stale = Schedule(mode="AUTO", interval="1h", next_sync_at=NOW - timedelta(days=3))
    assert schedule_for_save(stale, NOW).next_sync_at == NOW + timedelta(hours=1)

    manual = Schedule(mode="MANUAL", interval="1h", next_sync_at=NOW)
    assert schedule_for_save(manual, NOW).next_sync_at is None


def test_auto_schedule_requires_interval() -> None:
    with pytest.raises(ValidationError):
        Schedule(mode="AUTO")


def test_due_only_when_auto_idle_and_past_next_run() -> None:
    due = Schedule(mode="AUTO", interval="15m", next_sync_at=NOW - timedelta(seconds=1))
    assert is_due(_source(due), NOW)
    assert is_due(_source(due.model_copy(update={"next_sync_at": NOW})), NOW)
    assert not is_due(_source(due.model_copy(update={"next_sync_at": NOW + timedelta(seconds=1)})), NOW)
    assert not is_due(_source(due.model_copy(update={"is_syncing": True})), NOW)
    assert not is_due(_source(Schedule(mode="MANUAL", next_sync_at=NOW - timedelta(hours=1))), NOW)


def test_connection_type_must_match_source_type() -> None:
    with pytest.raises(ValidationError):
        DataSource(
            id="ds-1",
            workspace_id="ws-1",
            name="Sales",
            type="POSTGRES",
            connection=CsvConnection(file_name="sales.csv"),
        )
