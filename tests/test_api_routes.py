import pytest
from fastapi.testclient import TestClient

from main import create_app


@pytest.fixture
def client(settings, services):
    with TestClient(create_app(settings, services)) as test_client:
        yield test_client


@pytest.fixture
def auth_headers(client) -> dict[str, str]:
    response = client.post("/sessions", json={"user_id": "user-1", "email": "ana.silva@example.com"})
    assert response.status_code == 201
    return {"X-Session-Token": response.json()["token"]}


def _workspace_with_dashboard(client, headers) -> tuple[str, str, str]:
    workspace = client.post("/workspaces", json={"name": "Sales"}, headers=headers).json()
    source = client.post(
        "/datasources",
        json={
            "workspace_id": workspace["id"],
            "name": "Orders",
            "connection": {"type": "CSV", "file_name": "orders.csv"},
        },
        headers=headers,
    ).json()
    dashboard = client.post(
        "/dashboards",
        json={"workspace_id": workspace["id"], "name": "Overview"},
        headers=headers,
    ).json()
    return workspace["id"], source["id"], dashboard["id"]


def _build_revenue_widget(client, headers, dashboard_id, source_id) -> dict:
    session = client.post("/builder/sessions", json={"dashboard_id": dashboard_id}, headers=headers).json()
    session_id = session["session_id"]
    client.patch(
        f"/builder/sessions/{session_id}",
        json={"title": "Revenue by category", "chart_type": "BAR", "source": {"kind": "datasource", "id": source_id}},
        headers=headers,
    )
    client.post(f"/builder/sessions/{session_id}/fields", json={"slot": "X_AXIS", "field": "category"}, headers=headers)
    client.post(f"/builder/sessions/{session_id}/fields", json={"slot": "FILTER", "field": "category"}, headers=headers)
    state = client.post(
        f"/builder/sessions/{session_id}/fields",
        json={"slot": "VALUE", "field": "revenue"},
        headers=headers,
    ).json()
    assert state["can_save"] is True
    assert state["preview"][0] == {"category": "Electronics", "revenue": 9490}

    response = client.post(f"/builder/sessions/{session_id}/save", headers=headers)
    assert response.status_code == 200
    return response.json()


def test_health_and_root_are_public(client) -> None:
    assert client.get("/health").status_code == 200
    assert client.get("/").json() == {"message": "InsightFlow API"}


def test_requests_without_session_are_rejected(client) -> None:
    response = client.get("/workspaces")
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "session_required"

    response = client.get("/workspaces", headers={"X-Session-Token": "not-a-token"})
    assert response.status_code == 401


def test_session_lifecycle(client, auth_headers) -> None:
    current = client.get("/sessions/current", headers=auth_headers).json()
    assert current["user"]["name"] == "ana.silva"

    assert client.delete("/sessions/current", headers=auth_headers).status_code == 204
    assert client.get("/sessions/current", headers=auth_headers).status_code == 401


def test_builder_flow_renders_and_exports(client, auth_headers) -> None:
    _workspace_id, source_id, dashboard_id = _workspace_with_dashboard(client, auth_headers)
    widget = _build_revenue_widget(client, auth_headers, dashboard_id, source_id)

    assert widget["type"] == "BAR"
    assert widget["config"]["filter_mapping"] == {"category": "category"}
    assert len(widget["data"]) == 3

    dashboard = client.get(f"/dashboards/{dashboard_id}", headers=auth_headers).json()
    assert [item["id"] for item in dashboard["filters"]] == ["category"]
    assert dashboard["filters"][0]["options"] == ["Electronics", "Furniture", "Clothing"]

    rendered = client.post(
        f"/dashboards/{dashboard_id}/render",
        json={"values": {"category": "Furniture"}},
        headers=auth_headers,
    ).json()
    assert rendered["active_values"] == {"category": "Furniture"}
    assert rendered["dashboard"]["widgets"][0]["data"] == [{"category": "Furniture", "revenue": 4890}]

    exported = client.post(
        f"/dashboards/{dashboard_id}/widgets/{widget['id']}/export",
        json={"values": {}},
        headers=auth_headers,
    )
    assert exported.status_code == 200
    assert exported.headers["content-type"].startswith("text/csv")
    assert 'filename="revenue_by_category.csv"' in exported.headers["content-disposition"]
    assert exported.text.splitlines()[0] == "category,revenue"

    point = client.post(
        f"/dashboards/{dashboard_id}/widgets/{widget['id']}/drill-down",
        json={"index": 2},
        headers=auth_headers,
    ).json()
    assert point["row"] == {"category": "Clothing", "revenue": 5170}

    embed = client.get(f"/dashboards/{dashboard_id}/embed", headers=auth_headers).json()
    assert f"#/embed/{dashboard_id}" in embed["snippet"]


def test_invalid_widget_is_rejected_with_field_errors(client, auth_headers) -> None:
    _workspace_id, _source_id, dashboard_id = _workspace_with_dashboard(client, auth_headers)
    session = client.post("/builder/sessions", json={"dashboard_id": dashboard_id}, headers=auth_headers).json()

    response = client.post(f"/builder/sessions/{session['session_id']}/save", headers=auth_headers)

    assert response.status_code == 400
    field_errors = response.json()["detail"]["field_errors"]
    assert set(field_errors) == {"title", "x_axis", "value_field"}
    assert client.get(f"/dashboards/{dashboard_id}", headers=auth_headers).json()["widgets"] == []


def test_destructive_calls_need_confirm_flag(client, auth_headers) -> None:
    workspace_id, source_id, dashboard_id = _workspace_with_dashboard(client, auth_headers)
    widget = _build_revenue_widget(client, auth_headers, dashboard_id, source_id)

    response = client.delete(f"/dashboards/{dashboard_id}/widgets/{widget['id']}", headers=auth_headers)
    assert response.status_code == 409
    error = response.json()["error"]
    assert error["code"] == "confirmation_required"
    assert error["error_id"]

    response = client.delete(
        f"/dashboards/{dashboard_id}/widgets/{widget['id']}",
        params={"confirm": "true"},
        headers=auth_headers,
    )
    assert response.json()["widgets"] == []

    assert client.delete(f"/workspaces/{workspace_id}", headers=auth_headers).status_code == 409
    assert client.delete(f"/workspaces/{workspace_id}", params={"confirm": "true"}, headers=auth_headers).status_code == 204
    assert client.get(f"/dashboards/{dashboard_id}", headers=auth_headers).status_code == 404


def test_data_source_schedule_and_refresh(client, auth_headers) -> None:
    _workspace_id, source_id, _dashboard_id = _workspace_with_dashboard(client, auth_headers)

    response = client.put(f"/datasources/{source_id}/schedule", json={"mode": "AUTO"}, headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "invalid_schedule"

    scheduled = client.put(
        f"/datasources/{source_id}/schedule",
        json={"mode": "AUTO", "interval": "30m"},
        headers=auth_headers,
    ).json()
    assert scheduled["schedule"]["next_sync_at"] is not None

    refreshed = client.post(f"/datasources/{source_id}/refresh", headers=auth_headers).json()
    assert refreshed["status"] == "connected"
    assert refreshed["schedule"]["is_syncing"] is False
    assert refreshed["schedule"]["last_synced_at"] is not None

    assert client.get("/datasources/missing", headers=auth_headers).status_code == 404


def test_saved_queries_and_audit_search(client, auth_headers) -> None:
    workspace_id, _source_id, _dashboard_id = _workspace_with_dashboard(client, auth_headers)

    created = client.post(
        "/queries",
        json={"workspace_id": workspace_id, "name": "Top customers", "sql": "SELECT * FROM customers"},
        headers=auth_headers,
    )
    assert created.status_code == 201
    listed = client.get("/queries", params={"workspace_id": workspace_id}, headers=auth_headers).json()
    assert [item["name"] for item in listed] == ["Top customers"]

    entries = client.get("/audit", params={"q": "top customers"}, headers=auth_headers).json()
    assert [entry["action"] for entry in entries] == ["Save Query"]
    latest = client.get("/audit", params={"limit": 1}, headers=auth_headers).json()
    assert latest[0]["user"] == "ana.silva"
