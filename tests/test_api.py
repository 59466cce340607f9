# HTTP and WebSocket surface, against the local store and mocked holiday sources.

import sqlite3

import pytest
from starlette.websockets import WebSocketDisconnect

from api.main import app


def _cell(body: dict, key: str) -> dict:
    return next(c for c in body["cells"] if c["date"] == key)


# -------------------------
# health and festivals
# -------------------------
def test_health_reports_backend(api_client) -> None:
    response = api_client.get("/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["event_backend"] in ("local", "firestore")


def test_health_unhealthy_without_store(api_client, monkeypatch) -> None:
    monkeypatch.setattr(app.state, "event_store", None)
    response = api_client.get("/health")
    assert response.status_code == 503
    assert response.json()["error"] == "Event store not initialized"


def test_festivals_for_known_year(api_client) -> None:
    response = api_client.get("/festivals", params={"year": "2025"})
    assert response.status_code == 200
    names = {f["date"]: f["name"] for f in response.json()}
    assert names["2025-01-14"] == "Pongal"
    assert names["2025-04-14"] == "Tamil New Year"


def test_festivals_never_fail_on_bad_year(api_client) -> None:
    response = api_client.get("/festivals", params={"year": "soon"})
    assert response.status_code == 200
    assert isinstance(response.json(), list)


# -------------------------
# calendar grid
# -------------------------
def test_calendar_month_grid(api_client, auth_headers, local_store) -> None:
    local_store.add("user-1", "2025-01-14", "Pongal lunch", "12:30")
    local_store.add("someone-else", "2025-01-14", "Not mine", "")

    response = api_client.get("/v1/calendar", params={"anchor": "2025-01-10"}, headers=auth_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["view"] == "month"
    assert body["title"] == "January 2025"
    assert body["weekdays"][0] == "Sun"
    assert len(body["cells"]) == 35

    pongal = _cell(body, "2025-01-14")
    assert pongal["holiday"]["name"] == "Pongal"
    assert pongal["month_label"] == "Thai"
    assert [e["title"] for e in pongal["events"]] == ["Pongal lunch"]
    assert _cell(body, "2025-01-10")["is_selected"] is True


def test_calendar_week_view(api_client, auth_headers) -> None:
    response = api_client.get(
        "/v1/calendar", params={"view": "week", "anchor": "2025-01-22"}, headers=auth_headers
    )
    assert response.status_code == 200
    assert [c["date"] for c in response.json()["cells"]][0] == "2025-01-19"


def test_calendar_selected_does_not_move_week(api_client, auth_headers) -> None:
    response = api_client.get(
        "/v1/calendar",
        params={"view": "week", "anchor": "2025-03-05", "selected": "2025-06-10"},
        headers=auth_headers,
    )
    assert response.status_code == 200
    body = response.json()
    assert body["anchor"] == "2025-03-05"
    assert [c["date"] for c in body["cells"]][0] == "2025-03-02"
    assert not any(c["is_selected"] for c in body["cells"])


def test_calendar_day_view_highlights_selected(api_client, auth_headers) -> None:
    response = api_client.get(
        "/v1/calendar",
        params={"view": "day", "anchor": "2025-03-05", "selected": "2025-03-05"},
        headers=auth_headers,
    )
    cells = response.json()["cells"]
    assert [c["date"] for c in cells] == ["2025-03-05"]
    assert cells[0]["is_selected"] is True


def test_calendar_requires_identity(api_client, auth_headers) -> None:
    headers = {"X-API-Key": auth_headers["X-API-Key"]}
    response = api_client.get("/v1/calendar", headers=headers)
    assert response.status_code == 401
    assert response.json()["detail"]["code"] == "UNAUTHORIZED"


def test_calendar_rejects_wrong_api_key(api_client, auth_headers) -> None:
    headers = dict(auth_headers, **{"X-API-Key": "nope"})
    assert api_client.get("/v1/calendar", headers=headers).status_code == 401


@pytest.mark.parametrize("params", [{"anchor": "14-01-2025"}, {"view": "year"}])
def test_calendar_bad_query(api_client, auth_headers, params: dict) -> None:
    response = api_client.get("/v1/calendar", params=params, headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "INVALID_REQUEST"


# -------------------------
# events
# -------------------------
def test_add_event(api_client, auth_headers, local_store, db_path) -> None:
    response = api_client.post(
        "/v1/events",
        json={"date": "2025-01-14", "title": "  Kolam  ", "time": "06:00"},
        headers=auth_headers,
    )

    assert response.status_code == 201
    event = response.json()
    assert event["title"] == "Kolam"
    assert local_store.snapshot("user-1")["2025-01-14"][0]["id"] == event["id"]

    conn = sqlite3.connect(db_path)
    rows = conn.execute("SELECT method, status_code, event_id FROM api_requests").fetchall()
    conn.close()
    assert rows == [("POST", 201, event["id"])]


@pytest.mark.parametrize(
    "payload",
    [
        {"date": "2025-01-14", "title": "   "},
        {"date": "2025-01-14", "title": "Lunch", "time": "noon"},
    ],
)
def test_add_event_validation_error(api_client, auth_headers, local_store, payload: dict) -> None:
    response = api_client.post("/v1/events", json=payload, headers=auth_headers)
    assert response.status_code == 422
    assert response.json()["detail"]["code"] == "VALIDATION_ERROR"
    assert local_store.snapshot("user-1") == {}


def test_add_event_bad_date(api_client, auth_headers) -> None:
    response = api_client.post(
        "/v1/events", json={"date": "tomorrow", "title": "Soon"}, headers=auth_headers
    )
    assert response.status_code == 400


def test_remove_event_is_idempotent(api_client, auth_headers, local_store) -> None:
    event = local_store.add("user-1", "2025-01-14", "Drop", "")

    for _ in range(2):
        response = api_client.delete(f"/v1/events/2025-01-14/{event['id']}", headers=auth_headers)
        assert response.status_code == 204

    assert local_store.snapshot("user-1") == {}


# -------------------------
# live stream
# -------------------------
def test_stream_pushes_grid_on_each_update(api_client, auth_headers, local_store) -> None:
    local_store.add("user-1", "2025-01-14", "Existing", "")

    with api_client.websocket_connect(
        "/v1/calendar/stream?anchor=2025-01-10", headers=auth_headers
    ) as websocket:
        first = websocket.receive_json()
        assert [e["title"] for e in _cell(first, "2025-01-14")["events"]] == ["Existing"]

        with_holidays = websocket.receive_json()
        assert _cell(with_holidays, "2025-01-26")["holiday"]["name"] == "Republic Day"

        local_store.add("user-1", "2025-01-20", "Added elsewhere", "")
        updated = websocket.receive_json()
        assert [e["title"] for e in _cell(updated, "2025-01-20")["events"]] == ["Added elsewhere"]


def test_stream_cleans_up_after_client_leaves(api_client, auth_headers, local_store) -> None:
    with api_client.websocket_connect(
        "/v1/calendar/stream?anchor=2025-01-10", headers=auth_headers
    ) as websocket:
        websocket.receive_json()

    # the handler has finished; later writes reach no one and raise nothing
    local_store.add("user-1", "2025-01-20", "After disconnect", "")
    assert local_store._subscriptions == {}


def test_stream_rejects_anonymous(api_client) -> None:
    with pytest.raises(WebSocketDisconnect):
        with api_client.websocket_connect("/v1/calendar/stream") as websocket:
            websocket.receive_json()
