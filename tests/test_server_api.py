from sqlalchemy import inspect, text
from fastapi.testclient import TestClient

from server import create_app
from storage.db import create_db_engine


def test_get_sync_returns_success_envelope(api):
    response = api.get("/sync")
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    for key in (
        "timeEntries",
        "mileageEntries",
        "fuelLogs",
        "dailyNotes",
        "savedLocations",
        "vehicles",
        "locationLogs",
        "settings",
    ):
        assert key in body["data"]


def test_post_sync_then_get_returns_rows(api):
    payload = {
        "timeEntries": [
            {
                "id": "t1",
                "startTime": "2024-03-04T08:00:00.000Z",
                "endTime": "2024-03-04T16:30:00.000Z",
                "breakMinutes": 30,
                "notes": "Pier 7",
                "tags": ["Field", "TX"],
                "date": "2024-03-04",
                "isOvertime": False,
                "hourlyRate": 38.0,
            }
        ],
        "settings": {"pinnedNoteIds": []},
    }
    response = api.post("/sync", json=payload)
    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Sync complete"}

    entry = api.get("/sync").json()["data"]["timeEntries"][0]
    assert entry["id"] == "t1"
    assert entry["tags"] == ["Field", "TX"]
    assert entry["breakMinutes"] == 30
    # server-generated column passes through under its own name
    assert entry["created_at"] is not None


def test_malformed_json_is_a_client_error(api):
    response = api.post("/sync", content=b"{not json", headers={"Content-Type": "application/json"})
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert "Malformed JSON" in body["message"]


def test_non_object_body_is_a_client_error(api):
    response = api.post("/sync", json=[1, 2, 3])
    assert response.status_code == 400
    assert response.json()["success"] is False


def test_missing_schema_is_a_server_error():
    engine = create_db_engine("sqlite:///:memory:")
    with TestClient(create_app(lambda: engine)) as client:
        pull = client.get("/sync")
        push = client.post("/sync", json={"fuelLogs": [{"id": "f1", "gallons": 3}]})
    assert pull.status_code == 500
    assert pull.json()["success"] is False
    assert push.status_code == 500
    assert push.json()["success"] is False


def test_migrate_endpoint_is_idempotent():
    engine = create_db_engine("sqlite:///:memory:")
    with TestClient(create_app(lambda: engine)) as client:
        first = client.post("/migrate")
        second = client.post("/migrate")
        info = client.get("/migrate")
    assert first.json() == {"success": True, "message": "Migrations complete"}
    assert second.status_code == 200
    assert info.json() == {"info": "POST to run migrations"}
    assert "fp_time_entries" in inspect(engine).get_table_names()


def test_health_reports_connected_database(api):
    body = api.get("/health").json()
    assert body["status"] == "ok"
    assert body["database"] == "connected"
    assert body["version"] == "2.0.0"
    assert body["timestamp"]


def test_profile_with_wrong_shapes_is_rejected(api):
    goal = api.post("/sync", json={"profile": {"name": "Sam", "weeklyGoal": "40"}})
    tags = api.post("/sync", json={"profile": {"name": "Sam", "tags": "crane"}})

    assert goal.status_code == 400
    assert goal.json() == {"success": False, "message": "profile.weeklyGoal must be an object"}
    assert tags.status_code == 400
    assert tags.json()["success"] is False
    assert "profile" not in api.get("/sync").json()["data"]


def test_unexpected_error_keeps_the_envelope():
    def broken_engine():
        raise RuntimeError("engine unavailable")

    with TestClient(create_app(broken_engine), raise_server_exceptions=False) as client:
        response = client.get("/sync")
    assert response.status_code == 500
    assert response.json() == {"success": False, "message": "Internal server error: engine unavailable"}


def test_failed_table_reports_server_error(api, db_engine):
    with db_engine.begin() as conn:
        conn.execute(text("DROP TABLE fp_fuel_logs"))

    response = api.post(
        "/sync",
        json={
            "timeEntries": [{"id": "t1", "date": "2024-03-04"}],
            "fuelLogs": [{"id": "f1", "gallons": 3}],
        },
    )

    assert response.status_code == 500
    assert response.json()["success"] is False
    assert "fp_fuel_logs" in response.json()["message"]
