import httpx
import pytest

import main
from server import create_app
from services import sync_client
from storage.local_store import LocalStore
from storage.persistence import StatePersistence


@pytest.fixture()
def state_file(tmp_path, clock):
    store = LocalStore(clock=clock)
    store.set_profile(hourlyRate=20, overtimeThreshold=8, overtimeMultiplier=1.5)
    store.start_timer()
    clock.advance(hours=10)
    store.stop_timer()
    store.start_trip(100)
    store.end_trip(150)
    store.start_trip(150)
    store.end_trip(170, purpose="personal")

    path = tmp_path / "fieldpulse-storage.json"
    StatePersistence(path).save(store.to_dict())
    return path


def test_summary_totals_for_one_day(state_file):
    totals = main.summary(state_file, "2024-03-04")

    assert totals["hours"] == pytest.approx(10)
    assert totals["overtime"] == pytest.approx(2)
    assert totals["miles"] == pytest.approx(70)
    assert totals["earnings"] == pytest.approx(8 * 20 + 2 * 20 * 1.5)
    assert totals["reimbursement"] == pytest.approx(50 * 0.67)


def test_summary_command_prints_the_day(state_file, capsys):
    assert main.main(["summary", "--state", str(state_file), "--day", "2024-03-04"]) == 0
    out = capsys.readouterr().out
    assert "2024-03-04: 10.00 h (2.00 overtime)" in out
    assert "70.0 mi" in out


def test_summary_of_empty_day(state_file):
    totals = main.summary(state_file, "2024-01-01")
    assert totals == {"hours": 0, "overtime": 0, "miles": 0, "earnings": 0, "reimbursement": 0}


def test_health_command_reports_connected_server(db_engine, monkeypatch, capsys):
    app = create_app(lambda: db_engine)
    real_client = sync_client.SyncClient
    monkeypatch.setattr(
        sync_client,
        "SyncClient",
        lambda base_url: real_client(base_url, transport=httpx.ASGITransport(app=app)),
    )

    assert main.main(["health", "--url", "http://testserver"]) == 0
    assert "ok (database connected)" in capsys.readouterr().out


def test_health_command_fails_when_unreachable(monkeypatch, capsys):
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    real_client = sync_client.SyncClient
    monkeypatch.setattr(
        sync_client,
        "SyncClient",
        lambda base_url: real_client(base_url, transport=httpx.MockTransport(refuse)),
    )

    assert main.main(["health", "--url", "http://testserver"]) == 1
    assert "Server unreachable" in capsys.readouterr().out
