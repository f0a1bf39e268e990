from __future__ import annotations

from datetime import timedelta
from types import SimpleNamespace

import pytest
from flask import Flask

from src.shift_timesheet.shift_timesheet.timesheets.controller import register
from tests.helpers import MONDAY, REGULAR, at, build_harness, open_entry

THURSDAY = MONDAY + timedelta(days=3)


@pytest.fixture()
def harness():
    return build_harness(now=at(MONDAY, 9))


@pytest.fixture()
def client(harness):
    app = Flask(__name__)
    register(app, SimpleNamespace(timesheet_service=harness.service))
    return app.test_client()


def test_clock_in_returns_open_entry(client):
    resp = client.post("/api/timesheets/clock-in", json={"employee_id": 1})

    assert resp.status_code == 201
    body = resp.get_json()
    assert body["ok"] is True
    assert body["entry"]["state"] == "OPEN"
    assert body["entry"]["shift_date"] == "2025-03-03"


def test_lifecycle_errors_map_to_conflict(client):
    assert client.post("/api/timesheets/clock-out", json={"employee_id": 1}).status_code == 409

    client.post("/api/timesheets/clock-in", json={"employee_id": 1})
    resp = client.post("/api/timesheets/clock-in", json={"employee_id": 1})

    assert resp.status_code == 409
    assert resp.get_json() == {
        "ok": False,
        "error": "already_clocked_in",
        "message": "You are still clocked in; clock out first",
    }


def test_clock_out_returns_totals(client, harness):
    client.post("/api/timesheets/clock-in", json={"employee_id": 1})
    harness.clock.set(at(MONDAY, 16, 30))

    resp = client.post("/api/timesheets/clock-out", json={"employee_id": 1})

    assert resp.status_code == 200
    entry = resp.get_json()["entry"]
    assert entry["state"] == "CLOSED"
    assert (entry["duration"], entry["minutes_undertime"], entry["minutes_excess"]) == (450, 30, 0)


def test_validation_errors_map_to_bad_request(client):
    resp = client.post("/api/timesheets/clock-in", json={"employee_id": "nobody"})

    assert resp.status_code == 400
    assert resp.get_json()["error"] == "validation_error"


def test_correction_requires_iso_time(client):
    client.post("/api/timesheets/clock-in", json={"employee_id": 1})

    assert client.post("/api/timesheets/1/correct", json={"field": "time_out"}).status_code == 400
    resp = client.post("/api/timesheets/1/correct", json={"field": "time_out", "time": "5pm"})
    assert resp.status_code == 400


def test_correction_closes_entry(client, harness):
    client.post("/api/timesheets/clock-in", json={"employee_id": 1})
    harness.clock.set(at(MONDAY, 20))

    resp = client.post("/api/timesheets/1/correct", json={"field": "time_out", "time": "2025-03-03T17:00:00"})

    assert resp.status_code == 200
    assert resp.get_json()["entry"]["duration"] == 480


def test_entries_within_range(client, harness):
    client.post("/api/timesheets/clock-in", json={"employee_id": 1})
    harness.clock.set(at(MONDAY, 17))
    client.post("/api/timesheets/clock-out", json={"employee_id": 1})

    resp = client.get("/api/timesheets?employee_id=1&start=2025-03-03&end=2025-03-09")

    assert resp.status_code == 200
    assert [e["time_in"] for e in resp.get_json()["entries"]] == ["2025-03-03T09:00:00"]
    assert client.get("/api/timesheets?employee_id=1&start=03/03/2025").status_code == 400
    assert client.get("/api/timesheets?employee_id=1&start=2025-03-09&end=2025-03-03").status_code == 400


def test_open_entry_and_history(client):
    assert client.get("/api/timesheets/open?employee_id=1").get_json()["entry"] is None

    client.post("/api/timesheets/clock-in", json={"employee_id": 1})

    assert client.get("/api/timesheets/open?employee_id=1").get_json()["entry"]["entry_id"] == 1
    rows = client.get("/api/timesheets/history?employee_id=1").get_json()["rows"]
    assert [r["state"] for r in rows] == ["OPEN"]


def test_configuration_errors_map_to_server_error(client, harness):
    harness.calendar.base.clear()

    resp = client.post("/api/timesheets/clock-in", json={"employee_id": 1})

    assert resp.status_code == 500
    assert resp.get_json()["error"] == "configuration_error"


@pytest.mark.parametrize("force", ["false", "true", 1, None])
def test_only_json_true_forces_clock_in(force):
    stale = open_entry(REGULAR, MONDAY, at(MONDAY, 9), entry_id=7)
    h = build_harness(now=at(THURSDAY, 9), rows=[stale])
    app = Flask(__name__)
    register(app, SimpleNamespace(timesheet_service=h.service))

    resp = app.test_client().post("/api/timesheets/clock-in", json={"employee_id": 1, "force": force})

    assert resp.status_code == 409
    assert resp.get_json()["error"] == "already_clocked_in"
    assert h.timesheets.get_entry(7).is_open


def test_json_true_forces_clock_in():
    stale = open_entry(REGULAR, MONDAY, at(MONDAY, 9), entry_id=7)
    h = build_harness(now=at(THURSDAY, 9), rows=[stale])
    app = Flask(__name__)
    register(app, SimpleNamespace(timesheet_service=h.service))

    resp = app.test_client().post("/api/timesheets/clock-in", json={"employee_id": 1, "force": True})

    assert resp.status_code == 201
    assert h.timesheets.get_entry(7).time_out == at(MONDAY, 18)


def test_default_range_is_current_week_of_service_clock(client, harness):
    client.post("/api/timesheets/clock-in", json={"employee_id": 1})
    harness.clock.set(at(MONDAY, 17))
    client.post("/api/timesheets/clock-out", json={"employee_id": 1})
    harness.clock.set(at(THURSDAY, 8))

    resp = client.get("/api/timesheets?employee_id=1")

    assert [e["shift_date"] for e in resp.get_json()["entries"]] == ["2025-03-03"]
