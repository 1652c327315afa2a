from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient

from medtrack.db.db_config import get_sqlite_connection
from medtrack.main import app
from medtrack.services.record_store import RecordStore, get_store

AUTH = {"Authorization": "Bearer secret"}

NEW_MED = {
    "patientId": "p1",
    "name": "Metformin",
    "dosage": "500mg",
    "frequency": "twice daily",
    "startDate": "2024-01-01",
    "schedule": [{"time": "8:00", "days": ["Saturday"]}, {"time": "20:00", "days": ["Saturday"]}],
}


@pytest.fixture
def store(tmp_path):
    return RecordStore(get_sqlite_connection(str(tmp_path / "medtrack.db")))


@pytest.fixture
def api(store, monkeypatch):
    monkeypatch.setenv("MEDTRACK_API_TOKEN", "secret")
    app.dependency_overrides[get_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


def _create_med(api, **overrides):
    r = api.post("/medications", json={**NEW_MED, **overrides}, headers=AUTH)
    assert r.status_code == 201, r.text
    return r.json()["id"]


def test_health(api):
    assert api.get("/health").json() == {"ok": True}


def test_medication_crud_and_defaults(api):
    med_id = _create_med(api)

    meds = api.get("/medications").json()
    assert len(meds) == 1
    assert meds[0]["id"] == med_id
    assert meds[0]["isActive"] is True and meds[0]["reminderEnabled"] is True
    assert meds[0]["schedule"][0]["time"] == "08:00"

    assert api.put(f"/medications/{med_id}", json={"dosage": "1g"}, headers=AUTH).status_code == 200
    assert api.get("/medications").json()[0]["dosage"] == "1g"

    assert api.delete(f"/medications/{med_id}", headers=AUTH).status_code == 200
    assert api.get("/medications").json() == []
    assert api.delete(f"/medications/{med_id}", headers=AUTH).status_code == 404


def test_missing_fields_is_400(api):
    r = api.post("/medications", json={"name": "Aspirin"}, headers=AUTH)
    assert r.status_code == 400
    assert r.json()["detail"] == "Missing required fields"


def test_writes_need_token(api, monkeypatch):
    assert api.post("/medications", json=NEW_MED).status_code == 401
    assert api.post("/medications", json=NEW_MED, headers={"Authorization": "Bearer nope"}).status_code == 401

    monkeypatch.delenv("MEDTRACK_API_TOKEN")
    assert api.post("/medications", json=NEW_MED, headers=AUTH).status_code == 500


def test_log_list_window_stats_and_delete(api):
    med_id = _create_med(api)
    r = api.post("/adherence", json={
        "medicationId": med_id, "scheduledTime": "2024-06-15T08:00:00",
        "takenAt": "2024-06-15T08:04:00", "status": "taken",
    }, headers=AUTH)
    assert r.status_code == 201
    log_id = r.json()["id"]
    api.post("/adherence", json={
        "medicationId": med_id, "scheduledTime": "2024-06-15T20:00:00", "status": "missed",
    }, headers=AUTH)

    assert len(api.get("/adherence").json()) == 2
    assert len(api.get("/adherence", params={"start": "2024-06-15", "end": "2024-06-15"}).json()) == 2
    assert api.get("/adherence", params={"start": "2024-06-16"}).json() == []

    stats = api.get("/adherence/stats").json()
    assert stats == {"total": 2, "taken": 1, "missed": 1, "adherenceRate": 0.5}

    assert api.delete(f"/adherence/{log_id}", headers=AUTH).status_code == 200
    assert api.get("/adherence/stats").json()["total"] == 1


def test_log_requires_fields(api):
    r = api.post("/adherence", json={"medicationId": "m1", "status": "taken"}, headers=AUTH)
    assert r.status_code == 400
    r = api.post("/adherence", json={"medicationId": "m1", "status": "taken", "scheduledTime": "later"},
                 headers=AUTH)
    assert r.status_code == 400


def test_summary_last_n_days(api):
    med_id = _create_med(api)
    today = date.today()
    for days_back, status in ((1, "taken"), (2, "missed"), (200, "taken")):
        ts = (today - timedelta(days=days_back)).isoformat() + "T08:00:00"
        api.post("/adherence", json={"medicationId": med_id, "scheduledTime": ts, "status": status}, headers=AUTH)

    s = api.get("/adherence/summary").json()
    assert (s["total"], s["taken"], s["missed"], s["rate"]) == (2, 1, 1, 0.5)
    assert api.get("/adherence/summary", params={"days": 365}).json()["total"] == 3


def test_calendar_day_with_orphan(api):
    med_id = _create_med(api)
    api.post("/adherence", json={
        "medicationId": med_id, "scheduledTime": "2024-06-15T08:00:00",
        "takenAt": "2024-06-15T08:02:00", "status": "taken",
    }, headers=AUTH)
    api.post("/adherence", json={
        "medicationId": "deleted-med", "scheduledTime": "2024-06-15T12:00:00", "status": "missed",
    }, headers=AUTH)

    rows = api.get("/calendar/day", params={"date": "2024-06-15"}).json()

    assert [(r["time"], r["source"]) for r in rows] == [
        ("08:00", "scheduled"),
        ("20:00", "scheduled"),
        ("12:00", "logged"),
    ]
    assert rows[0]["log"] is not None and rows[0]["canLog"] is True
    assert rows[2]["medication"]["isPlaceholder"] is True
    assert rows[2]["canLog"] is False


def test_calendar_marks_window(api):
    _create_med(api, schedule=[{"time": "08:00", "days": ["Monday"]}], startDate="2024-06-01")
    marks = api.get("/calendar/marks", params={"center": "2024-06-15", "today": "2024-06-15"}).json()

    assert marks["2024-06-15"] == {"hasActivity": False, "confirmed": False, "isPast": False, "selected": True}
    assert marks["2024-06-10"]["hasActivity"] is True
    assert min(marks) >= "2024-03-17" and max(marks) <= "2024-09-11"


def test_dashboard_and_due_reminders(api):
    _create_med(api)
    dash = api.get("/dashboard").json()
    assert [m["name"] for m in dash["recent"]] == ["Metformin"]
    assert len(dash["upcoming"]) == 1
    assert dash["stats"]["total"] == 0

    due = api.get("/reminders/due", params={"at": "2024-06-15T07:58:00"}).json()
    assert [d["time"] for d in due] == ["08:00"]
