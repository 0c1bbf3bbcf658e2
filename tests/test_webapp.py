from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from media_time.config import TrackerSettings
from media_time.models import ActivityType, Session
from media_time.notifications import RecordingNotificationSink
from media_time.store import SessionStore, open_store
from media_time.webapp import create_app


@pytest.fixture
def seeded_db(db_path):
    with open_store(db_path) as store:
        news = Session.create(ActivityType.CONSUMING, "News", start_time=datetime(2024, 2, 15, 9))
        news.stop(datetime(2024, 2, 15, 10))
        code = Session.create(ActivityType.CREATING, "Code", start_time=datetime(2024, 2, 15, 11))
        code.stop(datetime(2024, 2, 15, 11, 30))
        old = Session.create(ActivityType.CREATING, start_time=datetime(2024, 1, 20, 8))
        old.stop(datetime(2024, 1, 20, 12))
        for session in (news, code, old):
            store.insert(session)
    return db_path


@pytest.fixture
def sink():
    return RecordingNotificationSink(keep_ticks=False)


@pytest.fixture
def client(seeded_db, sink):
    app = create_app(
        db_path=seeded_db,
        settings=TrackerSettings(first_weekday=0),
        sink=sink,
        auto_tick=False,
    )
    with TestClient(app) as test_client:
        yield test_client


def test_status_without_running_session(client, seeded_db):
    payload = client.get("/api/status").json()

    assert payload["database_path"] == str(seeded_db)
    assert payload["active"] == []
    assert payload["running_time"] is None
    assert payload["ticking"] is False
    assert payload["warnings"] == []


def test_start_switch_stop_lifecycle(client, sink):
    response = client.post(
        "/api/sessions", json={"activity_type": "Consuming", "description": " Podcast "}
    )
    assert response.status_code == 201
    started = response.json()
    assert started["is_active"] is True
    assert started["description"] == "Podcast"
    assert started["end_time"] is None

    status = client.get("/api/status").json()
    assert [item["id"] for item in status["active"]] == [started["id"]]
    assert status["running_time"].endswith("s")

    switched = client.post(f"/api/sessions/{started['id']}/switch").json()
    assert switched["activity_type"] == "Creating"

    stopped = client.post(f"/api/sessions/{started['id']}/stop").json()
    assert stopped["is_active"] is False
    assert stopped["end_time"] is not None
    assert sink.names() == ["start", "switch", "stop"]


def test_start_rejects_unknown_fields(client):
    response = client.post("/api/sessions", json={"activity_type": "Creating", "mood": "good"})

    assert response.status_code == 422


def test_unknown_session_is_404(client):
    assert client.post("/api/sessions/999/stop").status_code == 404
    assert client.post("/api/sessions/999/switch").status_code == 404


def test_sessions_listing_filters_by_type(client):
    payload = client.get("/api/sessions", params={"type": "Creating"}).json()

    assert payload["range"] == "all-time"
    assert payload["totals"] == {
        "consuming_seconds": 0,
        "creating_seconds": 1800 + 4 * 3600,
        "overall_seconds": 1800 + 4 * 3600,
    }
    assert [item["start_time"] for item in payload["sessions"]] == [
        "2024-02-15T11:00:00",
        "2024-01-20T08:00:00",
    ]


def test_day_summary(client):
    payload = client.get("/api/summary", params={"period": "day", "date": "2024-02-15"}).json()

    assert payload["label"] == "Thursday, Feb 15, 2024"
    assert payload["start"] == "2024-02-15T00:00:00"
    assert payload["end"] == "2024-02-16T00:00:00"
    assert payload["totals"] == {
        "consuming_seconds": 3600,
        "creating_seconds": 1800,
        "overall_seconds": 5400,
    }
    assert payload["percentages"]["consuming"] == pytest.approx(66.67, abs=0.01)
    assert payload["balance"]["focus"] == "Consuming Focus"
    assert len(payload["sessions"]) == 2


def test_month_summary_of_empty_period(client):
    payload = client.get("/api/summary", params={"period": "month", "date": "2023-06-10"}).json()

    assert payload["totals"]["overall_seconds"] == 0
    assert payload["percentages"] == {"consuming": 0, "creating": 0}
    assert payload["balance"] == {"score": 0, "focus": "Balanced"}


def test_invalid_date_is_400(client):
    assert client.get("/api/summary", params={"date": "15/02/2024"}).status_code == 400


def test_calendar_grid(client):
    payload = client.get("/api/calendar", params={"date": "2024-02-15"}).json()

    assert payload["month"] == "February 2024"
    assert len(payload["days"]) == 42
    assert payload["days"][0]["date"] == "2024-01-29"
    by_date = {day["date"]: day for day in payload["days"]}
    assert by_date["2024-02-15"]["dominant"] == "Consuming"
    assert by_date["2024-02-15"]["intensity"] == pytest.approx(5400 / 14400)
    assert by_date["2024-02-16"]["dominant"] is None
    assert [day["date"] for day in payload["days"] if day["selected"]] == ["2024-02-15"]


def test_calendar_grid_highlights_selected_week(client):
    payload = client.get(
        "/api/calendar", params={"date": "2024-02-15", "period": "week"}
    ).json()

    selected = [day["date"] for day in payload["days"] if day["selected"]]
    assert selected[0] == "2024-02-12"
    assert selected[-1] == "2024-02-18"
    assert len(selected) == 7


def test_navigate_month_clamps_day(client):
    payload = client.get(
        "/api/navigate", params={"period": "month", "date": "2024-01-31", "direction": "next"}
    ).json()

    assert payload["date"] == "2024-02-29"
    assert payload["label"] == "February 2024"
    assert payload["start"] == "2024-02-01T00:00:00"


def test_navigate_rejects_unknown_direction(client):
    response = client.get("/api/navigate", params={"direction": "sideways"})

    assert response.status_code == 422


def test_sink_failure_is_reported_as_warning(seeded_db):
    class FailingSink(RecordingNotificationSink):
        def on_start(self, session):
            raise RuntimeError("not allowed")

    app = create_app(db_path=seeded_db, sink=FailingSink(), auto_tick=False)
    with TestClient(app) as client:
        response = client.post("/api/sessions", json={"activity_type": "Creating"})
        status = client.get("/api/status").json()

    assert response.status_code == 201
    assert status["warnings"] == [{"event": "start", "message": "not allowed"}]
    assert len(status["active"]) == 1


def test_calendar_ignores_running_sessions(client):
    started = client.post("/api/sessions", json={"activity_type": "Creating"}).json()
    today = started["start_time"][:10]

    payload = client.get("/api/calendar", params={"date": today}).json()

    (cell,) = [day for day in payload["days"] if day["date"] == today]
    assert cell["creating_seconds"] == 0
    assert cell["dominant"] is None


def test_stop_from_another_process_is_respected(client, seeded_db):
    started = client.post("/api/sessions", json={"activity_type": "Consuming"}).json()

    other = SessionStore.open(seeded_db)
    try:
        session = other.get(started["id"])
        session.stop()
        other.save(session)
        stored_end = session.end_time
    finally:
        other.close()

    status = client.get("/api/status").json()
    assert status["active"] == []
    assert status["running_time"] is None

    switched = client.post(f"/api/sessions/{started['id']}/switch").json()
    assert switched["is_active"] is False
    assert switched["activity_type"] == "Creating"

    stopped = client.post(f"/api/sessions/{started['id']}/stop").json()
    assert stopped["end_time"] == stored_end.isoformat()

    with open_store(seeded_db) as store:
        reloaded = store.get(started["id"])
    assert reloaded.end_time == stored_end
    assert reloaded.activity_type is ActivityType.CREATING
