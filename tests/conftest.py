from datetime import datetime, timedelta

import pytest

from media_time.models import ActivityType, Session
from media_time.notifications import RecordingNotificationSink
from media_time.store import SessionStore
from media_time.tracker import SessionTracker


def make_session(
    start: datetime,
    minutes: float | None,
    activity_type: ActivityType = ActivityType.CONSUMING,
    description: str = "",
) -> Session:
    """Build a session lasting ``minutes``; ``None`` leaves it running."""
    session = Session.create(activity_type, description=description, start_time=start)
    if minutes is not None:
        session.stop(start + timedelta(minutes=minutes))
    return session


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "sessions.sqlite3"


@pytest.fixture
def store(db_path):
    store = SessionStore.open(db_path)
    yield store
    store.close()


@pytest.fixture
def sink():
    return RecordingNotificationSink()


@pytest.fixture
def tracker(store, sink):
    tracker = SessionTracker(store, sink, auto_tick=False)
    yield tracker
    tracker.close()
