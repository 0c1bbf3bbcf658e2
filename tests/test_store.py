from contextlib import closing
from datetime import datetime, timedelta

import pytest

from media_time.db import fetch_sessions, open_database, update_session
from media_time.models import ActivityType, Session
from media_time.store import SessionStore, open_store

START = datetime(2024, 2, 15, 9, 0, 0, 123456)


def test_insert_assigns_ids_and_query_keeps_insertion_order(store):
    later = store.insert(Session.create(ActivityType.CREATING, start_time=START + timedelta(hours=2)))
    earlier = store.insert(Session.create(ActivityType.CONSUMING, start_time=START))

    assert later.id is not None and earlier.id is not None
    assert later.id < earlier.id
    assert store.query() == [later, earlier]


def test_query_returns_shared_references(store):
    session = store.insert(Session.create(ActivityType.CONSUMING, start_time=START))

    store.query()[0].stop(START + timedelta(minutes=5))

    assert session.end_time == START + timedelta(minutes=5)
    assert store.get(session.id) is session


def test_save_persists_mutations(db_path, store):
    session = store.insert(Session.create(ActivityType.CONSUMING, "Podcast", start_time=START))
    session.switch_activity_type()
    session.stop(START + timedelta(minutes=40))
    store.save(session)

    with open_store(db_path) as reopened:
        (loaded,) = reopened.query()

    assert loaded.id == session.id
    assert loaded.start_time == START
    assert loaded.end_time == START + timedelta(minutes=40)
    assert loaded.activity_type is ActivityType.CREATING
    assert loaded.description == "Podcast"
    assert not loaded.is_active


def test_active_session_round_trips_without_end_time(db_path, store):
    store.insert(Session.create(ActivityType.CREATING, start_time=START))

    with open_store(db_path) as reopened:
        (loaded,) = reopened.query()

    assert loaded.is_active
    assert loaded.end_time is None


def test_save_requires_inserted_session(store):
    with pytest.raises(ValueError):
        store.save(Session.create(ActivityType.CONSUMING, start_time=START))


def test_reload_updates_held_sessions_in_place(db_path, store):
    session = store.insert(Session.create(ActivityType.CONSUMING, start_time=START))

    other = SessionStore.open(db_path)
    try:
        other.get(session.id).stop(START + timedelta(minutes=3))
        other.save(other.get(session.id))
        other.insert(Session.create(ActivityType.CREATING, start_time=START + timedelta(hours=1)))
    finally:
        other.close()

    store.reload()

    assert session.end_time == START + timedelta(minutes=3)
    assert len(store.query()) == 2
    assert store.query()[0] is session


def test_update_unknown_session_raises(db_path):
    with closing(open_database(db_path)) as conn:
        with pytest.raises(ValueError):
            update_session(conn, 999, activity_type=ActivityType.CREATING)


def test_update_without_fields_is_noop(db_path, store):
    session = store.insert(Session.create(ActivityType.CONSUMING, start_time=START))

    with closing(open_database(db_path)) as conn:
        update_session(conn, session.id)
        rows = fetch_sessions(conn)

    assert rows[0]["activity_type"] == "Consuming"
    assert rows[0]["end_time"] is None


def test_stale_copy_does_not_clear_stored_end_time(db_path, store):
    session = store.insert(Session.create(ActivityType.CONSUMING, start_time=START))

    other = SessionStore.open(db_path)
    try:
        stopped = other.get(session.id)
        stopped.stop(START + timedelta(minutes=3))
        other.save(stopped)
    finally:
        other.close()

    session.switch_activity_type()
    store.save(session)

    with open_store(db_path) as reopened:
        (loaded,) = reopened.query()
    assert loaded.end_time == START + timedelta(minutes=3)
    assert loaded.activity_type is ActivityType.CREATING


def test_first_stored_end_time_wins(db_path, store):
    session = store.insert(Session.create(ActivityType.CONSUMING, start_time=START))

    with closing(open_database(db_path)) as conn:
        update_session(conn, session.id, end_time=START + timedelta(minutes=5))
        update_session(conn, session.id, end_time=START + timedelta(minutes=9))
        (row,) = fetch_sessions(conn)

    assert row["end_time"] == "2024-02-15 09:05:00.123456"


def test_reload_keeps_sessions_stopped(db_path, store):
    session = store.insert(Session.create(ActivityType.CREATING, start_time=START))
    session.stop(START + timedelta(minutes=1))
    store.save(session)

    store.reload()

    assert not session.is_active
    assert session.end_time == START + timedelta(minutes=1)
