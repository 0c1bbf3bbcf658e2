"""Durable collection of sessions backed by SQLite."""

from __future__ import annotations

import logging
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from .db import fetch_sessions, insert_session, open_database, row_to_session, update_session
from .models import Session

logger = logging.getLogger(__name__)


class SessionStore:
    """Owns the session list and hands out shared references to its entries.

    The store keeps one ``Session`` instance per row, so a session mutated
    through its own methods is seen by every holder; ``save`` writes the
    mutation back to the database.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn
        self._lock = threading.Lock()
        self._sessions: dict[int, Session] = {}
        self._load_locked()

    @classmethod
    def open(cls, path: Path, *, check_same_thread: bool = True) -> "SessionStore":
        return cls(open_database(Path(path), check_same_thread=check_same_thread))

    def insert(self, session: Session) -> Session:
        with self._lock:
            session.id = insert_session(self._conn, session)
            self._sessions[session.id] = session
        logger.debug("Inserted session %s (%s)", session.id, session.activity_type.value)
        return session

    def query(self) -> list[Session]:
        """All sessions, oldest insert first."""
        with self._lock:
            return list(self._sessions.values())

    def get(self, session_id: int) -> Optional[Session]:
        with self._lock:
            return self._sessions.get(session_id)

    def save(self, session: Session) -> None:
        if session.id is None:
            raise ValueError("Session has not been inserted into the store")
        changes: dict[str, object] = {
            "activity_type": session.activity_type,
            "description": session.description,
        }
        # A running copy must not clear an end time another writer stored.
        if session.end_time is not None:
            changes["end_time"] = session.end_time
        with self._lock:
            update_session(self._conn, session.id, **changes)

    def reload(self) -> None:
        """Pick up rows written by another process, updating held sessions in place.

        A session this store already holds as stopped stays stopped.
        """
        with self._lock:
            self._load_locked()

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def _load_locked(self) -> None:
        for row in fetch_sessions(self._conn):
            fresh = row_to_session(row)
            current = self._sessions.get(fresh.id)
            if current is None:
                self._sessions[fresh.id] = fresh
                continue
            if fresh.end_time is not None:
                current.end_time = fresh.end_time
            current.activity_type = fresh.activity_type
            current.description = fresh.description


@contextmanager
def open_store(path: Path, *, check_same_thread: bool = True) -> Iterator[SessionStore]:
    store = SessionStore.open(path, check_same_thread=check_same_thread)
    try:
        yield store
    finally:
        store.close()
