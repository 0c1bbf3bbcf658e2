"""SQLite database layer for tracked sessions."""

from __future__ import annotations

import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Optional

from .models import ActivityType, Session


DATETIME_FMT = "%Y-%m-%d %H:%M:%S.%f"

_UNSET = object()


def open_database(path: Path, *, check_same_thread: bool = True) -> sqlite3.Connection:
    """Open (and initialize) the SQLite database."""
    conn = sqlite3.connect(
        path,
        isolation_level=None,
        check_same_thread=check_same_thread,
    )
    conn.row_factory = sqlite3.Row
    initialize_schema(conn)
    return conn


def initialize_schema(conn: sqlite3.Connection) -> None:
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS sessions (
            id INTEGER PRIMARY KEY,
            start_time TEXT NOT NULL,
            end_time TEXT,
            activity_type TEXT NOT NULL,
            description TEXT NOT NULL DEFAULT ''
        );

        CREATE INDEX IF NOT EXISTS idx_sessions_start_time
            ON sessions(start_time);
        """
    )


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return value.strftime(DATETIME_FMT)


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if value is None:
        return None
    return datetime.strptime(value, DATETIME_FMT)


def insert_session(conn: sqlite3.Connection, session: Session) -> int:
    cur = conn.execute(
        """
        INSERT INTO sessions (
            start_time,
            end_time,
            activity_type,
            description
        ) VALUES (?, ?, ?, ?)
        """,
        (
            format_timestamp(session.start_time),
            format_timestamp(session.end_time),
            session.activity_type.value,
            session.description,
        ),
    )
    return int(cur.lastrowid)


def fetch_sessions(conn: sqlite3.Connection) -> list[sqlite3.Row]:
    """Fetch every session row in insertion order."""
    return list(
        conn.execute(
            """
            SELECT
                id,
                start_time,
                end_time,
                activity_type,
                description
            FROM sessions
            ORDER BY id;
            """
        )
    )


def row_to_session(row: sqlite3.Row) -> Session:
    return Session(
        id=row["id"],
        start_time=parse_timestamp(row["start_time"]),
        end_time=parse_timestamp(row["end_time"]),
        activity_type=ActivityType(row["activity_type"]),
        description=row["description"] or "",
    )


def update_session(
    conn: sqlite3.Connection,
    session_id: int,
    *,
    end_time: object = _UNSET,
    activity_type: Optional[ActivityType] = None,
    description: Optional[str] = None,
) -> None:
    """Update a single session record.

    A stored end time is never overwritten: the first one written wins.
    """
    fields: list[str] = []
    params: list[object] = []

    if end_time is not _UNSET:
        fields.append("end_time = COALESCE(end_time, ?)")
        params.append(
            format_timestamp(end_time) if isinstance(end_time, datetime) else end_time
        )
    if activity_type is not None:
        fields.append("activity_type = ?")
        params.append(activity_type.value)
    if description is not None:
        fields.append("description = ?")
        params.append(description)

    if not fields:
        return

    params.append(session_id)
    cur = conn.execute(
        f"UPDATE sessions SET {', '.join(fields)} WHERE id = ?",
        params,
    )
    if cur.rowcount == 0:
        raise ValueError(f"No session found for id={session_id}")
