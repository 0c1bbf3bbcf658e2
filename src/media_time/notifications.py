"""Sinks that mirror the running session on an external surface."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol

import typer
from plyer import notification as plyer_notification

from .models import Session

logger = logging.getLogger(__name__)

APP_NAME = "MediaTime"


class NotificationSink(Protocol):
    """Receives session lifecycle events and the 1 Hz running-time tick."""

    def on_start(self, session: Session) -> None: ...

    def on_stop(self, session: Session) -> None: ...

    def on_switch(self, session: Session) -> None: ...

    def on_tick(self, session: Session, running_time: str) -> None: ...


@dataclass(frozen=True, slots=True)
class LiveStatus:
    """Content shown for a running session."""

    session_key: str
    activity_type: str
    running_time: str
    start_time: datetime
    description: str

    @classmethod
    def for_session(cls, session: Session, running_time: Optional[str] = None) -> "LiveStatus":
        return cls(
            session_key=session_key(session),
            activity_type=session.activity_type.label,
            running_time=running_time if running_time is not None else "0m 0s",
            start_time=session.start_time,
            description=session.description,
        )


def session_key(session: Session) -> str:
    return f"{session.activity_type.label}-{session.start_time.timestamp():.0f}"


def format_running_time(seconds: float) -> str:
    total = max(0, int(seconds))
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours > 0:
        return f"{hours}h {minutes:02d}m {secs:02d}s"
    return f"{minutes}m {secs:02d}s"


class NullNotificationSink:
    def on_start(self, session: Session) -> None:
        pass

    def on_stop(self, session: Session) -> None:
        pass

    def on_switch(self, session: Session) -> None:
        pass

    def on_tick(self, session: Session, running_time: str) -> None:
        pass


class LoggingNotificationSink:
    """Writes lifecycle events to the application log."""

    def on_start(self, session: Session) -> None:
        logger.info("Session started: %s %r", session.activity_type.label, session.description)

    def on_stop(self, session: Session) -> None:
        logger.info(
            "Session stopped: %s after %s",
            session.activity_type.label,
            format_running_time(session.duration()),
        )

    def on_switch(self, session: Session) -> None:
        logger.info("Session switched to %s", session.activity_type.label)

    def on_tick(self, session: Session, running_time: str) -> None:
        logger.debug("%s running for %s", session.activity_type.label, running_time)


class ConsoleNotificationSink:
    """Prints the live status to the terminal, redrawing a single line on ticks."""

    def on_start(self, session: Session) -> None:
        typer.echo(f"Started {session.activity_type.label} session")

    def on_stop(self, session: Session) -> None:
        typer.echo(f"\nStopped after {format_running_time(session.duration())}")

    def on_switch(self, session: Session) -> None:
        typer.echo(f"\nSwitched to {session.activity_type.label}")

    def on_tick(self, session: Session, running_time: str) -> None:
        status = LiveStatus.for_session(session, running_time)
        label = f"{status.activity_type:<10} {status.running_time:>12}"
        if status.description:
            label = f"{label}  {status.description}"
        typer.echo(f"\r{label}", nl=False)


class DesktopNotificationSink:
    """Posts lifecycle changes as desktop notifications.

    Ticks are not shown; a desktop toast per second would be noise. Ending a
    status that was never started is ignored.
    """

    def __init__(self, timeout: int = 5) -> None:
        self.timeout = timeout
        self._current_key: Optional[str] = None

    def on_start(self, session: Session) -> None:
        status = LiveStatus.for_session(session)
        self._current_key = status.session_key
        message = status.description or f"Started at {status.start_time:%H:%M}"
        self._notify(f"{status.activity_type} session started", message)

    def on_stop(self, session: Session) -> None:
        if self._current_key is None:
            logger.debug("No live status to end for %s", session_key(session))
            return
        self._current_key = None
        self._notify(
            f"{session.activity_type.label} session ended",
            format_running_time(session.duration()),
        )

    def on_switch(self, session: Session) -> None:
        self._current_key = session_key(session)
        self._notify("Activity switched", f"Now {session.activity_type.label}")

    def on_tick(self, session: Session, running_time: str) -> None:
        pass

    def _notify(self, title: str, message: str) -> None:
        plyer_notification.notify(
            title=title, message=message, app_name=APP_NAME, timeout=self.timeout
        )


@dataclass(frozen=True, slots=True)
class SinkEvent:
    name: str
    status: LiveStatus


class RecordingNotificationSink:
    """Keeps every event it receives; handy for status endpoints and tests."""

    def __init__(self, keep_ticks: bool = True) -> None:
        self.keep_ticks = keep_ticks
        self.events: list[SinkEvent] = []

    @property
    def last(self) -> Optional[SinkEvent]:
        return self.events[-1] if self.events else None

    def names(self) -> list[str]:
        return [event.name for event in self.events]

    def on_start(self, session: Session) -> None:
        self.events.append(SinkEvent("start", LiveStatus.for_session(session)))

    def on_stop(self, session: Session) -> None:
        self.events.append(SinkEvent("stop", LiveStatus.for_session(session)))

    def on_switch(self, session: Session) -> None:
        self.events.append(SinkEvent("switch", LiveStatus.for_session(session)))

    def on_tick(self, session: Session, running_time: str) -> None:
        if self.keep_ticks:
            self.events.append(SinkEvent("tick", LiveStatus.for_session(session, running_time)))
