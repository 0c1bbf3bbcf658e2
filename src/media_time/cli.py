"""Command-line interface for MediaTime."""

from __future__ import annotations

import logging
import time
from datetime import datetime
from pathlib import Path
from typing import Optional

import typer

from .aggregation import HistoryRange
from .config import TrackerSettings
from .models import ActivityType, Session
from .notifications import (
    ConsoleNotificationSink,
    DesktopNotificationSink,
    LoggingNotificationSink,
    NotificationSink,
)
from .paths import get_db_path
from .periods import Period
from .store import SessionStore, open_store
from .tracker import SessionTracker

app = typer.Typer(help="Track consuming versus creating time.")

_DB_HELP = "Location of the sessions SQLite database."
_WEEKDAY_HELP = "First day of the week, 0 (Monday) to 6 (Sunday)."


@app.callback(no_args_is_help=True)
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logs.")) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


@app.command()
def start(
    creating: bool = typer.Option(
        False,
        "--creating/--consuming",
        help="Tag the session as creating instead of consuming.",
    ),
    description: str = typer.Option("", "--description", "-d", help="Optional note."),
    notify: bool = typer.Option(
        False, "--notify/--no-notify", help="Mirror the session as desktop notifications."
    ),
    db_path: Optional[Path] = typer.Option(None, "--db", path_type=Path, help=_DB_HELP),
) -> None:
    """Start a new session."""
    activity_type = ActivityType.CREATING if creating else ActivityType.CONSUMING
    with open_store(db_path or get_db_path()) as store:
        tracker = _one_shot_tracker(store, notify)
        if tracker.active_sessions():
            typer.secho("Another session is already running.", fg=typer.colors.YELLOW)
        session = tracker.start(activity_type, description=description)
        _report_warnings(tracker)
    typer.echo(f"Started {session.activity_type.label} session [{session.id}].")


@app.command()
def stop(
    session_id: Optional[int] = typer.Option(None, "--id", help="Session to stop."),
    notify: bool = typer.Option(
        False, "--notify/--no-notify", help="Mirror the session as desktop notifications."
    ),
    db_path: Optional[Path] = typer.Option(None, "--db", path_type=Path, help=_DB_HELP),
) -> None:
    """Stop the running session (or the one given by --id)."""
    from .reporting import format_duration

    with open_store(db_path or get_db_path()) as store:
        tracker = _one_shot_tracker(store, notify)
        if session_id is None:
            session = tracker.stop_active()
        else:
            session = tracker.stop(_require_session(store, session_id))
        _report_warnings(tracker)
    if session is None:
        typer.echo("No session running.")
        raise typer.Exit(code=1)
    typer.echo(
        f"Stopped {session.activity_type.label} session [{session.id}] "
        f"after {format_duration(session.duration())}."
    )


@app.command()
def switch(
    session_id: Optional[int] = typer.Option(None, "--id", help="Session to switch."),
    notify: bool = typer.Option(
        False, "--notify/--no-notify", help="Mirror the session as desktop notifications."
    ),
    db_path: Optional[Path] = typer.Option(None, "--db", path_type=Path, help=_DB_HELP),
) -> None:
    """Flip the running session between consuming and creating."""
    with open_store(db_path or get_db_path()) as store:
        tracker = _one_shot_tracker(store, notify)
        if session_id is None:
            session = tracker.switch_active()
        else:
            session = tracker.switch(_require_session(store, session_id))
        _report_warnings(tracker)
    if session is None:
        typer.echo("No session running.")
        raise typer.Exit(code=1)
    typer.echo(f"Session [{session.id}] is now {session.activity_type.label}.")


@app.command()
def status(
    db_path: Optional[Path] = typer.Option(None, "--db", path_type=Path, help=_DB_HELP),
) -> None:
    """Show running sessions."""
    from .reporting import SummaryPrinter

    SummaryPrinter(db_path=db_path or get_db_path()).print_status()


@app.command()
def watch(
    tick_seconds: float = typer.Option(
        1.0, "--interval", min=0.1, help="Seconds between running-time updates."
    ),
    db_path: Optional[Path] = typer.Option(None, "--db", path_type=Path, help=_DB_HELP),
) -> None:
    """Show the running time of the active session until it ends."""
    settings = TrackerSettings.from_options(tick_seconds=tick_seconds)
    store = SessionStore.open(db_path or get_db_path())
    tracker = SessionTracker(store, ConsoleNotificationSink(), settings, auto_tick=False)
    interval = settings.tick_interval.total_seconds()
    try:
        while True:
            store.reload()
            if tracker.tick() is None:
                active = len(tracker.active_sessions())
                if active == 0:
                    typer.echo("\nNo session running.")
                else:
                    typer.echo(f"\n{active} sessions running; use `status` instead.")
                break
            time.sleep(interval)
    except KeyboardInterrupt:
        typer.echo("")
    finally:
        store.close()


@app.command()
def summary(
    period: Period = typer.Option(Period.DAY, "--period", "-p", case_sensitive=False),
    date: Optional[str] = typer.Option(
        None,
        "--date",
        help="Date (YYYY-MM-DD) inside the period. Defaults to today.",
    ),
    first_weekday: int = typer.Option(0, "--first-weekday", min=0, max=6, help=_WEEKDAY_HELP),
    db_path: Optional[Path] = typer.Option(None, "--db", path_type=Path, help=_DB_HELP),
) -> None:
    """Print consuming/creating totals and balance for a day, week, month or year."""
    from .reporting import SummaryPrinter

    settings = TrackerSettings.from_options(first_weekday=first_weekday)
    printer = SummaryPrinter(db_path=db_path or get_db_path(), calendar=settings.calendar)
    printer.print_period_summary(period, _parse_date(date))


@app.command()
def calendar(
    date: Optional[str] = typer.Option(
        None,
        "--date",
        help="Selected date (YYYY-MM-DD); its month is shown. Defaults to today.",
    ),
    period: Period = typer.Option(
        Period.DAY, "--period", "-p", case_sensitive=False, help="Period to highlight."
    ),
    first_weekday: int = typer.Option(0, "--first-weekday", min=0, max=6, help=_WEEKDAY_HELP),
    db_path: Optional[Path] = typer.Option(None, "--db", path_type=Path, help=_DB_HELP),
) -> None:
    """Print the month grid marking which activity dominated each completed day."""
    from .reporting import SummaryPrinter

    settings = TrackerSettings.from_options(first_weekday=first_weekday)
    printer = SummaryPrinter(db_path=db_path or get_db_path(), calendar=settings.calendar)
    printer.print_calendar(_parse_date(date), period)


@app.command()
def history(
    history_range: HistoryRange = typer.Option(
        HistoryRange.TODAY, "--range", "-r", case_sensitive=False
    ),
    activity_type: Optional[ActivityType] = typer.Option(
        None, "--type", "-t", case_sensitive=False, help="Only show this activity type."
    ),
    first_weekday: int = typer.Option(0, "--first-weekday", min=0, max=6, help=_WEEKDAY_HELP),
    db_path: Optional[Path] = typer.Option(None, "--db", path_type=Path, help=_DB_HELP),
) -> None:
    """List completed sessions, newest first."""
    from .reporting import SummaryPrinter

    settings = TrackerSettings.from_options(first_weekday=first_weekday)
    printer = SummaryPrinter(db_path=db_path or get_db_path(), calendar=settings.calendar)
    printer.print_history(history_range, activity_type)


@app.command()
def web(
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind the API."),
    port: int = typer.Option(
        8765, "--port", min=1, max=65535, help="TCP port for the API."
    ),
    db_path: Optional[Path] = typer.Option(None, "--db", path_type=Path, help=_DB_HELP),
    first_weekday: int = typer.Option(0, "--first-weekday", min=0, max=6, help=_WEEKDAY_HELP),
) -> None:
    """Serve the JSON API with a live tick for the running session."""
    from .server_runner import run_server

    run_server(
        host=host,
        port=port,
        db_path=db_path or get_db_path(),
        settings=TrackerSettings.from_options(first_weekday=first_weekday),
    )


def _one_shot_tracker(store: SessionStore, notify: bool) -> SessionTracker:
    sink: NotificationSink = DesktopNotificationSink() if notify else LoggingNotificationSink()
    return SessionTracker(store, sink, auto_tick=False)


def _require_session(store: SessionStore, session_id: int) -> Session:
    session = store.get(session_id)
    if session is None:
        raise typer.BadParameter(f"No session with id {session_id}", param_hint="--id")
    return session


def _report_warnings(tracker: SessionTracker) -> None:
    for warning in tracker.warnings:
        typer.secho(
            f"Notification not delivered ({warning.event}): {warning.message}",
            fg=typer.colors.YELLOW,
            err=True,
        )


def _parse_date(value: Optional[str]) -> datetime:
    if not value:
        return datetime.now()
    try:
        return datetime.strptime(value, "%Y-%m-%d")
    except ValueError as exc:
        raise typer.BadParameter("Use the YYYY-MM-DD format.", param_hint="--date") from exc
