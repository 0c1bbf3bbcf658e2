"""Simple reporting utilities for CLI output."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Optional

from .aggregation import (
    DayCell,
    HistoryRange,
    calendar_cells,
    filter_by_activeness,
    filter_history,
    period_totals,
    summarize_period,
)
from .models import ActivityType, Session
from .notifications import format_running_time
from .periods import DEFAULT_CALENDAR, CalendarSettings, Period, describe_period
from .store import open_store

_WEEKDAY_NAMES = ("MON", "TUE", "WED", "THU", "FRI", "SAT", "SUN")


class SummaryPrinter:
    """Render human-readable summaries in the console."""

    def __init__(
        self,
        db_path: Path,
        calendar: CalendarSettings = DEFAULT_CALENDAR,
        now: Optional[datetime] = None,
    ) -> None:
        self.db_path = Path(db_path)
        self.calendar = calendar
        self.now = now

    def _sessions(self) -> list[Session]:
        with open_store(self.db_path) as store:
            return store.query()

    def print_status(self) -> None:
        active = filter_by_activeness(self._sessions(), True)
        if not active:
            print("No session running.")
            return
        for session in active:
            print(
                f"[{session.id}] {session.activity_type.label:<10} "
                f"{format_running_time(session.duration(self.now)):>12}  "
                f"since {session.start_time:%H:%M}"
                + (f"  {session.description}" if session.description else "")
            )

    def print_period_summary(self, period: Period, reference: datetime) -> None:
        summary = summarize_period(
            self._sessions(), period, reference, self.calendar, now=self.now
        )
        print(f"Summary for {describe_period(period, reference, self.calendar)}")
        print("-" * 40)
        if not summary.sessions:
            print("No completed sessions in this period.")
            return

        consuming_pct, creating_pct = summary.percentages
        print(
            f"Consuming: {format_duration(summary.totals.consuming):>8}  ({consuming_pct:.1f}%)"
        )
        print(
            f"Creating:  {format_duration(summary.totals.creating):>8}  ({creating_pct:.1f}%)"
        )
        print(
            f"Balance:   {summary.balance.focus.value} ({abs(summary.balance.score):.1f}%)"
        )
        print(f"Sessions:  {len(summary.sessions)}")

    def print_calendar(self, reference: datetime, period: Optional[Period] = None) -> None:
        cells = calendar_cells(
            self._sessions(), reference, self.calendar, now=self.now, selected_period=period
        )
        print(f"{reference:%B} {reference.year}")
        header = [
            _WEEKDAY_NAMES[(self.calendar.first_weekday + offset) % 7] for offset in range(7)
        ]
        print(" ".join(f" {name} " for name in header))
        for row_start in range(0, len(cells), 7):
            row = cells[row_start : row_start + 7]
            print(" ".join(_render_cell(cell) for cell in row))
        print("+ more creating   - more consuming   . no data   [ ] selected")

    def print_history(
        self,
        history_range: HistoryRange = HistoryRange.TODAY,
        activity_type: Optional[ActivityType] = None,
    ) -> None:
        sessions = filter_history(
            self._sessions(),
            activity_type=activity_type,
            history_range=history_range,
            now=self.now,
            calendar=self.calendar,
        )
        totals = period_totals(sessions)
        print("Summary")
        print(f"  Consuming: {format_duration(totals.consuming):>8}")
        print(f"  Creating:  {format_duration(totals.creating):>8}")
        print(f"  Total:     {format_duration(totals.total):>8}")
        print(f"Sessions ({len(sessions)})")
        if not sessions:
            print("No sessions found.")
            return
        for session in sessions:
            label = session.description or "(no description)"
            print(
                f"  {session.start_time:%Y-%m-%d %H:%M}  "
                f"{session.activity_type.label:<10} "
                f"{format_duration(session.duration()):>8}  {label[:40]}"
            )


def _render_cell(cell: DayCell) -> str:
    if cell.intensity.dominant is None:
        marker = "."
    elif cell.intensity.dominant is ActivityType.CREATING:
        marker = "+"
    else:
        marker = "-"
    if not cell.in_month:
        return " " * 5
    text = f"{cell.day.day:>2}{marker}"
    return f"[{text}]" if cell.selected else f" {text} "


def format_duration(seconds: float) -> str:
    total_seconds = int(seconds)
    hours, remainder = divmod(total_seconds, 3600)
    minutes = remainder // 60
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"
