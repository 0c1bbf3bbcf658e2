"""Filtering and reduction of session collections.

Every function here is pure: it reads the sessions it is given and returns new
values. Sessions are always bucketed by their start time, so a session that
crosses midnight counts entirely towards the day it started on.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Iterable, NamedTuple, Optional

from .models import ActivityType, Session
from .periods import (
    DEFAULT_CALENDAR,
    CalendarSettings,
    DateLike,
    Period,
    as_datetime,
    grid_days,
    is_in_month,
    is_same_period,
    period_interval,
    start_of_day,
)

BALANCE_THRESHOLD = 10.0
SATURATION_SECONDS = 4 * 3600


class Focus(str, Enum):
    CREATING_FOCUS = "Creating Focus"
    CONSUMING_FOCUS = "Consuming Focus"
    BALANCED = "Balanced"


class Balance(NamedTuple):
    score: float
    focus: Focus


class DayIntensity(NamedTuple):
    dominant: Optional[ActivityType]
    intensity: float


class Totals(NamedTuple):
    consuming: float
    creating: float

    @property
    def total(self) -> float:
        return self.consuming + self.creating


class HistoryRange(str, Enum):
    TODAY = "today"
    YESTERDAY = "yesterday"
    THIS_WEEK = "this-week"
    THIS_MONTH = "this-month"
    ALL_TIME = "all-time"


@dataclass(slots=True)
class PeriodSummary:
    period: Period
    start: datetime
    end: datetime
    totals: Totals
    percentages: tuple[float, float]
    balance: Balance
    sessions: list[Session] = field(default_factory=list)


@dataclass(slots=True)
class DayCell:
    day: date
    in_month: bool
    totals: Totals
    intensity: DayIntensity
    selected: bool = False


def filter_by_activeness(sessions: Iterable[Session], active: bool) -> list[Session]:
    return [session for session in sessions if session.is_active == active]


def filter_by_type(
    sessions: Iterable[Session], activity_type: Optional[ActivityType]
) -> list[Session]:
    if activity_type is None:
        return list(sessions)
    return [session for session in sessions if session.activity_type == activity_type]


def filter_by_window(
    sessions: Iterable[Session],
    start: Optional[datetime],
    end: Optional[datetime],
) -> list[Session]:
    """Sessions whose start time lies in ``[start, end)``; ``None`` leaves a side open."""
    return [
        session
        for session in sessions
        if (start is None or session.start_time >= start)
        and (end is None or session.start_time < end)
    ]


def filter_by_day(
    sessions: Iterable[Session],
    day: DateLike,
    calendar: CalendarSettings = DEFAULT_CALENDAR,
) -> list[Session]:
    return filter_by_period(sessions, Period.DAY, day, calendar)


def filter_by_period(
    sessions: Iterable[Session],
    period: Period,
    reference: DateLike,
    calendar: CalendarSettings = DEFAULT_CALENDAR,
) -> list[Session]:
    start, end = period_interval(period, reference, calendar)
    return filter_by_window(sessions, start, end)


def sum_duration(
    sessions: Iterable[Session],
    activity_type: Optional[ActivityType] = None,
    now: Optional[datetime] = None,
) -> float:
    at = now or datetime.now()
    return sum(
        (session.duration(at) for session in filter_by_type(sessions, activity_type)),
        0.0,
    )


def period_totals(sessions: Iterable[Session], now: Optional[datetime] = None) -> Totals:
    at = now or datetime.now()
    consuming = 0.0
    creating = 0.0
    for session in sessions:
        if session.activity_type == ActivityType.CONSUMING:
            consuming += session.duration(at)
        else:
            creating += session.duration(at)
    return Totals(consuming=consuming, creating=creating)


def percentages(consuming: float, creating: float) -> tuple[float, float]:
    total = consuming + creating
    if total <= 0:
        return 0.0, 0.0
    return consuming / total * 100, creating / total * 100


def balance(consuming: float, creating: float) -> Balance:
    """Score from -100 (all consuming) to 100 (all creating) and its focus band."""
    total = consuming + creating
    score = (creating - consuming) / total * 100 if total > 0 else 0.0
    if score > BALANCE_THRESHOLD:
        focus = Focus.CREATING_FOCUS
    elif score < -BALANCE_THRESHOLD:
        focus = Focus.CONSUMING_FOCUS
    else:
        focus = Focus.BALANCED
    return Balance(score=score, focus=focus)


def day_color_intensity(consuming: float, creating: float) -> DayIntensity:
    total = consuming + creating
    if total <= 0:
        return DayIntensity(dominant=None, intensity=0.0)
    dominant = ActivityType.CREATING if creating >= consuming else ActivityType.CONSUMING
    return DayIntensity(dominant=dominant, intensity=min(1.0, total / SATURATION_SECONDS))


def summarize_period(
    sessions: Iterable[Session],
    period: Period,
    reference: DateLike,
    calendar: CalendarSettings = DEFAULT_CALENDAR,
    now: Optional[datetime] = None,
    include_active: bool = False,
) -> PeriodSummary:
    """Totals, percentages and balance for the period containing ``reference``.

    Running sessions are left out unless ``include_active`` is set.
    """
    pool = list(sessions) if include_active else filter_by_activeness(sessions, False)
    start, end = period_interval(period, reference, calendar)
    matching = filter_by_window(pool, start, end)
    totals = period_totals(matching, now)
    return PeriodSummary(
        period=period,
        start=start,
        end=end,
        totals=totals,
        percentages=percentages(totals.consuming, totals.creating),
        balance=balance(totals.consuming, totals.creating),
        sessions=matching,
    )


def calendar_cells(
    sessions: Iterable[Session],
    reference: DateLike,
    calendar: CalendarSettings = DEFAULT_CALENDAR,
    now: Optional[datetime] = None,
    include_active: bool = False,
    selected_period: Optional[Period] = None,
) -> list[DayCell]:
    """One cell per grid day of the month containing ``reference``.

    Like the period summary, running sessions are left out unless
    ``include_active`` is set. With ``selected_period``, cells inside that
    period around ``reference`` are flagged as selected.
    """
    pool = list(sessions) if include_active else filter_by_activeness(sessions, False)
    cells: list[DayCell] = []
    for day in grid_days(reference, calendar):
        totals = period_totals(filter_by_day(pool, day, calendar), now)
        cells.append(
            DayCell(
                day=day,
                in_month=is_in_month(day, reference),
                totals=totals,
                intensity=day_color_intensity(totals.consuming, totals.creating),
                selected=(
                    selected_period is not None
                    and is_same_period(selected_period, reference, day, calendar)
                ),
            )
        )
    return cells


def history_window(
    history_range: HistoryRange,
    now: Optional[datetime] = None,
    calendar: CalendarSettings = DEFAULT_CALENDAR,
) -> Optional[tuple[datetime, datetime]]:
    """The start-time window a history range covers, or ``None`` for all time."""
    current = as_datetime(now or datetime.now())
    if history_range is HistoryRange.TODAY:
        return period_interval(Period.DAY, current, calendar)
    if history_range is HistoryRange.YESTERDAY:
        return period_interval(Period.DAY, start_of_day(current) - timedelta(days=1), calendar)
    if history_range is HistoryRange.THIS_WEEK:
        return period_interval(Period.WEEK, current, calendar)[0], current
    if history_range is HistoryRange.THIS_MONTH:
        return period_interval(Period.MONTH, current, calendar)[0], current
    return None


def filter_history(
    sessions: Iterable[Session],
    activity_type: Optional[ActivityType] = None,
    history_range: HistoryRange = HistoryRange.ALL_TIME,
    now: Optional[datetime] = None,
    calendar: CalendarSettings = DEFAULT_CALENDAR,
) -> list[Session]:
    """Completed sessions for the history list, newest first."""
    completed = filter_by_type(filter_by_activeness(sessions, False), activity_type)
    window = history_window(history_range, now, calendar)
    if window is not None:
        completed = filter_by_window(completed, *window)
    return sorted(completed, key=lambda session: session.start_time, reverse=True)
