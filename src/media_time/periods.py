"""Calendar period boundaries and navigation."""

from __future__ import annotations

import calendar as _gregorian
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Union

DateLike = Union[date, datetime]

GRID_SIZE = 42


class Period(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


class Direction(int, Enum):
    PREVIOUS = -1
    NEXT = 1


@dataclass(frozen=True, slots=True)
class CalendarSettings:
    """Locale conventions used by every period computation.

    ``first_weekday`` follows :mod:`datetime` numbering: 0 is Monday, 6 is Sunday.
    """

    first_weekday: int = 0

    def __post_init__(self) -> None:
        if not 0 <= self.first_weekday <= 6:
            raise ValueError("first_weekday must be between 0 (Monday) and 6 (Sunday)")


DEFAULT_CALENDAR = CalendarSettings()


def as_datetime(value: DateLike) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime(value.year, value.month, value.day)


def start_of_day(value: DateLike) -> datetime:
    return as_datetime(value).replace(hour=0, minute=0, second=0, microsecond=0)


def start_of_week(value: DateLike, calendar: CalendarSettings = DEFAULT_CALENDAR) -> datetime:
    day = start_of_day(value)
    offset = (day.weekday() - calendar.first_weekday) % 7
    try:
        return day - timedelta(days=offset)
    except OverflowError:
        return day


def period_interval(
    period: Period,
    reference: DateLike,
    calendar: CalendarSettings = DEFAULT_CALENDAR,
) -> tuple[datetime, datetime]:
    """Return the half-open ``[start, end)`` interval of ``period`` containing ``reference``.

    When the end boundary is not representable (the last day of year 9999) it is
    clamped to ``datetime.max``.
    """
    day = start_of_day(reference)
    if period is Period.DAY:
        start = day
        end = _shift_days(start, 1)
    elif period is Period.WEEK:
        start = start_of_week(day, calendar)
        end = _shift_days(start, 7)
    elif period is Period.MONTH:
        start = day.replace(day=1)
        end = _shift_months(start, 1)
    elif period is Period.YEAR:
        start = day.replace(month=1, day=1)
        end = _shift_months(start, 12)
    else:
        raise ValueError(f"Unsupported period: {period!r}")
    return start, end


def advance(
    period: Period,
    reference: DateLike,
    calendar: CalendarSettings = DEFAULT_CALENDAR,
    direction: Direction = Direction.NEXT,
) -> datetime:
    """Move ``reference`` one period forward or back.

    Month and year steps clamp the day of month to the target month's length.
    If the result falls outside the representable range, ``reference`` is
    returned unchanged.
    """
    current = as_datetime(reference)
    step = int(direction)
    try:
        if period is Period.DAY:
            return current + timedelta(days=step)
        if period is Period.WEEK:
            return current + timedelta(weeks=step)
        if period is Period.MONTH:
            return _add_months(current, step)
        if period is Period.YEAR:
            return _add_months(current, 12 * step)
    except (OverflowError, ValueError):
        return current
    raise ValueError(f"Unsupported period: {period!r}")


def grid_days(
    reference: DateLike,
    calendar: CalendarSettings = DEFAULT_CALENDAR,
) -> list[date]:
    """The 6x7 month grid: 42 consecutive days from the week holding the 1st."""
    first_of_month = start_of_day(reference).replace(day=1)
    anchor = start_of_week(first_of_month, calendar).date()
    try:
        return [anchor + timedelta(days=offset) for offset in range(GRID_SIZE)]
    except OverflowError:
        pass
    # The grid would run past date.max; slide it back so it still holds 42 days.
    last = date.max
    return [last - timedelta(days=GRID_SIZE - 1 - offset) for offset in range(GRID_SIZE)]


def is_same_period(
    period: Period,
    first: DateLike,
    second: DateLike,
    calendar: CalendarSettings = DEFAULT_CALENDAR,
) -> bool:
    start, end = period_interval(period, first, calendar)
    return start <= as_datetime(second) < end


def is_in_month(day: DateLike, reference: DateLike) -> bool:
    return (day.year, day.month) == (reference.year, reference.month)


def describe_period(
    period: Period,
    reference: DateLike,
    calendar: CalendarSettings = DEFAULT_CALENDAR,
) -> str:
    """Human-readable label for a period header."""
    current = as_datetime(reference)
    if period is Period.DAY:
        return f"{current:%A}, {current:%b} {current.day}, {current.year}"
    if period is Period.WEEK:
        start, _ = period_interval(Period.WEEK, current, calendar)
        last = start + timedelta(days=6)
        return f"{start:%b} {start.day} - {last:%b} {last.day}, {last.year}"
    if period is Period.MONTH:
        return f"{current:%B} {current.year}"
    return str(current.year)


def _add_months(value: datetime, months: int) -> datetime:
    index = value.year * 12 + (value.month - 1) + months
    year, month_index = divmod(index, 12)
    month = month_index + 1
    last_day = _gregorian.monthrange(year, month)[1]
    return value.replace(year=year, month=month, day=min(value.day, last_day))


def _shift_days(value: datetime, days: int) -> datetime:
    try:
        return value + timedelta(days=days)
    except OverflowError:
        return datetime.max


def _shift_months(value: datetime, months: int) -> datetime:
    try:
        return _add_months(value, months)
    except (OverflowError, ValueError):
        return datetime.max
