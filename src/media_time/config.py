"""Configuration models and helpers for the session tracker."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from .periods import CalendarSettings


@dataclass(slots=True)
class TrackerSettings:
    """Runtime configuration for the session tracker."""

    tick_interval: timedelta = timedelta(seconds=1)
    first_weekday: int = 0

    @classmethod
    def from_options(
        cls,
        tick_seconds: float | None = None,
        first_weekday: int | None = None,
    ) -> "TrackerSettings":
        return cls(
            tick_interval=timedelta(seconds=tick_seconds if tick_seconds is not None else 1.0),
            first_weekday=first_weekday if first_weekday is not None else 0,
        )

    @property
    def calendar(self) -> CalendarSettings:
        return CalendarSettings(first_weekday=self.first_weekday)
