"""Domain models for tracked sessions."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class ActivityType(str, Enum):
    """The two kinds of time a session can be tagged with."""

    CONSUMING = "Consuming"
    CREATING = "Creating"

    @property
    def label(self) -> str:
        return self.value

    @property
    def icon(self) -> str:
        return _ICONS[self]

    @property
    def color(self) -> str:
        return _COLORS[self]

    @property
    def other(self) -> "ActivityType":
        if self is ActivityType.CONSUMING:
            return ActivityType.CREATING
        return ActivityType.CONSUMING


_ICONS = {
    ActivityType.CONSUMING: "spoon.serving",
    ActivityType.CREATING: "camera.macro",
}

_COLORS = {
    ActivityType.CONSUMING: "red",
    ActivityType.CREATING: "green",
}


@dataclass(slots=True)
class Session:
    """One timed interval of consuming or creating activity.

    A session is active until ``stop`` assigns its end time. ``is_active`` is
    derived from ``end_time`` and is never stored separately.
    """

    start_time: datetime
    activity_type: ActivityType
    description: str = ""
    end_time: Optional[datetime] = None
    id: Optional[int] = None

    @classmethod
    def create(
        cls,
        activity_type: ActivityType,
        description: str = "",
        start_time: Optional[datetime] = None,
    ) -> "Session":
        return cls(
            start_time=start_time or datetime.now(),
            activity_type=activity_type,
            description=description,
        )

    @property
    def is_active(self) -> bool:
        return self.end_time is None

    def duration(self, at: Optional[datetime] = None) -> float:
        """Seconds between start and end, or between start and ``at`` while active."""
        end = self.end_time or at or datetime.now()
        return max(0.0, (end - self.start_time).total_seconds())

    def stop(self, at: Optional[datetime] = None) -> None:
        # First stop wins.
        if self.end_time is not None:
            return
        end = at or datetime.now()
        self.end_time = max(end, self.start_time)

    def switch_activity_type(self) -> None:
        self.activity_type = self.activity_type.other
