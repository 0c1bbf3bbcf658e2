"""Session lifecycle: start, stop and switch, plus the running-time tick."""

from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from .aggregation import filter_by_activeness
from .config import TrackerSettings
from .models import ActivityType, Session
from .notifications import NotificationSink, NullNotificationSink, format_running_time
from .store import SessionStore

logger = logging.getLogger(__name__)

MAX_WARNINGS = 50


@dataclass(frozen=True, slots=True)
class SinkWarning:
    """A notification the sink failed to deliver."""

    event: str
    message: str


class TickRunner:
    """Call ``callback`` at a fixed interval from a background thread."""

    def __init__(self, callback: Callable[[], object], interval: timedelta) -> None:
        self._callback = callback
        self._interval = interval
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._stop_event: Optional[threading.Event] = None

    def start(self) -> None:
        with self._lock:
            if self._thread and self._thread.is_alive():
                return
            stop_event = threading.Event()
            thread = threading.Thread(
                target=self._run,
                args=(stop_event,),
                name="media-time-tick",
                daemon=True,
            )
            self._thread = thread
            self._stop_event = stop_event
            thread.start()
            logger.debug("Tick thread started.")

    def stop(self) -> None:
        thread: Optional[threading.Thread] = None
        with self._lock:
            if not self._thread or not self._stop_event:
                return
            self._stop_event.set()
            thread = self._thread
            self._thread = None
            self._stop_event = None
        if thread and thread is not threading.current_thread():
            thread.join(timeout=5)
            logger.debug("Tick thread stopped.")

    def is_running(self) -> bool:
        with self._lock:
            return bool(self._thread and self._thread.is_alive())

    def _run(self, stop_event: threading.Event) -> None:
        interval = self._interval.total_seconds()
        # Sleep in an interruptible manner.
        while not stop_event.wait(interval):
            self._callback()


class SessionTracker:
    """Creates and mutates sessions, persists them, and informs the sink.

    The surrounding application is expected to keep at most one session
    active; this is not enforced. The running-time tick only fires while
    exactly one session is active.
    """

    def __init__(
        self,
        store: SessionStore,
        sink: Optional[NotificationSink] = None,
        settings: Optional[TrackerSettings] = None,
        *,
        auto_tick: bool = True,
    ) -> None:
        self.store = store
        self.sink: NotificationSink = sink or NullNotificationSink()
        self.settings = settings or TrackerSettings()
        self.auto_tick = auto_tick
        self.warnings: deque[SinkWarning] = deque(maxlen=MAX_WARNINGS)
        self._ticker = TickRunner(self.tick, self.settings.tick_interval)

    def start(
        self,
        activity_type: ActivityType,
        description: str = "",
        now: Optional[datetime] = None,
    ) -> Session:
        session = self.store.insert(
            Session.create(activity_type, description=description, start_time=now)
        )
        logger.info("Started %s session %s", activity_type.value, session.id)
        self._notify("start", self.sink.on_start, session)
        self._sync_ticker()
        return session

    def stop(self, session: Session, now: Optional[datetime] = None) -> Session:
        if not session.is_active:
            logger.debug("Session %s already stopped at %s", session.id, session.end_time)
        session.stop(now)
        self.store.save(session)
        logger.info("Stopped session %s", session.id)
        self._notify("stop", self.sink.on_stop, session)
        self._sync_ticker()
        return session

    def switch(self, session: Session) -> Session:
        session.switch_activity_type()
        self.store.save(session)
        logger.info("Switched session %s to %s", session.id, session.activity_type.value)
        self._notify("switch", self.sink.on_switch, session)
        return session

    def stop_active(self, now: Optional[datetime] = None) -> Optional[Session]:
        session = self.current_session()
        if session is None:
            return None
        return self.stop(session, now)

    def switch_active(self) -> Optional[Session]:
        session = self.current_session()
        if session is None:
            return None
        return self.switch(session)

    def active_sessions(self) -> list[Session]:
        return filter_by_activeness(self.store.query(), True)

    def current_session(self) -> Optional[Session]:
        active = self.active_sessions()
        return active[0] if active else None

    def tick(self, now: Optional[datetime] = None) -> Optional[str]:
        """Forward the running time of the single active session to the sink."""
        active = self.active_sessions()
        if len(active) != 1:
            return None
        session = active[0]
        running_time = format_running_time(session.duration(now))
        self._notify("tick", self.sink.on_tick, session, running_time)
        return running_time

    def resume(self) -> None:
        """Restart the tick for a session left running by an earlier process."""
        self._sync_ticker()

    def is_ticking(self) -> bool:
        return self._ticker.is_running()

    def close(self) -> None:
        self._ticker.stop()

    def _sync_ticker(self) -> None:
        if not self.auto_tick:
            return
        if len(self.active_sessions()) == 1:
            self._ticker.start()
        else:
            self._ticker.stop()

    def _notify(self, event: str, handler: Callable[..., None], *args: object) -> None:
        try:
            handler(*args)
        except Exception as exc:
            logger.warning("Notification sink failed on %s: %s", event, exc, exc_info=True)
            self.warnings.append(SinkWarning(event=event, message=str(exc)))
