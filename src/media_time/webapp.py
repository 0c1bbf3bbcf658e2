"""FastAPI application that exposes a local JSON API for MediaTime."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict

from .aggregation import (
    HistoryRange,
    Totals,
    calendar_cells,
    filter_history,
    period_totals,
    summarize_period,
)
from .config import TrackerSettings
from .models import ActivityType, Session
from .notifications import LoggingNotificationSink, NotificationSink, format_running_time
from .paths import get_db_path
from .periods import Direction, Period, advance, describe_period, period_interval
from .store import SessionStore
from .tracker import SessionTracker

logger = logging.getLogger(__name__)


class SessionStart(BaseModel):
    activity_type: ActivityType = ActivityType.CONSUMING
    description: str = ""

    model_config = ConfigDict(extra="forbid")


def create_app(
    *,
    db_path: Optional[Path] = None,
    settings: Optional[TrackerSettings] = None,
    sink: Optional[NotificationSink] = None,
    auto_tick: bool = True,
) -> FastAPI:
    """Instantiate the FastAPI application."""
    resolved_db_path = Path(db_path or get_db_path())
    resolved_settings = settings or TrackerSettings()
    store = SessionStore.open(resolved_db_path, check_same_thread=False)
    tracker = SessionTracker(
        store,
        sink or LoggingNotificationSink(),
        resolved_settings,
        auto_tick=auto_tick,
    )
    calendar = resolved_settings.calendar

    app = FastAPI(title="MediaTime", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.db_path = resolved_db_path
    app.state.tracker = tracker

    @app.on_event("startup")
    async def _startup() -> None:
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s %(levelname)s %(name)s %(message)s",
        )
        logger.info("Serving sessions from %s", resolved_db_path)
        tracker.resume()

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        tracker.close()
        store.close()

    @app.get("/api/status")
    def status(request: Request) -> Dict[str, Any]:
        current = _synced_tracker(request)
        active = current.active_sessions()
        return {
            "ticking": current.is_ticking(),
            "database_path": str(request.app.state.db_path),
            "first_weekday": calendar.first_weekday,
            "running_time": (
                format_running_time(active[0].duration()) if len(active) == 1 else None
            ),
            "active": [_session_payload(session) for session in active],
            "warnings": [
                {"event": warning.event, "message": warning.message}
                for warning in current.warnings
            ],
        }

    @app.get("/api/sessions")
    def sessions(
        request: Request,
        history_range: HistoryRange = Query(default=HistoryRange.ALL_TIME, alias="range"),
        activity_type: Optional[ActivityType] = Query(default=None, alias="type"),
    ) -> Dict[str, Any]:
        current = _synced_tracker(request)
        completed = filter_history(
            current.store.query(),
            activity_type=activity_type,
            history_range=history_range,
            calendar=calendar,
        )
        return {
            "range": history_range.value,
            "totals": _totals_payload(period_totals(completed)),
            "active": [_session_payload(session) for session in current.active_sessions()],
            "sessions": [_session_payload(session) for session in completed],
        }

    @app.post("/api/sessions", status_code=201)
    def start_session(payload: SessionStart, request: Request) -> Dict[str, Any]:
        session = _synced_tracker(request).start(
            payload.activity_type, description=payload.description.strip()
        )
        return _session_payload(session)

    @app.post("/api/sessions/{session_id}/stop")
    def stop_session(session_id: int, request: Request) -> Dict[str, Any]:
        current = _synced_tracker(request)
        session = _get_session_or_404(current, session_id)
        return _session_payload(current.stop(session))

    @app.post("/api/sessions/{session_id}/switch")
    def switch_session(session_id: int, request: Request) -> Dict[str, Any]:
        current = _synced_tracker(request)
        session = _get_session_or_404(current, session_id)
        return _session_payload(current.switch(session))

    @app.get("/api/summary")
    def summary(
        request: Request,
        period: Period = Query(default=Period.DAY),
        date: Optional[str] = Query(
            default=None,
            description="Date inside the period, YYYY-MM-DD.",
        ),
        include_active: bool = Query(default=False),
    ) -> Dict[str, Any]:
        reference = _parse_date(date)
        result = summarize_period(
            _synced_tracker(request).store.query(),
            period,
            reference,
            calendar,
            include_active=include_active,
        )
        consuming_pct, creating_pct = result.percentages
        return {
            "period": period.value,
            "label": describe_period(period, reference, calendar),
            "start": result.start.isoformat(),
            "end": result.end.isoformat(),
            "totals": _totals_payload(result.totals),
            "percentages": {"consuming": consuming_pct, "creating": creating_pct},
            "balance": {
                "score": result.balance.score,
                "focus": result.balance.focus.value,
            },
            "sessions": [_session_payload(session) for session in result.sessions],
        }

    @app.get("/api/calendar")
    def calendar_grid(
        request: Request,
        date: Optional[str] = Query(
            default=None,
            description="Selected date, YYYY-MM-DD. Its month is shown.",
        ),
        period: Period = Query(default=Period.DAY),
    ) -> Dict[str, Any]:
        reference = _parse_date(date)
        cells = calendar_cells(
            _synced_tracker(request).store.query(),
            reference,
            calendar,
            selected_period=period,
        )
        return {
            "month": describe_period(Period.MONTH, reference, calendar),
            "days": [
                {
                    "date": cell.day.isoformat(),
                    "in_month": cell.in_month,
                    "selected": cell.selected,
                    "consuming_seconds": cell.totals.consuming,
                    "creating_seconds": cell.totals.creating,
                    "dominant": cell.intensity.dominant.value if cell.intensity.dominant else None,
                    "intensity": cell.intensity.intensity,
                }
                for cell in cells
            ],
        }

    @app.get("/api/navigate")
    def navigate(
        period: Period = Query(default=Period.DAY),
        date: Optional[str] = Query(default=None),
        direction: str = Query(default="next", pattern="^(previous|next)$"),
    ) -> Dict[str, Any]:
        step = Direction.NEXT if direction == "next" else Direction.PREVIOUS
        target = advance(period, _parse_date(date), calendar, step)
        start, end = period_interval(period, target, calendar)
        return {
            "period": period.value,
            "date": target.strftime("%Y-%m-%d"),
            "label": describe_period(period, target, calendar),
            "start": start.isoformat(),
            "end": end.isoformat(),
        }

    return app


def _synced_tracker(request: Request) -> SessionTracker:
    """The app's tracker, after picking up writes made by other processes."""
    tracker: SessionTracker = request.app.state.tracker
    tracker.store.reload()
    tracker.resume()
    return tracker


def _get_session_or_404(tracker: SessionTracker, session_id: int) -> Session:
    session = tracker.store.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


def _parse_date(value: Optional[str]) -> datetime:
    if not value:
        return datetime.now()
    try:
        return datetime.strptime(value, "%Y-%m-%d")
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="Invalid date format") from exc


def _totals_payload(totals: Totals) -> Dict[str, float]:
    return {
        "consuming_seconds": totals.consuming,
        "creating_seconds": totals.creating,
        "overall_seconds": totals.total,
    }


def _session_payload(session: Session) -> Dict[str, Any]:
    return {
        "id": session.id,
        "activity_type": session.activity_type.value,
        "description": session.description,
        "start_time": session.start_time.isoformat(),
        "end_time": session.end_time.isoformat() if session.end_time else None,
        "is_active": session.is_active,
        "duration_seconds": session.duration(),
    }
