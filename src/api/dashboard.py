"""
Dashboard API Endpoints

Read-only views computed from the therapist's records:
- Dashboard overview (today, completion rate, client counts, next session)
- Session-hours analytics over a range
- Per-client summary (history, total time, next session, latest note)
- Week / month calendar
"""

import datetime as dt
from datetime import date, datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, HTTPException, Header, Query
from pydantic import BaseModel, Field

from src.api import dependencies
from src.api.dependencies import practice_http_error, require_therapist_id
from src.models.client import ClientRead
from src.models.session import SessionRead
from src.models.therapy_note import TherapyNoteRead
from src.services import scheduling
from src.services.practice import PracticeError
from src.services.scheduling import CalendarView, RangeMode, SchedulingError


router = APIRouter(tags=["dashboard"])


# =============================================================================
# Response Models
# =============================================================================

class RangeRead(BaseModel):
    start: date
    end: date


class AnalyticsResponse(BaseModel):
    """Completed-session hours grouped by session type."""
    range: RangeRead
    hours_by_type: dict[str, float]
    total_hours: float
    completed_sessions: int


class DashboardResponse(BaseModel):
    """Dashboard overview."""
    today_sessions: int
    today_completed: int
    completion_rate: int = Field(..., ge=0, le=100)
    active_clients: int
    inactive_clients: int
    week_sessions: int
    month_sessions: int
    next_session: Optional[SessionRead] = None
    next_session_label: Optional[str] = None
    analytics: AnalyticsResponse


class ClientSummaryResponse(BaseModel):
    """Everything the client profile page shows."""
    client: ClientRead
    history: list[SessionRead]
    total_session_time: str
    total_minutes: int
    next_session: Optional[SessionRead] = None
    latest_note: Optional[TherapyNoteRead] = None


class CalendarDay(BaseModel):
    date: dt.date
    sessions: list[SessionRead]


class CalendarResponse(BaseModel):
    view: CalendarView
    anchor: date
    previous_anchor: date
    next_anchor: date
    days: list[CalendarDay]


# =============================================================================
# Endpoints
# =============================================================================

def _analytics(sessions: list[SessionRead], rng: scheduling.DateRange) -> AnalyticsResponse:
    completed = scheduling.completed_in_range(sessions, rng)
    grouped = scheduling.hours_by_type(completed)
    return AnalyticsResponse(
        range=RangeRead(start=rng.start, end=rng.end),
        hours_by_type=grouped,
        total_hours=scheduling.total_hours(grouped),
        completed_sessions=len(completed),
    )


@router.get("/dashboard", response_model=DashboardResponse)
async def get_dashboard(
    mode: RangeMode = Query(RangeMode.YEAR, description="Analytics range"),
    start: Optional[date] = Query(None, description="Custom range start"),
    end: Optional[date] = Query(None, description="Custom range end"),
    as_of: Optional[datetime] = Query(None, description="Evaluate as of this local time"),
    x_user_id: Optional[str] = Header(None),
) -> DashboardResponse:
    """Dashboard figures for the therapist."""
    therapist_id = require_therapist_id(x_user_id)
    service = dependencies.get_practice_service()
    now = as_of or datetime.now()

    try:
        clients = service.list_clients(therapist_id)
        sessions = service.list_sessions(therapist_id)
        summary = scheduling.dashboard_summary(clients, sessions, now=now, mode=mode, start=start, end=end)
    except PracticeError as e:
        raise practice_http_error(e)
    except SchedulingError as e:
        raise HTTPException(status_code=422, detail=str(e))

    label = None
    if summary.next_session is not None:
        label = scheduling.format_session_datetime(summary.next_session.date, summary.next_session.time)

    return DashboardResponse(
        today_sessions=summary.today_sessions,
        today_completed=summary.today_completed,
        completion_rate=summary.completion_rate,
        active_clients=summary.active_clients,
        inactive_clients=summary.inactive_clients,
        week_sessions=summary.week_sessions,
        month_sessions=summary.month_sessions,
        next_session=summary.next_session,
        next_session_label=label,
        analytics=_analytics(sessions, summary.range),
    )


@router.get("/dashboard/analytics", response_model=AnalyticsResponse)
async def get_analytics(
    mode: RangeMode = Query(RangeMode.MONTH, description="Analytics range"),
    start: Optional[date] = Query(None, description="Custom range start"),
    end: Optional[date] = Query(None, description="Custom range end"),
    as_of: Optional[date] = Query(None, description="Evaluate as of this date"),
    x_user_id: Optional[str] = Header(None),
) -> AnalyticsResponse:
    """Hours of completed sessions in the range, grouped by session type."""
    therapist_id = require_therapist_id(x_user_id)
    service = dependencies.get_practice_service()

    try:
        rng = scheduling.date_range(mode, today=as_of, start=start, end=end)
        sessions = service.list_sessions(therapist_id)
    except SchedulingError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except PracticeError as e:
        raise practice_http_error(e)

    return _analytics(sessions, rng)


@router.get("/clients/{client_id}/summary", response_model=ClientSummaryResponse)
async def get_client_summary(
    client_id: UUID,
    as_of: Optional[datetime] = Query(None, description="Evaluate as of this local time"),
    x_user_id: Optional[str] = Header(None),
) -> ClientSummaryResponse:
    therapist_id = require_therapist_id(x_user_id)
    service = dependencies.get_practice_service()

    try:
        client = service.get_client(therapist_id, client_id)
        sessions = service.list_sessions(therapist_id, client_id=client_id)
        notes = service.list_notes(therapist_id, client_id=client_id)
    except PracticeError as e:
        raise practice_http_error(e)

    total = scheduling.total_session_time(sessions)
    return ClientSummaryResponse(
        client=client,
        history=scheduling.client_history(sessions),
        total_session_time=str(total),
        total_minutes=total.total_minutes,
        next_session=scheduling.next_session(sessions, as_of or datetime.now()),
        latest_note=scheduling.latest_note(notes),
    )


@router.get("/calendar", response_model=CalendarResponse)
async def get_calendar(
    view: CalendarView = Query(CalendarView.WEEK, description="week or month"),
    anchor: Optional[date] = Query(None, description="Any day inside the period"),
    x_user_id: Optional[str] = Header(None),
) -> CalendarResponse:
    """Sessions bucketed by day for the Monday-start week or the month around anchor."""
    therapist_id = require_therapist_id(x_user_id)
    service = dependencies.get_practice_service()
    anchor = anchor or date.today()

    days = scheduling.calendar_days(view, anchor)
    try:
        sessions = service.list_sessions(therapist_id, start=days[0], end=days[-1])
    except PracticeError as e:
        raise practice_http_error(e)

    buckets = scheduling.sessions_by_day(sessions, days)
    return CalendarResponse(
        view=view,
        anchor=anchor,
        previous_anchor=scheduling.shift_anchor(view, anchor, -1),
        next_anchor=scheduling.shift_anchor(view, anchor, 1),
        days=[CalendarDay(date=day, sessions=buckets[day]) for day in days],
    )
