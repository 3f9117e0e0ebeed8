"""
Scheduling & Analytics Engine

Pure functions over the therapist's in-memory session list:
- Date-range selection (today / week / month / year / custom)
- Completed-hours aggregation by session type
- Today's completion rate
- Next / upcoming session selection
- Recurrence expansion for new session requests
- Per-client session time summaries
- Calendar bucketing and display labels

Inputs are any records exposing ``date``, ``time``, ``duration``, ``type``,
``status`` and ``client_id`` (ORM rows, Read schemas, or plain objects).
Dates may be ``date`` objects or ISO strings. A record whose date cannot be
parsed is skipped by filters and labelled "Invalid date" by display helpers;
it never aborts the computation for the other records.
"""

import calendar
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Any, Iterable, Optional, Sequence

import structlog
from dateutil.relativedelta import relativedelta

from src.models.session import Recurrence, RecurrenceFrequency, SessionCreate

logger = structlog.get_logger(__name__)

INVALID_DATE = "Invalid date"


class SchedulingError(Exception):
    """Exception for scheduling and analytics errors."""
    pass


class RangeMode(str, Enum):
    """Preset analytics windows."""
    TODAY = "today"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"
    CUSTOM = "custom"


class CalendarView(str, Enum):
    WEEK = "week"
    MONTH = "month"


@dataclass(frozen=True)
class DateRange:
    """Inclusive calendar interval [start, end]."""
    start: date
    end: date

    def __contains__(self, day: date) -> bool:
        return self.start <= day <= self.end

    @property
    def is_empty(self) -> bool:
        return self.start > self.end


@dataclass(frozen=True)
class SessionTime:
    """Total session time split into whole hours and leftover minutes."""
    total_minutes: int

    @property
    def hours(self) -> int:
        return self.total_minutes // 60

    @property
    def minutes(self) -> int:
        return self.total_minutes % 60

    def __str__(self) -> str:
        return f"{self.hours}h {self.minutes}m"


@dataclass
class DashboardSummary:
    """Derived figures for the dashboard overview."""
    today_sessions: int
    today_completed: int
    completion_rate: int
    active_clients: int
    inactive_clients: int
    week_sessions: int
    month_sessions: int
    next_session: Optional[Any]
    range: DateRange
    hours_by_type: dict[str, float] = field(default_factory=dict)
    total_hours: float = 0.0


# =============================================================================
# Parsing helpers
# =============================================================================

def _value(value: Any) -> Any:
    """Unwrap enum members to their raw value."""
    return getattr(value, "value", value)


def parse_date(value: Any) -> Optional[date]:
    """Parse a date object or ISO ``YYYY-MM-DD`` string; None if malformed."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            return None
    return None


def parse_time(value: Any) -> Optional[time]:
    """Parse a time object or ``HH:MM[:SS]`` string; None if malformed."""
    if isinstance(value, time):
        return value
    if isinstance(value, str):
        try:
            return time.fromisoformat(value.strip())
        except ValueError:
            return None
    return None


def session_date(session: Any) -> Optional[date]:
    return parse_date(getattr(session, "date", None))


def session_datetime(session: Any) -> Optional[datetime]:
    """Combine a session's date and time into one local datetime."""
    day = session_date(session)
    start = parse_time(getattr(session, "time", None))
    if day is None or start is None:
        return None
    return datetime.combine(day, start)


# =============================================================================
# Date-range selection
# =============================================================================

def date_range(
    mode: RangeMode | str,
    today: Optional[date] = None,
    start: Any = None,
    end: Any = None,
) -> DateRange:
    """Resolve an analytics window to an inclusive date interval.

    Weeks run Monday through Sunday. Month and year use calendar bounds.
    Custom ranges take ISO date strings (or dates); a start after the end is
    returned as-is and simply matches nothing.

    Raises:
        SchedulingError: Unknown mode or unparseable custom bounds.
    """
    today = today or date.today()
    try:
        mode = RangeMode(mode)
    except ValueError:
        raise SchedulingError(f"Unknown date range mode: {mode}")

    if mode == RangeMode.TODAY:
        return DateRange(today, today)
    if mode == RangeMode.WEEK:
        monday = today - timedelta(days=today.weekday())
        return DateRange(monday, monday + timedelta(days=6))
    if mode == RangeMode.MONTH:
        last_day = calendar.monthrange(today.year, today.month)[1]
        return DateRange(today.replace(day=1), today.replace(day=last_day))
    if mode == RangeMode.YEAR:
        return DateRange(date(today.year, 1, 1), date(today.year, 12, 31))

    custom_start = parse_date(start)
    custom_end = parse_date(end)
    if custom_start is None or custom_end is None:
        raise SchedulingError(f"Invalid custom range: start={start!r} end={end!r}")
    return DateRange(custom_start, custom_end)


# =============================================================================
# Filtering
# =============================================================================

def sessions_in_range(sessions: Iterable[Any], rng: DateRange) -> list[Any]:
    """All sessions (any status) dated within the range."""
    selected = []
    for session in sessions:
        day = session_date(session)
        if day is None:
            logger.debug("session_date_unparseable", session_id=str(getattr(session, "id", None)))
            continue
        if day in rng:
            selected.append(session)
    return selected


def completed_in_range(sessions: Iterable[Any], rng: DateRange) -> list[Any]:
    """Completed sessions dated within the range."""
    return [
        s for s in sessions_in_range(sessions, rng)
        if _value(s.status) == "completed"
    ]


def sessions_on(sessions: Iterable[Any], day: date) -> list[Any]:
    """All sessions (any status) on a single day."""
    return sessions_in_range(sessions, DateRange(day, day))


# =============================================================================
# Aggregation
# =============================================================================

def hours_by_type(sessions: Iterable[Any]) -> dict[str, float]:
    """Sum duration/60 per session type."""
    totals: dict[str, float] = {}
    for session in sessions:
        key = _value(session.type)
        totals[key] = totals.get(key, 0.0) + session.duration / 60
    return totals


def total_hours(grouped: dict[str, float]) -> float:
    return sum(grouped.values())


def completion_rate(sessions: Iterable[Any], today: Optional[date] = None) -> int:
    """Percentage of today's sessions that are completed, rounded half up.

    Returns 0 when there are no sessions today.
    """
    todays = sessions_on(sessions, today or date.today())
    if not todays:
        return 0
    completed = sum(1 for s in todays if _value(s.status) == "completed")
    return int(100 * completed / len(todays) + 0.5)


def total_session_time(sessions: Iterable[Any], client_id: Any = None) -> SessionTime:
    """Total minutes of completed sessions, optionally for one client."""
    minutes = 0
    for session in sessions:
        if client_id is not None and str(session.client_id) != str(client_id):
            continue
        if _value(session.status) == "completed":
            minutes += session.duration
    return SessionTime(minutes)


# =============================================================================
# Next / upcoming
# =============================================================================

def upcoming_sessions(sessions: Iterable[Any], now: Optional[datetime] = None) -> list[Any]:
    """Non-cancelled sessions starting strictly after now, soonest first."""
    now = now or datetime.now()
    timed = []
    for session in sessions:
        if _value(session.status) == "cancelled":
            continue
        start = session_datetime(session)
        if start is not None and start > now:
            timed.append((start, session))
    timed.sort(key=lambda pair: pair[0])
    return [session for _, session in timed]


def next_session(sessions: Iterable[Any], now: Optional[datetime] = None) -> Optional[Any]:
    upcoming = upcoming_sessions(sessions, now)
    return upcoming[0] if upcoming else None


# =============================================================================
# Recurrence expansion
# =============================================================================

_RECURRENCE_STEPS = {
    RecurrenceFrequency.WEEKLY: relativedelta(weeks=1),
    RecurrenceFrequency.BIWEEKLY: relativedelta(weeks=2),
    RecurrenceFrequency.MONTHLY: relativedelta(months=1),
}


def expand_recurrence(
    base: SessionCreate,
    recurrence: Optional[Recurrence] = None,
) -> list[SessionCreate]:
    """Expand a session request into one request per occurrence.

    Occurrences fall on base.date + k * step for k = 0, 1, 2, ... while the
    date is on or before the end date. Monthly steps are counted from the
    base date, so a series starting on the 31st lands on each month's last
    day when the month is shorter. Without a frequency or an end date only
    the base request is produced.

    Returns:
        Session requests in date order, each with its recurrence cleared.
    """
    recurrence = recurrence or base.recurrence
    single = [base.model_copy(update={"recurrence": None})]

    if recurrence is None or recurrence.frequency == RecurrenceFrequency.NONE:
        return single
    if recurrence.end_date is None:
        return single

    step = _RECURRENCE_STEPS[recurrence.frequency]
    occurrences = []
    k = 0
    while True:
        day = base.date + step * k
        if day > recurrence.end_date:
            break
        occurrences.append(base.model_copy(update={"date": day, "recurrence": None}))
        k += 1

    return occurrences or single


# =============================================================================
# Display helpers
# =============================================================================

def _format_clock(value: time) -> str:
    hour = value.hour % 12 or 12
    suffix = "AM" if value.hour < 12 else "PM"
    return f"{hour}:{value.minute:02d} {suffix}"


def _format_datetime(value: datetime) -> str:
    return f"{value:%b} {value.day}, {value.year}, {_format_clock(value.time())}"


def format_session_datetime(day: Any, start: Any) -> str:
    """Label like "Jan 8, 2024, 9:00 AM", or "Invalid date"."""
    parsed_day = parse_date(day)
    parsed_time = parse_time(start)
    if parsed_day is None or parsed_time is None:
        return INVALID_DATE
    return _format_datetime(datetime.combine(parsed_day, parsed_time))


def format_timestamp(value: Any) -> str:
    """Label a created/updated timestamp, or "Invalid date"."""
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.strip())
        except ValueError:
            return INVALID_DATE
    if not isinstance(value, datetime):
        return INVALID_DATE
    return _format_datetime(value)


# =============================================================================
# Client history and notes
# =============================================================================

def client_history(sessions: Iterable[Any], client_id: Any = None) -> list[Any]:
    """Sessions sorted newest first; unparseable dates sort last."""
    selected = [
        s for s in sessions
        if client_id is None or str(s.client_id) == str(client_id)
    ]
    dated = [(session_datetime(s), s) for s in selected]
    valid = sorted((pair for pair in dated if pair[0] is not None), key=lambda pair: pair[0], reverse=True)
    invalid = [s for when, s in dated if when is None]
    return [s for _, s in valid] + invalid


def latest_note(notes: Sequence[Any]) -> Optional[Any]:
    """Most recently created note, or None."""
    if not notes:
        return None
    return max(notes, key=lambda n: n.created_at)


def sessions_needing_notes(
    sessions: Iterable[Any],
    notes: Iterable[Any],
    today: Optional[date] = None,
) -> list[Any]:
    """Today's non-cancelled sessions that have no note yet."""
    documented = {str(n.session_id) for n in notes}
    return [
        s for s in sessions_on(sessions, today or date.today())
        if _value(s.status) != "cancelled" and str(s.id) not in documented
    ]


# =============================================================================
# Calendar
# =============================================================================

def calendar_days(view: CalendarView | str, anchor: date) -> list[date]:
    """Days shown for the Monday-start week or calendar month holding anchor."""
    view = CalendarView(view)
    if view == CalendarView.WEEK:
        rng = date_range(RangeMode.WEEK, today=anchor)
    else:
        rng = date_range(RangeMode.MONTH, today=anchor)
    return [rng.start + timedelta(days=i) for i in range((rng.end - rng.start).days + 1)]


def shift_anchor(view: CalendarView | str, anchor: date, direction: int) -> date:
    """Move the calendar anchor one week or month forward (+1) or back (-1)."""
    if CalendarView(view) == CalendarView.WEEK:
        return anchor + relativedelta(weeks=direction)
    return anchor + relativedelta(months=direction)


def sessions_by_day(sessions: Iterable[Any], days: Sequence[date]) -> dict[date, list[Any]]:
    """Bucket sessions onto the given days, each bucket sorted by start time."""
    buckets: dict[date, list[Any]] = {day: [] for day in days}
    for session in sessions:
        day = session_date(session)
        if day in buckets:
            buckets[day].append(session)
    for bucket in buckets.values():
        bucket.sort(key=lambda s: parse_time(s.time) or time.max)
    return buckets


# =============================================================================
# Dashboard
# =============================================================================

def dashboard_summary(
    clients: Iterable[Any],
    sessions: Sequence[Any],
    now: Optional[datetime] = None,
    mode: RangeMode | str = RangeMode.YEAR,
    start: Any = None,
    end: Any = None,
) -> DashboardSummary:
    """Compute every dashboard figure from the cached collections.

    Raises:
        SchedulingError: If the analytics range cannot be resolved.
    """
    now = now or datetime.now()
    today = now.date()
    clients = list(clients)

    todays = sessions_on(sessions, today)
    rng = date_range(mode, today=today, start=start, end=end)
    grouped = hours_by_type(completed_in_range(sessions, rng))

    return DashboardSummary(
        today_sessions=len(todays),
        today_completed=sum(1 for s in todays if _value(s.status) == "completed"),
        completion_rate=completion_rate(sessions, today),
        active_clients=sum(1 for c in clients if _value(c.status) == "active"),
        inactive_clients=sum(1 for c in clients if _value(c.status) == "inactive"),
        week_sessions=len(sessions_in_range(sessions, date_range(RangeMode.WEEK, today=today))),
        month_sessions=len(sessions_in_range(sessions, date_range(RangeMode.MONTH, today=today))),
        next_session=next_session(sessions, now),
        range=rng,
        hours_by_type=grouped,
        total_hours=total_hours(grouped),
    )
