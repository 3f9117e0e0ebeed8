"""
Scheduling & Analytics Engine Tests

Tests verify:
1. Date-range selection (Monday-start weeks, calendar months, custom)
2. Hours-by-type aggregation and completion rate
3. Next / upcoming session selection
4. Recurrence expansion (weekly, biweekly, monthly, none)
5. Display labels and "Invalid date" degradation
6. Client history, pending notes and calendar bucketing
"""

import pytest
from datetime import date, datetime, time
from types import SimpleNamespace
from uuid import uuid4

from src.models.session import Recurrence, RecurrenceFrequency, SessionCreate, SessionType
from src.services import scheduling
from src.services.scheduling import (
    INVALID_DATE,
    CalendarView,
    DateRange,
    RangeMode,
    SchedulingError,
)


def make_session(day="2024-01-08", start="09:00", duration=60, type="individual",
                 status="scheduled", client_id=None):
    return SimpleNamespace(
        id=uuid4(),
        client_id=client_id or uuid4(),
        date=day,
        time=start,
        duration=duration,
        type=type,
        status=status,
    )


# =============================================================================
# Date ranges
# =============================================================================

class TestDateRange:
    """Tests for date_range."""

    def test_today(self):
        rng = scheduling.date_range(RangeMode.TODAY, today=date(2024, 3, 13))
        assert rng == DateRange(date(2024, 3, 13), date(2024, 3, 13))

    def test_week_starts_monday(self):
        # 2024-03-13 is a Wednesday
        rng = scheduling.date_range("week", today=date(2024, 3, 13))
        assert rng.start == date(2024, 3, 11)
        assert rng.end == date(2024, 3, 17)

    def test_week_on_sunday_belongs_to_previous_monday(self):
        rng = scheduling.date_range(RangeMode.WEEK, today=date(2024, 3, 17))
        assert rng.start == date(2024, 3, 11)

    def test_month_in_leap_february(self):
        rng = scheduling.date_range(RangeMode.MONTH, today=date(2024, 2, 10))
        assert rng == DateRange(date(2024, 2, 1), date(2024, 2, 29))

    def test_year(self):
        rng = scheduling.date_range(RangeMode.YEAR, today=date(2024, 7, 4))
        assert rng == DateRange(date(2024, 1, 1), date(2024, 12, 31))

    def test_custom_from_strings(self):
        rng = scheduling.date_range(RangeMode.CUSTOM, start="2024-01-01", end="2024-01-31")
        assert rng == DateRange(date(2024, 1, 1), date(2024, 1, 31))

    def test_custom_start_after_end_is_empty(self):
        rng = scheduling.date_range(RangeMode.CUSTOM, start="2024-02-01", end="2024-01-01")

        assert rng.is_empty()
        assert scheduling.sessions_in_range([make_session("2024-01-15")], rng) == []

    def test_custom_requires_both_bounds(self):
        with pytest.raises(SchedulingError):
            scheduling.date_range(RangeMode.CUSTOM, start="2024-01-01")

    def test_unknown_mode(self):
        with pytest.raises(SchedulingError, match="Unknown date range mode"):
            scheduling.date_range("fortnight")


# =============================================================================
# Aggregation
# =============================================================================

class TestAggregation:
    """Tests for hours_by_type, total_hours and completion_rate."""

    def test_hours_grouped_by_type(self):
        sessions = [
            make_session(type="individual", duration=60),
            make_session(type="individual", duration=30),
            make_session(type="family", duration=90),
        ]

        grouped = scheduling.hours_by_type(sessions)

        assert grouped == {"individual": 1.5, "family": 1.5}

    def test_grouped_sum_equals_ungrouped_total(self):
        sessions = [
            make_session(type=t.value, duration=d)
            for t, d in zip(SessionType, [15, 45, 60, 75, 90, 120, 180])
        ]

        grouped = scheduling.hours_by_type(sessions)

        assert scheduling.total_hours(grouped) == pytest.approx(sum(s.duration for s in sessions) / 60)

    def test_completed_in_range_ignores_other_statuses_and_dates(self):
        rng = DateRange(date(2024, 1, 1), date(2024, 1, 31))
        sessions = [
            make_session("2024-01-10", status="completed"),
            make_session("2024-01-11", status="scheduled"),
            make_session("2024-01-12", status="cancelled"),
            make_session("2024-02-01", status="completed"),
            make_session("not-a-date", status="completed"),
        ]

        completed = scheduling.completed_in_range(sessions, rng)

        assert [s.date for s in completed] == ["2024-01-10"]

    def test_completion_rate_no_sessions_today(self):
        sessions = [make_session("2024-01-07", status="completed")]
        assert scheduling.completion_rate(sessions, date(2024, 1, 8)) == 0

    def test_completion_rate_rounds(self):
        sessions = [
            make_session("2024-01-08", status="completed"),
            make_session("2024-01-08", status="scheduled"),
            make_session("2024-01-08", status="scheduled"),
        ]
        assert scheduling.completion_rate(sessions, date(2024, 1, 8)) == 33

    def test_completion_rate_rounds_half_up(self):
        sessions = [make_session("2024-01-08", status="completed")]
        sessions += [make_session("2024-01-08") for _ in range(7)]
        # 1/8 = 12.5%
        assert scheduling.completion_rate(sessions, date(2024, 1, 8)) == 13

    def test_completion_rate_all_completed(self):
        sessions = [make_session("2024-01-08", status="completed") for _ in range(3)]
        assert scheduling.completion_rate(sessions, date(2024, 1, 8)) == 100

    def test_total_session_time_for_client(self):
        client_id = uuid4()
        sessions = [
            make_session(status="completed", duration=60, client_id=client_id),
            make_session(status="completed", duration=45, client_id=client_id),
            make_session(status="scheduled", duration=60, client_id=client_id),
            make_session(status="completed", duration=90),
        ]

        total = scheduling.total_session_time(sessions, client_id)

        assert total.total_minutes == 105
        assert str(total) == "1h 45m"


# =============================================================================
# Next / upcoming
# =============================================================================

class TestNextSession:
    """Tests for upcoming_sessions and next_session."""

    def test_skips_cancelled(self):
        cancelled = make_session("2024-01-01", status="cancelled")
        scheduled = make_session("2024-06-01", status="scheduled")

        result = scheduling.next_session([cancelled, scheduled], datetime(2024, 3, 1))

        assert result is scheduled

    def test_skips_past_and_orders_by_start(self):
        past = make_session("2024-01-08", "08:00")
        later = make_session("2024-01-08", "15:00")
        sooner = make_session("2024-01-08", "11:00")

        upcoming = scheduling.upcoming_sessions([past, later, sooner], datetime(2024, 1, 8, 10, 0))

        assert upcoming == [sooner, later]

    def test_none_when_nothing_upcoming(self):
        assert scheduling.next_session([make_session("2020-01-01")], datetime(2024, 1, 1)) is None

    def test_unparseable_time_is_skipped(self):
        broken = make_session("2024-06-01", "soon")
        assert scheduling.next_session([broken], datetime(2024, 1, 1)) is None


# =============================================================================
# Recurrence
# =============================================================================

class TestExpandRecurrence:
    """Tests for expand_recurrence."""

    @pytest.fixture()
    def base(self):
        return SessionCreate(client_id=uuid4(), date=date(2024, 1, 1), time=time(9, 0))

    def test_weekly(self, base):
        rec = Recurrence(frequency=RecurrenceFrequency.WEEKLY, end_date=date(2024, 1, 22))

        result = scheduling.expand_recurrence(base, rec)

        assert [s.date for s in result] == [
            date(2024, 1, 1), date(2024, 1, 8), date(2024, 1, 15), date(2024, 1, 22),
        ]
        assert all(s.recurrence is None for s in result)
        assert all(s.client_id == base.client_id and s.time == base.time for s in result)

    def test_biweekly(self, base):
        rec = Recurrence(frequency=RecurrenceFrequency.BIWEEKLY, end_date=date(2024, 2, 1))

        result = scheduling.expand_recurrence(base, rec)

        assert [s.date for s in result] == [date(2024, 1, 1), date(2024, 1, 15), date(2024, 1, 29)]

    def test_monthly_clamps_to_month_end(self):
        base = SessionCreate(client_id=uuid4(), date=date(2024, 1, 31), time=time(9, 0))
        rec = Recurrence(frequency=RecurrenceFrequency.MONTHLY, end_date=date(2024, 4, 30))

        result = scheduling.expand_recurrence(base, rec)

        assert [s.date for s in result] == [
            date(2024, 1, 31), date(2024, 2, 29), date(2024, 3, 31), date(2024, 4, 30),
        ]

    def test_none_frequency_yields_one(self, base):
        rec = Recurrence(frequency=RecurrenceFrequency.NONE, end_date=date(2024, 12, 31))
        assert len(scheduling.expand_recurrence(base, rec)) == 1

    def test_missing_end_date_yields_one(self, base):
        rec = Recurrence(frequency=RecurrenceFrequency.WEEKLY)
        assert len(scheduling.expand_recurrence(base, rec)) == 1

    def test_end_before_start_yields_base(self, base):
        rec = Recurrence(frequency=RecurrenceFrequency.WEEKLY, end_date=date(2023, 12, 1))

        result = scheduling.expand_recurrence(base, rec)

        assert [s.date for s in result] == [date(2024, 1, 1)]

    def test_directive_read_from_request(self, base):
        request = base.model_copy(update={
            "recurrence": Recurrence(frequency=RecurrenceFrequency.WEEKLY, end_date=date(2024, 1, 8)),
        })

        assert len(scheduling.expand_recurrence(request)) == 2


# =============================================================================
# Display
# =============================================================================

class TestDisplay:
    """Tests for display labels."""

    def test_format_session_datetime(self):
        assert scheduling.format_session_datetime("2024-01-08", "09:00") == "Jan 8, 2024, 9:00 AM"

    def test_format_afternoon(self):
        assert scheduling.format_session_datetime(date(2024, 12, 25), time(13, 5)) == "Dec 25, 2024, 1:05 PM"

    def test_invalid_date_label(self):
        assert scheduling.format_session_datetime("2024-02-30", "09:00") == INVALID_DATE

    def test_format_timestamp_invalid(self):
        assert scheduling.format_timestamp("garbage") == INVALID_DATE
        assert scheduling.format_timestamp(None) == INVALID_DATE


# =============================================================================
# History, notes, calendar
# =============================================================================

class TestHistoryAndCalendar:
    """Tests for client history, pending notes and calendar helpers."""

    def test_client_history_newest_first_invalid_last(self):
        old = make_session("2024-01-01")
        new = make_session("2024-03-01")
        broken = make_session("bad")

        assert scheduling.client_history([old, broken, new]) == [new, old, broken]

    def test_client_history_narrowed_to_client(self):
        client_id = uuid4()
        mine_old = make_session("2024-01-01", client_id=client_id)
        mine_new = make_session("2024-02-01", client_id=client_id)
        other = make_session("2024-03-01")

        assert scheduling.client_history([mine_old, other, mine_new], client_id=str(client_id)) == [mine_new, mine_old]

    def test_latest_note(self):
        first = SimpleNamespace(created_at=datetime(2024, 1, 1))
        second = SimpleNamespace(created_at=datetime(2024, 2, 1))

        assert scheduling.latest_note([first, second]) is second
        assert scheduling.latest_note([]) is None

    def test_sessions_needing_notes(self):
        documented = make_session("2024-01-08")
        pending = make_session("2024-01-08")
        cancelled = make_session("2024-01-08", status="cancelled")
        notes = [SimpleNamespace(session_id=documented.id)]

        result = scheduling.sessions_needing_notes([documented, pending, cancelled], notes, date(2024, 1, 8))

        assert result == [pending]

    def test_calendar_week_days(self):
        days = scheduling.calendar_days(CalendarView.WEEK, date(2024, 1, 10))

        assert days[0] == date(2024, 1, 8)
        assert days[-1] == date(2024, 1, 14)
        assert len(days) == 7

    def test_calendar_month_days(self):
        days = scheduling.calendar_days("month", date(2024, 2, 14))
        assert len(days) == 29

    def test_shift_anchor(self):
        assert scheduling.shift_anchor("week", date(2024, 1, 10), 1) == date(2024, 1, 17)
        assert scheduling.shift_anchor("month", date(2024, 1, 31), 1) == date(2024, 2, 29)
        assert scheduling.shift_anchor("month", date(2024, 3, 15), -1) == date(2024, 2, 15)

    def test_sessions_by_day_sorted_by_time(self):
        days = scheduling.calendar_days("week", date(2024, 1, 10))
        late = make_session("2024-01-09", "16:00")
        early = make_session("2024-01-09", "08:30")
        outside = make_session("2024-01-20")

        buckets = scheduling.sessions_by_day([late, early, outside], days)

        assert buckets[date(2024, 1, 9)] == [early, late]
        assert sum(len(b) for b in buckets.values()) == 2


# =============================================================================
# Dashboard
# =============================================================================

class TestDashboardSummary:
    """Tests for dashboard_summary."""

    def test_summary_figures(self):
        clients = [
            SimpleNamespace(status="active"),
            SimpleNamespace(status="active"),
            SimpleNamespace(status="inactive"),
        ]
        sessions = [
            make_session("2024-01-08", "09:00", status="completed", type="individual"),
            make_session("2024-01-08", "14:00", status="scheduled"),
            make_session("2024-01-10", "10:00", status="scheduled"),
            make_session("2024-01-25", "10:00", status="completed", type="family", duration=90),
            make_session("2023-12-01", "10:00", status="completed"),
        ]

        summary = scheduling.dashboard_summary(clients, sessions, now=datetime(2024, 1, 8, 12, 0))

        assert summary.today_sessions == 2
        assert summary.today_completed == 1
        assert summary.completion_rate == 50
        assert summary.active_clients == 2
        assert summary.inactive_clients == 1
        assert summary.week_sessions == 3
        assert summary.month_sessions == 4
        assert summary.next_session is sessions[1]
        assert summary.hours_by_type == {"individual": 1.0, "family": 1.5}
        assert summary.total_hours == pytest.approx(2.5)
