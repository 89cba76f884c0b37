"""Tests for work session reconstruction."""

from datetime import datetime, timedelta, timezone

from factories import MONDAY, at, day, punch, shift
from timepay_engine.calculators.sessions import (
    SessionPolicy,
    calculate_daily_hours,
    payable_sessions,
    process_punches,
    reconstruct_sessions,
)
from timepay_engine.models import PunchEvent, PunchKind, SessionAnomaly

CLOCK_IN = PunchKind.CLOCK_IN
CLOCK_OUT = PunchKind.CLOCK_OUT
BREAK_START = PunchKind.BREAK_START
BREAK_END = PunchKind.BREAK_END


class TestCompleteSessions:
    """Clean clock-in / break / clock-out sequences."""

    def test_shift_with_break(self):
        """Worked minutes are the span minus complete breaks."""
        sessions = reconstruct_sessions(
            shift("e1", MONDAY, "09:00", "17:00", breaks=(("12:00", "12:30"),))
        )

        assert len(sessions) == 1
        s = sessions[0]
        assert s.total_minutes == 480
        assert s.break_minutes == 30
        assert s.worked_minutes == 450
        assert s.anomalies == frozenset()
        assert s.is_complete
        assert s.work_date == MONDAY

    def test_minutes_are_floored(self):
        """Partial minutes are dropped, not rounded."""
        events = [
            punch("e1", MONDAY, "09:00", CLOCK_IN),
            punch("e1", MONDAY, "09:10", CLOCK_OUT, seconds=59),
        ]

        sessions = reconstruct_sessions(events)

        assert sessions[0].worked_minutes == 10

    def test_overnight_session_belongs_to_clock_in_date(self):
        """A shift past midnight is dated by its clock-in."""
        sessions = reconstruct_sessions(shift("e1", day(6), "22:00", "02:00"))

        assert sessions[0].work_date == day(6)
        assert sessions[0].worked_minutes == 240

    def test_work_date_uses_timezone(self):
        """Clock-in instants are converted to the caller's timezone."""
        eastern = timezone(timedelta(hours=-5))
        clock_in = datetime(2024, 1, 2, 3, 0, tzinfo=timezone.utc)
        events = [
            PunchEvent("e1", clock_in, CLOCK_IN),
            PunchEvent("e1", clock_in + timedelta(hours=4), CLOCK_OUT),
        ]

        sessions = reconstruct_sessions(events, tz=eastern)

        assert sessions[0].work_date == MONDAY

    def test_sessions_ordered_by_employee_then_clock_in(self):
        events = (
            shift("e2", MONDAY, "09:00", "10:00")
            + shift("e1", MONDAY, "13:00", "14:00")
            + shift("e1", MONDAY, "08:00", "09:00")
        )

        sessions = reconstruct_sessions(events)

        assert [(s.employee_id, s.clock_in) for s in sessions] == [
            ("e1", at(MONDAY, "08:00")),
            ("e1", at(MONDAY, "13:00")),
            ("e2", at(MONDAY, "09:00")),
        ]


class TestAnomalies:
    """Unverifiable time is flagged and never paid on a guess."""

    def test_missing_clock_out(self):
        sessions = reconstruct_sessions([punch("e1", MONDAY, "09:00", CLOCK_IN)])

        s = sessions[0]
        assert SessionAnomaly.MISSING_CLOCK_OUT in s.anomalies
        assert s.worked_minutes == 0
        assert not s.is_complete

    def test_incomplete_break_is_not_deducted(self):
        events = [
            punch("e1", MONDAY, "09:00", CLOCK_IN),
            punch("e1", MONDAY, "12:00", BREAK_START),
            punch("e1", MONDAY, "17:00", CLOCK_OUT),
        ]

        s = reconstruct_sessions(events)[0]

        assert s.anomalies == frozenset({SessionAnomaly.INCOMPLETE_BREAK})
        assert s.break_minutes == 0
        assert s.worked_minutes == 480
        assert len(s.breaks) == 1
        assert s.breaks[0].end is None

    def test_clock_in_during_break_ends_the_break(self):
        """Terminals that record a break end as a clock-in."""
        events = [
            punch("e1", MONDAY, "09:00", CLOCK_IN),
            punch("e1", MONDAY, "12:00", BREAK_START),
            punch("e1", MONDAY, "12:30", CLOCK_IN),
            punch("e1", MONDAY, "17:00", CLOCK_OUT),
        ]

        sessions = reconstruct_sessions(events)

        assert len(sessions) == 1
        assert sessions[0].break_minutes == 30
        assert sessions[0].worked_minutes == 450
        assert not sessions[0].has_anomalies

    def test_second_clock_in_closes_open_session(self):
        """A forgotten clock-out does not swallow the next shift."""
        events = [
            punch("e1", MONDAY, "09:00", CLOCK_IN),
            punch("e1", MONDAY, "13:00", CLOCK_IN),
            punch("e1", MONDAY, "17:00", CLOCK_OUT),
        ]

        first, second = reconstruct_sessions(events)

        assert SessionAnomaly.MISSING_CLOCK_OUT in first.anomalies
        assert first.worked_minutes == 0
        assert second.worked_minutes == 240
        assert SessionAnomaly.MISSING_CLOCK_OUT not in second.anomalies

    def test_orphan_punches_are_ignored(self):
        events = [
            punch("e1", MONDAY, "08:00", CLOCK_OUT),
            punch("e1", MONDAY, "08:30", BREAK_END),
            punch("e1", MONDAY, "09:00", CLOCK_IN),
            punch("e1", MONDAY, "10:00", BREAK_END),
            punch("e1", MONDAY, "17:00", CLOCK_OUT),
        ]

        sessions = reconstruct_sessions(events)

        assert len(sessions) == 1
        assert sessions[0].worked_minutes == 480
        assert sessions[0].breaks == ()

    def test_short_session_flagged_when_not_alone(self):
        events = shift("e1", MONDAY, "09:00", "09:02") + shift("e1", MONDAY, "10:00", "17:00")

        short, full = reconstruct_sessions(events)

        assert SessionAnomaly.ABNORMALLY_SHORT in short.anomalies
        assert SessionAnomaly.ABNORMALLY_SHORT not in full.anomalies

    def test_lone_short_session_not_flagged(self):
        sessions = reconstruct_sessions(shift("e1", MONDAY, "09:00", "09:02"))

        assert sessions[0].anomalies == frozenset()


class TestPayableSessions:
    def test_open_sessions_are_not_payable(self):
        sessions = reconstruct_sessions(
            shift("e1", MONDAY, "09:00", "17:00") + [punch("e1", day(1), "09:00", CLOCK_IN)]
        )

        payable = list(payable_sessions(sessions))

        assert len(payable) == 1
        assert payable[0].work_date == MONDAY

    def test_short_sessions_counted_by_default(self):
        sessions = reconstruct_sessions(
            shift("e1", MONDAY, "09:00", "09:02") + shift("e1", MONDAY, "10:00", "17:00")
        )

        assert len(list(payable_sessions(sessions))) == 2

    def test_policy_can_exclude_short_sessions(self):
        sessions = reconstruct_sessions(
            shift("e1", MONDAY, "09:00", "09:02") + shift("e1", MONDAY, "10:00", "17:00")
        )
        policy = SessionPolicy(exclude_abnormally_short=True)

        payable = list(payable_sessions(sessions, policy))

        assert len(payable) == 1
        assert payable[0].worked_minutes == 420


class TestDailyHours:
    def test_groups_by_employee_and_day(self):
        events = (
            shift("e1", MONDAY, "08:00", "12:00")
            + shift("e1", MONDAY, "16:00", "20:00", breaks=(("18:00", "18:15"),))
            + shift("e1", day(1), "09:00", "10:00")
        )

        days = calculate_daily_hours(reconstruct_sessions(events))

        assert [(d.work_date, d.worked_minutes) for d in days] == [(MONDAY, 465), (day(1), 60)]
        monday = days[0]
        assert len(monday.sessions) == 2
        assert monday.break_minutes == 15
        assert monday.total_minutes == 480
        assert monday.punch_count == 6

    def test_single_day_filter(self):
        events = shift("e1", MONDAY, "08:00", "12:00") + shift("e1", day(1), "09:00", "10:00")

        days = calculate_daily_hours(reconstruct_sessions(events), day=day(1))

        assert len(days) == 1
        assert days[0].work_date == day(1)


class TestProcessPunches:
    def test_noise_is_skipped_when_rebuilding(self):
        """A burst of clock-ins still yields one clean session."""
        events = [
            punch("e1", MONDAY, "09:00", CLOCK_IN, seconds=0),
            punch("e1", MONDAY, "09:00", CLOCK_IN, seconds=5),
            punch("e1", MONDAY, "09:00", CLOCK_IN, seconds=10),
            punch("e1", MONDAY, "17:00", CLOCK_OUT),
        ]

        result = process_punches(events)

        assert result.noise_count == 2
        assert result.anomaly_count == 0
        assert len(result.sessions) == 1
        assert result.sessions[0].worked_minutes == 480

    def test_cancelled_break_leaves_stray_clock_in(self):
        events = [
            punch("e1", MONDAY, "09:00", CLOCK_IN),
            punch("e1", MONDAY, "12:00", BREAK_START),
            punch("e1", MONDAY, "12:01", CLOCK_IN),
            punch("e1", MONDAY, "17:00", CLOCK_OUT),
        ]

        result = process_punches(events)

        # The stray clock-in closes the morning as missing its clock-out
        assert result.noise_count == 1
        assert [s.clock_in for s in result.sessions] == [at(MONDAY, "09:00"), at(MONDAY, "12:01")]
        assert result.anomaly_count == 1
