"""Builders for punches, sessions and employees used across the tests."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from decimal import Decimal

from timepay_engine.config import Settings
from timepay_engine.models import PunchEvent, PunchKind, WorkSession

# 2024-01-01 is a Monday
MONDAY = date(2024, 1, 1)


def day(offset: int) -> date:
    """The date ``offset`` days after MONDAY."""
    return MONDAY + timedelta(days=offset)


def at(on: date, hhmm: str, seconds: int = 0) -> datetime:
    hours, minutes = (int(x) for x in hhmm.split(":"))
    return datetime.combine(on, time(hours, minutes, seconds))


def punch(
    employee_id: str,
    on: date,
    hhmm: str,
    kind: PunchKind,
    seconds: int = 0,
    punch_id: str | None = None,
) -> PunchEvent:
    return PunchEvent(
        employee_id=employee_id,
        timestamp=at(on, hhmm, seconds),
        kind=kind,
        punch_id=punch_id,
    )


def shift(
    employee_id: str,
    on: date,
    start: str,
    end: str,
    breaks: tuple[tuple[str, str], ...] = (),
) -> list[PunchEvent]:
    """Punches for one clean shift. An end before the start means next day."""
    clock_in = at(on, start)
    clock_out = at(on, end)
    if clock_out <= clock_in:
        clock_out += timedelta(days=1)

    events = [PunchEvent(employee_id, clock_in, PunchKind.CLOCK_IN)]
    for break_start, break_end in breaks:
        events.append(PunchEvent(employee_id, at(on, break_start), PunchKind.BREAK_START))
        events.append(PunchEvent(employee_id, at(on, break_end), PunchKind.BREAK_END))
    events.append(PunchEvent(employee_id, clock_out, PunchKind.CLOCK_OUT))
    return events


def hours_shift(employee_id: str, on: date, hours: int, start: str = "08:00") -> list[PunchEvent]:
    """A shift of whole hours with no break."""
    clock_in = at(on, start)
    return [
        PunchEvent(employee_id, clock_in, PunchKind.CLOCK_IN),
        PunchEvent(employee_id, clock_in + timedelta(hours=hours), PunchKind.CLOCK_OUT),
    ]


def worked(employee_id: str, on: date, minutes: int, start: str = "09:00") -> WorkSession:
    """A complete session with no breaks."""
    clock_in = at(on, start)
    return WorkSession(
        employee_id=employee_id,
        clock_in=clock_in,
        clock_out=clock_in + timedelta(minutes=minutes),
        work_date=on,
        total_minutes=minutes,
        worked_minutes=minutes,
    )


def make_settings(**overrides) -> Settings:
    values = dict(
        engine_version="1.0.0-test",
        host="127.0.0.1",
        port=8000,
        debug=False,
        log_level="INFO",
        proration_strategy="average",
        pay_period_anchor_date=MONDAY,
        burst_window_seconds=60,
        duplicate_window_seconds=60,
        break_cancel_window_seconds=120,
        short_session_minutes=3,
        exclude_abnormally_short=False,
        weekly_overtime_threshold_hours=40,
        overtime_multiplier=Decimal("1.5"),
    )
    values.update(overrides)
    return Settings(**values)
