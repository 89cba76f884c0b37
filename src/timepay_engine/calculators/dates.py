"""Calendar helpers shared by the calculators.

All ranges are inclusive of both ends.
"""

from __future__ import annotations

import calendar
from collections.abc import Iterator
from datetime import date, datetime, timedelta, tzinfo

from timepay_engine.models.employee import PayPeriodKind

# First day of some weekly or biweekly pay period (a Monday by default)
DEFAULT_PAY_PERIOD_ANCHOR = date(2024, 1, 1)


def date_range(start: date, end: date) -> Iterator[date]:
    """Yield every date from ``start`` to ``end`` inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def days_inclusive(start: date, end: date) -> int:
    """Number of days in the inclusive range (0 if empty)."""
    if end < start:
        return 0
    return (end - start).days + 1


def iso_week_start(day: date) -> date:
    """Monday of the ISO week containing ``day``."""
    return day - timedelta(days=day.weekday())


def local_date(ts: datetime, tz: tzinfo | None = None) -> date:
    """Calendar date of an instant, converted to ``tz`` when given."""
    if tz is not None and ts.tzinfo is not None:
        return ts.astimezone(tz).date()
    return ts.date()


def clip_range(
    start: date,
    end: date,
    active_from: date | None = None,
    active_until: date | None = None,
) -> tuple[date, date] | None:
    """Intersect ``[start, end]`` with an optional active window.

    Returns None when the intersection is empty.
    """
    lo = max(start, active_from) if active_from else start
    hi = min(end, active_until) if active_until else end
    if hi < lo:
        return None
    return lo, hi


def month_end(day: date) -> date:
    return day.replace(day=calendar.monthrange(day.year, day.month)[1])


def pay_period_bounds(
    day: date, kind: PayPeriodKind, anchor: date = DEFAULT_PAY_PERIOD_ANCHOR
) -> tuple[date, date]:
    """Return the calendar pay period of ``kind`` that contains ``day``.

    - weekly: 7-day blocks starting on ``anchor`` (Monday-Sunday by default)
    - biweekly: 14-day blocks starting on ``anchor``
    - semimonthly: 1st-15th, or 16th-end of month
    - monthly: 1st-end of month
    """
    if kind in (PayPeriodKind.WEEKLY, PayPeriodKind.BIWEEKLY):
        length = 7 if kind == PayPeriodKind.WEEKLY else 14
        start = day - timedelta(days=(day - anchor).days % length)
        return start, start + timedelta(days=length - 1)

    if kind == PayPeriodKind.SEMIMONTHLY:
        if day.day <= 15:
            return day.replace(day=1), day.replace(day=15)
        return day.replace(day=16), month_end(day)

    if kind == PayPeriodKind.MONTHLY:
        return day.replace(day=1), month_end(day)

    raise ValueError(f"Unknown pay period kind: {kind}")
