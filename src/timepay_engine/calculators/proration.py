"""Proration of period-based amounts (salary, recurring contractors).

Two strategies are supported for salary:

- ``average`` divides by the average length of the pay period kind
  (semimonthly 15.22 days, monthly 30.44 days). Annual totals come out right
  but individual periods drift from the nominal salary. This is the default,
  for parity with existing payroll figures.
- ``calendar`` attributes each day to the real pay period containing it and
  divides by that period's actual length, so a fully covered period pays the
  nominal salary exactly. Weekly and biweekly periods are laid out from a
  configurable anchor date, the first day of any one of the employer's periods.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date
from decimal import Decimal
from enum import Enum

from timepay_engine.calculators.dates import (
    DEFAULT_PAY_PERIOD_ANCHOR,
    date_range,
    days_inclusive,
    pay_period_bounds,
)
from timepay_engine.calculators.money import round_cents
from timepay_engine.models.employee import PayPeriodKind


class ProrationStrategy(str, Enum):
    """Divisor strategy for salary proration."""

    AVERAGE = "average"
    CALENDAR = "calendar"


DEFAULT_PRORATION_STRATEGY = ProrationStrategy.AVERAGE

# Average days per pay period kind (365.25 / periods per year)
AVERAGE_DAYS_PER_PERIOD: dict[PayPeriodKind, Decimal] = {
    PayPeriodKind.WEEKLY: Decimal("7"),
    PayPeriodKind.BIWEEKLY: Decimal("14"),
    PayPeriodKind.SEMIMONTHLY: Decimal("15.22"),
    PayPeriodKind.MONTHLY: Decimal("30.44"),
}


def daily_salary_cents(amount_cents: int, kind: PayPeriodKind) -> int:
    """Daily allocation of a per-period salary using the average divisor."""
    return round_cents(Decimal(amount_cents) / AVERAGE_DAYS_PER_PERIOD[kind])


def daily_interval_cents(amount_cents: int, interval_days: Decimal) -> int:
    """Daily allocation of a recurring contractor payment."""
    if interval_days <= 0:
        raise ValueError("interval_days must be greater than 0")
    return round_cents(Decimal(amount_cents) / Decimal(interval_days))


def prorate_salary(
    amount_cents: int,
    kind: PayPeriodKind,
    start: date,
    end: date,
    strategy: ProrationStrategy = DEFAULT_PRORATION_STRATEGY,
    anchor: date = DEFAULT_PAY_PERIOD_ANCHOR,
) -> int:
    """Salary owed for the active days ``start..end`` (inclusive)."""
    days = days_inclusive(start, end)
    if days == 0:
        return 0

    if ProrationStrategy(strategy) == ProrationStrategy.AVERAGE:
        return daily_salary_cents(amount_cents, kind) * days

    # Calendar: group active days by the real pay period that contains them
    covered: dict[tuple[date, date], int] = defaultdict(int)
    for day in date_range(start, end):
        covered[pay_period_bounds(day, kind, anchor)] += 1

    total = 0
    for (p_start, p_end), n in sorted(covered.items()):
        length = days_inclusive(p_start, p_end)
        if n == length:
            total += amount_cents
        else:
            total += round_cents(Decimal(amount_cents) * n / length)
    return total


def salary_cost_for_day(
    amount_cents: int,
    kind: PayPeriodKind,
    day: date,
    strategy: ProrationStrategy = DEFAULT_PRORATION_STRATEGY,
    anchor: date = DEFAULT_PAY_PERIOD_ANCHOR,
) -> int:
    """One day's salary cost, for attributing labor cost to a specific date."""
    if ProrationStrategy(strategy) == ProrationStrategy.AVERAGE:
        return daily_salary_cents(amount_cents, kind)
    p_start, p_end = pay_period_bounds(day, kind, anchor)
    return round_cents(Decimal(amount_cents) / days_inclusive(p_start, p_end))
