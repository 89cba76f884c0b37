"""Compensation calculator.

Every contract type is priced by a function registered in ``CALCULATORS``,
keyed by ``CompensationType``. The table is checked against the enum at import
time, so a new compensation type cannot ship without a calculator.

Money rules:
- Hourly pay is computed in exact Decimal and rounded half up once per column.
- Salary and recurring contractor pay round the daily rate to the cent first
  and multiply by whole days.
- Daily-rate pay is the frozen daily amount times distinct days worked.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from timepay_engine.calculators.dates import (
    DEFAULT_PAY_PERIOD_ANCHOR,
    clip_range,
    days_inclusive,
    iso_week_start,
)
from timepay_engine.calculators.money import (
    format_dollars,
    minutes_to_hours,
    pay_for_minutes,
    round_cents,
)
from timepay_engine.calculators.proration import (
    DEFAULT_PRORATION_STRATEGY,
    ProrationStrategy,
    daily_interval_cents,
    prorate_salary,
    salary_cost_for_day,
)
from timepay_engine.calculators.sessions import SessionPolicy, payable_sessions
from timepay_engine.models.employee import (
    CompensationContract,
    CompensationType,
    ManualPayment,
)
from timepay_engine.models.timekeeping import WorkSession

logger = logging.getLogger(__name__)

DEFAULT_OVERTIME_THRESHOLD_HOURS = 40
DEFAULT_OVERTIME_MULTIPLIER = Decimal("1.5")


class ConfigurationError(Exception):
    """Raised when a contract is missing a field its type requires."""

    def __init__(
        self,
        field: str,
        compensation_type: CompensationType | str,
        employee_id: str | None = None,
        reason: str = "is required",
    ):
        self.field = field
        self.compensation_type = CompensationType(compensation_type)
        self.employee_id = employee_id
        self.reason = reason
        msg = f"{self.compensation_type.value} contract field '{field}' {reason}"
        if employee_id:
            msg = f"Employee {employee_id}: {msg}"
        super().__init__(msg)


# Fields each contract type must carry. Numeric ones must also be positive.
REQUIRED_FIELDS: dict[CompensationType, tuple[str, ...]] = {
    CompensationType.HOURLY: ("hourly_rate_cents",),
    CompensationType.SALARY: ("salary_amount_cents", "pay_period_kind"),
    CompensationType.DAILY_RATE: ("daily_rate_amount_cents",),
    CompensationType.CONTRACTOR_RECURRING: (
        "contractor_interval_amount_cents",
        "interval_days",
    ),
    CompensationType.CONTRACTOR_PER_JOB: (),
}

# Every optional field each contract type owns. A contract may only populate
# the fields of its own type.
FIELD_GROUPS: dict[CompensationType, tuple[str, ...]] = {
    CompensationType.HOURLY: ("hourly_rate_cents",),
    CompensationType.SALARY: ("salary_amount_cents", "pay_period_kind"),
    CompensationType.DAILY_RATE: (
        "daily_rate_amount_cents",
        "reference_weekly_amount_cents",
        "reference_days_per_week",
    ),
    CompensationType.CONTRACTOR_RECURRING: (
        "contractor_interval_amount_cents",
        "interval_days",
    ),
    CompensationType.CONTRACTOR_PER_JOB: (),
}


def validate_contract(contract: CompensationContract, employee_id: str | None = None) -> None:
    """Check the contract carries exactly the fields of its type.

    Raises:
        ConfigurationError: naming the first missing, non-positive or foreign
            field
    """
    for name in REQUIRED_FIELDS[contract.compensation_type]:
        value = getattr(contract, name)
        if value is None:
            raise ConfigurationError(name, contract.compensation_type, employee_id)
        if isinstance(value, (int, Decimal)) and value <= 0:
            raise ConfigurationError(
                name, contract.compensation_type, employee_id, reason="must be greater than 0"
            )

    for other_type, names in FIELD_GROUPS.items():
        if other_type == contract.compensation_type:
            continue
        for name in names:
            if getattr(contract, name) is not None:
                raise ConfigurationError(
                    name,
                    contract.compensation_type,
                    employee_id,
                    reason=f"belongs to {other_type.value} contracts",
                )


@dataclass(frozen=True)
class WeeklySplit:
    """Regular and overtime minutes assigned to one session."""

    session: WorkSession
    regular_minutes: int
    overtime_minutes: int


def split_weekly_minutes(
    sessions: Iterable[WorkSession],
    threshold_hours: int = DEFAULT_OVERTIME_THRESHOLD_HOURS,
) -> list[WeeklySplit]:
    """Assign each session's minutes to regular or overtime.

    Weeks are ISO weeks (Monday to Sunday) keyed by ``work_date``. Within a
    week the first ``threshold_hours`` hours in clock-in order are regular.
    """
    threshold = threshold_hours * 60
    by_week: dict[date, list[WorkSession]] = defaultdict(list)
    for session in sessions:
        by_week[iso_week_start(session.work_date)].append(session)

    result: list[WeeklySplit] = []
    for week in sorted(by_week):
        used = 0
        for session in sorted(by_week[week], key=lambda s: s.clock_in):
            regular = max(min(session.worked_minutes, threshold - used), 0)
            overtime = session.worked_minutes - regular
            used += regular
            result.append(WeeklySplit(session, regular, overtime))
    return result


@dataclass(frozen=True)
class HourlyPay:
    """Hourly pay for a period."""

    regular_minutes: int = 0
    overtime_minutes: int = 0
    regular_pay_cents: int = 0
    overtime_pay_cents: int = 0

    @property
    def regular_hours(self) -> Decimal:
        return minutes_to_hours(self.regular_minutes)

    @property
    def overtime_hours(self) -> Decimal:
        return minutes_to_hours(self.overtime_minutes)

    @property
    def total_pay_cents(self) -> int:
        return self.regular_pay_cents + self.overtime_pay_cents


def price_weekly_split(
    split: Iterable[WeeklySplit],
    rate_for: Callable[[WorkSession], int],
    overtime_multiplier: Decimal = DEFAULT_OVERTIME_MULTIPLIER,
) -> HourlyPay:
    """Price a weekly split, looking up the hourly rate per session."""
    regular_minutes = overtime_minutes = 0
    regular_pay = overtime_pay = Decimal(0)
    for item in split:
        rate = rate_for(item.session)
        regular_minutes += item.regular_minutes
        overtime_minutes += item.overtime_minutes
        regular_pay += pay_for_minutes(rate, item.regular_minutes)
        overtime_pay += pay_for_minutes(rate, item.overtime_minutes, overtime_multiplier)

    return HourlyPay(
        regular_minutes=regular_minutes,
        overtime_minutes=overtime_minutes,
        regular_pay_cents=round_cents(regular_pay),
        overtime_pay_cents=round_cents(overtime_pay),
    )


def sessions_in_range(
    sessions: Iterable[WorkSession],
    start: date,
    end: date,
    policy: SessionPolicy | None = None,
) -> list[WorkSession]:
    """Payable sessions whose ``work_date`` falls in ``start..end``."""
    return [s for s in payable_sessions(sessions, policy) if start <= s.work_date <= end]


def worked_days(
    sessions: Iterable[WorkSession],
    start: date,
    end: date,
    policy: SessionPolicy | None = None,
) -> list[date]:
    """Distinct dates with at least one payable session, sorted."""
    return sorted({s.work_date for s in sessions_in_range(sessions, start, end, policy)})


def calculate_hourly_pay(
    contract: CompensationContract,
    sessions: Iterable[WorkSession],
    start: date,
    end: date,
    overtime_threshold_hours: int = DEFAULT_OVERTIME_THRESHOLD_HOURS,
    overtime_multiplier: Decimal = DEFAULT_OVERTIME_MULTIPLIER,
    policy: SessionPolicy | None = None,
) -> HourlyPay:
    """Hourly pay with weekly overtime for sessions dated in the period."""
    validate_contract(contract)
    rate = contract.hourly_rate_cents
    split = split_weekly_minutes(
        sessions_in_range(sessions, start, end, policy), overtime_threshold_hours
    )
    return price_weekly_split(split, lambda _: rate, overtime_multiplier)


def calculate_salary_pay(
    contract: CompensationContract,
    start: date,
    end: date,
    active_from: date | None = None,
    active_until: date | None = None,
    strategy: ProrationStrategy | str | None = None,
    anchor: date | None = None,
) -> int:
    """Prorated salary for the days of ``start..end`` the employee was active."""
    validate_contract(contract)
    window = clip_range(start, end, active_from, active_until)
    if window is None:
        return 0
    return prorate_salary(
        contract.salary_amount_cents,
        contract.pay_period_kind,
        window[0],
        window[1],
        strategy or DEFAULT_PRORATION_STRATEGY,
        anchor or DEFAULT_PAY_PERIOD_ANCHOR,
    )


def calculate_daily_rate_pay(
    contract: CompensationContract,
    sessions: Iterable[WorkSession],
    start: date,
    end: date,
    policy: SessionPolicy | None = None,
) -> int:
    """Frozen daily amount times distinct days worked. Hours do not matter."""
    validate_contract(contract)
    return contract.daily_rate_amount_cents * len(worked_days(sessions, start, end, policy))


def calculate_contractor_recurring_pay(
    contract: CompensationContract,
    start: date,
    end: date,
    active_from: date | None = None,
    active_until: date | None = None,
) -> int:
    """Recurring contractor pay, prorated by day like salary."""
    validate_contract(contract)
    window = clip_range(start, end, active_from, active_until)
    if window is None:
        return 0
    daily = daily_interval_cents(contract.contractor_interval_amount_cents, contract.interval_days)
    return daily * days_inclusive(*window)


def calculate_contractor_per_job_pay(
    contract: CompensationContract,
    payments: Iterable[ManualPayment],
    start: date,
    end: date,
) -> int:
    """Sum of manual payments dated within the period."""
    validate_contract(contract)
    return sum(p.amount_cents for p in payments if start <= p.date <= end)


@dataclass(frozen=True)
class PayContext:
    """Inputs for pricing one contract over one period."""

    contract: CompensationContract
    start: date
    end: date
    sessions: tuple[WorkSession, ...] = ()
    payments: tuple[ManualPayment, ...] = ()
    active_from: date | None = None
    active_until: date | None = None
    strategy: ProrationStrategy | str | None = None
    period_anchor: date | None = None
    overtime_threshold_hours: int = DEFAULT_OVERTIME_THRESHOLD_HOURS
    overtime_multiplier: Decimal = DEFAULT_OVERTIME_MULTIPLIER
    policy: SessionPolicy = field(default_factory=SessionPolicy)


@dataclass(frozen=True)
class CompensationResult:
    """Pay for one contract over one period, by column."""

    compensation_type: CompensationType
    regular_minutes: int = 0
    overtime_minutes: int = 0
    regular_pay_cents: int = 0
    overtime_pay_cents: int = 0
    salary_or_daily_rate_pay_cents: int = 0
    contractor_pay_cents: int = 0
    days_worked: int = 0

    @property
    def gross_pay_cents(self) -> int:
        return (
            self.regular_pay_cents
            + self.overtime_pay_cents
            + self.salary_or_daily_rate_pay_cents
            + self.contractor_pay_cents
        )


def _days_worked(ctx: PayContext) -> int:
    return len(worked_days(ctx.sessions, ctx.start, ctx.end, ctx.policy))


def _hourly(ctx: PayContext) -> CompensationResult:
    pay = calculate_hourly_pay(
        ctx.contract,
        ctx.sessions,
        ctx.start,
        ctx.end,
        ctx.overtime_threshold_hours,
        ctx.overtime_multiplier,
        ctx.policy,
    )
    return CompensationResult(
        compensation_type=CompensationType.HOURLY,
        regular_minutes=pay.regular_minutes,
        overtime_minutes=pay.overtime_minutes,
        regular_pay_cents=pay.regular_pay_cents,
        overtime_pay_cents=pay.overtime_pay_cents,
        days_worked=_days_worked(ctx),
    )


def _salary(ctx: PayContext) -> CompensationResult:
    return CompensationResult(
        compensation_type=CompensationType.SALARY,
        salary_or_daily_rate_pay_cents=calculate_salary_pay(
            ctx.contract,
            ctx.start,
            ctx.end,
            ctx.active_from,
            ctx.active_until,
            ctx.strategy,
            ctx.period_anchor,
        ),
        days_worked=_days_worked(ctx),
    )


def _daily_rate(ctx: PayContext) -> CompensationResult:
    return CompensationResult(
        compensation_type=CompensationType.DAILY_RATE,
        salary_or_daily_rate_pay_cents=calculate_daily_rate_pay(
            ctx.contract, ctx.sessions, ctx.start, ctx.end, ctx.policy
        ),
        days_worked=_days_worked(ctx),
    )


def _contractor_recurring(ctx: PayContext) -> CompensationResult:
    return CompensationResult(
        compensation_type=CompensationType.CONTRACTOR_RECURRING,
        contractor_pay_cents=calculate_contractor_recurring_pay(
            ctx.contract, ctx.start, ctx.end, ctx.active_from, ctx.active_until
        ),
        days_worked=_days_worked(ctx),
    )


def _contractor_per_job(ctx: PayContext) -> CompensationResult:
    return CompensationResult(
        compensation_type=CompensationType.CONTRACTOR_PER_JOB,
        contractor_pay_cents=calculate_contractor_per_job_pay(
            ctx.contract, ctx.payments, ctx.start, ctx.end
        ),
        days_worked=_days_worked(ctx),
    )


CALCULATORS: dict[CompensationType, Callable[[PayContext], CompensationResult]] = {
    CompensationType.HOURLY: _hourly,
    CompensationType.SALARY: _salary,
    CompensationType.DAILY_RATE: _daily_rate,
    CompensationType.CONTRACTOR_RECURRING: _contractor_recurring,
    CompensationType.CONTRACTOR_PER_JOB: _contractor_per_job,
}

_unhandled = (
    set(CompensationType) - set(CALCULATORS)
    | set(CompensationType) - set(REQUIRED_FIELDS)
    | set(CompensationType) - set(FIELD_GROUPS)
)
if _unhandled:
    raise RuntimeError(
        f"No calculator registered for compensation types: {sorted(t.value for t in _unhandled)}"
    )


def calculate_pay(
    contract: CompensationContract,
    start: date,
    end: date,
    sessions: Iterable[WorkSession] = (),
    payments: Iterable[ManualPayment] = (),
    active_from: date | None = None,
    active_until: date | None = None,
    strategy: ProrationStrategy | str | None = None,
    period_anchor: date | None = None,
    overtime_threshold_hours: int = DEFAULT_OVERTIME_THRESHOLD_HOURS,
    overtime_multiplier: Decimal = DEFAULT_OVERTIME_MULTIPLIER,
    policy: SessionPolicy | None = None,
) -> CompensationResult:
    """Price one contract over ``start..end``.

    Args:
        contract: Contract in force for the whole range
        start: First day of the range
        end: Last day of the range (inclusive)
        sessions: The employee's work sessions (any range; filtered here)
        payments: The employee's manual payments (per-job contractors)
        active_from: Hire date, clips salary and recurring contractor days
        active_until: Termination date, clips likewise
        strategy: Salary proration strategy
        period_anchor: First day of any weekly or biweekly pay period, for
            calendar proration
        overtime_threshold_hours: Weekly regular-hours cap for hourly pay
        overtime_multiplier: Overtime premium for hourly pay
        policy: Which sessions count toward pay

    Raises:
        ConfigurationError: If the contract misses a required field
    """
    ctx = PayContext(
        contract=contract,
        start=start,
        end=end,
        sessions=tuple(sessions),
        payments=tuple(payments),
        active_from=active_from,
        active_until=active_until,
        strategy=strategy,
        period_anchor=period_anchor,
        overtime_threshold_hours=overtime_threshold_hours,
        overtime_multiplier=overtime_multiplier,
        policy=policy or SessionPolicy(),
    )
    return CALCULATORS[contract.compensation_type](ctx)


def daily_cost_cents(
    contract: CompensationContract,
    day: date,
    strategy: ProrationStrategy | str | None = None,
    anchor: date | None = None,
) -> int:
    """One day's cost for day-based contracts. Hourly and per-job return 0."""
    validate_contract(contract)
    kind = contract.compensation_type
    if kind == CompensationType.SALARY:
        return salary_cost_for_day(
            contract.salary_amount_cents,
            contract.pay_period_kind,
            day,
            strategy or DEFAULT_PRORATION_STRATEGY,
            anchor or DEFAULT_PAY_PERIOD_ANCHOR,
        )
    if kind == CompensationType.DAILY_RATE:
        return contract.daily_rate_amount_cents
    if kind == CompensationType.CONTRACTOR_RECURRING:
        return daily_interval_cents(
            contract.contractor_interval_amount_cents, contract.interval_days
        )
    return 0


def describe_rate(contract: CompensationContract | None) -> str:
    """Human-readable rate for report rows, e.g. ``$15.00/hr``."""
    if contract is None:
        return ""
    kind = contract.compensation_type
    if kind == CompensationType.HOURLY and contract.hourly_rate_cents is not None:
        return f"${format_dollars(contract.hourly_rate_cents)}/hr"
    if kind == CompensationType.SALARY and contract.salary_amount_cents is not None:
        period = contract.pay_period_kind.value if contract.pay_period_kind else "period"
        return f"${format_dollars(contract.salary_amount_cents)}/{period}"
    if kind == CompensationType.DAILY_RATE and contract.daily_rate_amount_cents is not None:
        return f"${format_dollars(contract.daily_rate_amount_cents)}/day"
    if (
        kind == CompensationType.CONTRACTOR_RECURRING
        and contract.contractor_interval_amount_cents is not None
        and contract.interval_days is not None
    ):
        return (
            f"${format_dollars(contract.contractor_interval_amount_cents)}"
            f"/{contract.interval_days.normalize():f} days"
        )
    if kind == CompensationType.CONTRACTOR_PER_JOB:
        return "per job"
    return ""
