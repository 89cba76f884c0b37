"""Labor cost allocation per calendar day.

Both modes share one core. Each employee-day that was worked (actual) or
scheduled (scheduled) is attributed to that exact day:

- hourly: rate x minutes / 60, straight time
- salary, daily rate, recurring contractor: one day of cost
- per-job contractor: manual payments on their payment date (actual only)

Day-based cost is never spread over days with no work. A salaried manager who
works 3 days of a week costs 3 days that week, and the other days carry zero.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, tzinfo

from timepay_engine.calculators.compensation import (
    ConfigurationError,
    daily_cost_cents,
    validate_contract,
)
from timepay_engine.calculators.dates import date_range, local_date
from timepay_engine.calculators.money import minutes_to_hours, pay_for_minutes, round_cents
from timepay_engine.calculators.normalizer import NoiseFilterConfig, normalize_punches
from timepay_engine.calculators.proration import ProrationStrategy
from timepay_engine.calculators.sessions import (
    SessionPolicy,
    payable_sessions,
    reconstruct_sessions,
)
from timepay_engine.config import Settings, get_settings
from timepay_engine.models import (
    CompensationType,
    DailyLaborCost,
    Employee,
    LaborCostBreakdown,
    LaborCostReport,
    ManualPayment,
    PunchEvent,
    ScheduledShift,
)

logger = logging.getLogger(__name__)

# Which DailyLaborCost column each contract type lands in
COST_COLUMNS: dict[CompensationType, str] = {
    CompensationType.HOURLY: "hourly",
    CompensationType.SALARY: "salary",
    CompensationType.DAILY_RATE: "daily_rate",
    CompensationType.CONTRACTOR_RECURRING: "contractor",
    CompensationType.CONTRACTOR_PER_JOB: "contractor",
}


@dataclass(frozen=True)
class _CostEntry:
    day: date
    column: str
    cost_cents: int
    minutes: int = 0


class LaborCostAllocator:
    """Attributes labor cost to days, from schedules or from punches."""

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self.noise_config = NoiseFilterConfig.from_settings(self.settings)
        self.policy = SessionPolicy.from_settings(self.settings)
        self.strategy = ProrationStrategy(self.settings.proration_strategy)

    def scheduled(
        self,
        employees: Sequence[Employee],
        shifts: Iterable[ScheduledShift],
        start: date,
        end: date,
        tz: tzinfo | None = None,
    ) -> LaborCostReport:
        """Forward-looking labor cost from planned shifts."""
        minutes: dict[str, dict[date, int]] = defaultdict(lambda: defaultdict(int))
        for shift in shifts:
            day = local_date(shift.start, tz)
            if start <= day <= end:
                minutes[shift.employee_id][day] += shift.net_minutes
        return self._allocate(employees, minutes, {}, start, end)

    def actual(
        self,
        employees: Sequence[Employee],
        punches: Iterable[PunchEvent],
        start: date,
        end: date,
        manual_payments: Iterable[ManualPayment] = (),
        tz: tzinfo | None = None,
    ) -> LaborCostReport:
        """Backward-looking labor cost from punches and manual payments."""
        sessions = reconstruct_sessions(
            normalize_punches(punches, self.noise_config), tz=tz, policy=self.policy
        )

        minutes: dict[str, dict[date, int]] = defaultdict(lambda: defaultdict(int))
        for session in payable_sessions(sessions, self.policy):
            if start <= session.work_date <= end:
                minutes[session.employee_id][session.work_date] += session.worked_minutes

        payments: dict[str, list[ManualPayment]] = defaultdict(list)
        for payment in manual_payments:
            if start <= payment.date <= end:
                payments[payment.employee_id].append(payment)

        return self._allocate(employees, minutes, payments, start, end)

    def _allocate(
        self,
        employees: Sequence[Employee],
        minutes: dict[str, dict[date, int]],
        payments: dict[str, list[ManualPayment]],
        start: date,
        end: date,
    ) -> LaborCostReport:
        entries: list[tuple[str, _CostEntry]] = []
        skipped: list[str] = []

        for employee in employees:
            try:
                emp_entries = self._employee_entries(
                    employee, minutes.get(employee.id, {}), payments.get(employee.id, [])
                )
            except ConfigurationError as e:
                logger.warning("Skipping labor cost for %s (%s): %s", employee.name, employee.id, e)
                skipped.append(employee.id)
                continue
            entries.extend((employee.id, entry) for entry in emp_entries)

        return LaborCostReport(
            daily_costs=self._daily_costs(entries, start, end),
            breakdown=self._breakdown(entries),
            skipped_employee_ids=tuple(skipped),
        )

    def _employee_entries(
        self,
        employee: Employee,
        minutes_by_day: dict[date, int],
        payments: list[ManualPayment],
    ) -> list[_CostEntry]:
        """Cost entries for one employee. All or nothing on bad configuration."""
        entries: list[_CostEntry] = []

        for day in sorted(minutes_by_day):
            if not employee.was_active_on(day):
                continue
            contract = employee.contract_on(day)
            if contract is None:
                logger.debug("No contract for %s on %s, no cost attributed", employee.id, day)
                continue
            validate_contract(contract, employee.id)

            worked = minutes_by_day[day]
            kind = contract.compensation_type
            if kind == CompensationType.CONTRACTOR_PER_JOB:
                # Cost lands on payment dates below, not on days worked
                continue
            if kind == CompensationType.HOURLY:
                cost = round_cents(pay_for_minutes(contract.hourly_rate_cents, worked))
            else:
                cost = daily_cost_cents(
                    contract, day, self.strategy, self.settings.pay_period_anchor_date
                )
            entries.append(_CostEntry(day, COST_COLUMNS[kind], cost, worked))

        for payment in payments:
            contract = employee.contract_on(payment.date)
            if contract is None or contract.compensation_type != CompensationType.CONTRACTOR_PER_JOB:
                continue
            entries.append(_CostEntry(payment.date, "contractor", payment.amount_cents))

        return entries

    def _daily_costs(
        self, entries: list[tuple[str, _CostEntry]], start: date, end: date
    ) -> tuple[DailyLaborCost, ...]:
        cost: dict[date, dict[str, int]] = defaultdict(lambda: defaultdict(int))
        worked: dict[date, int] = defaultdict(int)
        for _, entry in entries:
            cost[entry.day][entry.column] += entry.cost_cents
            worked[entry.day] += entry.minutes

        return tuple(
            DailyLaborCost(
                date=day,
                hourly_cost_cents=cost[day]["hourly"],
                salary_cost_cents=cost[day]["salary"],
                daily_rate_cost_cents=cost[day]["daily_rate"],
                contractor_cost_cents=cost[day]["contractor"],
                hours_worked=minutes_to_hours(worked[day]),
            )
            for day in date_range(start, end)
        )

    def _breakdown(self, entries: list[tuple[str, _CostEntry]]) -> LaborCostBreakdown:
        cost: dict[str, int] = defaultdict(int)
        employees: dict[str, set[str]] = defaultdict(set)
        days: dict[str, set[tuple[str, date]]] = defaultdict(set)
        hourly_minutes = 0

        for employee_id, entry in entries:
            cost[entry.column] += entry.cost_cents
            employees[entry.column].add(employee_id)
            days[entry.column].add((employee_id, entry.day))
            if entry.column == "hourly":
                hourly_minutes += entry.minutes

        return LaborCostBreakdown(
            hourly_cost_cents=cost["hourly"],
            hourly_hours=minutes_to_hours(hourly_minutes),
            salary_cost_cents=cost["salary"],
            salary_employees=len(employees["salary"]),
            salary_days=len(days["salary"]),
            daily_rate_cost_cents=cost["daily_rate"],
            daily_rate_employees=len(employees["daily_rate"]),
            daily_rate_days=len(days["daily_rate"]),
            contractor_cost_cents=cost["contractor"],
            contractor_employees=len(employees["contractor"]),
            contractor_days=len(days["contractor"]),
        )
