"""Payroll report and labor cost models.

These are pure outputs. They are never the source of truth and can always be
recomputed from punches, contracts, and tip allocations.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from uuid import UUID

from timepay_engine.models.employee import CompensationType


@dataclass(frozen=True)
class PayrollLineItem:
    """One report row per employee per period."""

    employee_id: str
    name: str
    position: str = ""
    compensation_type: CompensationType | None = None
    rate_description: str = ""

    regular_hours: Decimal = Decimal("0.00")
    overtime_hours: Decimal = Decimal("0.00")
    regular_pay_cents: int = 0
    overtime_pay_cents: int = 0
    salary_or_daily_rate_pay_cents: int = 0
    contractor_pay_cents: int = 0
    tips_cents: int = 0

    days_worked: int = 0
    anomaly_count: int = 0
    error: str | None = None

    @property
    def gross_pay_cents(self) -> int:
        return (
            self.regular_pay_cents
            + self.overtime_pay_cents
            + self.salary_or_daily_rate_pay_cents
            + self.contractor_pay_cents
        )

    @property
    def total_pay_cents(self) -> int:
        return self.gross_pay_cents + self.tips_cents

    @property
    def has_error(self) -> bool:
        return self.error is not None


@dataclass(frozen=True)
class PayrollTotals:
    """Period totals across all line items."""

    regular_hours: Decimal = Decimal("0.00")
    overtime_hours: Decimal = Decimal("0.00")
    regular_pay_cents: int = 0
    overtime_pay_cents: int = 0
    salary_or_daily_rate_pay_cents: int = 0
    contractor_pay_cents: int = 0
    gross_pay_cents: int = 0
    tips_cents: int = 0
    total_pay_cents: int = 0
    anomaly_count: int = 0

    @classmethod
    def from_line_items(cls, items: list[PayrollLineItem]) -> PayrollTotals:
        return cls(
            regular_hours=sum((i.regular_hours for i in items), Decimal("0.00")),
            overtime_hours=sum((i.overtime_hours for i in items), Decimal("0.00")),
            regular_pay_cents=sum(i.regular_pay_cents for i in items),
            overtime_pay_cents=sum(i.overtime_pay_cents for i in items),
            salary_or_daily_rate_pay_cents=sum(
                i.salary_or_daily_rate_pay_cents for i in items
            ),
            contractor_pay_cents=sum(i.contractor_pay_cents for i in items),
            gross_pay_cents=sum(i.gross_pay_cents for i in items),
            tips_cents=sum(i.tips_cents for i in items),
            total_pay_cents=sum(i.total_pay_cents for i in items),
            anomaly_count=sum(i.anomaly_count for i in items),
        )


@dataclass(frozen=True)
class PayrollReport:
    """Payroll for every included employee over one period."""

    period_start: date
    period_end: date
    line_items: tuple[PayrollLineItem, ...]
    totals: PayrollTotals
    report_id: UUID
    error_count: int = 0

    @property
    def success(self) -> bool:
        return self.error_count == 0

    def line_for(self, employee_id: str) -> PayrollLineItem | None:
        return next((i for i in self.line_items if i.employee_id == employee_id), None)


@dataclass(frozen=True)
class DailyLaborCost:
    """Labor cost attributed to one calendar day, by compensation type."""

    date: date
    hourly_cost_cents: int = 0
    salary_cost_cents: int = 0
    daily_rate_cost_cents: int = 0
    contractor_cost_cents: int = 0
    hours_worked: Decimal = Decimal("0.00")

    @property
    def total_cost_cents(self) -> int:
        return (
            self.hourly_cost_cents
            + self.salary_cost_cents
            + self.daily_rate_cost_cents
            + self.contractor_cost_cents
        )


@dataclass(frozen=True)
class LaborCostBreakdown:
    """Range totals per compensation type."""

    hourly_cost_cents: int = 0
    hourly_hours: Decimal = Decimal("0.00")
    salary_cost_cents: int = 0
    salary_employees: int = 0
    salary_days: int = 0
    daily_rate_cost_cents: int = 0
    daily_rate_employees: int = 0
    daily_rate_days: int = 0
    contractor_cost_cents: int = 0
    contractor_employees: int = 0
    contractor_days: int = 0

    @property
    def total_cost_cents(self) -> int:
        return (
            self.hourly_cost_cents
            + self.salary_cost_cents
            + self.daily_rate_cost_cents
            + self.contractor_cost_cents
        )


@dataclass(frozen=True)
class LaborCostReport:
    """Per-day labor cost with a range breakdown."""

    daily_costs: tuple[DailyLaborCost, ...]
    breakdown: LaborCostBreakdown
    skipped_employee_ids: tuple[str, ...] = field(default_factory=tuple)

    def cost_on(self, day: date) -> DailyLaborCost | None:
        return next((d for d in self.daily_costs if d.date == day), None)
