"""Payroll period aggregator - builds a payroll report for a pay period."""

from __future__ import annotations

import hashlib
import json
import logging
from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import asdict, dataclass
from datetime import date, tzinfo
from typing import Any
from uuid import UUID

from timepay_engine.calculators.compensation import (
    ConfigurationError,
    calculate_pay,
    describe_rate,
    price_weekly_split,
    sessions_in_range,
    split_weekly_minutes,
    validate_contract,
)
from timepay_engine.calculators.dates import clip_range
from timepay_engine.calculators.money import minutes_to_hours
from timepay_engine.calculators.normalizer import NoiseFilterConfig, normalize_punches
from timepay_engine.calculators.proration import ProrationStrategy
from timepay_engine.calculators.sessions import SessionPolicy, reconstruct_sessions
from timepay_engine.config import Settings, get_settings
from timepay_engine.models import (
    CompensationContract,
    CompensationType,
    Employee,
    ManualPayment,
    PayrollLineItem,
    PayrollReport,
    PayrollTotals,
    PunchEvent,
    TipPayout,
    TipPoolAllocation,
    TipPoolStatus,
    WorkSession,
)

logger = logging.getLogger(__name__)


class MissingContractError(Exception):
    """Raised when an employee has pay activity but no contract in force."""

    def __init__(self, employee_id: str, day: date):
        self.employee_id = employee_id
        self.day = day
        super().__init__(f"Employee {employee_id} has no compensation contract in effect on {day}")


@dataclass(frozen=True)
class ContractSegment:
    """A slice of the period governed by one contract (or none)."""

    start: date
    end: date
    contract: CompensationContract | None


def contract_segments(employee: Employee, start: date, end: date) -> list[ContractSegment]:
    """Split ``start..end`` at every contract change.

    Adjacent days governed by the same contract share one segment.
    """
    boundaries = sorted(
        {
            c.effective_from
            for c in employee.contracts
            if c.effective_from is not None and start < c.effective_from <= end
        }
    )
    starts = [start, *boundaries]
    segments: list[ContractSegment] = []
    for i, seg_start in enumerate(starts):
        seg_end = end if i + 1 == len(starts) else date.fromordinal(starts[i + 1].toordinal() - 1)
        segments.append(ContractSegment(seg_start, seg_end, employee.contract_on(seg_start)))
    return segments


@dataclass
class _EmployeeInputs:
    """Everything the aggregator received for one employee."""

    punches: list[PunchEvent]
    payments: list[ManualPayment]
    tip_share_cents: int = 0
    payout_cents: int = 0
    has_tip_activity: bool = False


class PayrollAggregator:
    """Builds payroll reports for a pay period.

    Stateless: a report is recomputed from punches, contracts, and tip
    allocations every time, and identical inputs always yield an identical
    report (including ``report_id``).
    """

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self.noise_config = NoiseFilterConfig.from_settings(self.settings)
        self.policy = SessionPolicy.from_settings(self.settings)
        self.strategy = ProrationStrategy(self.settings.proration_strategy)

    def build_report(
        self,
        employees: Sequence[Employee],
        punches: Iterable[PunchEvent],
        tip_allocations: Iterable[TipPoolAllocation],
        period_start: date,
        period_end: date,
        manual_payments: Iterable[ManualPayment] = (),
        tip_payouts: Iterable[TipPayout] = (),
        tz: tzinfo | None = None,
    ) -> PayrollReport:
        """Compute one line per employee and period totals.

        Raises:
            ValueError: If the period ends before it starts
        """
        if period_end < period_start:
            raise ValueError(f"Period end {period_end} is before period start {period_start}")

        punches = list(punches)
        manual_payments = list(manual_payments)
        tip_allocations = list(tip_allocations)
        tip_payouts = list(tip_payouts)

        inputs = self._group_inputs(
            punches, manual_payments, tip_allocations, tip_payouts, period_start, period_end
        )

        line_items: list[PayrollLineItem] = []
        for employee in employees:
            emp_inputs = inputs.get(employee.id) or _EmployeeInputs(punches=[], payments=[])
            sessions = reconstruct_sessions(
                normalize_punches(emp_inputs.punches, self.noise_config),
                tz=tz,
                policy=self.policy,
            )
            in_period = [s for s in sessions if period_start <= s.work_date <= period_end]
            payments = [p for p in emp_inputs.payments if period_start <= p.date <= period_end]

            if not (
                employee.was_active_during(period_start, period_end)
                or in_period
                or payments
                or emp_inputs.has_tip_activity
            ):
                continue

            try:
                item = self._build_line_item(
                    employee, in_period, payments, emp_inputs, period_start, period_end
                )
            except (ConfigurationError, MissingContractError) as e:
                logger.warning("Payroll line for %s (%s) failed: %s", employee.name, employee.id, e)
                item = PayrollLineItem(
                    employee_id=employee.id,
                    name=employee.name,
                    position=employee.position,
                    compensation_type=employee.current_contract_type,
                    anomaly_count=sum(1 for s in in_period if s.has_anomalies),
                    error=str(e),
                )
            line_items.append(item)

        line_items.sort(key=lambda i: (i.name, i.employee_id))
        error_count = sum(1 for i in line_items if i.has_error)

        report = PayrollReport(
            period_start=period_start,
            period_end=period_end,
            line_items=tuple(line_items),
            totals=PayrollTotals.from_line_items(line_items),
            report_id=self._generate_report_id(
                period_start,
                period_end,
                self._compute_inputs_fingerprint(
                    employees, punches, tip_allocations, manual_payments, tip_payouts
                ),
            ),
            error_count=error_count,
        )
        logger.info(
            "Built payroll report %s for %s..%s: %d employees, %d errors, gross %d cents",
            report.report_id,
            period_start,
            period_end,
            len(line_items),
            error_count,
            report.totals.gross_pay_cents,
        )
        return report

    def _group_inputs(
        self,
        punches: list[PunchEvent],
        payments: list[ManualPayment],
        allocations: list[TipPoolAllocation],
        payouts: list[TipPayout],
        start: date,
        end: date,
    ) -> dict[str, _EmployeeInputs]:
        grouped: dict[str, _EmployeeInputs] = defaultdict(
            lambda: _EmployeeInputs(punches=[], payments=[])
        )
        for punch in punches:
            grouped[punch.employee_id].punches.append(punch)
        for payment in payments:
            grouped[payment.employee_id].payments.append(payment)

        for allocation in allocations:
            # Only approved pools are payable
            if allocation.status != TipPoolStatus.APPROVED:
                continue
            if not start <= allocation.pool_date <= end:
                continue
            for share in allocation.shares:
                emp = grouped[share.employee_id]
                emp.tip_share_cents += share.share_amount_cents
                emp.has_tip_activity = True

        for payout in payouts:
            if start <= payout.date <= end:
                emp = grouped[payout.employee_id]
                emp.payout_cents += payout.amount_cents
                emp.has_tip_activity = True

        return dict(grouped)

    def _build_line_item(
        self,
        employee: Employee,
        sessions: list[WorkSession],
        payments: list[ManualPayment],
        inputs: _EmployeeInputs,
        start: date,
        end: date,
    ) -> PayrollLineItem:
        """Price every contract segment and fold them into one row."""
        segments = contract_segments(employee, start, end)
        if all(seg.contract is None for seg in segments):
            raise MissingContractError(employee.id, start)

        hourly_sessions: list[WorkSession] = []
        salary_or_daily = 0
        contractor = 0

        for seg in segments:
            seg_sessions = [s for s in sessions if seg.start <= s.work_date <= seg.end]
            seg_payments = [p for p in payments if seg.start <= p.date <= seg.end]

            if seg.contract is None:
                if seg_sessions or seg_payments:
                    raise MissingContractError(employee.id, seg.start)
                continue

            validate_contract(seg.contract, employee.id)

            if seg.contract.compensation_type == CompensationType.HOURLY:
                hourly_sessions.extend(seg_sessions)
                continue

            result = calculate_pay(
                seg.contract,
                seg.start,
                seg.end,
                sessions=seg_sessions,
                payments=seg_payments,
                active_from=employee.hire_date,
                active_until=employee.termination_date,
                strategy=self.strategy,
                period_anchor=self.settings.pay_period_anchor_date,
                policy=self.policy,
            )
            salary_or_daily += result.salary_or_daily_rate_pay_cents
            contractor += result.contractor_pay_cents

        # Overtime runs over whole weeks across hourly segments; each session
        # is priced at the rate in force on its own work date.
        hourly = price_weekly_split(
            split_weekly_minutes(
                sessions_in_range(hourly_sessions, start, end, self.policy),
                self.settings.weekly_overtime_threshold_hours,
            ),
            lambda s: employee.contract_on(s.work_date).hourly_rate_cents,
            self.settings.overtime_multiplier,
        )

        worked = sessions_in_range(sessions, start, end, self.policy)

        # Terms shown on the row are those in force at the end of the period
        # (or the last day the employee was active)
        window = clip_range(start, end, employee.hire_date, employee.termination_date)
        shown = employee.contract_on(window[1] if window else end) or next(
            seg.contract for seg in reversed(segments) if seg.contract is not None
        )

        return PayrollLineItem(
            employee_id=employee.id,
            name=employee.name,
            position=employee.position,
            compensation_type=shown.compensation_type,
            rate_description=describe_rate(shown),
            regular_hours=minutes_to_hours(hourly.regular_minutes),
            overtime_hours=minutes_to_hours(hourly.overtime_minutes),
            regular_pay_cents=hourly.regular_pay_cents,
            overtime_pay_cents=hourly.overtime_pay_cents,
            salary_or_daily_rate_pay_cents=salary_or_daily,
            contractor_pay_cents=contractor,
            tips_cents=inputs.tip_share_cents - inputs.payout_cents,
            days_worked=len({s.work_date for s in worked}),
            anomaly_count=sum(1 for s in sessions if s.has_anomalies),
        )

    def _generate_report_id(
        self, period_start: date, period_end: date, inputs_fingerprint: str
    ) -> UUID:
        """Generate deterministic report ID."""
        data = {
            "period_start": str(period_start),
            "period_end": str(period_end),
            "engine_version": self.settings.engine_version,
            "proration_strategy": self.strategy.value,
            "pay_period_anchor_date": str(self.settings.pay_period_anchor_date),
            "inputs_fingerprint": inputs_fingerprint,
        }
        json_str = json.dumps(data, sort_keys=True)
        hash_bytes = hashlib.sha256(json_str.encode()).digest()
        return UUID(bytes=hash_bytes[:16])

    def _compute_inputs_fingerprint(
        self,
        employees: Sequence[Employee],
        punches: list[PunchEvent],
        allocations: list[TipPoolAllocation],
        payments: list[ManualPayment],
        payouts: list[TipPayout],
    ) -> str:
        """Compute fingerprint of all inputs, independent of their order."""
        inputs_data: dict[str, Any] = {
            "employees": sorted((asdict(e) for e in employees), key=lambda d: d["id"]),
            "punches": sorted(
                [p.employee_id, p.timestamp.isoformat(), p.kind.value, p.punch_id or ""]
                for p in punches
            ),
            "allocations": sorted(
                [
                    a.pool_id,
                    str(a.pool_date),
                    a.status.value,
                    sorted([s.employee_id, s.share_amount_cents] for s in a.shares),
                ]
                for a in allocations
            ),
            "payments": sorted([p.employee_id, str(p.date), p.amount_cents] for p in payments),
            "payouts": sorted([p.employee_id, str(p.date), p.amount_cents] for p in payouts),
        }
        json_str = json.dumps(inputs_data, sort_keys=True, default=_json_default)
        return hashlib.sha256(json_str.encode()).hexdigest()[:32]


def _json_default(value: Any) -> str:
    # Enums, dates and Decimals inside employee records
    return getattr(value, "value", None) or str(value)
