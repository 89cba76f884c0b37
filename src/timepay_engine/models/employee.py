"""Employee and compensation contract models."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum


class CompensationType(str, Enum):
    """Compensation contract discriminant."""

    HOURLY = "hourly"
    SALARY = "salary"
    DAILY_RATE = "daily_rate"
    CONTRACTOR_RECURRING = "contractor_recurring"
    CONTRACTOR_PER_JOB = "contractor_per_job"


class PayPeriodKind(str, Enum):
    """Salary pay period kinds."""

    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    SEMIMONTHLY = "semimonthly"
    MONTHLY = "monthly"


class EmployeeStatus(str, Enum):
    """Current directory status (not used for historical filtering)."""

    ACTIVE = "active"
    INACTIVE = "inactive"


@dataclass(frozen=True)
class CompensationContract:
    """Compensation contract as a tagged record.

    ``compensation_type`` selects which of the optional field groups must be
    populated:

    - hourly: ``hourly_rate_cents``
    - salary: ``salary_amount_cents`` + ``pay_period_kind``
    - daily_rate: ``daily_rate_amount_cents`` (derived once from
      ``reference_weekly_amount_cents`` / ``reference_days_per_week``)
    - contractor_recurring: ``contractor_interval_amount_cents`` + ``interval_days``
    - contractor_per_job: nothing; pay comes from manual payment records

    A change of terms is a new contract with a later ``effective_from``, never
    an edit of an existing one.
    """

    compensation_type: CompensationType
    effective_from: date | None = None

    # hourly
    hourly_rate_cents: int | None = None

    # salary
    salary_amount_cents: int | None = None
    pay_period_kind: PayPeriodKind | None = None

    # daily_rate
    daily_rate_amount_cents: int | None = None
    reference_weekly_amount_cents: int | None = None
    reference_days_per_week: int | None = None

    # contractor_recurring
    contractor_interval_amount_cents: int | None = None
    interval_days: Decimal | None = None

    @classmethod
    def hourly(cls, rate_cents: int, effective_from: date | None = None) -> CompensationContract:
        return cls(
            compensation_type=CompensationType.HOURLY,
            hourly_rate_cents=rate_cents,
            effective_from=effective_from,
        )

    @classmethod
    def salary(
        cls,
        amount_cents: int,
        pay_period_kind: PayPeriodKind,
        effective_from: date | None = None,
    ) -> CompensationContract:
        return cls(
            compensation_type=CompensationType.SALARY,
            salary_amount_cents=amount_cents,
            pay_period_kind=PayPeriodKind(pay_period_kind),
            effective_from=effective_from,
        )

    @classmethod
    def daily_rate(
        cls,
        reference_weekly_amount_cents: int,
        reference_days_per_week: int,
        effective_from: date | None = None,
    ) -> CompensationContract:
        """Create a daily-rate contract, freezing the derived daily amount.

        The daily amount is computed once here (weekly / days, rounded half up
        to the cent) and stored, so later edits to the weekly reference never
        change pay already computed under this contract.
        """
        if reference_days_per_week <= 0:
            raise ValueError("reference_days_per_week must be greater than 0")
        daily = (
            Decimal(reference_weekly_amount_cents) / Decimal(reference_days_per_week)
        ).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
        return cls(
            compensation_type=CompensationType.DAILY_RATE,
            daily_rate_amount_cents=int(daily),
            reference_weekly_amount_cents=reference_weekly_amount_cents,
            reference_days_per_week=reference_days_per_week,
            effective_from=effective_from,
        )

    @classmethod
    def contractor_recurring(
        cls,
        interval_amount_cents: int,
        interval_days: Decimal | int,
        effective_from: date | None = None,
    ) -> CompensationContract:
        return cls(
            compensation_type=CompensationType.CONTRACTOR_RECURRING,
            contractor_interval_amount_cents=interval_amount_cents,
            interval_days=Decimal(str(interval_days)),
            effective_from=effective_from,
        )

    @classmethod
    def contractor_per_job(cls, effective_from: date | None = None) -> CompensationContract:
        return cls(
            compensation_type=CompensationType.CONTRACTOR_PER_JOB,
            effective_from=effective_from,
        )


@dataclass(frozen=True)
class Employee:
    """Employee as supplied by the employee directory."""

    id: str
    name: str
    position: str = ""
    status: EmployeeStatus = EmployeeStatus.ACTIVE
    hire_date: date | None = None
    termination_date: date | None = None
    tip_eligible: bool | None = None  # None = default rule by compensation type
    contracts: tuple[CompensationContract, ...] = ()

    def contract_on(self, day: date) -> CompensationContract | None:
        """Return the contract in force on ``day``.

        The latest contract whose ``effective_from`` is on or before ``day``
        wins; a contract without ``effective_from`` applies from the start.
        """
        best: CompensationContract | None = None
        best_from = date.min
        for contract in self.contracts:
            starts = contract.effective_from or date.min
            if starts > day:
                continue
            if best is None or starts >= best_from:
                best = contract
                best_from = starts
        return best

    def was_active_on(self, day: date) -> bool:
        """Check employment on a given day from hire/termination dates."""
        if self.hire_date is not None and day < self.hire_date:
            return False
        if self.termination_date is not None and day > self.termination_date:
            return False
        return True

    def was_active_during(self, start: date, end: date) -> bool:
        """Check whether employment overlaps the inclusive range."""
        if self.hire_date is not None and self.hire_date > end:
            return False
        if self.termination_date is not None and self.termination_date < start:
            return False
        return True

    @property
    def current_contract_type(self) -> CompensationType | None:
        if not self.contracts:
            return None
        return self.contract_on(date.max).compensation_type  # type: ignore[union-attr]


@dataclass(frozen=True)
class ManualPayment:
    """A manually recorded payment (per-job contractors)."""

    employee_id: str
    date: date
    amount_cents: int
    description: str | None = None


@dataclass(frozen=True)
class TipPayout:
    """Tips already paid out to an employee (e.g. cash at end of shift)."""

    employee_id: str
    date: date
    amount_cents: int
