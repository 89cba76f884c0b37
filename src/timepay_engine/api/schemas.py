"""Pydantic schemas for API request/response models.

All money is integer cents. Request schemas convert to the engine's
dataclasses with ``to_domain()``; response schemas are built from them.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, field_validator

from timepay_engine.models import (
    CompensationContract,
    CompensationType,
    ContributionPool,
    DailyHours,
    Employee,
    EmployeeStatus,
    ManualPayment,
    NoiseReason,
    NormalizedPunch,
    ParticipantShare,
    PayPeriodKind,
    PoolWorker,
    PunchEvent,
    PunchKind,
    ScheduledShift,
    ServerEarning,
    SessionAnomaly,
    TipParticipant,
    TipPayout,
    TipPoolAllocation,
    TipPoolMethod,
    TipPoolStatus,
    WorkSession,
)


class TimezoneRequest(BaseModel):
    """Base for requests that take an IANA timezone for local work dates."""

    timezone: str | None = None

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value: str | None) -> str | None:
        if value is not None:
            try:
                ZoneInfo(value)
            except (ZoneInfoNotFoundError, ValueError):
                raise ValueError(f"Unknown timezone '{value}'")
        return value

    def tzinfo(self) -> ZoneInfo | None:
        return ZoneInfo(self.timezone) if self.timezone else None


# ============================================================================
# Input schemas
# ============================================================================


class PunchSchema(BaseModel):
    """A raw clock event."""

    employee_id: str
    timestamp: datetime
    kind: PunchKind
    note: str | None = None
    punch_id: str | None = None

    def to_domain(self) -> PunchEvent:
        return PunchEvent(
            employee_id=self.employee_id,
            timestamp=self.timestamp,
            kind=self.kind,
            note=self.note,
            punch_id=self.punch_id,
        )


class ContractSchema(BaseModel):
    """A compensation contract. Fields required depend on the type."""

    compensation_type: CompensationType
    effective_from: date | None = None
    hourly_rate_cents: int | None = None
    salary_amount_cents: int | None = None
    pay_period_kind: PayPeriodKind | None = None
    daily_rate_amount_cents: int | None = None
    reference_weekly_amount_cents: int | None = None
    reference_days_per_week: int | None = None
    contractor_interval_amount_cents: int | None = None
    interval_days: Decimal | None = None

    def to_domain(self) -> CompensationContract:
        if (
            self.compensation_type == CompensationType.DAILY_RATE
            and self.daily_rate_amount_cents is None
            and self.reference_weekly_amount_cents is not None
            and self.reference_days_per_week
        ):
            return CompensationContract.daily_rate(
                self.reference_weekly_amount_cents,
                self.reference_days_per_week,
                effective_from=self.effective_from,
            )
        return CompensationContract(**self.model_dump())


class EmployeeSchema(BaseModel):
    """An employee with contract history."""

    id: str
    name: str
    position: str = ""
    status: EmployeeStatus = EmployeeStatus.ACTIVE
    hire_date: date | None = None
    termination_date: date | None = None
    tip_eligible: bool | None = None
    contracts: list[ContractSchema] = Field(default_factory=list)

    def to_domain(self) -> Employee:
        return Employee(
            id=self.id,
            name=self.name,
            position=self.position,
            status=self.status,
            hire_date=self.hire_date,
            termination_date=self.termination_date,
            tip_eligible=self.tip_eligible,
            contracts=tuple(c.to_domain() for c in self.contracts),
        )


class ManualPaymentSchema(BaseModel):
    employee_id: str
    date: date
    amount_cents: int
    description: str | None = None

    def to_domain(self) -> ManualPayment:
        return ManualPayment(**self.model_dump())


class TipPayoutSchema(BaseModel):
    employee_id: str
    date: date
    amount_cents: int

    def to_domain(self) -> TipPayout:
        return TipPayout(**self.model_dump())


class ShareSchema(BaseModel):
    """One participant's share of a tip pool."""

    model_config = ConfigDict(from_attributes=True)

    employee_id: str
    share_amount_cents: int
    basis_value: Decimal = Decimal("0")

    def to_domain(self) -> ParticipantShare:
        return ParticipantShare(**self.model_dump())


class TipAllocationSchema(BaseModel):
    """A tip pool allocation as stored by the caller."""

    pool_id: str
    pool_date: date
    total_amount_cents: int
    method: TipPoolMethod
    shares: list[ShareSchema]
    status: TipPoolStatus = TipPoolStatus.DRAFT

    def to_domain(self) -> TipPoolAllocation:
        return TipPoolAllocation(
            pool_id=self.pool_id,
            pool_date=self.pool_date,
            total_amount_cents=self.total_amount_cents,
            method=self.method,
            shares=tuple(s.to_domain() for s in self.shares),
            status=self.status,
        )


class ShiftSchema(BaseModel):
    employee_id: str
    start: datetime
    end: datetime
    break_minutes: int = Field(default=0, ge=0)

    def to_domain(self) -> ScheduledShift:
        return ScheduledShift(**self.model_dump())


# ============================================================================
# Punch / session schemas
# ============================================================================


class SessionsRequest(TimezoneRequest):
    """Schema for rebuilding sessions from raw punches."""

    punches: list[PunchSchema]


class NormalizedPunchResponse(BaseModel):
    employee_id: str
    timestamp: datetime
    kind: PunchKind
    punch_id: str | None = None
    is_noise: bool
    noise_reason: NoiseReason | None = None

    @classmethod
    def from_domain(cls, punch: NormalizedPunch) -> "NormalizedPunchResponse":
        return cls(
            employee_id=punch.employee_id,
            timestamp=punch.timestamp,
            kind=punch.kind,
            punch_id=punch.event.punch_id,
            is_noise=punch.is_noise,
            noise_reason=punch.noise_reason,
        )


class BreakResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    start: datetime
    end: datetime | None = None
    duration_minutes: int


class SessionResponse(BaseModel):
    """Schema for a reconstructed work session."""

    employee_id: str
    work_date: date
    clock_in: datetime
    clock_out: datetime | None = None
    breaks: list[BreakResponse]
    total_minutes: int
    break_minutes: int
    worked_minutes: int
    anomalies: list[SessionAnomaly]

    @classmethod
    def from_domain(cls, session: WorkSession) -> "SessionResponse":
        return cls(
            employee_id=session.employee_id,
            work_date=session.work_date,
            clock_in=session.clock_in,
            clock_out=session.clock_out,
            breaks=[BreakResponse.model_validate(b) for b in session.breaks],
            total_minutes=session.total_minutes,
            break_minutes=session.break_minutes,
            worked_minutes=session.worked_minutes,
            anomalies=sorted(session.anomalies, key=lambda a: a.value),
        )


class DailyHoursResponse(BaseModel):
    employee_id: str
    work_date: date
    worked_minutes: int
    break_minutes: int
    total_minutes: int
    punch_count: int
    session_count: int

    @classmethod
    def from_domain(cls, day: DailyHours) -> "DailyHoursResponse":
        return cls(
            employee_id=day.employee_id,
            work_date=day.work_date,
            worked_minutes=day.worked_minutes,
            break_minutes=day.break_minutes,
            total_minutes=day.total_minutes,
            punch_count=day.punch_count,
            session_count=len(day.sessions),
        )


class SessionsResponse(BaseModel):
    """Schema for session reconstruction results."""

    normalized: list[NormalizedPunchResponse]
    sessions: list[SessionResponse]
    daily_hours: list[DailyHoursResponse]
    noise_count: int
    noise_by_reason: dict[str, int]
    anomaly_count: int


# ============================================================================
# Payroll schemas
# ============================================================================


class PayrollReportRequest(TimezoneRequest):
    """Schema for building a payroll report."""

    period_start: date
    period_end: date
    employees: list[EmployeeSchema]
    punches: list[PunchSchema] = Field(default_factory=list)
    tip_allocations: list[TipAllocationSchema] = Field(default_factory=list)
    manual_payments: list[ManualPaymentSchema] = Field(default_factory=list)
    tip_payouts: list[TipPayoutSchema] = Field(default_factory=list)


class PayrollLineItemResponse(BaseModel):
    """Schema for one payroll report row."""

    model_config = ConfigDict(from_attributes=True)

    employee_id: str
    name: str
    position: str
    compensation_type: CompensationType | None = None
    rate_description: str
    regular_hours: Decimal
    overtime_hours: Decimal
    regular_pay_cents: int
    overtime_pay_cents: int
    salary_or_daily_rate_pay_cents: int
    contractor_pay_cents: int
    gross_pay_cents: int
    tips_cents: int
    total_pay_cents: int
    days_worked: int
    anomaly_count: int
    error: str | None = None


class PayrollTotalsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    regular_hours: Decimal
    overtime_hours: Decimal
    regular_pay_cents: int
    overtime_pay_cents: int
    salary_or_daily_rate_pay_cents: int
    contractor_pay_cents: int
    gross_pay_cents: int
    tips_cents: int
    total_pay_cents: int
    anomaly_count: int


class PayrollReportResponse(BaseModel):
    """Schema for a payroll report."""

    model_config = ConfigDict(from_attributes=True)

    report_id: UUID
    period_start: date
    period_end: date
    line_items: list[PayrollLineItemResponse]
    totals: PayrollTotalsResponse
    error_count: int
    success: bool


# ============================================================================
# Labor cost schemas
# ============================================================================


class ActualLaborCostRequest(TimezoneRequest):
    """Schema for labor cost from punches."""

    start: date
    end: date
    employees: list[EmployeeSchema]
    punches: list[PunchSchema] = Field(default_factory=list)
    manual_payments: list[ManualPaymentSchema] = Field(default_factory=list)


class ScheduledLaborCostRequest(TimezoneRequest):
    """Schema for labor cost from planned shifts."""

    start: date
    end: date
    employees: list[EmployeeSchema]
    shifts: list[ShiftSchema] = Field(default_factory=list)


class DailyLaborCostResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    date: date
    hourly_cost_cents: int
    salary_cost_cents: int
    daily_rate_cost_cents: int
    contractor_cost_cents: int
    total_cost_cents: int
    hours_worked: Decimal


class LaborCostBreakdownResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    hourly_cost_cents: int
    hourly_hours: Decimal
    salary_cost_cents: int
    salary_employees: int
    salary_days: int
    daily_rate_cost_cents: int
    daily_rate_employees: int
    daily_rate_days: int
    contractor_cost_cents: int
    contractor_employees: int
    contractor_days: int
    total_cost_cents: int


class LaborCostResponse(BaseModel):
    """Schema for a labor cost report."""

    model_config = ConfigDict(from_attributes=True)

    daily_costs: list[DailyLaborCostResponse]
    breakdown: LaborCostBreakdownResponse
    skipped_employee_ids: list[str]


# ============================================================================
# Tip pool schemas
# ============================================================================


class ParticipantSchema(BaseModel):
    employee_id: str
    hours: Decimal = Decimal("0")
    role_weight: Decimal = Decimal("0")

    def to_domain(self) -> TipParticipant:
        return TipParticipant(**self.model_dump())


class TipAllocateRequest(BaseModel):
    """Schema for splitting a tip pool."""

    total_amount_cents: int
    method: TipPoolMethod
    participants: list[ParticipantSchema]


class TipRebalanceRequest(BaseModel):
    """Schema for a manual share override."""

    total_amount_cents: int
    method: TipPoolMethod
    shares: list[ShareSchema]
    employee_id: str
    new_amount_cents: int
    locked_employee_ids: list[str] = Field(default_factory=list)


class TipSharesResponse(BaseModel):
    """Schema for a tip split."""

    total_amount_cents: int
    method: TipPoolMethod
    shares: list[ShareSchema]
    locked_employee_ids: list[str] = Field(default_factory=list)


class ServerEarningSchema(BaseModel):
    employee_id: str
    earned_amount_cents: int = Field(ge=0)

    def to_domain(self) -> ServerEarning:
        return ServerEarning(**self.model_dump())


class ContributionPoolSchema(BaseModel):
    pool_id: str
    contribution_percentage: Decimal = Field(ge=0, le=100)
    method: TipPoolMethod
    eligible_employee_ids: list[str]
    role_weights: dict[str, Decimal] = Field(default_factory=dict)

    def to_domain(self) -> ContributionPool:
        return ContributionPool(
            pool_id=self.pool_id,
            contribution_percentage=self.contribution_percentage,
            method=self.method,
            eligible_employee_ids=tuple(self.eligible_employee_ids),
            role_weights=dict(self.role_weights),
        )


class PoolWorkerSchema(BaseModel):
    employee_id: str
    hours_worked: Decimal = Decimal("0")
    role: str = ""

    def to_domain(self) -> PoolWorker:
        return PoolWorker(**self.model_dump())


class PercentagePoolRequest(BaseModel):
    """Schema for percentage contribution pools."""

    servers: list[ServerEarningSchema]
    pools: list[ContributionPoolSchema]
    workers: list[PoolWorkerSchema] = Field(default_factory=list)


class ServerResultResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    employee_id: str
    earned_amount_cents: int
    contributed_amount_cents: int
    refunded_amount_cents: int
    retained_amount_cents: int


class PoolResultResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    pool_id: str
    total_contributed: int
    total_distributed: int
    total_refunded: int
    shares: list[ShareSchema]


class SplitItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    employee_id: str
    amount_cents: int


class PercentagePoolResponse(BaseModel):
    """Schema for percentage contribution results."""

    model_config = ConfigDict(from_attributes=True)

    server_results: list[ServerResultResponse]
    pool_results: list[PoolResultResponse]
    split_items: list[SplitItemResponse]


# ============================================================================
# Error schemas
# ============================================================================


class ErrorResponse(BaseModel):
    """Schema for error response."""

    detail: str
    code: str | None = None
    context: dict[str, Any] | None = None
