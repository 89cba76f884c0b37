"""Domain models for the time-to-pay engine."""

from timepay_engine.models.employee import (
    CompensationContract,
    CompensationType,
    Employee,
    EmployeeStatus,
    ManualPayment,
    PayPeriodKind,
    TipPayout,
)
from timepay_engine.models.payroll import (
    DailyLaborCost,
    LaborCostBreakdown,
    LaborCostReport,
    PayrollLineItem,
    PayrollReport,
    PayrollTotals,
)
from timepay_engine.models.timekeeping import (
    BreakInterval,
    DailyHours,
    NoiseReason,
    NormalizedPunch,
    PunchEvent,
    PunchKind,
    ScheduledShift,
    SessionAnomaly,
    WorkSession,
)
from timepay_engine.models.tips import (
    Contribution,
    ContributionPool,
    ParticipantShare,
    PercentageAllocationResult,
    PoolResult,
    PoolWorker,
    Refund,
    ServerEarning,
    ServerResult,
    SplitItem,
    TipParticipant,
    TipPoolAllocation,
    TipPoolMethod,
    TipPoolStatus,
)

__all__ = [
    # Employee
    "CompensationContract",
    "CompensationType",
    "Employee",
    "EmployeeStatus",
    "ManualPayment",
    "PayPeriodKind",
    "TipPayout",
    # Time clock
    "BreakInterval",
    "DailyHours",
    "NoiseReason",
    "NormalizedPunch",
    "PunchEvent",
    "PunchKind",
    "ScheduledShift",
    "SessionAnomaly",
    "WorkSession",
    # Payroll / labor
    "DailyLaborCost",
    "LaborCostBreakdown",
    "LaborCostReport",
    "PayrollLineItem",
    "PayrollReport",
    "PayrollTotals",
    # Tips
    "Contribution",
    "ContributionPool",
    "ParticipantShare",
    "PercentageAllocationResult",
    "PoolResult",
    "PoolWorker",
    "Refund",
    "ServerEarning",
    "ServerResult",
    "SplitItem",
    "TipParticipant",
    "TipPoolAllocation",
    "TipPoolMethod",
    "TipPoolStatus",
]
