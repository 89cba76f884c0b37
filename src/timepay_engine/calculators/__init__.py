"""Time-to-pay calculation engine."""

from timepay_engine.calculators.compensation import (
    CompensationResult,
    ConfigurationError,
    calculate_pay,
)
from timepay_engine.calculators.labor_cost import LaborCostAllocator
from timepay_engine.calculators.normalizer import NoiseFilterConfig, normalize_punches
from timepay_engine.calculators.payroll import PayrollAggregator
from timepay_engine.calculators.sessions import (
    SessionPolicy,
    process_punches,
    reconstruct_sessions,
)
from timepay_engine.calculators.tip_pool import allocate_tips, rebalance_shares

__all__ = [
    "CompensationResult",
    "ConfigurationError",
    "LaborCostAllocator",
    "NoiseFilterConfig",
    "PayrollAggregator",
    "SessionPolicy",
    "allocate_tips",
    "calculate_pay",
    "normalize_punches",
    "process_punches",
    "reconstruct_sessions",
    "rebalance_shares",
]
