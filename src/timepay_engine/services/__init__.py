"""Time-to-pay engine services."""

from timepay_engine.services.export_service import export_payroll_csv
from timepay_engine.services.state_machine import InvalidTransitionError, TipPoolStateMachine
from timepay_engine.services.tip_pool_service import TipPoolService

__all__ = [
    "InvalidTransitionError",
    "TipPoolStateMachine",
    "TipPoolService",
    "export_payroll_csv",
]
