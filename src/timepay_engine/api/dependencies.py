"""FastAPI dependencies for dependency injection."""

from typing import Annotated

from fastapi import Depends

from timepay_engine.calculators.labor_cost import LaborCostAllocator
from timepay_engine.calculators.payroll import PayrollAggregator
from timepay_engine.config import Settings, get_settings


def get_payroll_aggregator(
    settings: Annotated[Settings, Depends(get_settings)],
) -> PayrollAggregator:
    """Get payroll aggregator dependency."""
    return PayrollAggregator(settings)


def get_labor_cost_allocator(
    settings: Annotated[Settings, Depends(get_settings)],
) -> LaborCostAllocator:
    """Get labor cost allocator dependency."""
    return LaborCostAllocator(settings)


# Type aliases for cleaner dependency injection
AppSettings = Annotated[Settings, Depends(get_settings)]
Aggregator = Annotated[PayrollAggregator, Depends(get_payroll_aggregator)]
LaborCost = Annotated[LaborCostAllocator, Depends(get_labor_cost_allocator)]
