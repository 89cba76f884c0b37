"""Labor cost endpoints."""

from fastapi import APIRouter, status

from timepay_engine.api.dependencies import LaborCost
from timepay_engine.api.schemas import (
    ActualLaborCostRequest,
    ErrorResponse,
    LaborCostResponse,
    ScheduledLaborCostRequest,
)

router = APIRouter(prefix="/labor-costs", tags=["labor-costs"])


@router.post(
    "/actual",
    response_model=LaborCostResponse,
    status_code=status.HTTP_200_OK,
    responses={422: {"model": ErrorResponse}},
)
async def actual_labor_cost(
    allocator: LaborCost, payload: ActualLaborCostRequest
) -> LaborCostResponse:
    """Daily labor cost from punches and manual payments."""
    report = allocator.actual(
        employees=[e.to_domain() for e in payload.employees],
        punches=[p.to_domain() for p in payload.punches],
        start=payload.start,
        end=payload.end,
        manual_payments=[m.to_domain() for m in payload.manual_payments],
        tz=payload.tzinfo(),
    )
    return LaborCostResponse.model_validate(report)


@router.post(
    "/scheduled",
    response_model=LaborCostResponse,
    status_code=status.HTTP_200_OK,
    responses={422: {"model": ErrorResponse}},
)
async def scheduled_labor_cost(
    allocator: LaborCost, payload: ScheduledLaborCostRequest
) -> LaborCostResponse:
    """Daily labor cost from planned shifts."""
    report = allocator.scheduled(
        employees=[e.to_domain() for e in payload.employees],
        shifts=[s.to_domain() for s in payload.shifts],
        start=payload.start,
        end=payload.end,
        tz=payload.tzinfo(),
    )
    return LaborCostResponse.model_validate(report)
