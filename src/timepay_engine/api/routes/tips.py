"""Tip pool endpoints."""

from fastapi import APIRouter, HTTPException, status

from timepay_engine.api.schemas import (
    ErrorResponse,
    PercentagePoolRequest,
    PercentagePoolResponse,
    ShareSchema,
    TipAllocateRequest,
    TipRebalanceRequest,
    TipSharesResponse,
)
from timepay_engine.calculators.tip_contributions import calculate_percentage_pool_allocations
from timepay_engine.calculators.tip_pool import RebalanceError, allocate_tips, rebalance_shares

router = APIRouter(prefix="/tip-pools", tags=["tip-pools"])


@router.post(
    "/allocate",
    response_model=TipSharesResponse,
    status_code=status.HTTP_200_OK,
    responses={422: {"model": ErrorResponse}},
)
async def allocate_pool(payload: TipAllocateRequest) -> TipSharesResponse:
    """Split a pool total among participants."""
    shares = allocate_tips(
        payload.total_amount_cents,
        payload.method,
        [p.to_domain() for p in payload.participants],
    )
    return TipSharesResponse(
        total_amount_cents=payload.total_amount_cents,
        method=payload.method,
        shares=[ShareSchema.model_validate(s) for s in shares],
    )


@router.post(
    "/rebalance",
    response_model=TipSharesResponse,
    status_code=status.HTTP_200_OK,
    responses={409: {"model": ErrorResponse}},
)
async def rebalance_pool(payload: TipRebalanceRequest) -> TipSharesResponse:
    """Pin one participant's share and redistribute the rest."""
    try:
        shares = rebalance_shares(
            payload.total_amount_cents,
            payload.method,
            [s.to_domain() for s in payload.shares],
            payload.employee_id,
            payload.new_amount_cents,
            locked=frozenset(payload.locked_employee_ids),
        )
    except RebalanceError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(e),
        )

    return TipSharesResponse(
        total_amount_cents=payload.total_amount_cents,
        method=payload.method,
        shares=[ShareSchema.model_validate(s) for s in shares],
        locked_employee_ids=sorted(set(payload.locked_employee_ids) | {payload.employee_id}),
    )


@router.post(
    "/percentage",
    response_model=PercentagePoolResponse,
    status_code=status.HTTP_200_OK,
    responses={422: {"model": ErrorResponse}},
)
async def percentage_pools(payload: PercentagePoolRequest) -> PercentagePoolResponse:
    """Run percentage contribution pools for one service period."""
    result = calculate_percentage_pool_allocations(
        [s.to_domain() for s in payload.servers],
        [p.to_domain() for p in payload.pools],
        [w.to_domain() for w in payload.workers],
    )
    return PercentagePoolResponse.model_validate(result)
