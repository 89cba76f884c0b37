"""Percentage contribution tip pools.

Servers keep the tips they earn but contribute a fixed percentage to support
pools (dish, bussers, hosts). Each pool is split among its eligible workers
who were present, using the pool's method. A pool nobody eligible worked is
refunded to its contributors pro rata. Total in always equals total out.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable, Sequence
from decimal import Decimal

from timepay_engine.calculators.money import round_cents
from timepay_engine.calculators.tip_pool import allocate_tips, distribute_cents
from timepay_engine.models import (
    Contribution,
    ContributionPool,
    PercentageAllocationResult,
    PoolResult,
    PoolWorker,
    Refund,
    ServerEarning,
    ServerResult,
    SplitItem,
    TipParticipant,
)

logger = logging.getLogger(__name__)

HUNDRED = Decimal(100)


def calculate_percentage_contributions(
    servers: Sequence[ServerEarning], pools: Sequence[ContributionPool]
) -> list[Contribution]:
    """Each server's contribution to each pool, rounded half up per pair."""
    return [
        Contribution(
            server_id=server.employee_id,
            pool_id=pool.pool_id,
            amount_cents=round_cents(
                Decimal(server.earned_amount_cents) * Decimal(pool.contribution_percentage) / HUNDRED
            ),
        )
        for server in servers
        for pool in pools
    ]


def calculate_pool_refunds(
    pool_id: str, contributions: Iterable[Contribution], pool_total_cents: int
) -> list[Refund]:
    """Refund a pool to its contributors in proportion to what they put in."""
    pool_contributions = [c for c in contributions if c.pool_id == pool_id]
    amounts = distribute_cents(
        pool_total_cents,
        [(c.server_id, Decimal(c.amount_cents)) for c in pool_contributions],
    )
    return [
        Refund(server_id=c.server_id, pool_id=pool_id, refund_cents=amounts[c.server_id])
        for c in pool_contributions
    ]


def _participants(pool: ContributionPool, workers: Sequence[PoolWorker]) -> list[TipParticipant]:
    eligible = set(pool.eligible_employee_ids)
    return [
        TipParticipant(
            employee_id=w.employee_id,
            hours=Decimal(w.hours_worked),
            role_weight=Decimal(pool.role_weights.get(w.role, 0)),
        )
        for w in workers
        if w.employee_id in eligible
    ]


def calculate_percentage_pool_allocations(
    servers: Sequence[ServerEarning],
    pools: Sequence[ContributionPool],
    workers: Sequence[PoolWorker],
) -> PercentageAllocationResult:
    """Run contributions, pool splits and refunds for one service period."""
    contributions = calculate_percentage_contributions(servers, pools)

    contributed: dict[str, int] = defaultdict(int)
    refunded: dict[str, int] = defaultdict(int)
    received: dict[str, int] = defaultdict(int)
    pool_results: list[PoolResult] = []

    for pool in pools:
        pool_total = sum(c.amount_cents for c in contributions if c.pool_id == pool.pool_id)
        for c in contributions:
            if c.pool_id == pool.pool_id:
                contributed[c.server_id] += c.amount_cents

        participants = _participants(pool, workers)
        if not participants:
            refunds = calculate_pool_refunds(pool.pool_id, contributions, pool_total)
            for refund in refunds:
                refunded[refund.server_id] += refund.refund_cents
            if pool_total:
                logger.info(
                    "No eligible workers for pool %s, refunding %d cents", pool.pool_id, pool_total
                )
            pool_results.append(
                PoolResult(
                    pool_id=pool.pool_id,
                    total_contributed=pool_total,
                    total_distributed=0,
                    total_refunded=pool_total,
                )
            )
            continue

        shares = allocate_tips(pool_total, pool.method, participants)
        for share in shares:
            received[share.employee_id] += share.share_amount_cents
        pool_results.append(
            PoolResult(
                pool_id=pool.pool_id,
                total_contributed=pool_total,
                total_distributed=pool_total,
                total_refunded=0,
                shares=tuple(shares),
            )
        )

    server_results = []
    for server in servers:
        retained = (
            server.earned_amount_cents
            - contributed[server.employee_id]
            + refunded[server.employee_id]
        )
        server_results.append(
            ServerResult(
                employee_id=server.employee_id,
                earned_amount_cents=server.earned_amount_cents,
                contributed_amount_cents=contributed[server.employee_id],
                refunded_amount_cents=refunded[server.employee_id],
                retained_amount_cents=retained,
            )
        )
        received[server.employee_id] += retained

    split_items = tuple(
        SplitItem(employee_id=employee_id, amount_cents=amount)
        for employee_id, amount in sorted(received.items())
        if amount > 0
    )
    return PercentageAllocationResult(
        server_results=tuple(server_results),
        pool_results=tuple(pool_results),
        split_items=split_items,
    )
