"""Tip pool service - lifecycle of a tip pool allocation.

Operations:
- create_draft: Split a pool total into a new draft allocation
- override_share: Pin one participant's share and rebalance the others
- approve: Freeze the split so payroll picks it up
- reopen: Transition approved → draft for corrections
- discard: Abandon a draft

Allocations are immutable values. Every operation returns a new allocation
and leaves its argument untouched. Storing them is up to the caller.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import replace
from datetime import date

from timepay_engine.calculators.tip_pool import (
    RebalanceError,
    allocate_tips,
    rebalance_shares,
)
from timepay_engine.models import TipParticipant, TipPoolAllocation, TipPoolMethod, TipPoolStatus
from timepay_engine.services.state_machine import InvalidTransitionError, TipPoolStateMachine

logger = logging.getLogger(__name__)


class TipPoolService:
    """Service for managing tip pool allocation lifecycle."""

    def create_draft(
        self,
        pool_id: str,
        pool_date: date,
        total_amount_cents: int,
        method: TipPoolMethod | str,
        participants: Iterable[TipParticipant],
    ) -> TipPoolAllocation:
        """Allocate a pool and return it as a draft."""
        method = TipPoolMethod(method)
        shares = allocate_tips(total_amount_cents, method, participants)
        return TipPoolAllocation(
            pool_id=pool_id,
            pool_date=pool_date,
            total_amount_cents=total_amount_cents,
            method=method,
            shares=tuple(shares),
            status=TipPoolStatus.DRAFT,
        )

    def override_share(
        self,
        allocation: TipPoolAllocation,
        employee_id: str,
        new_amount_cents: int,
    ) -> TipPoolAllocation:
        """Set one share by hand; the edited participant stays locked.

        Raises:
            RebalanceError: If the pool is not a draft or the amount is invalid
        """
        if not TipPoolStateMachine.can_edit_shares(allocation.status):
            raise RebalanceError(
                employee_id,
                f"pool {allocation.pool_id} is {allocation.status.value}; reopen it to edit shares",
            )

        shares = rebalance_shares(
            allocation.total_amount_cents,
            allocation.method,
            allocation.shares,
            employee_id,
            new_amount_cents,
            locked=allocation.locked_employee_ids,
        )
        return replace(
            allocation,
            shares=tuple(shares),
            locked_employee_ids=allocation.locked_employee_ids | {employee_id},
        )

    def transition_status(
        self, allocation: TipPoolAllocation, to_status: TipPoolStatus | str
    ) -> TipPoolAllocation:
        """Move an allocation to a new status.

        Raises InvalidTransitionError if transition is not allowed.
        """
        to_status = TipPoolStatus(to_status)
        errors = TipPoolStateMachine.validate_allocation_for_transition(allocation, to_status)
        if errors:
            raise InvalidTransitionError(
                allocation.status.value, to_status.value, reason="; ".join(errors)
            )

        if TipPoolStateMachine.is_reopen(allocation.status, to_status):
            logger.info("Reopening approved tip pool %s", allocation.pool_id)

        return replace(allocation, status=to_status)

    def approve(self, allocation: TipPoolAllocation) -> TipPoolAllocation:
        return self.transition_status(allocation, TipPoolStatus.APPROVED)

    def discard(self, allocation: TipPoolAllocation) -> TipPoolAllocation:
        return self.transition_status(allocation, TipPoolStatus.DISCARDED)

    def reopen(self, allocation: TipPoolAllocation) -> TipPoolAllocation:
        return self.transition_status(allocation, TipPoolStatus.DRAFT)
