"""Tip pool allocation.

Every split is in integer cents and sums exactly to the pool total:

- each participant gets ``floor(total * basis / sum(basis))``
- the leftover cents (always fewer than the number of participants with a
  positive basis) go one at a time to those participants in employee id order

The even method is the same rule with every basis equal to 1. A weighted pool
whose bases are all zero falls back to an even split.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import date
from decimal import Decimal

from timepay_engine.models import (
    CompensationType,
    Employee,
    EmployeeStatus,
    ParticipantShare,
    TipParticipant,
    TipPoolMethod,
)

ZERO = Decimal("0")
ONE = Decimal("1")


class AllocationInvariantError(AssertionError):
    """Raised when allocated shares do not sum to the pool total."""

    def __init__(self, expected_cents: int, actual_cents: int):
        self.expected_cents = expected_cents
        self.actual_cents = actual_cents
        super().__init__(
            f"Tip shares sum to {actual_cents} cents, expected exactly {expected_cents}"
        )


class RebalanceError(Exception):
    """Raised when a manual share override cannot be honored."""

    def __init__(self, employee_id: str, reason: str):
        self.employee_id = employee_id
        self.reason = reason
        super().__init__(f"Cannot set tip share for {employee_id}: {reason}")


def assert_exact_total(shares: Iterable[ParticipantShare], total_cents: int) -> None:
    """Raise AllocationInvariantError unless shares sum exactly to the total."""
    actual = sum(s.share_amount_cents for s in shares)
    if actual != total_cents:
        raise AllocationInvariantError(total_cents, actual)


def distribute_cents(
    total_cents: int, weights: Sequence[tuple[str, Decimal]]
) -> dict[str, int]:
    """Split ``total_cents`` over ``(employee_id, weight)`` pairs, in the order given.

    Weights must be non-negative. All-zero weights split evenly.
    """
    if not weights:
        if total_cents:
            raise ValueError("Cannot distribute a non-zero amount over no participants")
        return {}

    if sum(w for _, w in weights) <= 0:
        weights = [(employee_id, ONE) for employee_id, _ in weights]

    weight_sum = sum(w for _, w in weights)
    amounts = {
        employee_id: int(Decimal(total_cents) * w // weight_sum) for employee_id, w in weights
    }

    receivers = [employee_id for employee_id, w in weights if w > 0]
    residual = total_cents - sum(amounts.values())
    i = 0
    while residual > 0:
        amounts[receivers[i % len(receivers)]] += 1
        residual -= 1
        i += 1
    return amounts


def allocate_tips(
    total_cents: int,
    method: TipPoolMethod | str,
    participants: Iterable[TipParticipant],
) -> list[ParticipantShare]:
    """Split a pool total among participants by method.

    Returns shares sorted by employee id.

    Raises:
        ValueError: For a negative total or basis, duplicate participants, or
            a positive total with nobody to pay
    """
    method = TipPoolMethod(method)
    if total_cents < 0:
        raise ValueError(f"Tip pool total cannot be negative: {total_cents}")

    ordered = sorted(participants, key=lambda p: p.employee_id)
    ids = [p.employee_id for p in ordered]
    if len(set(ids)) != len(ids):
        raise ValueError("Each employee can appear in a tip pool only once")

    weights = [(p.employee_id, Decimal(p.basis_for(method))) for p in ordered]
    for employee_id, basis in weights:
        if basis < 0:
            raise ValueError(f"Negative {method.value} basis for {employee_id}: {basis}")

    amounts = distribute_cents(total_cents, weights)
    shares = [
        ParticipantShare(
            employee_id=employee_id,
            share_amount_cents=amounts[employee_id],
            basis_value=basis,
        )
        for employee_id, basis in weights
    ]
    assert_exact_total(shares, total_cents)
    return shares


def rebalance_shares(
    total_cents: int,
    method: TipPoolMethod | str,
    shares: Sequence[ParticipantShare],
    employee_id: str,
    new_amount_cents: int,
    locked: Iterable[str] = frozenset(),
) -> list[ParticipantShare]:
    """Pin one participant's share and redistribute the rest.

    The edited share joins the locked set. Whatever is left after all locked
    shares is spread over the unlocked participants by their basis, with the
    same residual rule as ``allocate_tips``.

    Raises:
        RebalanceError: If the amount is negative, exceeds what is left after
            the other locked shares, or there is nobody unlocked to absorb a
            non-zero remainder
    """
    method = TipPoolMethod(method)
    by_id = {s.employee_id: s for s in shares}
    if employee_id not in by_id:
        raise RebalanceError(employee_id, "not a participant in this pool")
    if new_amount_cents < 0:
        raise RebalanceError(employee_id, "amount cannot be negative")

    locked_ids = (set(locked) & set(by_id)) | {employee_id}
    other_locked = sum(
        by_id[i].share_amount_cents for i in locked_ids if i != employee_id
    )
    available = total_cents - other_locked
    if new_amount_cents > available:
        raise RebalanceError(
            employee_id, f"amount {new_amount_cents} exceeds the {available} cents available"
        )

    remainder = available - new_amount_cents
    unlocked = sorted(i for i in by_id if i not in locked_ids)
    if not unlocked and remainder != 0:
        raise RebalanceError(
            employee_id, f"{remainder} cents would be left with no unlocked participant"
        )

    weights = [
        (i, by_id[i].basis_value if method != TipPoolMethod.EVEN else ONE) for i in unlocked
    ]
    amounts = distribute_cents(remainder, weights)

    result = []
    for i in sorted(by_id):
        if i == employee_id:
            amount = new_amount_cents
        elif i in locked_ids:
            amount = by_id[i].share_amount_cents
        else:
            amount = amounts[i]
        result.append(
            ParticipantShare(
                employee_id=i,
                share_amount_cents=amount,
                basis_value=by_id[i].basis_value,
            )
        )
    assert_exact_total(result, total_cents)
    return result


def is_tip_eligible(employee: Employee, on_date: date | None = None) -> bool:
    """Inactive employees never share tips. Salaried are out unless flagged in."""
    if on_date is not None:
        if not employee.was_active_on(on_date):
            return False
    elif employee.status != EmployeeStatus.ACTIVE:
        return False

    if employee.tip_eligible is not None:
        return employee.tip_eligible

    contract = employee.contract_on(on_date or date.max)
    return contract is None or contract.compensation_type != CompensationType.SALARY


def filter_tip_eligible(
    employees: Iterable[Employee], on_date: date | None = None
) -> list[Employee]:
    """Employees who may take part in a tip pool."""
    return [e for e in employees if is_tip_eligible(e, on_date)]
