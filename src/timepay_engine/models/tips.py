"""Tip pool models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum


class TipPoolMethod(str, Enum):
    """How a pooled tip total is split."""

    HOURS = "hours"
    ROLE = "role"
    EVEN = "even"


class TipPoolStatus(str, Enum):
    """Tip pool allocation lifecycle."""

    DRAFT = "draft"
    APPROVED = "approved"
    DISCARDED = "discarded"


@dataclass(frozen=True)
class TipParticipant:
    """An employee taking part in a pool with their hours and role weight."""

    employee_id: str
    hours: Decimal = Decimal("0")
    role_weight: Decimal = Decimal("0")

    def basis_for(self, method: TipPoolMethod) -> Decimal:
        if method == TipPoolMethod.HOURS:
            return self.hours
        if method == TipPoolMethod.ROLE:
            return self.role_weight
        return Decimal("1")


@dataclass(frozen=True)
class ParticipantShare:
    """One participant's share of a pool."""

    employee_id: str
    share_amount_cents: int
    basis_value: Decimal


@dataclass(frozen=True)
class TipPoolAllocation:
    """A tip pool split. ``sum(shares) == total_amount_cents`` always holds."""

    pool_id: str
    pool_date: date
    total_amount_cents: int
    method: TipPoolMethod
    shares: tuple[ParticipantShare, ...]
    status: TipPoolStatus = TipPoolStatus.DRAFT
    locked_employee_ids: frozenset[str] = field(default_factory=frozenset)

    @property
    def distributed_cents(self) -> int:
        return sum(s.share_amount_cents for s in self.shares)

    def share_for(self, employee_id: str) -> int:
        return sum(
            s.share_amount_cents for s in self.shares if s.employee_id == employee_id
        )


@dataclass(frozen=True)
class ServerEarning:
    """Tips earned directly by a server before contributions."""

    employee_id: str
    earned_amount_cents: int


@dataclass(frozen=True)
class ContributionPool:
    """A support pool funded by a percentage of servers' tips."""

    pool_id: str
    contribution_percentage: Decimal
    method: TipPoolMethod
    eligible_employee_ids: tuple[str, ...]
    role_weights: dict[str, Decimal] = field(default_factory=dict, hash=False)


@dataclass(frozen=True)
class PoolWorker:
    """A worker who may receive from contribution pools."""

    employee_id: str
    hours_worked: Decimal = Decimal("0")
    role: str = ""


@dataclass(frozen=True)
class Contribution:
    server_id: str
    pool_id: str
    amount_cents: int


@dataclass(frozen=True)
class Refund:
    server_id: str
    pool_id: str
    refund_cents: int


@dataclass(frozen=True)
class ServerResult:
    employee_id: str
    earned_amount_cents: int
    contributed_amount_cents: int
    refunded_amount_cents: int
    retained_amount_cents: int


@dataclass(frozen=True)
class PoolResult:
    pool_id: str
    total_contributed: int
    total_distributed: int
    total_refunded: int
    shares: tuple[ParticipantShare, ...] = ()


@dataclass(frozen=True)
class SplitItem:
    """Final per-employee amount across all servers and pools."""

    employee_id: str
    amount_cents: int


@dataclass(frozen=True)
class PercentageAllocationResult:
    server_results: tuple[ServerResult, ...]
    pool_results: tuple[PoolResult, ...]
    split_items: tuple[SplitItem, ...]
