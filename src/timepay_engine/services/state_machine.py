"""Tip pool allocation state machine with transition validation."""

from __future__ import annotations

from timepay_engine.models import TipPoolAllocation, TipPoolStatus


class InvalidTransitionError(Exception):
    """Raised when an invalid state transition is attempted."""

    def __init__(self, from_status: str, to_status: str, reason: str | None = None):
        self.from_status = from_status
        self.to_status = to_status
        self.reason = reason
        msg = f"Invalid transition from '{from_status}' to '{to_status}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class TipPoolStateMachine:
    """State machine for tip pool allocation status transitions.

    Allowed transitions:
    - draft → approved
    - draft → discarded
    - approved → draft (reopen)

    Only approved allocations feed payroll. Discarded is terminal.
    """

    VALID_TRANSITIONS: dict[str, list[str]] = {
        TipPoolStatus.DRAFT: [TipPoolStatus.APPROVED, TipPoolStatus.DISCARDED],
        TipPoolStatus.APPROVED: [TipPoolStatus.DRAFT],
        TipPoolStatus.DISCARDED: [],  # Terminal state
    }

    # Statuses where shares can still be edited
    SHARES_MUTABLE = {TipPoolStatus.DRAFT}

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """Check if a transition is valid."""
        allowed = cls.VALID_TRANSITIONS.get(from_status, [])
        return to_status in allowed

    @classmethod
    def validate_transition(cls, from_status: str, to_status: str) -> None:
        """Validate a transition, raising InvalidTransitionError if invalid."""
        if not cls.can_transition(from_status, to_status):
            raise InvalidTransitionError(_value(from_status), _value(to_status))

    @classmethod
    def can_edit_shares(cls, status: str) -> bool:
        return status in cls.SHARES_MUTABLE

    @classmethod
    def is_reopen(cls, from_status: str, to_status: str) -> bool:
        """Check if this transition is a reopen (approved → draft)."""
        return from_status == TipPoolStatus.APPROVED and to_status == TipPoolStatus.DRAFT

    @classmethod
    def get_next_statuses(cls, current_status: str) -> list[str]:
        """Get list of valid next statuses from current status."""
        return cls.VALID_TRANSITIONS.get(current_status, [])

    @classmethod
    def validate_allocation_for_transition(
        cls, allocation: TipPoolAllocation, to_status: str
    ) -> list[str]:
        """Validate an allocation for a specific transition, returning any errors.

        Returns list of error messages (empty if valid).
        """
        errors: list[str] = []
        from_status = allocation.status

        if not cls.can_transition(from_status, to_status):
            errors.append(
                f"Cannot transition from '{_value(from_status)}' to '{_value(to_status)}'"
            )
            return errors

        if to_status == TipPoolStatus.APPROVED:
            if allocation.distributed_cents != allocation.total_amount_cents:
                errors.append(
                    f"Shares sum to {allocation.distributed_cents} cents, "
                    f"pool total is {allocation.total_amount_cents}"
                )
            if allocation.total_amount_cents > 0 and not allocation.shares:
                errors.append("Pool has no participants")

        return errors


def _value(status: str) -> str:
    return getattr(status, "value", status)
