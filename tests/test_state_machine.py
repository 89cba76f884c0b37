"""Tests for the tip pool state machine and lifecycle service."""

import logging
from dataclasses import replace
from decimal import Decimal

import pytest

from factories import MONDAY
from timepay_engine.calculators.tip_pool import RebalanceError
from timepay_engine.models import ParticipantShare, TipParticipant, TipPoolMethod, TipPoolStatus
from timepay_engine.services import InvalidTransitionError, TipPoolService, TipPoolStateMachine


class TestTipPoolStateMachine:
    """Test state machine transitions."""

    def test_valid_transitions(self):
        """Test that valid transitions are allowed."""
        assert TipPoolStateMachine.can_transition("draft", "approved") is True
        assert TipPoolStateMachine.can_transition("draft", "discarded") is True

        # approved → draft (reopen)
        assert TipPoolStateMachine.can_transition("approved", "draft") is True

    def test_invalid_transitions(self):
        """Test that invalid transitions are blocked."""
        assert TipPoolStateMachine.can_transition("approved", "discarded") is False
        assert TipPoolStateMachine.can_transition("draft", "draft") is False

        # Discarded is terminal
        assert TipPoolStateMachine.can_transition("discarded", "draft") is False
        assert TipPoolStateMachine.can_transition("discarded", "approved") is False

    def test_accepts_enum_members(self):
        assert TipPoolStateMachine.can_transition(TipPoolStatus.DRAFT, TipPoolStatus.APPROVED)

    def test_validate_transition_raises(self):
        """Test that validate_transition raises for invalid transitions."""
        with pytest.raises(InvalidTransitionError) as exc_info:
            TipPoolStateMachine.validate_transition("discarded", "approved")

        assert exc_info.value.from_status == "discarded"
        assert exc_info.value.to_status == "approved"

    def test_is_reopen(self):
        """Test reopen detection."""
        assert TipPoolStateMachine.is_reopen("approved", "draft") is True
        assert TipPoolStateMachine.is_reopen("draft", "approved") is False

    def test_can_edit_shares(self):
        assert TipPoolStateMachine.can_edit_shares("draft") is True
        assert TipPoolStateMachine.can_edit_shares("approved") is False
        assert TipPoolStateMachine.can_edit_shares("discarded") is False

    def test_get_next_statuses(self):
        """Test getting valid next statuses."""
        assert set(TipPoolStateMachine.get_next_statuses("draft")) == {"approved", "discarded"}
        assert TipPoolStateMachine.get_next_statuses("approved") == ["draft"]
        assert TipPoolStateMachine.get_next_statuses("discarded") == []


@pytest.fixture
def service():
    return TipPoolService()


@pytest.fixture
def draft(service):
    participants = [TipParticipant(i) for i in ("a", "b", "c")]
    return service.create_draft("pool-1", MONDAY, 9000, TipPoolMethod.EVEN, participants)


class TestTipPoolService:
    """Lifecycle of one allocation."""

    def test_create_draft(self, draft):
        assert draft.status == TipPoolStatus.DRAFT
        assert draft.distributed_cents == 9000
        assert draft.share_for("a") == 3000
        assert draft.locked_employee_ids == frozenset()

    def test_override_locks_edited_participant(self, service, draft):
        edited = service.override_share(draft, "a", 4000)

        assert edited.share_for("b") == 2500
        assert edited.locked_employee_ids == {"a"}
        # The original value is untouched
        assert draft.share_for("a") == 3000

    def test_second_override_keeps_first(self, service, draft):
        edited = service.override_share(service.override_share(draft, "a", 4000), "b", 1000)

        assert [s.share_amount_cents for s in edited.shares] == [4000, 1000, 4000]
        assert edited.locked_employee_ids == {"a", "b"}

    def test_approve_then_edit_is_rejected(self, service, draft):
        approved = service.approve(draft)

        with pytest.raises(RebalanceError, match="reopen"):
            service.override_share(approved, "a", 100)

    def test_reopen_allows_edits_again(self, service, draft, caplog):
        caplog.set_level(logging.INFO)
        reopened = service.reopen(service.approve(draft))

        assert reopened.status == TipPoolStatus.DRAFT
        assert service.override_share(reopened, "a", 0).share_for("a") == 0
        assert "Reopening" in caplog.text

    def test_discarded_cannot_be_approved(self, service, draft):
        discarded = service.discard(draft)

        with pytest.raises(InvalidTransitionError) as exc_info:
            service.approve(discarded)

        assert exc_info.value.from_status == "discarded"

    def test_approve_rejects_inconsistent_shares(self, service, draft):
        """Shares that no longer sum to the total cannot be approved."""
        broken = replace(draft, shares=(ParticipantShare("a", 1, Decimal(1)),))

        with pytest.raises(InvalidTransitionError, match="sum to 1"):
            service.approve(broken)

    def test_validate_allocation_for_transition(self, draft):
        assert TipPoolStateMachine.validate_allocation_for_transition(draft, "approved") == []
        errors = TipPoolStateMachine.validate_allocation_for_transition(draft, "draft")
        assert errors == ["Cannot transition from 'draft' to 'draft'"]
