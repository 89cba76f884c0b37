"""Tests for tip pool allocation and manual rebalancing."""

from decimal import Decimal

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from factories import MONDAY, day
from timepay_engine.calculators.tip_pool import (
    AllocationInvariantError,
    RebalanceError,
    allocate_tips,
    assert_exact_total,
    distribute_cents,
    filter_tip_eligible,
    is_tip_eligible,
    rebalance_shares,
)
from timepay_engine.models import (
    CompensationContract,
    Employee,
    EmployeeStatus,
    ParticipantShare,
    PayPeriodKind,
    TipParticipant,
    TipPoolMethod,
)


def _amounts(shares):
    return {s.employee_id: s.share_amount_cents for s in shares}


def _even(*ids):
    return [TipParticipant(i) for i in ids]


class TestAllocateTips:
    """Splits by method, always summing to the total."""

    def test_even_split_residual_to_first_id(self):
        """$100.00 over three people: the extra cent goes to the first id."""
        shares = allocate_tips(10000, TipPoolMethod.EVEN, _even("c", "a", "b"))

        assert [(s.employee_id, s.share_amount_cents) for s in shares] == [
            ("a", 3334),
            ("b", 3333),
            ("c", 3333),
        ]

    def test_by_hours(self):
        participants = [
            TipParticipant("a", hours=Decimal("6")),
            TipParticipant("b", hours=Decimal("4")),
        ]

        shares = allocate_tips(1000, "hours", participants)

        assert _amounts(shares) == {"a": 600, "b": 400}
        assert [s.basis_value for s in shares] == [Decimal("6"), Decimal("4")]

    def test_by_role_weight(self):
        participants = [
            TipParticipant("chef", role_weight=Decimal("3")),
            TipParticipant("prep", role_weight=Decimal("1")),
        ]

        shares = allocate_tips(1000, TipPoolMethod.ROLE, participants)

        assert _amounts(shares) == {"chef": 750, "prep": 250}

    def test_zero_basis_gets_no_residual(self):
        participants = [
            TipParticipant("a", hours=Decimal("0")),
            TipParticipant("b", hours=Decimal("1")),
            TipParticipant("c", hours=Decimal("1")),
        ]

        shares = allocate_tips(101, TipPoolMethod.HOURS, participants)

        assert _amounts(shares) == {"a": 0, "b": 51, "c": 50}

    def test_all_zero_bases_fall_back_to_even(self):
        participants = [TipParticipant(i, hours=Decimal("0")) for i in ("a", "b", "c")]

        shares = allocate_tips(100, TipPoolMethod.HOURS, participants)

        assert _amounts(shares) == {"a": 34, "b": 33, "c": 33}

    def test_zero_total(self):
        shares = allocate_tips(0, TipPoolMethod.EVEN, _even("a", "b"))

        assert _amounts(shares) == {"a": 0, "b": 0}

    def test_no_participants_and_nothing_to_split(self):
        assert allocate_tips(0, TipPoolMethod.EVEN, []) == []

    def test_no_participants_with_money_is_rejected(self):
        with pytest.raises(ValueError, match="no participants"):
            allocate_tips(500, TipPoolMethod.EVEN, [])

    def test_negative_total_is_rejected(self):
        with pytest.raises(ValueError, match="negative"):
            allocate_tips(-1, TipPoolMethod.EVEN, _even("a"))

    def test_negative_basis_is_rejected(self):
        with pytest.raises(ValueError):
            allocate_tips(100, TipPoolMethod.HOURS, [TipParticipant("a", hours=Decimal("-1"))])

    def test_duplicate_participant_is_rejected(self):
        with pytest.raises(ValueError, match="only once"):
            allocate_tips(100, TipPoolMethod.EVEN, _even("a", "a"))

    def test_unknown_method_is_rejected(self):
        with pytest.raises(ValueError):
            allocate_tips(100, "seniority", _even("a"))

    @given(
        total=st.integers(min_value=0, max_value=10_000_000),
        hours=st.lists(
            st.decimals(min_value=0, max_value=80, places=2, allow_nan=False, allow_infinity=False),
            min_size=1,
            max_size=20,
        ),
    )
    @settings(max_examples=200)
    def test_shares_always_sum_to_total(self, total, hours):
        """No cent is created or lost whatever the bases."""
        participants = [TipParticipant(f"emp-{i:02d}", hours=h) for i, h in enumerate(hours)]

        shares = allocate_tips(total, TipPoolMethod.HOURS, participants)

        assert sum(s.share_amount_cents for s in shares) == total
        assert all(s.share_amount_cents >= 0 for s in shares)

    @given(
        total=st.integers(min_value=0, max_value=1_000_000),
        count=st.integers(min_value=1, max_value=30),
    )
    def test_even_shares_differ_by_at_most_one_cent(self, total, count):
        shares = allocate_tips(total, TipPoolMethod.EVEN, _even(*(f"e{i:02d}" for i in range(count))))
        amounts = [s.share_amount_cents for s in shares]

        assert max(amounts) - min(amounts) <= 1
        assert sum(amounts) == total


class TestDistributeCents:
    def test_keeps_caller_order_for_residual(self):
        amounts = distribute_cents(2, [("z", Decimal(1)), ("a", Decimal(1)), ("m", Decimal(1))])

        assert amounts == {"z": 1, "a": 1, "m": 0}

    def test_empty_with_nothing_to_split(self):
        assert distribute_cents(0, []) == {}


class TestExactTotal:
    def test_mismatch_raises(self):
        shares = [ParticipantShare("a", 50, Decimal(1)), ParticipantShare("b", 49, Decimal(1))]

        with pytest.raises(AllocationInvariantError) as exc_info:
            assert_exact_total(shares, 100)

        assert exc_info.value.expected_cents == 100
        assert exc_info.value.actual_cents == 99

    def test_is_an_assertion_error(self):
        assert issubclass(AllocationInvariantError, AssertionError)


class TestRebalance:
    """Pinning one share redistributes the rest over unlocked participants."""

    @pytest.fixture
    def even_shares(self):
        return allocate_tips(9000, TipPoolMethod.EVEN, _even("a", "b", "c"))

    def test_override_spreads_remainder(self, even_shares):
        shares = rebalance_shares(9000, TipPoolMethod.EVEN, even_shares, "a", 4000)

        assert _amounts(shares) == {"a": 4000, "b": 2500, "c": 2500}

    def test_locked_shares_are_kept(self, even_shares):
        first = rebalance_shares(9000, TipPoolMethod.EVEN, even_shares, "a", 4000)

        second = rebalance_shares(9000, TipPoolMethod.EVEN, first, "b", 1000, locked={"a"})

        assert _amounts(second) == {"a": 4000, "b": 1000, "c": 4000}

    def test_weighted_remainder_uses_basis(self):
        participants = [
            TipParticipant("a", hours=Decimal("2")),
            TipParticipant("b", hours=Decimal("6")),
            TipParticipant("c", hours=Decimal("2")),
        ]
        shares = allocate_tips(1000, TipPoolMethod.HOURS, participants)

        rebalanced = rebalance_shares(1000, TipPoolMethod.HOURS, shares, "a", 500)

        assert _amounts(rebalanced) == {"a": 500, "b": 375, "c": 125}

    def test_amount_over_available_is_rejected(self, even_shares):
        first = rebalance_shares(9000, TipPoolMethod.EVEN, even_shares, "a", 4000)

        with pytest.raises(RebalanceError, match="exceeds"):
            rebalance_shares(9000, TipPoolMethod.EVEN, first, "b", 6000, locked={"a"})

    def test_remainder_with_everyone_locked_is_rejected(self, even_shares):
        with pytest.raises(RebalanceError, match="no unlocked participant"):
            rebalance_shares(9000, TipPoolMethod.EVEN, even_shares, "a", 2000, locked={"b", "c"})

    def test_everyone_locked_with_exact_amount_is_allowed(self, even_shares):
        shares = rebalance_shares(
            9000, TipPoolMethod.EVEN, even_shares, "a", 3000, locked={"b", "c"}
        )

        assert _amounts(shares) == {"a": 3000, "b": 3000, "c": 3000}

    def test_negative_amount_is_rejected(self, even_shares):
        with pytest.raises(RebalanceError, match="negative"):
            rebalance_shares(9000, TipPoolMethod.EVEN, even_shares, "a", -1)

    def test_non_participant_is_rejected(self, even_shares):
        with pytest.raises(RebalanceError) as exc_info:
            rebalance_shares(9000, TipPoolMethod.EVEN, even_shares, "zed", 100)

        assert exc_info.value.employee_id == "zed"

    @given(new_amount=st.integers(min_value=0, max_value=9000))
    def test_rebalance_preserves_total(self, new_amount):
        shares = allocate_tips(9000, TipPoolMethod.EVEN, _even("a", "b", "c", "d"))

        rebalanced = rebalance_shares(9000, TipPoolMethod.EVEN, shares, "b", new_amount)

        assert sum(s.share_amount_cents for s in rebalanced) == 9000
        assert _amounts(rebalanced)["b"] == new_amount


class TestEligibility:
    """Who may take part in a tip pool."""

    def test_hourly_is_eligible(self, hourly_employee):
        assert is_tip_eligible(hourly_employee)

    def test_salaried_is_excluded_by_default(self, salaried_employee):
        assert not is_tip_eligible(salaried_employee)

    def test_flag_overrides_default(self, salaried_employee):
        flagged = Employee(
            "emp-bob",
            "Bob Manager",
            tip_eligible=True,
            contracts=salaried_employee.contracts,
        )
        opted_out = Employee(
            "emp-amy",
            "Amy Host",
            tip_eligible=False,
            contracts=(CompensationContract.hourly(1300),),
        )

        assert is_tip_eligible(flagged)
        assert not is_tip_eligible(opted_out)

    def test_inactive_never_eligible(self):
        inactive = Employee(
            "emp-x",
            "X",
            status=EmployeeStatus.INACTIVE,
            tip_eligible=True,
            contracts=(CompensationContract.hourly(1300),),
        )

        assert not is_tip_eligible(inactive)

    def test_eligibility_on_a_date_follows_employment_and_contract(self):
        employee = Employee(
            "emp-y",
            "Y",
            hire_date=day(2),
            contracts=(
                CompensationContract.hourly(1300),
                CompensationContract.salary(200000, PayPeriodKind.BIWEEKLY, effective_from=day(7)),
            ),
        )

        assert not is_tip_eligible(employee, MONDAY)
        assert is_tip_eligible(employee, day(3))
        assert not is_tip_eligible(employee, day(8))

    def test_filter(self, hourly_employee, salaried_employee, daily_rate_employee):
        eligible = filter_tip_eligible([hourly_employee, salaried_employee, daily_rate_employee])

        assert [e.id for e in eligible] == ["emp-alice", "emp-carol"]
