"""Tests for percentage contribution tip pools."""

from decimal import Decimal

from hypothesis import given
from hypothesis import strategies as st

from timepay_engine.calculators.tip_contributions import (
    calculate_percentage_contributions,
    calculate_percentage_pool_allocations,
    calculate_pool_refunds,
)
from timepay_engine.models import (
    Contribution,
    ContributionPool,
    PoolWorker,
    ServerEarning,
    TipPoolMethod,
)


def _pool(pool_id, percentage, method, eligible, role_weights=None):
    return ContributionPool(
        pool_id=pool_id,
        contribution_percentage=Decimal(percentage),
        method=method,
        eligible_employee_ids=tuple(eligible),
        role_weights=role_weights or {},
    )


def _splits(result):
    return {item.employee_id: item.amount_cents for item in result.split_items}


class TestContributions:
    def test_percentage_of_each_server(self):
        servers = [ServerEarning("maria", 20000), ServerEarning("john", 15000)]
        pools = [_pool("dish", "5", TipPoolMethod.HOURS, ["d1"])]

        contributions = calculate_percentage_contributions(servers, pools)

        assert contributions == [
            Contribution("maria", "dish", 1000),
            Contribution("john", "dish", 750),
        ]

    def test_rounds_half_up_per_server(self):
        """333 x 5% = 16.65 cents."""
        contributions = calculate_percentage_contributions(
            [ServerEarning("s1", 333)], [_pool("p", "5", TipPoolMethod.EVEN, ["a"])]
        )

        assert contributions[0].amount_cents == 17

    def test_fractional_percentage(self):
        contributions = calculate_percentage_contributions(
            [ServerEarning("s1", 10000)], [_pool("p", "2.5", TipPoolMethod.EVEN, ["a"])]
        )

        assert contributions[0].amount_cents == 250


class TestRefunds:
    def test_refund_pro_rata(self):
        contributions = [
            Contribution("maria", "p2", 600),
            Contribution("john", "p2", 450),
            Contribution("maria", "p1", 1000),
        ]

        refunds = calculate_pool_refunds("p2", contributions, 1050)

        assert [(r.server_id, r.refund_cents) for r in refunds] == [("maria", 600), ("john", 450)]

    def test_refund_residual_sums_exactly(self):
        contributions = [Contribution(s, "p", 1) for s in ("a", "b", "c")]

        refunds = calculate_pool_refunds("p", contributions, 3)

        assert sum(r.refund_cents for r in refunds) == 3


class TestPoolAllocations:
    """Contributions, splits and refunds for a service period."""

    def test_two_servers_one_pool_refunded(self):
        servers = [ServerEarning("maria", 20000), ServerEarning("john", 15000)]
        pools = [
            _pool("p1", "5", TipPoolMethod.HOURS, ["d1", "d2"]),
            _pool("p2", "3", TipPoolMethod.EVEN, ["f1", "f2"]),
        ]
        workers = [PoolWorker("d1", hours_worked=Decimal("6"))]

        result = calculate_percentage_pool_allocations(servers, pools, workers)

        maria, john = result.server_results
        assert (maria.contributed_amount_cents, maria.refunded_amount_cents) == (1600, 600)
        assert maria.retained_amount_cents == 19000
        assert (john.contributed_amount_cents, john.refunded_amount_cents) == (1200, 450)
        assert john.retained_amount_cents == 14250

        p1, p2 = result.pool_results
        assert (p1.total_contributed, p1.total_distributed, p1.total_refunded) == (1750, 1750, 0)
        assert (p2.total_contributed, p2.total_distributed, p2.total_refunded) == (1050, 0, 1050)
        assert p2.shares == ()

        assert _splits(result) == {"d1": 1750, "john": 14250, "maria": 19000}

    def test_server_can_also_receive(self):
        servers = [ServerEarning("s1", 10000)]
        pools = [_pool("p", "5", TipPoolMethod.EVEN, ["s1", "b1"])]
        workers = [PoolWorker("s1"), PoolWorker("b1")]

        result = calculate_percentage_pool_allocations(servers, pools, workers)

        assert _splits(result) == {"b1": 250, "s1": 9750}

    def test_split_by_hours(self):
        servers = [ServerEarning("s1", 20000)]
        pools = [_pool("p", "5", TipPoolMethod.HOURS, ["a", "b"])]
        workers = [
            PoolWorker("a", hours_worked=Decimal("6")),
            PoolWorker("b", hours_worked=Decimal("4")),
        ]

        result = calculate_percentage_pool_allocations(servers, pools, workers)

        assert _splits(result) == {"a": 600, "b": 400, "s1": 19000}

    def test_split_by_role(self):
        servers = [ServerEarning("s1", 20000)]
        pools = [
            _pool(
                "kitchen",
                "5",
                TipPoolMethod.ROLE,
                ["chef", "prep"],
                role_weights={"Chef": Decimal("3"), "Prep": Decimal("1")},
            )
        ]
        workers = [PoolWorker("chef", role="Chef"), PoolWorker("prep", role="Prep")]

        result = calculate_percentage_pool_allocations(servers, pools, workers)

        assert _splits(result) == {"chef": 750, "prep": 250, "s1": 19000}

    def test_ineligible_workers_are_ignored(self):
        servers = [ServerEarning("s1", 10000)]
        pools = [_pool("p", "10", TipPoolMethod.EVEN, ["a"])]
        workers = [PoolWorker("a"), PoolWorker("walk-in")]

        result = calculate_percentage_pool_allocations(servers, pools, workers)

        assert "walk-in" not in _splits(result)
        assert _splits(result)["a"] == 1000

    def test_zero_amounts_are_left_out(self):
        servers = [ServerEarning("s1", 0)]
        pools = [_pool("p", "5", TipPoolMethod.EVEN, ["a"])]

        result = calculate_percentage_pool_allocations(servers, pools, [PoolWorker("a")])

        assert result.split_items == ()

    @given(
        earnings=st.lists(st.integers(min_value=0, max_value=500_000), min_size=1, max_size=8),
        percentage=st.decimals(min_value=0, max_value=20, places=1),
        present=st.booleans(),
    )
    def test_money_in_equals_money_out(self, earnings, percentage, present):
        servers = [ServerEarning(f"s{i}", e) for i, e in enumerate(earnings)]
        pools = [_pool("p", percentage, TipPoolMethod.EVEN, ["bus1", "bus2"])]
        workers = [PoolWorker("bus1"), PoolWorker("bus2")] if present else []

        result = calculate_percentage_pool_allocations(servers, pools, workers)

        assert sum(i.amount_cents for i in result.split_items) == sum(earnings)
