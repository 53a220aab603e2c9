"""
Tests for the Branch-and-Bound search.
"""

from __future__ import annotations

from itertools import count

from coinselect.fees import FeeModel
from coinselect.strategies.bnb import branch_and_bound
from conftest import target

VALUES = [50_000, 30_000, 20_000, 11_178]


class TestBranchAndBound:
    def test_finds_exact_match(self, make_coin, fee_model: FeeModel) -> None:
        """20,000 + 11,178 pays 31,000 plus the two-input fee of 178 exactly."""
        coins = [make_coin(v) for v in VALUES]

        result = branch_and_bound(
            coins, target(31_000), fee_model, timeout=10, max_nodes=10_000
        )

        assert sorted(c.value for c in result.selection) == [11_178, 20_000]
        assert result.excess == 0
        assert result.exhausted

    def test_lowest_excess_without_exact_match(self, make_coin, fee_model: FeeModel) -> None:
        coins = [make_coin(v) for v in [50_000, 30_000, 20_000]]

        result = branch_and_bound(
            coins, target(31_000), fee_model, timeout=10, max_nodes=10_000
        )

        # 50,000 alone: 18,890; 30,000 + 20,000: 18,822
        assert sorted(c.value for c in result.selection) == [20_000, 30_000]
        assert result.excess == 18_822

    def test_timeout_keeps_best_so_far(self, make_coin, fee_model: FeeModel) -> None:
        coins = [make_coin(v) for v in VALUES]
        ticks = count()

        result = branch_and_bound(
            coins,
            target(31_000),
            fee_model,
            timeout=5.5,
            max_nodes=10_000,
            clock=lambda: next(ticks),
        )

        assert result.timed_out
        assert not result.exhausted
        assert result.nodes == 6
        assert result.excess == 18_822

    def test_node_limit(self, make_coin, fee_model: FeeModel) -> None:
        coins = [make_coin(v) for v in VALUES]

        result = branch_and_bound(coins, target(31_000), fee_model, timeout=10, max_nodes=1)

        assert result.node_limit_hit
        assert result.selection is None

    def test_equal_values_not_re_explored(self, make_coin, fee_model: FeeModel) -> None:
        coins = [make_coin(10_000) for _ in range(20)]

        result = branch_and_bound(
            coins, target(50_000), fee_model, timeout=10, max_nodes=100_000
        )

        assert len(result.selection) == 6
        assert result.excess == 60_000 - 50_000 - 450
        assert result.exhausted
        assert result.nodes < 50

    def test_uneconomic_coins_ignored(self, make_coin, fee_model: FeeModel) -> None:
        coins = [make_coin(60), make_coin(40_000)]

        result = branch_and_bound(coins, target(1_000), fee_model, timeout=10, max_nodes=1_000)

        assert [c.value for c in result.selection] == [40_000]

    def test_accept_excess_filters_candidates(self, make_coin, fee_model: FeeModel) -> None:
        coins = [make_coin(v) for v in [50_000, 30_000]]

        result = branch_and_bound(
            coins,
            target(10_000),
            fee_model,
            timeout=10,
            max_nodes=1_000,
            accept_excess=68,
            stop_excess=68,
        )

        assert result.selection is None
        assert result.exhausted

    def test_insufficient_pool(self, make_coin, fee_model: FeeModel) -> None:
        coins = [make_coin(1_000), make_coin(2_000)]

        result = branch_and_bound(coins, target(10_000), fee_model, timeout=10, max_nodes=1_000)

        assert result.selection is None
        assert result.nodes <= 2
