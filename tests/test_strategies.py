"""
Tests for the individual selection strategies.
"""

from __future__ import annotations

import pytest

from coinselect.config import Settings
from coinselect.fees import FeeModel
from coinselect.models import SelectionStrategy, Unsatisfiable
from coinselect.strategies import (
    AvoidChangeStrategy,
    CoinControlStrategy,
    ConsolidateStrategy,
    MaximizePrivacyStrategy,
    MinimizeChangeStrategy,
    MinimizeFeeStrategy,
    OldestFirstStrategy,
    PrivacyFocusedStrategy,
    build_strategy,
)
from coinselect.strategies.base import accumulate, is_sufficient
from coinselect.strategies.privacy import derive_seed, roundness
from conftest import target


def values(selection) -> list[int]:
    return [c.value for c in selection]


class TestAccumulate:
    def test_stops_once_sufficient(self, make_coin, fee_model: FeeModel) -> None:
        coins = [make_coin(v) for v in [20_000, 15_000, 10_000, 5_000]]
        assert values(accumulate(coins, target(40_000), fee_model)) == [20_000, 15_000, 10_000]

    def test_exhausted(self, make_coin, fee_model: FeeModel) -> None:
        result = accumulate([make_coin(1_000)], target(40_000), fee_model)
        assert isinstance(result, Unsatisfiable)

    def test_empty_selection_never_sufficient(self, fee_model: FeeModel) -> None:
        assert not is_sufficient(10**9, 0, target(1), fee_model)


class TestMinimizeFee:
    def test_largest_first(self, make_coin, fee_model: FeeModel) -> None:
        coins = [make_coin(v) for v in [10_000, 50_000, 20_000]]
        result = MinimizeFeeStrategy().select(coins, target(25_000), fee_model)
        assert values(result) == [50_000]

    def test_adds_until_fee_covered(self, make_coin, fee_model: FeeModel) -> None:
        coins = [make_coin(v) for v in [10_000, 20_000, 15_000]]
        result = MinimizeFeeStrategy().select(coins, target(40_000), fee_model)
        assert values(result) == [20_000, 15_000, 10_000]

    def test_ties_prefer_more_confirmations(self, make_coin, fee_model: FeeModel) -> None:
        young = make_coin(30_000, confirmations=1)
        old = make_coin(30_000, confirmations=50)
        result = MinimizeFeeStrategy().select([young, old], target(10_000), fee_model)
        assert result == [old]


class TestOldestFirst:
    def test_most_confirmations_first(self, make_coin, fee_model: FeeModel) -> None:
        a = make_coin(30_000, confirmations=10)
        b = make_coin(50_000, confirmations=2)
        c = make_coin(20_000, confirmations=100)
        result = OldestFirstStrategy().select([a, b, c], target(40_000), fee_model)
        assert result == [c, a]

    def test_old_uneconomic_coin_skipped(self, make_coin, fee_model: FeeModel) -> None:
        dusty = make_coin(50, confirmations=1_000)
        fresh = make_coin(40_000, confirmations=1)
        result = OldestFirstStrategy().select([dusty, fresh], target(1_000), fee_model)
        assert result == [fresh]


class TestConsolidate:
    def test_smallest_first(self, make_coin, fee_model: FeeModel) -> None:
        coins = [make_coin(v) for v in [5_000, 1_000, 30_000, 2_000]]
        result = ConsolidateStrategy().select(coins, target(3_000), fee_model)
        assert values(result) == [1_000, 2_000, 5_000]

    def test_skips_uneconomic_coins(self, make_coin, fee_model: FeeModel) -> None:
        coins = [make_coin(v) for v in [50, 2_000, 40_000]]
        result = ConsolidateStrategy().select(coins, target(1_000), fee_model)
        assert values(result) == [2_000]

    def test_many_uneconomic_coins_do_not_block_payment(
        self, make_coin, fee_model: FeeModel
    ) -> None:
        """A thousand 10-sat coins would add more fee than they carry."""
        coins = [make_coin(50_000)] + [make_coin(10) for _ in range(1_000)]
        result = ConsolidateStrategy().select(coins, target(40_000), fee_model)
        assert values(result) == [50_000]


class TestMinimizeChange:
    def test_exact_match(self, make_coin, fee_model: FeeModel) -> None:
        coins = [make_coin(v) for v in [50_000, 30_000, 20_000, 11_178]]
        result = MinimizeChangeStrategy().select(coins, target(31_000), fee_model)
        assert sorted(values(result)) == [11_178, 20_000]

    def test_falls_back_to_minimize_fee(self, make_coin, fee_model: FeeModel) -> None:
        coins = [make_coin(v) for v in [50_000, 30_000, 20_000, 11_178]]
        result = MinimizeChangeStrategy(max_nodes=1).select(coins, target(31_000), fee_model)
        assert values(result) == [50_000]

    def test_insufficient(self, make_coin, fee_model: FeeModel) -> None:
        result = MinimizeChangeStrategy().select([make_coin(1_000)], target(5_000), fee_model)
        assert isinstance(result, Unsatisfiable)

    @pytest.mark.parametrize("kwargs", [{"timeout": 0}, {"max_nodes": 0}])
    def test_rejects_bad_bounds(self, kwargs) -> None:
        with pytest.raises(ValueError):
            MinimizeChangeStrategy(**kwargs)


class TestAvoidChange:
    def test_exact_match(self, make_coin, fee_model: FeeModel) -> None:
        coins = [make_coin(v) for v in [50_000, 30_000, 20_000, 11_178]]
        result = AvoidChangeStrategy().select(coins, target(31_000), fee_model)
        assert sorted(values(result)) == [11_178, 20_000]

    def test_accepts_excess_below_dust(self, make_coin, fee_model: FeeModel) -> None:
        coins = [make_coin(40_000), make_coin(31_160)]
        result = AvoidChangeStrategy().select(coins, target(31_000), fee_model)
        assert values(result) == [31_160]

    def test_falls_back_without_match(self, make_coin, fee_model: FeeModel) -> None:
        coins = [make_coin(v) for v in [50_000, 30_000]]
        result = AvoidChangeStrategy().select(coins, target(10_000), fee_model)
        assert values(result) == [50_000]


class TestPrivacy:
    def test_roundness(self) -> None:
        assert roundness(100_000) == 2
        assert roundness(2_500_000) == 2
        assert roundness(50_000) == 1
        assert roundness(43_217) == 0
        assert roundness(0) == 0

    def test_mixes_change_and_non_change(self, make_coin, fee_model: FeeModel) -> None:
        coins = [
            make_coin(40_000),
            make_coin(35_000),
            make_coin(30_000, is_change=True),
            make_coin(25_000, is_change=True),
        ]
        for seed in range(10):
            result = PrivacyFocusedStrategy(seed=seed).select(coins, target(20_000), fee_model)
            assert len(result) == 2
            assert {c.is_change for c in result} == {True, False}
            assert is_sufficient(sum(values(result)), len(result), target(20_000), fee_model)

    def test_deterministic_for_same_input(self, make_coin, fee_model: FeeModel) -> None:
        coins = [make_coin(10_000 + i * 1_013, is_change=i % 2 == 0) for i in range(30)]
        first = PrivacyFocusedStrategy().select(coins, target(60_000), fee_model)
        second = PrivacyFocusedStrategy().select(list(reversed(coins)), target(60_000), fee_model)
        assert first == second
        assert derive_seed(coins, target(60_000)) == derive_seed(coins[::-1], target(60_000))
        assert derive_seed(coins, target(60_000)) != derive_seed(coins, target(60_001))

    def test_confirmed_coins_first(self, make_coin, fee_model: FeeModel) -> None:
        unconfirmed = make_coin(90_000, confirmations=0)
        confirmed = make_coin(40_000, confirmations=3)
        for seed in range(10):
            result = PrivacyFocusedStrategy(seed=seed).select(
                [unconfirmed, confirmed], target(20_000), fee_model
            )
            assert result == [confirmed]

    def test_skips_uneconomic_coins(self, make_coin, fee_model: FeeModel) -> None:
        coins = [make_coin(60), make_coin(50_000)]
        for seed in range(10):
            result = PrivacyFocusedStrategy(seed=seed).select(coins, target(1_000), fee_model)
            assert values(result) == [50_000]

    def test_insufficient(self, make_coin, fee_model: FeeModel) -> None:
        result = PrivacyFocusedStrategy(seed=1).select([make_coin(10_000)], target(20_000), fee_model)
        assert isinstance(result, Unsatisfiable)

    def test_maximize_privacy_avoids_round_amounts(self, make_coin, fee_model: FeeModel) -> None:
        coins = [make_coin(100_000), make_coin(50_000), make_coin(43_217)]
        for seed in range(10):
            result = MaximizePrivacyStrategy(seed=seed).select(coins, target(20_000), fee_model)
            assert values(result) == [43_217]

    def test_maximize_privacy_uses_round_coins_when_needed(
        self, make_coin, fee_model: FeeModel
    ) -> None:
        coins = [make_coin(100_000), make_coin(50_000), make_coin(43_217)]
        result = MaximizePrivacyStrategy(seed=3).select(coins, target(80_000), fee_model)
        assert values(result) == [43_217, 50_000]

    def test_spreads_inputs_over_addresses(self, make_coin, fee_model: FeeModel) -> None:
        """Coins sharing an address are not co-spent while another address is available."""
        coins = [make_coin(30_000, address="bc1qsame") for _ in range(4)]
        coins.append(make_coin(30_000, address="bc1qother"))
        for seed in range(20):
            result = PrivacyFocusedStrategy(seed=seed).select(coins, target(50_000), fee_model)
            assert sorted(c.address for c in result) == ["bc1qother", "bc1qsame"]

    def test_reuses_address_when_nothing_else_is_left(
        self, make_coin, fee_model: FeeModel
    ) -> None:
        coins = [make_coin(30_000, address="bc1qsame") for _ in range(3)]
        result = PrivacyFocusedStrategy(seed=1).select(coins, target(50_000), fee_model)
        assert len(result) == 2
        assert {c.address for c in result} == {"bc1qsame"}

    def test_maximize_privacy_prefers_lightly_used_addresses(
        self, make_coin, fee_model: FeeModel
    ) -> None:
        busy = [make_coin(31_234, address="bc1qbusy") for _ in range(3)]
        lone = make_coin(31_234, address="bc1qlone")
        for seed in range(10):
            result = MaximizePrivacyStrategy(seed=seed).select(
                [*busy, lone], target(20_000), fee_model
            )
            assert result == [lone]


class TestCoinControl:
    def test_keeps_request_order(self, make_coin, fee_model: FeeModel) -> None:
        a, b, c = make_coin(10_000), make_coin(20_000), make_coin(30_000)
        result = CoinControlStrategy([c.outpoint, a.outpoint]).select(
            [a, b, c], target(35_000), fee_model
        )
        assert result == [c, a]

    def test_rejects_unknown(self, make_coin, fee_model: FeeModel) -> None:
        known, unknown = make_coin(50_000), make_coin(50_000)
        result = CoinControlStrategy([unknown.outpoint]).select([known], target(1_000), fee_model)
        assert isinstance(result, Unsatisfiable)
        assert "Unknown coin" in result.reason

    def test_rejects_frozen(self, make_coin, fee_model: FeeModel) -> None:
        coin = make_coin(50_000, frozen=True)
        result = CoinControlStrategy([coin.outpoint]).select([coin], target(1_000), fee_model)
        assert isinstance(result, Unsatisfiable)
        assert "frozen" in result.reason

    def test_rejects_duplicates_and_empty(self, make_coin, fee_model: FeeModel) -> None:
        coin = make_coin(50_000)
        dup = CoinControlStrategy([coin.outpoint, coin.outpoint]).select(
            [coin], target(1_000), fee_model
        )
        empty = CoinControlStrategy([]).select([coin], target(1_000), fee_model)
        assert isinstance(dup, Unsatisfiable)
        assert isinstance(empty, Unsatisfiable)

    def test_rejects_insufficient(self, make_coin, fee_model: FeeModel) -> None:
        coin = make_coin(10_000)
        result = CoinControlStrategy([coin.outpoint]).select([coin], target(10_000), fee_model)
        assert isinstance(result, Unsatisfiable)


class TestBuildStrategy:
    def test_every_kind_builds(self) -> None:
        for kind in SelectionStrategy:
            assert build_strategy(kind).kind == kind

    def test_tunables_from_settings(self) -> None:
        settings = Settings(
            _env_file=None,
            bnb_timeout_ms=250,
            bnb_max_nodes=500,
            avoid_change_max_candidates=42,
            privacy_seed=9,
        )
        minimize_change = build_strategy(SelectionStrategy.MINIMIZE_CHANGE, settings)
        avoid_change = build_strategy(SelectionStrategy.AVOID_CHANGE, settings)
        privacy = build_strategy(SelectionStrategy.PRIVACY_FOCUSED, settings)

        assert minimize_change.timeout == 0.25
        assert minimize_change.max_nodes == 500
        assert avoid_change.max_candidates == 42
        assert privacy.seed == 9

    def test_unknown_kind(self) -> None:
        with pytest.raises(ValueError):
            build_strategy("bogus")  # type: ignore[arg-type]
