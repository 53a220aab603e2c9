"""
Coin selection strategies.

Each strategy is a small policy object with a ``select`` method; the
``SelectionStrategy`` enum picks one at the call site via ``build_strategy``.
"""

from __future__ import annotations

from collections.abc import Sequence

from coinselect.config import Settings
from coinselect.models import OutPoint, SelectionStrategy
from coinselect.strategies.avoid_change import AvoidChangeStrategy
from coinselect.strategies.base import Strategy, StrategyOutput
from coinselect.strategies.bnb import BnbResult, branch_and_bound
from coinselect.strategies.coin_control import CoinControlStrategy
from coinselect.strategies.consolidate import ConsolidateStrategy
from coinselect.strategies.minimize_change import MinimizeChangeStrategy
from coinselect.strategies.minimize_fee import MinimizeFeeStrategy
from coinselect.strategies.oldest_first import OldestFirstStrategy
from coinselect.strategies.privacy import MaximizePrivacyStrategy, PrivacyFocusedStrategy


def build_strategy(
    kind: SelectionStrategy,
    settings: Settings | None = None,
    coin_ids: Sequence[OutPoint] | None = None,
) -> Strategy:
    """Instantiate the strategy for ``kind`` with tunables from ``settings``."""
    settings = settings or Settings()

    if kind == SelectionStrategy.MINIMIZE_FEE:
        return MinimizeFeeStrategy()
    elif kind == SelectionStrategy.MINIMIZE_CHANGE:
        return MinimizeChangeStrategy(
            timeout=settings.bnb_timeout, max_nodes=settings.bnb_max_nodes
        )
    elif kind == SelectionStrategy.OLDEST_FIRST:
        return OldestFirstStrategy()
    elif kind == SelectionStrategy.PRIVACY_FOCUSED:
        return PrivacyFocusedStrategy(seed=settings.privacy_seed)
    elif kind == SelectionStrategy.MAXIMIZE_PRIVACY:
        return MaximizePrivacyStrategy(seed=settings.privacy_seed)
    elif kind == SelectionStrategy.CONSOLIDATE:
        return ConsolidateStrategy()
    elif kind == SelectionStrategy.AVOID_CHANGE:
        return AvoidChangeStrategy(
            max_candidates=settings.avoid_change_max_candidates, timeout=settings.bnb_timeout
        )
    elif kind == SelectionStrategy.COIN_CONTROL:
        return CoinControlStrategy(coin_ids or [])
    raise ValueError(f"Unknown selection strategy: {kind}")


__all__ = [
    "AvoidChangeStrategy",
    "BnbResult",
    "CoinControlStrategy",
    "ConsolidateStrategy",
    "MaximizePrivacyStrategy",
    "MinimizeChangeStrategy",
    "MinimizeFeeStrategy",
    "OldestFirstStrategy",
    "PrivacyFocusedStrategy",
    "Strategy",
    "StrategyOutput",
    "branch_and_bound",
    "build_strategy",
]
