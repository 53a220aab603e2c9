"""
CoinControl: spend exactly the coins the caller picked.

No search happens here. The request is checked and either taken as-is or
rejected with a reason the caller can show or use to fall back to an
automatic strategy.
"""

from __future__ import annotations

from collections.abc import Sequence

from coinselect.fees import FeeModel
from coinselect.models import Coin, OutPoint, SelectionStrategy, SelectionTarget, Unsatisfiable
from coinselect.strategies.base import StrategyOutput, is_sufficient, required_amount


class CoinControlStrategy:
    kind = SelectionStrategy.COIN_CONTROL

    def __init__(self, outpoints: Sequence[OutPoint]):
        self.outpoints = list(outpoints)

    def select(
        self, available: Sequence[Coin], target: SelectionTarget, fee_model: FeeModel
    ) -> StrategyOutput:
        """
        Validate the requested coins against ``available``.

        ``available`` may include frozen coins so that a frozen request can be
        reported as such rather than as unknown.
        """
        if not self.outpoints:
            return Unsatisfiable("No coins requested")

        if len(set(self.outpoints)) != len(self.outpoints):
            return Unsatisfiable("Duplicate coins requested")

        by_outpoint = {coin.outpoint: coin for coin in available}
        selected: list[Coin] = []
        for outpoint in self.outpoints:
            coin = by_outpoint.get(outpoint)
            if coin is None:
                return Unsatisfiable(f"Unknown coin {outpoint}")
            if coin.frozen:
                return Unsatisfiable(f"Coin {outpoint} is frozen")
            selected.append(coin)

        total = sum(coin.value for coin in selected)
        if not is_sufficient(total, len(selected), target, fee_model):
            return Unsatisfiable(
                f"Requested coins total {total} sats, need "
                f"{required_amount(len(selected), target, fee_model)}"
            )
        return selected
