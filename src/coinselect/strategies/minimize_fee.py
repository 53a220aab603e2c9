"""
MinimizeFee: fewest, largest inputs.

Transaction weight grows with every input, so spending the biggest coins
first keeps the input count (and the fee) as low as a greedy pass can.
"""

from __future__ import annotations

from collections.abc import Sequence

from coinselect.fees import FeeModel
from coinselect.models import Coin, SelectionStrategy, SelectionTarget
from coinselect.strategies.base import StrategyOutput, accumulate, by_value_desc


class MinimizeFeeStrategy:
    kind = SelectionStrategy.MINIMIZE_FEE

    def select(
        self, available: Sequence[Coin], target: SelectionTarget, fee_model: FeeModel
    ) -> StrategyOutput:
        return accumulate(sorted(available, key=by_value_desc), target, fee_model)
