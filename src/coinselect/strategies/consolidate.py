"""
Consolidate: spend the smallest coins first.

Trades fee efficiency for a tidier pool: as many small inputs as the payment
allows. Coins worth less than their own input fee are left alone unless the
payment cannot be made without them, since they would only add fee.
"""

from __future__ import annotations

from collections.abc import Sequence

from coinselect.fees import FeeModel
from coinselect.models import Coin, SelectionStrategy, SelectionTarget
from coinselect.strategies.base import StrategyOutput, accumulate, by_value_asc, economic_first


class ConsolidateStrategy:
    kind = SelectionStrategy.CONSOLIDATE

    def select(
        self, available: Sequence[Coin], target: SelectionTarget, fee_model: FeeModel
    ) -> StrategyOutput:
        ordered = economic_first(sorted(available, key=by_value_asc), target, fee_model)
        return accumulate(ordered, target, fee_model)
