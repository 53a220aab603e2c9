"""
OldestFirst: spend the coins with the most confirmations first.

Keeps the UTXO set young and consolidates dormant funds. Old coins that
cost more to spend than they hold are skipped until nothing else is left.
"""

from __future__ import annotations

from collections.abc import Sequence

from coinselect.fees import FeeModel
from coinselect.models import Coin, SelectionStrategy, SelectionTarget
from coinselect.strategies.base import StrategyOutput, accumulate, by_age_desc, economic_first


class OldestFirstStrategy:
    kind = SelectionStrategy.OLDEST_FIRST

    def select(
        self, available: Sequence[Coin], target: SelectionTarget, fee_model: FeeModel
    ) -> StrategyOutput:
        ordered = economic_first(sorted(available, key=by_age_desc), target, fee_model)
        return accumulate(ordered, target, fee_model)
