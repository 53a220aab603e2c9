"""
AvoidChange: look for a subset that needs no change output at all.

A match is any subset whose total exceeds target + fee by at most the dust
threshold, since that remainder is folded into the fee rather than paid out
as change. The search visits a bounded number of candidate subsets. Without
a match it fails over to MinimizeFee.
"""

from __future__ import annotations

from collections.abc import Sequence

from loguru import logger

from coinselect.constants import DEFAULT_AVOID_CHANGE_MAX_CANDIDATES, DEFAULT_BNB_TIMEOUT_MS
from coinselect.fees import FeeModel
from coinselect.models import Coin, SelectionStrategy, SelectionTarget
from coinselect.strategies.base import StrategyOutput
from coinselect.strategies.bnb import branch_and_bound
from coinselect.strategies.minimize_fee import MinimizeFeeStrategy


class AvoidChangeStrategy:
    kind = SelectionStrategy.AVOID_CHANGE

    def __init__(
        self,
        max_candidates: int = DEFAULT_AVOID_CHANGE_MAX_CANDIDATES,
        timeout: float = DEFAULT_BNB_TIMEOUT_MS / 1000,
    ):
        if max_candidates <= 0 or timeout <= 0:
            raise ValueError("max_candidates and timeout must be positive")
        self.max_candidates = max_candidates
        self.timeout = timeout

    def select(
        self, available: Sequence[Coin], target: SelectionTarget, fee_model: FeeModel
    ) -> StrategyOutput:
        tolerance = fee_model.dust_threshold(target.fee_rate)
        result = branch_and_bound(
            available,
            target,
            fee_model,
            timeout=self.timeout,
            max_nodes=self.max_candidates,
            accept_excess=tolerance,
            stop_excess=tolerance,
        )
        if result.selection is not None:
            logger.debug(f"Changeless match with excess {result.excess} after {result.nodes} nodes")
            return result.selection

        logger.debug(
            f"No changeless match within {result.nodes} nodes "
            f"(tolerance {tolerance}), falling back to MinimizeFee"
        )
        return MinimizeFeeStrategy().select(available, target, fee_model)
