"""
MinimizeChange: the subset whose total lands closest above target + fee.

Runs a bounded Branch-and-Bound search. When the search hits its time or
node budget it keeps the best subset found so far. If it found nothing at
all, the MinimizeFee result is used instead, so the strategy always
finishes within its budget.
"""

from __future__ import annotations

from collections.abc import Sequence

from loguru import logger

from coinselect.constants import DEFAULT_BNB_MAX_NODES, DEFAULT_BNB_TIMEOUT_MS
from coinselect.fees import FeeModel
from coinselect.models import Coin, SelectionStrategy, SelectionTarget
from coinselect.strategies.base import StrategyOutput
from coinselect.strategies.bnb import branch_and_bound
from coinselect.strategies.minimize_fee import MinimizeFeeStrategy


class MinimizeChangeStrategy:
    kind = SelectionStrategy.MINIMIZE_CHANGE

    def __init__(
        self,
        timeout: float = DEFAULT_BNB_TIMEOUT_MS / 1000,
        max_nodes: int = DEFAULT_BNB_MAX_NODES,
    ):
        if timeout <= 0 or max_nodes <= 0:
            raise ValueError("timeout and max_nodes must be positive")
        self.timeout = timeout
        self.max_nodes = max_nodes

    def select(
        self, available: Sequence[Coin], target: SelectionTarget, fee_model: FeeModel
    ) -> StrategyOutput:
        result = branch_and_bound(
            available,
            target,
            fee_model,
            timeout=self.timeout,
            max_nodes=self.max_nodes,
        )

        if result.selection is not None:
            if not result.exhausted:
                logger.warning(
                    f"Branch-and-bound stopped after {result.nodes} nodes "
                    f"(timed_out={result.timed_out}), using best excess {result.excess}"
                )
            else:
                logger.debug(f"Branch-and-bound found excess {result.excess} in {result.nodes} nodes")
            return result.selection

        if not result.exhausted:
            logger.warning(
                f"Branch-and-bound found no candidate within {result.nodes} nodes, "
                "falling back to MinimizeFee"
            )
        return MinimizeFeeStrategy().select(available, target, fee_model)
