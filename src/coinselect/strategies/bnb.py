"""
Branch-and-Bound search for low-change coin subsets.

Depth-first walk of the include/exclude tree over coins sorted by value,
largest first. For a selection of ``n`` coins the *excess* is::

    sum(selection) - target - fee(n inputs, 1 output)

i.e. whatever would end up as change (or folded into the fee). The search
looks for the smallest non-negative excess.

Pruning:
- A sufficient selection (excess >= 0) is never extended. Only coins with a
  positive effective value take part, so adding one can only grow the excess.
- A branch is dropped when the selection plus every remaining coin still
  cannot pay the target.
- Excluding a coin also excludes the following coins of equal value, since
  those branches would repeat one already explored.

The walk is bounded by a node ceiling and a wall-clock deadline. Hitting
either ends the search with the best selection found so far. This is not an
error.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from coinselect.fees import FeeModel
from coinselect.models import Coin, SelectionTarget
from coinselect.strategies.base import by_value_desc


@dataclass
class BnbResult:
    selection: list[Coin] | None
    excess: int | None
    nodes: int
    timed_out: bool = False
    node_limit_hit: bool = False

    @property
    def exhausted(self) -> bool:
        """True when the whole tree was explored, so the result is optimal."""
        return not (self.timed_out or self.node_limit_hit)


def branch_and_bound(
    coins: Sequence[Coin],
    target: SelectionTarget,
    fee_model: FeeModel,
    *,
    timeout: float,
    max_nodes: int,
    accept_excess: int | None = None,
    stop_excess: int = 0,
    clock: Callable[[], float] = time.monotonic,
) -> BnbResult:
    """
    Search ``coins`` for the sufficient subset with the lowest excess.

    Args:
        coins: Candidate coins, any order
        target: Amount and fee rate to pay
        fee_model: Size/fee estimator
        timeout: Wall-clock budget in seconds
        max_nodes: Maximum number of tree nodes to visit
        accept_excess: Only record selections whose excess is at most this
            (None records any sufficient selection)
        stop_excess: End the search as soon as a selection with excess at
            most this is recorded

    Returns:
        BnbResult with the best selection (None if nothing acceptable found)
    """
    deadline = clock() + timeout
    input_fee = fee_model.input_fee(target.fee_rate)
    pool = sorted((c for c in coins if c.value > input_fee), key=by_value_desc)
    count = len(pool)

    # remaining[i] = total value of pool[i:]
    remaining = [0] * (count + 1)
    for i in range(count - 1, -1, -1):
        remaining[i] = remaining[i + 1] + pool[i].value

    # fee for n inputs with one output, cached since n repeats a lot
    fee_cache: dict[int, int] = {}

    def needed(n: int) -> int:
        fee = fee_cache.get(n)
        if fee is None:
            fee = fee_model.fee_for(n, 1, target.fee_rate)
            fee_cache[n] = fee
        return target.amount + fee

    result = BnbResult(selection=None, excess=None, nodes=0)
    selected: list[int] = []
    current = 0
    index = 0

    while True:
        result.nodes += 1
        if result.nodes > max_nodes:
            result.node_limit_hit = True
            break
        if clock() > deadline:
            result.timed_out = True
            break

        backtrack = False
        n = len(selected)
        excess = current - needed(n) if n else -1

        if excess >= 0:
            if (accept_excess is None or excess <= accept_excess) and (
                result.excess is None or excess < result.excess
            ):
                result.selection = [pool[i] for i in selected]
                result.excess = excess
                if excess <= stop_excess:
                    break
            backtrack = True
        elif index >= count or current + remaining[index] < needed(max(n, 1)):
            backtrack = True

        if not backtrack:
            selected.append(index)
            current += pool[index].value
            index += 1
            continue

        if not selected:
            break
        last = selected.pop()
        current -= pool[last].value
        index = last + 1
        while index < count and pool[index].value == pool[last].value:
            index += 1

    return result
