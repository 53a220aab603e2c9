"""
Privacy-oriented selection.

Both strategies draw coins in a shuffled order and alternate between change
and non-change coins, so a payment does not consist only of one kind of
output when the pool offers both, and they spread inputs over as many
addresses as the payment needs. MaximizePrivacy also holds back coins with
round amounts, which tend to be user-chosen payment values and make inputs
easy to fingerprint, and prefers addresses holding few coins.

The shuffle is seeded. With no explicit seed it is derived from the coins
and the target, so the same pool and payment always produce the same
selection and a stale or malicious backend learns nothing new by repeating
requests.
"""

from __future__ import annotations

import hashlib
import random
from collections import Counter
from collections.abc import Sequence

from coinselect.constants import ROUND_AMOUNT_UNIT, VERY_ROUND_AMOUNT_UNIT
from coinselect.fees import FeeModel
from coinselect.models import Coin, SelectionStrategy, SelectionTarget, Unsatisfiable
from coinselect.strategies.base import (
    StrategyOutput,
    is_sufficient,
    outpoint_key,
    required_amount,
)


def derive_seed(coins: Sequence[Coin], target: SelectionTarget) -> int:
    h = hashlib.sha256()
    for coin in sorted(coins, key=outpoint_key):
        h.update(f"{coin.outpoint}:{coin.value};".encode())
    h.update(f"{target.amount}@{target.fee_rate}".encode())
    return int.from_bytes(h.digest()[:8], "big")


def roundness(value: int) -> int:
    """0 for ordinary amounts, 1 for multiples of 10k sats, 2 for multiples of 100k."""
    if value == 0:
        return 0
    if value % VERY_ROUND_AMOUNT_UNIT == 0:
        return 2
    if value % ROUND_AMOUNT_UNIT == 0:
        return 1
    return 0


def address_key(coin: Coin) -> str:
    """Grouping key for address reuse; coins without an address stand alone."""
    return coin.address if coin.address is not None else f"outpoint:{coin.outpoint}"


class PrivacyFocusedStrategy:
    """
    Shuffled draw that spreads inputs over distinct addresses.

    Spending two coins from one address links nothing new, but spending them
    together with coins from other addresses links all of those addresses. A
    coin whose address is already in the selection is only drawn once every
    unused address is exhausted.
    """

    kind = SelectionStrategy.PRIVACY_FOCUSED

    def __init__(self, seed: int | None = None):
        self.seed = seed

    def rank(self, coin: Coin) -> int:
        """Lower ranks are drawn first; coins of equal rank are shuffled."""
        return 0 if coin.is_confirmed else 1

    def sort_key(self, coin: Coin, address_counts: Counter[str]) -> tuple[int, ...]:
        return (self.rank(coin),)

    def _ordered(
        self, coins: list[Coin], rng: random.Random, address_counts: Counter[str]
    ) -> list[Coin]:
        coins = sorted(coins, key=outpoint_key)
        rng.shuffle(coins)
        # sort is stable, so the shuffle survives within each rank
        coins.sort(key=lambda c: self.sort_key(c, address_counts))
        return coins

    def _next(
        self, queue: list[Coin], used: set[str], address_counts: Counter[str]
    ) -> tuple[tuple[int, ...], int]:
        """Best (priority, index) in ``queue``; coins at unused addresses come first."""
        for i, coin in enumerate(queue):
            if address_key(coin) not in used:
                return (0, *self.sort_key(coin, address_counts)), i
        return (1, *self.sort_key(queue[0], address_counts)), 0

    def select(
        self, available: Sequence[Coin], target: SelectionTarget, fee_model: FeeModel
    ) -> StrategyOutput:
        rng = random.Random(self.seed if self.seed is not None else derive_seed(available, target))

        # Coins that cost more to spend than they are worth never help
        usable = [c for c in available if fee_model.effective_value(c, target.fee_rate) > 0]
        address_counts = Counter(address_key(c) for c in usable)
        queues = {
            False: self._ordered([c for c in usable if not c.is_change], rng, address_counts),
            True: self._ordered([c for c in usable if c.is_change], rng, address_counts),
        }

        selected: list[Coin] = []
        used: set[str] = set()
        total = 0
        last_flag: bool | None = None
        while queues[False] or queues[True]:
            heads = {flag: self._next(q, used, address_counts) for flag, q in queues.items() if q}
            best = min(priority for priority, _ in heads.values())
            candidates = [flag for flag, (priority, _) in heads.items() if priority == best]
            if len(candidates) == 1:
                flag = candidates[0]
            elif last_flag is None:
                flag = rng.random() < 0.5
            else:
                flag = not last_flag

            coin = queues[flag].pop(heads[flag][1])
            selected.append(coin)
            used.add(address_key(coin))
            total += coin.value
            last_flag = flag
            if is_sufficient(total, len(selected), target, fee_model):
                break
        else:
            return Unsatisfiable(
                f"Usable coins total {total} sats, need "
                f"{required_amount(max(len(selected), 1), target, fee_model)}"
            )

        # A single-kind selection leaks which outputs belong together; mix in
        # one coin of the other kind when the pool has one. A positive
        # effective value keeps the selection sufficient.
        flags = {coin.is_change for coin in selected}
        if len(flags) == 1:
            other = queues[not flags.pop()]
            if other:
                selected.append(other.pop(self._next(other, used, address_counts)[1]))

        return selected


class MaximizePrivacyStrategy(PrivacyFocusedStrategy):
    kind = SelectionStrategy.MAXIMIZE_PRIVACY

    def rank(self, coin: Coin) -> int:
        # Round amounts weigh more than confirmation status
        return roundness(coin.value) * 2 + super().rank(coin)

    def sort_key(self, coin: Coin, address_counts: Counter[str]) -> tuple[int, ...]:
        # Addresses holding fewer coins reveal less about the wallet
        return (self.rank(coin), address_counts[address_key(coin)])
