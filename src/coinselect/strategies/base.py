"""
Shared pieces of the selection strategies.

A strategy turns the available coins into an ordered candidate list, or
reports that it cannot. The selector owns the final fee and change, so a
strategy only has to make sure its candidate is *sufficient*: it must pay the
target plus the fee of the cheapest shape for its input count (one output,
no change).
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Protocol

from coinselect.amounts import checked_add
from coinselect.fees import FeeModel
from coinselect.models import Coin, SelectionStrategy, SelectionTarget, Unsatisfiable

StrategyOutput = list[Coin] | Unsatisfiable


class Strategy(Protocol):
    kind: SelectionStrategy

    def select(
        self, available: Sequence[Coin], target: SelectionTarget, fee_model: FeeModel
    ) -> StrategyOutput: ...


def required_amount(input_count: int, target: SelectionTarget, fee_model: FeeModel) -> int:
    """Smallest input total that pays ``target`` with ``input_count`` inputs."""
    return checked_add(target.amount, fee_model.fee_for(input_count, 1, target.fee_rate))


def is_sufficient(
    total: int, input_count: int, target: SelectionTarget, fee_model: FeeModel
) -> bool:
    return input_count > 0 and total >= required_amount(input_count, target, fee_model)


def accumulate(
    ordered: Iterable[Coin], target: SelectionTarget, fee_model: FeeModel
) -> StrategyOutput:
    """
    Take coins in the given order until the running total is sufficient.

    The fee is re-estimated after every addition since it grows with the
    input count.
    """
    selected: list[Coin] = []
    total = 0
    for coin in ordered:
        selected.append(coin)
        total += coin.value
        if is_sufficient(total, len(selected), target, fee_model):
            return selected
    return Unsatisfiable(
        f"Coins exhausted at {total} sats, need "
        f"{required_amount(max(len(selected), 1), target, fee_model)}"
    )


def outpoint_key(coin: Coin) -> tuple[str, int]:
    return (coin.txid, coin.vout)


def by_value_desc(coin: Coin) -> tuple[int, int, tuple[str, int]]:
    """Largest first; more confirmations win ties, then outpoint for determinism."""
    return (-coin.value, -coin.confirmations, outpoint_key(coin))


def by_value_asc(coin: Coin) -> tuple[int, int, tuple[str, int]]:
    return (coin.value, -coin.confirmations, outpoint_key(coin))


def by_age_desc(coin: Coin) -> tuple[int, int, tuple[str, int]]:
    """Most confirmations (oldest) first; larger value wins ties."""
    return (-coin.confirmations, -coin.value, outpoint_key(coin))


def economic_first(
    ordered: Iterable[Coin], target: SelectionTarget, fee_model: FeeModel
) -> list[Coin]:
    """
    Keep the order of coins worth more than their input fee, then append the
    rest largest first.

    Uneconomic coins only come into play once every economic coin has been
    tried.
    """
    economic: list[Coin] = []
    rest: list[Coin] = []
    for coin in ordered:
        if fee_model.effective_value(coin, target.fee_rate) > 0:
            economic.append(coin)
        else:
            rest.append(coin)
    return economic + sorted(rest, key=by_value_desc)
