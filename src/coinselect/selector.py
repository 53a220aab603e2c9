"""
Coin selector: runs a strategy and turns its candidate into a final result.

The selector is side-effect free. It returns the result together with the
events describing it and leaves publishing to the caller (normally
``CoinManager``), which keeps it trivially testable.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from loguru import logger

from coinselect.amounts import checked_add, checked_sub, checked_sum
from coinselect.config import Settings
from coinselect.events import Event, Selected, SelectionFailed
from coinselect.fees import FeeModel
from coinselect.models import (
    Coin,
    InsufficientFunds,
    OutPoint,
    SelectionResult,
    SelectionStrategy,
    SelectionSuccess,
    SelectionTarget,
    Unsatisfiable,
)
from coinselect.strategies import build_strategy


class BalanceInvariantViolated(AssertionError):
    """Inputs do not equal target + fee + change, or change is dust. Always a bug."""

    pass


class SelectionIntegrityError(RuntimeError):
    """A strategy returned a candidate that breaks its contract. Always a bug."""

    pass


@dataclass(frozen=True)
class SelectionOutcome:
    result: SelectionResult
    events: tuple[Event, ...]


class CoinSelector:
    def __init__(self, fee_model: FeeModel | None = None, settings: Settings | None = None):
        self.settings = settings or Settings()
        self.fee_model = fee_model or FeeModel(dust_floor=self.settings.dust_floor)

    def select(
        self,
        strategy: SelectionStrategy,
        coins: Sequence[Coin],
        target: SelectionTarget,
        coin_ids: Sequence[OutPoint] | None = None,
    ) -> SelectionOutcome:
        """
        Select coins paying ``target`` using ``strategy``.

        Args:
            strategy: Which selection policy to run
            coins: Coin snapshot; frozen coins are never selected
            target: Amount and fee rate
            coin_ids: Requested coins, CoinControl only

        Returns:
            SelectionOutcome with the result and the events to publish

        Raises:
            BalanceInvariantViolated: fee/change arithmetic is broken
            SelectionIntegrityError: the strategy returned an invalid candidate
        """
        strategy = SelectionStrategy(strategy)
        eligible = [coin for coin in coins if not coin.frozen]
        available = checked_sum(coin.value for coin in eligible)
        required = checked_add(
            target.amount, self.fee_model.estimate_fee_for_minimal_tx(target.fee_rate)
        )

        logger.debug(
            f"Selecting with {strategy.value}: target={target.amount} "
            f"fee_rate={target.fee_rate} eligible={len(eligible)} available={available}"
        )

        if available < required:
            logger.info(f"Insufficient funds: available {available}, required {required}")
            return self._failed(strategy, InsufficientFunds(available, required))

        impl = build_strategy(strategy, self.settings, coin_ids)
        # CoinControl sees frozen coins too so it can say why a request fails
        candidate = impl.select(
            coins if strategy == SelectionStrategy.COIN_CONTROL else eligible,
            target,
            self.fee_model,
        )

        if isinstance(candidate, Unsatisfiable):
            result: SelectionResult = candidate
            if strategy.is_automatic:
                result = self._check_feasible(eligible, target) or candidate
            logger.info(f"Selection with {strategy.value} failed: {candidate.reason}")
            return self._failed(strategy, result, available, required)

        self._validate_candidate(candidate, eligible)
        success = self.finalize(candidate, target)

        logger.info(
            f"Selected {success.input_count} coins with {strategy.value}: "
            f"input={success.total_input} fee={success.fee} change={success.change}"
        )
        event = Selected(
            strategy=strategy.value,
            input_count=success.input_count,
            fee=success.fee,
            change=success.change,
        )
        return SelectionOutcome(result=success, events=(event,))

    def finalize(self, candidate: Sequence[Coin], target: SelectionTarget) -> SelectionSuccess:
        """
        Compute the final fee and change for a candidate.

        With change the transaction has two outputs. If the change would be
        negative or dust, the one-output shape is used instead and whatever
        remains above target + fee is added to the fee.
        """
        total = checked_sum(coin.value for coin in candidate)
        n = len(candidate)
        dust = self.fee_model.dust_threshold(target.fee_rate)
        fee_with_change = self.fee_model.fee_for(n, 2, target.fee_rate)

        if total - target.amount - fee_with_change >= dust:
            fee = fee_with_change
            change = checked_sub(checked_sub(total, target.amount), fee)
        else:
            fee_without_change = self.fee_model.fee_for(n, 1, target.fee_rate)
            if total < checked_add(target.amount, fee_without_change):
                raise SelectionIntegrityError(
                    f"Candidate of {n} coins ({total} sats) cannot pay "
                    f"{target.amount} + fee {fee_without_change}"
                )
            fee = checked_sub(total, target.amount)
            change = 0
            if fee > fee_without_change:
                logger.debug(f"Folded {fee - fee_without_change} sats of dust change into fee")

        if total != target.amount + fee + change or (0 < change < dust):
            raise BalanceInvariantViolated(
                f"inputs={total} target={target.amount} fee={fee} change={change} dust={dust}"
            )
        return SelectionSuccess(selected=tuple(candidate), fee=fee, change=change)

    def max_spendable(self, coins: Sequence[Coin], target: SelectionTarget) -> int:
        """Largest payment the coins can fund at this fee rate (one output)."""
        return self._best_spend(coins, target)[0]

    def _best_spend(self, coins: Sequence[Coin], target: SelectionTarget) -> tuple[int, int]:
        """
        Best (payment, input count) over all subsets of ``coins``.

        For a fixed input count the largest coins are the best subset, so
        checking each prefix of the coins sorted by value is exact.
        """
        best, best_count = 0, 0
        total = 0
        for n, value in enumerate(sorted((c.value for c in coins), reverse=True), start=1):
            total += value
            spend = total - self.fee_model.fee_for(n, 1, target.fee_rate)
            if spend > best:
                best, best_count = spend, n
        return best, best_count

    def _check_feasible(
        self, eligible: Sequence[Coin], target: SelectionTarget
    ) -> InsufficientFunds | None:
        """Turn a strategy failure into InsufficientFunds when no subset could work."""
        best, count = self._best_spend(eligible, target)
        if best >= target.amount:
            return None
        required = checked_add(
            target.amount, self.fee_model.fee_for(max(count, 1), 1, target.fee_rate)
        )
        return InsufficientFunds(
            available=checked_sum(coin.value for coin in eligible), required=required
        )

    def _validate_candidate(self, candidate: Sequence[Coin], eligible: Sequence[Coin]) -> None:
        if not candidate:
            raise SelectionIntegrityError("Strategy returned an empty candidate")
        by_outpoint = {coin.outpoint: coin for coin in eligible}
        seen: set[OutPoint] = set()
        for coin in candidate:
            if coin.outpoint in seen:
                raise SelectionIntegrityError(f"Coin {coin.outpoint} selected twice")
            seen.add(coin.outpoint)
            if by_outpoint.get(coin.outpoint) != coin:
                raise SelectionIntegrityError(f"Coin {coin.outpoint} is not eligible")

    def _failed(
        self,
        strategy: SelectionStrategy,
        result: SelectionResult,
        available: int | None = None,
        required: int | None = None,
    ) -> SelectionOutcome:
        if isinstance(result, InsufficientFunds):
            event = SelectionFailed(
                strategy=strategy.value,
                available=result.available,
                required=result.required,
                reason="insufficient_funds",
            )
        else:
            event = SelectionFailed(
                strategy=strategy.value,
                available=available or 0,
                required=required or 0,
                reason="unsatisfiable",
            )
        return SelectionOutcome(result=result, events=(event,))
