"""
Coin pool: the wallet's set of spendable coins, keyed by outpoint.

All mutation and snapshotting happens under a single lock. Coins are
immutable, so a snapshot is just a tuple of the current Coin objects: later
freezes or removals replace entries in the pool and never touch a tuple that
a running selection already holds.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable

from loguru import logger

from coinselect.amounts import checked_sum
from coinselect.constants import STANDARD_DUST_LIMIT
from coinselect.models import Coin, CoinState, OutPoint


class CoinPoolError(Exception):
    def __init__(self, outpoint: OutPoint, message: str):
        super().__init__(message)
        self.outpoint = outpoint


class DuplicateCoinError(CoinPoolError):
    def __init__(self, outpoint: OutPoint):
        super().__init__(outpoint, f"Coin already in pool: {outpoint}")


class UnknownCoinError(CoinPoolError):
    def __init__(self, outpoint: OutPoint):
        super().__init__(outpoint, f"Coin not in pool: {outpoint}")


class CoinPool:
    def __init__(self, coins: Iterable[Coin] | None = None):
        self._lock = threading.Lock()
        self._coins: dict[OutPoint, Coin] = {}
        if coins is not None:
            self.add_many(coins)

    def add(self, coin: Coin) -> None:
        with self._lock:
            if coin.outpoint in self._coins:
                raise DuplicateCoinError(coin.outpoint)
            self._coins[coin.outpoint] = coin
        logger.debug(f"Added coin {coin.outpoint} ({coin.value} sats)")

    def add_many(self, coins: Iterable[Coin]) -> None:
        """Add a batch of coins atomically: either all are added or none."""
        batch = list(coins)
        with self._lock:
            seen: set[OutPoint] = set()
            for coin in batch:
                if coin.outpoint in self._coins or coin.outpoint in seen:
                    raise DuplicateCoinError(coin.outpoint)
                seen.add(coin.outpoint)
            for coin in batch:
                self._coins[coin.outpoint] = coin
        logger.debug(f"Added {len(batch)} coins")

    def remove(self, outpoint: OutPoint) -> bool:
        with self._lock:
            removed = self._coins.pop(outpoint, None)
        if removed is None:
            return False
        logger.debug(f"Removed coin {outpoint}")
        return True

    def freeze(self, outpoint: OutPoint) -> Coin:
        return self._set_frozen(outpoint, True)

    def unfreeze(self, outpoint: OutPoint) -> Coin:
        return self._set_frozen(outpoint, False)

    def _set_frozen(self, outpoint: OutPoint, frozen: bool) -> Coin:
        with self._lock:
            coin = self._coins.get(outpoint)
            if coin is None:
                raise UnknownCoinError(outpoint)
            updated = coin.with_frozen(frozen)
            self._coins[outpoint] = updated
        return updated

    def get(self, outpoint: OutPoint) -> Coin | None:
        with self._lock:
            return self._coins.get(outpoint)

    def state_of(self, outpoint: OutPoint) -> CoinState:
        coin = self.get(outpoint)
        if coin is None:
            raise UnknownCoinError(outpoint)
        return coin.state

    def snapshot(self, include_frozen: bool = False) -> tuple[Coin, ...]:
        """Consistent copy of the pool in insertion order, frozen coins excluded by default."""
        with self._lock:
            coins = tuple(self._coins.values())
        if include_frozen:
            return coins
        return tuple(coin for coin in coins if not coin.frozen)

    def total_value(self, include_frozen: bool = False, min_confirmations: int = 0) -> int:
        """Sum of coin values, optionally only coins with enough confirmations."""
        return checked_sum(
            coin.value
            for coin in self.snapshot(include_frozen)
            if coin.confirmations >= min_confirmations
        )

    def non_dust_count(
        self, threshold: int = STANDARD_DUST_LIMIT, include_frozen: bool = False
    ) -> int:
        return sum(1 for coin in self.snapshot(include_frozen) if coin.value >= threshold)

    def clear(self) -> None:
        with self._lock:
            self._coins.clear()

    def __contains__(self, outpoint: object) -> bool:
        with self._lock:
            return outpoint in self._coins

    def __len__(self) -> int:
        with self._lock:
            return len(self._coins)
