"""
Coin manager: the stateful façade wallets talk to.

Combines a CoinPool with a CoinSelector and owns event emission. Selection
never changes the pool. Coins only leave it through ``mark_spent`` once the
caller has confirmed the broadcast, so an abandoned or failed transaction
build cannot corrupt pool state. Callers that want to keep concurrent builds
from picking the same coins freeze them first.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from loguru import logger

from coinselect.config import Settings
from coinselect.constants import STANDARD_DUST_LIMIT
from coinselect.events import EventChannel, Frozen, StatusChanged, Unfrozen
from coinselect.models import (
    Coin,
    CoinState,
    OutPoint,
    SelectionResult,
    SelectionStrategy,
    SelectionTarget,
)
from coinselect.pool import CoinPool
from coinselect.selector import CoinSelector

# One entry of the wallet-sync feed: (outpoint, value, confirmations, is_change)
FeedEntry = tuple[OutPoint | str, int, int, bool]


class CoinManager:
    def __init__(
        self,
        pool: CoinPool | None = None,
        selector: CoinSelector | None = None,
        channel: EventChannel | None = None,
        settings: Settings | None = None,
    ):
        self.settings = settings or (selector.settings if selector else Settings())
        self.pool = pool if pool is not None else CoinPool()
        self.selector = selector or CoinSelector(settings=self.settings)
        self.channel = channel or EventChannel(history_size=self.settings.event_history_size)

    def add_coin(self, coin: Coin) -> None:
        """Add a coin; raises DuplicateCoinError if its outpoint is already known."""
        self.pool.add(coin)
        self.channel.publish(StatusChanged(coin_id=coin.outpoint, new_state=coin.state))

    def add_coins(self, coins: Iterable[Coin]) -> None:
        batch = list(coins)
        self.pool.add_many(batch)
        for coin in batch:
            self.channel.publish(StatusChanged(coin_id=coin.outpoint, new_state=coin.state))
        logger.info(f"Added {len(batch)} coins, pool size {len(self.pool)}")

    def ingest(self, entries: Iterable[FeedEntry]) -> list[Coin]:
        """
        Add coins from the wallet-sync feed.

        Entries are ``(outpoint, value, confirmations, is_change)`` tuples; the
        outpoint may be given as an OutPoint or in ``txid:vout`` form.
        """
        coins = []
        for outpoint, value, confirmations, is_change in entries:
            if isinstance(outpoint, str):
                outpoint = OutPoint.parse(outpoint)
            coins.append(
                Coin(
                    outpoint=outpoint,
                    value=value,
                    confirmations=confirmations,
                    is_change=is_change,
                )
            )
        self.add_coins(coins)
        return coins

    def remove_coin(self, outpoint: OutPoint) -> bool:
        removed = self.pool.remove(outpoint)
        if removed:
            self.channel.publish(StatusChanged(coin_id=outpoint, new_state="removed"))
        return removed

    def freeze_coin(self, outpoint: OutPoint) -> Coin:
        """Exclude a coin from selection; raises UnknownCoinError if absent."""
        coin = self.pool.freeze(outpoint)
        logger.info(f"Froze coin {outpoint}")
        self.channel.publish(Frozen(coin_id=outpoint))
        return coin

    def unfreeze_coin(self, outpoint: OutPoint) -> Coin:
        coin = self.pool.unfreeze(outpoint)
        logger.info(f"Unfroze coin {outpoint}")
        self.channel.publish(Unfrozen(coin_id=outpoint))
        return coin

    def select(
        self,
        strategy: SelectionStrategy,
        target: SelectionTarget,
        coin_ids: Sequence[OutPoint] | None = None,
    ) -> SelectionResult:
        """
        Select coins from a snapshot of the pool. The pool is left untouched.
        """
        snapshot = self.pool.snapshot(include_frozen=True)
        outcome = self.selector.select(strategy, snapshot, target, coin_ids)
        self.channel.publish_all(outcome.events)
        return outcome.result

    def mark_spent(self, outpoints: Iterable[OutPoint]) -> list[OutPoint]:
        """
        Remove coins whose spending transaction was broadcast.

        Unknown outpoints are skipped. Returns the outpoints actually removed.
        """
        spent = []
        for outpoint in outpoints:
            if not self.pool.remove(outpoint):
                logger.warning(f"Cannot mark unknown coin {outpoint} as spent")
                continue
            spent.append(outpoint)
            self.channel.publish(StatusChanged(coin_id=outpoint, new_state=CoinState.SPENT))
        if spent:
            logger.info(f"Marked {len(spent)} coins as spent")
        return spent

    def get_coin(self, outpoint: OutPoint) -> Coin | None:
        return self.pool.get(outpoint)

    def coins(self, include_frozen: bool = True) -> tuple[Coin, ...]:
        return self.pool.snapshot(include_frozen=include_frozen)

    def balance(self, include_frozen: bool = False, min_confirmations: int = 0) -> int:
        return self.pool.total_value(
            include_frozen=include_frozen, min_confirmations=min_confirmations
        )

    def non_dust_count(self, threshold: int = STANDARD_DUST_LIMIT) -> int:
        """Spendable coins worth at least ``threshold`` sats."""
        return self.pool.non_dust_count(threshold)
