"""
Shared fixtures for coinselect tests.
"""

from __future__ import annotations

from collections.abc import Callable
from decimal import Decimal
from itertools import count

import pytest

from coinselect.config import Settings
from coinselect.fees import FeeModel
from coinselect.models import Coin, SelectionTarget


def txid_for(n: int) -> str:
    return f"{n:064x}"


@pytest.fixture
def make_coin() -> Callable[..., Coin]:
    """Factory building coins with unique outpoints."""
    counter = count(1)

    def _make(
        value: int,
        confirmations: int = 6,
        is_change: bool = False,
        frozen: bool = False,
        **kwargs,
    ) -> Coin:
        return Coin.create(
            txid=txid_for(next(counter)),
            vout=0,
            value=value,
            confirmations=confirmations,
            is_change=is_change,
            frozen=frozen,
            **kwargs,
        )

    return _make


@pytest.fixture
def fee_model() -> FeeModel:
    return FeeModel()


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, privacy_seed=42)


def target(amount: int, fee_rate: int | str = 1) -> SelectionTarget:
    return SelectionTarget(amount=amount, fee_rate=Decimal(fee_rate))
