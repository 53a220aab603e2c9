"""
Core data models for coin selection.

Coins and selection targets are Pydantic models so that everything entering
the engine from the wallet-sync feed is validated once, at the boundary.
Selection results are plain dataclasses built by the selector.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Union

from pydantic import BaseModel, Field, field_validator

from coinselect.constants import MAX_MONEY

_TXID_RE = re.compile(r"^[0-9a-f]{64}$")


class SelectionStrategy(str, Enum):
    MINIMIZE_FEE = "minimize_fee"
    MINIMIZE_CHANGE = "minimize_change"
    OLDEST_FIRST = "oldest_first"
    PRIVACY_FOCUSED = "privacy_focused"
    MAXIMIZE_PRIVACY = "maximize_privacy"
    CONSOLIDATE = "consolidate"
    AVOID_CHANGE = "avoid_change"
    COIN_CONTROL = "coin_control"

    @property
    def is_automatic(self) -> bool:
        """Every strategy except coin control searches the pool on its own."""
        return self is not SelectionStrategy.COIN_CONTROL


class CoinState(str, Enum):
    AVAILABLE = "available"
    FROZEN = "frozen"
    SELECTED_PENDING = "selected_pending"  # informational, never enforced
    SPENT = "spent"


class OutPoint(BaseModel):
    """Identity of a coin: the transaction id and output index that created it."""

    txid: str
    vout: int = Field(..., ge=0, le=0xFFFFFFFF)

    model_config = {"frozen": True}

    @field_validator("txid", mode="before")
    @classmethod
    def validate_txid(cls, v: Any) -> str:
        if not isinstance(v, str):
            raise ValueError("txid must be a hex string")
        v = v.lower()
        if not _TXID_RE.match(v):
            raise ValueError(f"Invalid txid: {v!r}")
        return v

    @classmethod
    def parse(cls, value: str) -> OutPoint:
        """Parse the ``txid:vout`` form used in logs, events and the CLI."""
        txid, sep, vout = value.strip().rpartition(":")
        if not sep or not vout.isdigit():
            raise ValueError(f"Invalid outpoint {value!r}, expected txid:vout")
        return cls(txid=txid, vout=int(vout))

    def __str__(self) -> str:
        return f"{self.txid}:{self.vout}"

    def __lt__(self, other: OutPoint) -> bool:
        return (self.txid, self.vout) < (other.txid, other.vout)


class Coin(BaseModel):
    """
    One spendable output plus the metadata selection strategies rank on.

    Identity and value are write-once. The freeze flag is the only state that
    changes, and it changes by replacing the Coin (see ``with_frozen``), so a
    Coin held by a snapshot never mutates underneath a running selection.
    """

    outpoint: OutPoint
    value: int = Field(..., ge=0, le=MAX_MONEY)
    confirmations: int = Field(default=0, ge=0)
    is_change: bool = False
    frozen: bool = False
    address: str | None = None
    label: str | None = None

    model_config = {"frozen": True}

    @classmethod
    def create(
        cls,
        txid: str,
        vout: int,
        value: int,
        confirmations: int = 0,
        is_change: bool = False,
        **kwargs: Any,
    ) -> Coin:
        return cls(
            outpoint=OutPoint(txid=txid, vout=vout),
            value=value,
            confirmations=confirmations,
            is_change=is_change,
            **kwargs,
        )

    @property
    def coin_id(self) -> OutPoint:
        return self.outpoint

    @property
    def txid(self) -> str:
        return self.outpoint.txid

    @property
    def vout(self) -> int:
        return self.outpoint.vout

    @property
    def is_confirmed(self) -> bool:
        return self.confirmations > 0

    @property
    def state(self) -> CoinState:
        return CoinState.FROZEN if self.frozen else CoinState.AVAILABLE

    def with_frozen(self, frozen: bool) -> Coin:
        if frozen == self.frozen:
            return self
        return self.model_copy(update={"frozen": frozen})


class SelectionTarget(BaseModel):
    """Requested payment amount and the fee rate (sat/vbyte) to pay it at."""

    amount: int = Field(..., gt=0, le=MAX_MONEY)
    fee_rate: Decimal = Field(..., gt=0)

    model_config = {"frozen": True}

    @field_validator("fee_rate")
    @classmethod
    def validate_fee_rate(cls, v: Decimal) -> Decimal:
        if not v.is_finite():
            raise ValueError("fee_rate must be finite")
        return v


@dataclass(frozen=True)
class SelectionSuccess:
    """Coins to spend, in selection order, with the fee and change they imply."""

    selected: tuple[Coin, ...]
    fee: int
    change: int

    @property
    def total_input(self) -> int:
        return sum(coin.value for coin in self.selected)

    @property
    def input_count(self) -> int:
        return len(self.selected)

    @property
    def has_change(self) -> bool:
        return self.change > 0

    @property
    def outpoints(self) -> list[OutPoint]:
        return [coin.outpoint for coin in self.selected]


@dataclass(frozen=True)
class InsufficientFunds:
    """Not even the cheapest transaction shape can be paid for."""

    available: int
    required: int

    @property
    def shortfall(self) -> int:
        return max(0, self.required - self.available)


@dataclass(frozen=True)
class Unsatisfiable:
    """A strategy could not produce a candidate, although funds may exist."""

    reason: str


SelectionResult = Union[SelectionSuccess, InsufficientFunds, Unsatisfiable]
