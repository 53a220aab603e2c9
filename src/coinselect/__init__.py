"""
coinselect - UTXO selection engine for Bitcoin wallets

Picks which coins fund a payment, computes the fee and change, and reports
what happened through a small event channel.
"""

__version__ = "0.1.0"

from coinselect.amounts import AmountOverflowError
from coinselect.config import Settings, get_settings
from coinselect.events import (
    EventChannel,
    Frozen,
    Selected,
    SelectionFailed,
    StatusChanged,
    Unfrozen,
)
from coinselect.fees import FeeModel
from coinselect.manager import CoinManager
from coinselect.models import (
    Coin,
    CoinState,
    InsufficientFunds,
    OutPoint,
    SelectionResult,
    SelectionStrategy,
    SelectionSuccess,
    SelectionTarget,
    Unsatisfiable,
)
from coinselect.pool import CoinPool, CoinPoolError, DuplicateCoinError, UnknownCoinError
from coinselect.selector import (
    BalanceInvariantViolated,
    CoinSelector,
    SelectionIntegrityError,
    SelectionOutcome,
)

__all__ = [
    "AmountOverflowError",
    "BalanceInvariantViolated",
    "Coin",
    "CoinManager",
    "CoinPool",
    "CoinPoolError",
    "CoinSelector",
    "CoinState",
    "DuplicateCoinError",
    "EventChannel",
    "FeeModel",
    "Frozen",
    "InsufficientFunds",
    "OutPoint",
    "Selected",
    "SelectionFailed",
    "SelectionIntegrityError",
    "SelectionOutcome",
    "SelectionResult",
    "SelectionStrategy",
    "SelectionSuccess",
    "SelectionTarget",
    "Settings",
    "StatusChanged",
    "Unfrozen",
    "UnknownCoinError",
    "Unsatisfiable",
    "get_settings",
]
