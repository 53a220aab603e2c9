"""
Bitcoin size, fee and amount constants used by coin selection.

Transaction size estimates assume the wallet's single default output script
type, native SegWit P2WPKH:
- Transaction overhead: ~11 vbytes (version, locktime, counts, segwit marker)
- P2WPKH input: ~68 vbytes
- P2WPKH output: ~31 vbytes
"""

from __future__ import annotations

from decimal import Decimal

# Satoshis per bitcoin
COIN = 100_000_000

# 21 million BTC, the largest amount any value or fee may ever reach
MAX_MONEY = 21_000_000 * COIN

# Upper bound for size arithmetic (unsigned 64-bit)
MAX_WEIGHT = 2**64 - 1

TX_OVERHEAD_VBYTES = 11
INPUT_VBYTES = 68
OUTPUT_VBYTES = 31

# Standard P2PKH dust limit in Bitcoin Core
STANDARD_DUST_LIMIT = 546  # satoshis

# Floor applied on top of the fee-rate derived dust threshold.
# 0 keeps the threshold purely fee-rate based.
DEFAULT_DUST_FLOOR = 0

DEFAULT_FEE_RATE = Decimal("1")  # sat/vbyte

# Branch-and-Bound search bounds
DEFAULT_BNB_TIMEOUT_MS = 1000
DEFAULT_BNB_MAX_NODES = 100_000
DEFAULT_AVOID_CHANGE_MAX_CANDIDATES = 10_000

# Amounts that are multiples of these look user-chosen and are easy to
# fingerprint as payments
ROUND_AMOUNT_UNIT = 10_000  # satoshis
VERY_ROUND_AMOUNT_UNIT = 100_000  # satoshis

DEFAULT_EVENT_HISTORY_SIZE = 1000
