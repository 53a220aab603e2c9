"""
Transaction size and fee estimation.

All estimates are linear in the number of inputs and outputs and assume
native SegWit P2WPKH for both (see ``coinselect.constants``):

    size = 11 + inputs * 68 + outputs * 31   (vbytes)
    fee  = ceil(size * fee_rate)             (sats, fee_rate in sat/vbyte)
"""

from __future__ import annotations

from decimal import Decimal

from coinselect.amounts import ceil_mul, checked_add, checked_mul
from coinselect.constants import (
    DEFAULT_DUST_FLOOR,
    INPUT_VBYTES,
    MAX_WEIGHT,
    OUTPUT_VBYTES,
    TX_OVERHEAD_VBYTES,
)
from coinselect.models import Coin


class FeeModel:
    """
    Pure size/fee/dust calculations for one script type.

    The only state is the constants the model was built with, so a single
    instance can be shared by every selection.
    """

    def __init__(
        self,
        overhead_vbytes: int = TX_OVERHEAD_VBYTES,
        input_vbytes: int = INPUT_VBYTES,
        output_vbytes: int = OUTPUT_VBYTES,
        dust_floor: int = DEFAULT_DUST_FLOOR,
    ):
        if min(overhead_vbytes, input_vbytes, output_vbytes, dust_floor) < 0:
            raise ValueError("Fee model constants must be non-negative")
        self.overhead_vbytes = overhead_vbytes
        self.input_vbytes = input_vbytes
        self.output_vbytes = output_vbytes
        self.dust_floor = dust_floor

    def estimate_size(self, input_count: int, output_count: int) -> int:
        """Estimated virtual size in vbytes of a transaction with this shape."""
        if input_count < 0 or output_count < 0:
            raise ValueError(
                f"Input/output counts must be non-negative, got {input_count}/{output_count}"
            )
        inputs = checked_mul(input_count, self.input_vbytes, MAX_WEIGHT)
        outputs = checked_mul(output_count, self.output_vbytes, MAX_WEIGHT)
        return checked_add(checked_add(self.overhead_vbytes, inputs, MAX_WEIGHT), outputs, MAX_WEIGHT)

    def estimate_fee(self, size: int, fee_rate: Decimal) -> int:
        """Fee for ``size`` vbytes, rounded up so the wallet never under-pays."""
        return ceil_mul(size, Decimal(fee_rate))

    def fee_for(self, input_count: int, output_count: int, fee_rate: Decimal) -> int:
        return self.estimate_fee(self.estimate_size(input_count, output_count), fee_rate)

    def estimate_fee_for_minimal_tx(self, fee_rate: Decimal) -> int:
        """Fee of the cheapest possible spend: one input, one output."""
        return self.fee_for(1, 1, fee_rate)

    def input_fee(self, fee_rate: Decimal) -> int:
        """Marginal fee of adding one input."""
        return self.estimate_fee(self.input_vbytes, fee_rate)

    def dust_threshold(self, fee_rate: Decimal) -> int:
        """
        Smallest output worth creating at this fee rate.

        An output below this costs more to spend later (one more input) than
        it is worth, so change below it is folded into the fee instead.
        """
        return max(self.input_fee(fee_rate), self.dust_floor)

    def effective_value(self, coin: Coin, fee_rate: Decimal) -> int:
        """Value a coin contributes after paying for its own input. May be negative."""
        return coin.value - self.input_fee(fee_rate)

    def __repr__(self) -> str:
        return (
            f"FeeModel(overhead={self.overhead_vbytes}, input={self.input_vbytes}, "
            f"output={self.output_vbytes}, dust_floor={self.dust_floor})"
        )
