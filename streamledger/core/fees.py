"""
Protocol fee deduction (deterministic, integer-only).

The fee is taken from every inbound deposit (stream creation and top-up),
never from withdrawals or refunds. Rounding is floor: the depositor keeps any
fractional fee unit.
"""

from __future__ import annotations

from dataclasses import dataclass

from .math import BPS_SCALE, MAX_FEE_RATE_BPS, is_int
from .types import ProtocolConfig


@dataclass(frozen=True)
class FeeQuote:
    gross: int
    fee: int
    net: int

    def __post_init__(self) -> None:
        for name, v in (("gross", self.gross), ("fee", self.fee), ("net", self.net)):
            if not is_int(v):
                raise TypeError(f"{name} must be an int")
            if v < 0:
                raise ValueError(f"{name} must be non-negative: {v}")
        if self.fee + self.net != self.gross:
            raise ValueError(f"fee + net must equal gross: {self.fee} + {self.net} != {self.gross}")


def is_valid_fee_rate(fee_rate_bps: object) -> bool:
    return is_int(fee_rate_bps) and 0 <= fee_rate_bps <= MAX_FEE_RATE_BPS  # type: ignore[operator]


def quote_fee(gross: int, config: ProtocolConfig | None) -> FeeQuote:
    """
    Compute the fee and net amount for a deposit of `gross`.

    Without a config, or with a zero rate, the whole deposit is net.
    """
    if not is_int(gross) or gross < 0:
        raise ValueError(f"gross must be a non-negative int, got {gross}")
    if config is None or config.fee_rate_bps == 0:
        return FeeQuote(gross=gross, fee=0, net=gross)

    fee = (gross * config.fee_rate_bps) // BPS_SCALE
    return FeeQuote(gross=gross, fee=fee, net=gross - fee)
