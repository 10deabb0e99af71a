"""State transition functions for the streaming ledger.

One pure function per action. Each returns a new record with the action's
updates applied; amounts are computed by the caller (see `math.py`) and
guards have already passed.
"""

from __future__ import annotations

from dataclasses import replace

from .math import rate_per_second
from .types import Address, Amount, ProtocolConfig, Stream, Timestamp


def apply_initialize(admin: Address, treasury: Address, fee_rate_bps: int) -> ProtocolConfig:
    return ProtocolConfig(admin=admin, treasury=treasury, fee_rate_bps=fee_rate_bps)


def apply_update_fee_config(
    config: ProtocolConfig, treasury: Address, fee_rate_bps: int,
) -> ProtocolConfig:
    # The admin key is never replaceable.
    return replace(config, treasury=treasury, fee_rate_bps=fee_rate_bps)


def apply_create_stream(
    sender: Address,
    recipient: Address,
    token_address: Address,
    net_amount: Amount,
    duration: int,
    now: Timestamp,
) -> Stream:
    return Stream(
        sender=sender,
        recipient=recipient,
        token_address=token_address,
        rate_per_second=rate_per_second(net_amount, duration),
        deposited_amount=net_amount,
        withdrawn_amount=0,
        start_time=now,
        last_update_time=now,
        is_active=True,
    )


def apply_top_up_stream(stream: Stream, net_amount: Amount, now: Timestamp) -> Stream:
    # Rate is fixed at creation; only the ceiling and the accrual base move.
    return replace(
        stream,
        deposited_amount=stream.deposited_amount + net_amount,
        last_update_time=now,
    )


def apply_withdraw(stream: Stream, amount: Amount, now: Timestamp) -> Stream:
    withdrawn = stream.withdrawn_amount + amount
    return replace(
        stream,
        withdrawn_amount=withdrawn,
        last_update_time=now,
        is_active=withdrawn < stream.deposited_amount,
    )


def apply_cancel_stream(stream: Stream, accrued: Amount, now: Timestamp) -> Stream:
    return replace(
        stream,
        withdrawn_amount=stream.withdrawn_amount + accrued,
        last_update_time=now,
        is_active=False,
    )
