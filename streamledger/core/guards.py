"""Guard functions for the streaming ledger.

One pure function per action. Each inspects the PRE-state and the call
parameters and returns the first failing ``ErrorKind`` (checked in the
documented precedence order), or ``None`` when the action is allowed.

Facts that need an external collaborator (token capability probe) are passed
in as booleans by the shell; authentication happens before any guard runs.
"""

from __future__ import annotations

from .errors import ErrorKind
from .fees import is_valid_fee_rate
from .math import I128_MAX, U64_MAX, calculate_claimable, is_int
from .types import Address, Amount, ProtocolConfig, Stream, Timestamp


def _valid_amount(amount: object) -> bool:
    return is_int(amount) and 0 < amount <= I128_MAX  # type: ignore[operator]


def guard_initialize(existing: ProtocolConfig | None, fee_rate_bps: int) -> ErrorKind | None:
    if existing is not None:
        return ErrorKind.ALREADY_INITIALIZED
    if not is_valid_fee_rate(fee_rate_bps):
        return ErrorKind.INVALID_FEE_RATE
    return None


def guard_update_fee_config(
    existing: ProtocolConfig | None, admin: Address, fee_rate_bps: int,
) -> ErrorKind | None:
    if existing is None:
        return ErrorKind.NOT_INITIALIZED
    if existing.admin != admin:
        return ErrorKind.NOT_ADMIN
    if not is_valid_fee_rate(fee_rate_bps):
        return ErrorKind.INVALID_FEE_RATE
    return None


def guard_create_stream(amount: Amount, duration: int, token_supported: bool) -> ErrorKind | None:
    if not _valid_amount(amount):
        return ErrorKind.INVALID_AMOUNT
    if not is_int(duration) or not (0 < duration <= U64_MAX):
        return ErrorKind.INVALID_DURATION
    if not token_supported:
        return ErrorKind.INVALID_TOKEN_ADDRESS
    return None


def _guard_owned_active(stream: Stream | None, caller: Address, owner_field: str) -> ErrorKind | None:
    if stream is None:
        return ErrorKind.STREAM_NOT_FOUND
    if getattr(stream, owner_field) != caller:
        return ErrorKind.UNAUTHORIZED
    if not stream.is_active:
        return ErrorKind.STREAM_INACTIVE
    return None


def guard_top_up_stream(
    stream: Stream | None, sender: Address, amount: Amount, net_amount: Amount,
) -> ErrorKind | None:
    if not _valid_amount(amount):
        return ErrorKind.INVALID_AMOUNT
    err = _guard_owned_active(stream, sender, "sender")
    if err is not None:
        return err
    assert stream is not None
    if stream.deposited_amount + net_amount > I128_MAX:
        return ErrorKind.INVALID_AMOUNT
    return None


def guard_withdraw(stream: Stream | None, recipient: Address, now: Timestamp) -> ErrorKind | None:
    err = _guard_owned_active(stream, recipient, "recipient")
    if err is not None:
        return err
    assert stream is not None
    if calculate_claimable(stream, now) <= 0:
        return ErrorKind.INVALID_AMOUNT
    return None


def guard_cancel_stream(stream: Stream | None, sender: Address) -> ErrorKind | None:
    return _guard_owned_active(stream, sender, "sender")
