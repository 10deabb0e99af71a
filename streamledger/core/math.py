"""Pure arithmetic for the streaming ledger.

Every function is stateless and operates on plain Python ints. Python ints do
not overflow, so the i128 domain of amounts is enforced explicitly: helpers
that can exceed it saturate (cap, never wrap).

Rounding is floor division (`//`) on non-negative operands throughout, which
always rounds in favour of the party that is *not* being paid.
"""

from __future__ import annotations

from .types import Amount, Stream, Timestamp

# Domain constants
I128_MAX: int = (1 << 127) - 1
I128_MIN: int = -(1 << 127)
U64_MAX: int = (1 << 64) - 1
BPS_SCALE: int = 10_000
MAX_FEE_RATE_BPS: int = 1_000  # 10%


# -- Saturating helpers ------------------------------------------------------

def clamp_i128(x: int) -> int:
    if x > I128_MAX:
        return I128_MAX
    if x < I128_MIN:
        return I128_MIN
    return x


def saturating_mul(a: int, b: int) -> int:
    return clamp_i128(a * b)


def saturating_add(a: int, b: int) -> int:
    return clamp_i128(a + b)


def saturating_sub(a: int, b: int) -> int:
    return clamp_i128(a - b)


def is_int(x: object) -> bool:
    """True for real ints (bools rejected)."""
    return isinstance(x, int) and not isinstance(x, bool)


# -- Stream arithmetic -------------------------------------------------------

def rate_per_second(net_amount: Amount, duration: int) -> Amount:
    """Tokens unlocked per second: ``net_amount // duration``.

    The remainder (at most ``duration - 1`` base units) is never streamed.
    """
    if duration <= 0:
        raise ValueError(f"duration must be positive: {duration}")
    return net_amount // duration


def elapsed_since(last_update_time: Timestamp, now: Timestamp) -> int:
    """Seconds since *last_update_time*, floored at zero for clock anomalies."""
    return max(now - last_update_time, 0)


def remaining_balance(stream: Stream) -> Amount:
    """Deposited but not yet withdrawn, floored at zero."""
    return max(saturating_sub(stream.deposited_amount, stream.withdrawn_amount), 0)


def calculate_claimable(stream: Stream, now: Timestamp) -> Amount:
    """Amount the recipient could withdraw at *now*.

    ``min(elapsed * rate, remaining)`` with the product saturating at
    ``I128_MAX``; the cap makes an overflowed product harmless.
    """
    elapsed = elapsed_since(stream.last_update_time, now)
    streamed = saturating_mul(elapsed, stream.rate_per_second)
    return min(streamed, remaining_balance(stream))


def cancel_split(stream: Stream, now: Timestamp) -> tuple[Amount, Amount]:
    """Split an active stream's balance at cancellation.

    Returns ``(accrued, refund)``. The recipient's accrued share is settled
    first; the refund is whatever is left afterwards, so
    ``accrued + refund == remaining_balance(stream)``.
    """
    accrued = max(calculate_claimable(stream, now), 0)
    withdrawn_after = saturating_add(stream.withdrawn_amount, accrued)
    refund = max(saturating_sub(stream.deposited_amount, withdrawn_after), 0)
    return accrued, refund
