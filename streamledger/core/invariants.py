"""Invariant checkers for the streaming ledger.

Each function returns True when the invariant holds. `check_all()` returns the
list of violated invariant IDs for a single record (empty = all pass), and
`check_transition()` adds the pre/post rules (immutable parties, monotone
counters).
"""

from __future__ import annotations

from typing import Callable

from .math import I128_MAX, MAX_FEE_RATE_BPS
from .types import ProtocolConfig, Stream


def inv_deposited_nonneg(s: Stream) -> bool:
    return s.deposited_amount >= 0


def inv_withdrawn_nonneg(s: Stream) -> bool:
    return s.withdrawn_amount >= 0


def inv_withdrawn_le_deposited(s: Stream) -> bool:
    return s.withdrawn_amount <= s.deposited_amount


def inv_rate_nonneg(s: Stream) -> bool:
    return s.rate_per_second >= 0


def inv_drained_is_inactive(s: Stream) -> bool:
    if s.withdrawn_amount != s.deposited_amount:
        return True
    return not s.is_active


def inv_amounts_in_domain(s: Stream) -> bool:
    return s.deposited_amount <= I128_MAX and s.rate_per_second <= I128_MAX


def inv_update_not_before_start(s: Stream) -> bool:
    return s.last_update_time >= s.start_time


INVARIANT_REGISTRY: dict[str, Callable[[Stream], bool]] = {
    "inv_deposited_nonneg": inv_deposited_nonneg,
    "inv_withdrawn_nonneg": inv_withdrawn_nonneg,
    "inv_withdrawn_le_deposited": inv_withdrawn_le_deposited,
    "inv_rate_nonneg": inv_rate_nonneg,
    "inv_drained_is_inactive": inv_drained_is_inactive,
    "inv_amounts_in_domain": inv_amounts_in_domain,
    "inv_update_not_before_start": inv_update_not_before_start,
}


def check_all(stream: Stream) -> list[str]:
    """Return list of violated invariant IDs (empty = all pass)."""
    return [
        inv_id
        for inv_id, check_fn in INVARIANT_REGISTRY.items()
        if not check_fn(stream)
    ]


# ---------------------------------------------------------------------------
# Transition rules
# ---------------------------------------------------------------------------

_IMMUTABLE_FIELDS = ("sender", "recipient", "token_address", "start_time", "rate_per_second")


def check_transition(pre: Stream, post: Stream) -> list[str]:
    """Violations of ``check_all(post)`` plus pre/post monotonicity rules."""
    violations = check_all(post)
    for name in _IMMUTABLE_FIELDS:
        if getattr(pre, name) != getattr(post, name):
            violations.append(f"inv_immutable_{name}")
    if post.deposited_amount < pre.deposited_amount:
        violations.append("inv_deposited_monotone")
    if post.withdrawn_amount < pre.withdrawn_amount:
        violations.append("inv_withdrawn_monotone")
    if not pre.is_active and post.is_active:
        violations.append("inv_no_reactivation")
    return violations


def check_config(config: ProtocolConfig) -> list[str]:
    if 0 <= config.fee_rate_bps <= MAX_FEE_RATE_BPS:
        return []
    return ["inv_fee_rate_bounded"]
