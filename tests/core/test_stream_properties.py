"""Property tests for the stream planner (hypothesis)."""

from dataclasses import replace

from hypothesis import given, settings
from hypothesis import strategies as st

from streamledger.core import ProtocolConfig, plan_cancel_stream, plan_create_stream, plan_top_up_stream, plan_withdraw
from streamledger.core.fees import quote_fee
from streamledger.core.invariants import check_all
from streamledger.core.math import calculate_claimable, cancel_split, remaining_balance

amounts = st.integers(min_value=1, max_value=10**15)
durations = st.integers(min_value=1, max_value=10**6)
fee_rates = st.integers(min_value=0, max_value=1_000)
offsets = st.integers(min_value=0, max_value=2 * 10**6)


def _fresh(amount, duration, bps=0, now=1_000):
    cfg = ProtocolConfig("admin", "treasury", bps) if bps else None
    result = plan_create_stream(cfg, 1, "alice", "bob", "USDC", amount, duration, now, token_supported=True)
    assert result.accepted, result.rejection
    return result.stream


@given(amount=amounts, duration=durations, bps=fee_rates)
def test_create_conserves_gross(amount, duration, bps):
    stream = _fresh(amount, duration, bps)
    q = quote_fee(amount, ProtocolConfig("admin", "treasury", bps))
    assert stream.deposited_amount + q.fee == amount
    assert stream.rate_per_second == stream.deposited_amount // duration
    assert check_all(stream) == []


@given(amount=amounts, duration=durations, a=offsets, b=offsets)
def test_claimable_monotone_and_bounded(amount, duration, a, b):
    stream = _fresh(amount, duration)
    t1, t2 = sorted((1_000 + a, 1_000 + b))
    c1 = calculate_claimable(stream, t1)
    c2 = calculate_claimable(stream, t2)
    assert 0 <= c1 <= c2 <= remaining_balance(stream)


@given(amount=amounts, duration=durations, offset=offsets)
def test_cancel_split_conserves(amount, duration, offset):
    stream = _fresh(amount, duration)
    accrued, refund = cancel_split(stream, 1_000 + offset)
    assert accrued >= 0 and refund >= 0
    assert accrued + refund == stream.deposited_amount


@settings(max_examples=60)
@given(
    amount=amounts,
    duration=durations,
    steps=st.lists(
        st.tuples(st.sampled_from(["withdraw", "top_up", "cancel"]), st.integers(0, 10**5), amounts),
        max_size=12,
    ),
)
def test_operation_sequences_preserve_invariants(amount, duration, steps):
    stream = _fresh(amount, duration)
    now = 1_000
    paid_in = stream.deposited_amount
    paid_out = 0
    for op, dt, extra in steps:
        now += dt
        if op == "withdraw":
            result = plan_withdraw(1, stream, "bob", now)
        elif op == "top_up":
            result = plan_top_up_stream(None, 1, stream, "alice", extra, now)
        else:
            result = plan_cancel_stream(1, stream, "alice", now)
        if not result.accepted:
            assert result.rejection is not None
            assert not result.violations
            continue
        for t in result.transfers:
            if t.source is None:
                paid_out += t.amount
            if t.dest is None:
                paid_in += t.amount
        stream = result.stream
        assert check_all(stream) == []
        assert stream.withdrawn_amount <= stream.deposited_amount
    # Custody never pays out more than it took in.
    assert paid_out <= paid_in
    if not stream.is_active:
        assert paid_out == paid_in


@given(amount=amounts, duration=durations, dt=offsets)
def test_withdraw_closes_exactly_when_drained(amount, duration, dt):
    stream = _fresh(amount, duration)
    result = plan_withdraw(1, stream, "bob", 1_000 + dt)
    if not result.accepted:
        return
    post = result.stream
    assert post.is_active == (post.withdrawn_amount < post.deposited_amount)
    restored = replace(post, withdrawn_amount=stream.withdrawn_amount, is_active=True, last_update_time=1_000)
    assert restored == stream
