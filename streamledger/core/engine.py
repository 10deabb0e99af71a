"""Transition planner for the streaming ledger.

Each ``plan_*`` function is the pure half of one public operation. It:

1. Runs the action's guard against the pre-state.
2. Computes amounts (fee quote, claimable, cancel split).
3. Applies the update to build the post-state.
4. Checks invariants on the post-state (and the pre/post transition).
5. Returns a ``StepResult`` carrying the post-state, the ordered token
   transfers and the events to publish, or a rejection.

The imperative shell (`streamledger.integration.engine`) authenticates the
caller, loads records, executes the transfers and persists the result inside
one transaction. Planning never performs I/O, so a rejected plan leaves
nothing to undo.
"""

from __future__ import annotations

from .errors import ErrorKind, InvariantViolation, error_for
from .fees import FeeQuote, quote_fee
from .guards import (
    guard_cancel_stream,
    guard_create_stream,
    guard_initialize,
    guard_top_up_stream,
    guard_update_fee_config,
    guard_withdraw,
)
from .invariants import check_all, check_config, check_transition
from .math import calculate_claimable, cancel_split, is_int
from .types import (
    Address,
    Amount,
    Effect,
    Event,
    ProtocolConfig,
    StepResult,
    Stream,
    StreamId,
    Timestamp,
    Transfer,
)
from .updates import (
    apply_cancel_stream,
    apply_create_stream,
    apply_initialize,
    apply_top_up_stream,
    apply_update_fee_config,
    apply_withdraw,
)


def _reject(kind: ErrorKind) -> StepResult:
    return StepResult(accepted=False, rejection=kind)


def _broken(violations: list[str]) -> StepResult:
    return StepResult(accepted=False, violations=tuple(violations))


def _fee_legs(
    stream_id: StreamId, token: Address, quote: FeeQuote, config: ProtocolConfig | None,
) -> tuple[tuple[Transfer, ...], tuple[Effect, ...]]:
    """Treasury transfer + event for a non-zero fee, nothing otherwise."""
    if quote.fee <= 0 or config is None:
        return (), ()
    transfer = Transfer(token=token, source=None, dest=config.treasury, amount=quote.fee)
    effect = Effect(
        event=Event.FEE_COLLECTED,
        stream_id=stream_id,
        payload={
            "stream_id": stream_id,
            "treasury": config.treasury,
            "fee_amount": quote.fee,
            "token": token,
        },
    )
    return (transfer,), (effect,)


# -- Protocol configuration --------------------------------------------------

def plan_initialize(
    existing: ProtocolConfig | None, admin: Address, treasury: Address, fee_rate_bps: int,
) -> StepResult:
    err = guard_initialize(existing, fee_rate_bps)
    if err is not None:
        return _reject(err)
    config = apply_initialize(admin, treasury, fee_rate_bps)
    violations = check_config(config)
    if violations:
        return _broken(violations)
    effect = Effect(
        event=Event.FEE_CONFIG_UPDATED,
        payload={"admin": admin, "treasury": treasury, "fee_rate_bps": fee_rate_bps},
    )
    return StepResult(accepted=True, config=config, effects=(effect,))


def plan_update_fee_config(
    existing: ProtocolConfig | None, admin: Address, treasury: Address, fee_rate_bps: int,
) -> StepResult:
    err = guard_update_fee_config(existing, admin, fee_rate_bps)
    if err is not None:
        return _reject(err)
    assert existing is not None
    config = apply_update_fee_config(existing, treasury, fee_rate_bps)
    violations = check_config(config)
    if violations:
        return _broken(violations)
    effect = Effect(
        event=Event.FEE_CONFIG_UPDATED,
        payload={"admin": config.admin, "treasury": treasury, "fee_rate_bps": fee_rate_bps},
    )
    return StepResult(accepted=True, config=config, effects=(effect,))


# -- Streams -----------------------------------------------------------------

def plan_create_stream(
    config: ProtocolConfig | None,
    stream_id: StreamId,
    sender: Address,
    recipient: Address,
    token_address: Address,
    amount: Amount,
    duration: int,
    now: Timestamp,
    *,
    token_supported: bool,
) -> StepResult:
    """Plan a new stream under the id the shell is about to allocate."""
    err = guard_create_stream(amount, duration, token_supported)
    if err is not None:
        return _reject(err)

    quote = quote_fee(amount, config)
    stream = apply_create_stream(sender, recipient, token_address, quote.net, duration, now)
    violations = check_all(stream)
    if violations:
        return _broken(violations)

    deposit = Transfer(token=token_address, source=sender, dest=None, amount=amount)
    fee_transfers, fee_effects = _fee_legs(stream_id, token_address, quote, config)
    created = Effect(
        event=Event.STREAM_CREATED,
        stream_id=stream_id,
        payload={
            "stream_id": stream_id,
            "sender": sender,
            "recipient": recipient,
            "rate_per_second": stream.rate_per_second,
            "token_address": token_address,
            "deposited_amount": stream.deposited_amount,
            "start_time": stream.start_time,
        },
    )
    return StepResult(
        accepted=True,
        stream=stream,
        transfers=(deposit, *fee_transfers),
        effects=(*fee_effects, created),
        value=stream_id,
    )


def plan_top_up_stream(
    config: ProtocolConfig | None,
    stream_id: StreamId,
    stream: Stream | None,
    sender: Address,
    amount: Amount,
    now: Timestamp,
) -> StepResult:
    quote = quote_fee(amount, config) if is_int(amount) and amount > 0 else None
    err = guard_top_up_stream(stream, sender, amount, quote.net if quote else 0)
    if err is not None:
        return _reject(err)
    assert stream is not None and quote is not None

    post = apply_top_up_stream(stream, quote.net, now)
    violations = check_transition(stream, post)
    if violations:
        return _broken(violations)

    deposit = Transfer(token=stream.token_address, source=sender, dest=None, amount=amount)
    fee_transfers, fee_effects = _fee_legs(stream_id, stream.token_address, quote, config)
    topped_up = Effect(
        event=Event.STREAM_TOPPED_UP,
        stream_id=stream_id,
        payload={
            "stream_id": stream_id,
            "sender": sender,
            "amount": quote.net,
            "new_deposited_amount": post.deposited_amount,
        },
    )
    return StepResult(
        accepted=True,
        stream=post,
        transfers=(deposit, *fee_transfers),
        effects=(*fee_effects, topped_up),
    )


def plan_withdraw(
    stream_id: StreamId, stream: Stream | None, recipient: Address, now: Timestamp,
) -> StepResult:
    err = guard_withdraw(stream, recipient, now)
    if err is not None:
        return _reject(err)
    assert stream is not None

    claimable = calculate_claimable(stream, now)
    post = apply_withdraw(stream, claimable, now)
    violations = check_transition(stream, post)
    if violations:
        return _broken(violations)

    payout = Transfer(token=stream.token_address, source=None, dest=recipient, amount=claimable)
    withdrawn = Effect(
        event=Event.TOKENS_WITHDRAWN,
        stream_id=stream_id,
        payload={
            "stream_id": stream_id,
            "recipient": recipient,
            "amount": claimable,
            "timestamp": post.last_update_time,
        },
    )
    return StepResult(
        accepted=True, stream=post, transfers=(payout,), effects=(withdrawn,), value=claimable,
    )


def plan_cancel_stream(
    stream_id: StreamId, stream: Stream | None, sender: Address, now: Timestamp,
) -> StepResult:
    err = guard_cancel_stream(stream, sender)
    if err is not None:
        return _reject(err)
    assert stream is not None

    # Recipient is settled before the refund is derived from what is left.
    accrued, refund = cancel_split(stream, now)
    post = apply_cancel_stream(stream, accrued, now)
    violations = check_transition(stream, post)
    if violations:
        return _broken(violations)

    transfers: list[Transfer] = []
    if accrued > 0:
        transfers.append(
            Transfer(token=stream.token_address, source=None, dest=stream.recipient, amount=accrued)
        )
    if refund > 0:
        transfers.append(
            Transfer(token=stream.token_address, source=None, dest=sender, amount=refund)
        )
    cancelled = Effect(
        event=Event.STREAM_CANCELLED,
        stream_id=stream_id,
        payload={
            "stream_id": stream_id,
            "sender": sender,
            "recipient": stream.recipient,
            "amount_withdrawn": post.withdrawn_amount,
            "refunded_amount": refund,
        },
    )
    return StepResult(
        accepted=True, stream=post, transfers=tuple(transfers), effects=(cancelled,),
    )


def unwrap(result: StepResult) -> StepResult:
    """Return *result* if accepted, otherwise raise the matching exception.

    Raises:
        StreamError: subclass matching ``result.rejection``.
        InvariantViolation: the planned post-state broke an invariant.
    """
    if result.accepted:
        return result
    if result.rejection is not None:
        raise error_for(result.rejection)
    raise InvariantViolation(list(result.violations))
