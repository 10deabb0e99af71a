"""Data types for the streaming ledger core.

All records are frozen dataclasses (immutable); transitions build new records
with `dataclasses.replace()`.

Units/conventions:
- amounts are integer token base units (signed, i128 domain),
- timestamps are integer seconds since the host epoch (u64 domain),
- `*_bps` rates are basis points (1/10_000).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, unique
from typing import Any, Mapping

from .errors import ErrorKind

Address = str  # identity or token address, opaque to the core
Amount = int
Timestamp = int
StreamId = int


@unique
class Action(Enum):
    """One member per mutating public operation."""
    INITIALIZE = "initialize"
    UPDATE_FEE_CONFIG = "update_fee_config"
    CREATE_STREAM = "create_stream"
    TOP_UP_STREAM = "top_up_stream"
    WITHDRAW = "withdraw"
    CANCEL_STREAM = "cancel_stream"


@unique
class Event(Enum):
    """Event topics published by the engine."""
    FEE_CONFIG_UPDATED = "fee_config_updated"
    STREAM_CREATED = "stream_created"
    STREAM_TOPPED_UP = "stream_topped_up"
    TOKENS_WITHDRAWN = "tokens_withdrawn"
    STREAM_CANCELLED = "stream_cancelled"
    FEE_COLLECTED = "fee_collected"


@dataclass(frozen=True)
class ProtocolConfig:
    """Singleton protocol fee configuration."""

    admin: Address
    treasury: Address
    fee_rate_bps: int = 0


@dataclass(frozen=True)
class Stream:
    """One payment stream record."""

    sender: Address
    recipient: Address
    token_address: Address
    rate_per_second: Amount
    deposited_amount: Amount
    withdrawn_amount: Amount = 0
    start_time: Timestamp = 0
    last_update_time: Timestamp = 0
    is_active: bool = True


@dataclass(frozen=True)
class Transfer:
    """A token movement the shell must execute, in order.

    `source`/`dest` of `None` denote the engine's own custody account.
    """

    token: Address
    source: Address | None
    dest: Address | None
    amount: Amount


@dataclass(frozen=True)
class Effect:
    """An event to publish after the transition commits."""

    event: Event
    stream_id: StreamId | None = None
    payload: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class StepResult:
    """Result of planning one transition.

    On acceptance `stream` and/or `config` carry the post-state to persist,
    `transfers` the token movements in execution order and `value` the
    operation's return value (new id, amount withdrawn, or None).
    """

    accepted: bool
    stream: Stream | None = None
    config: ProtocolConfig | None = None
    transfers: tuple[Transfer, ...] = ()
    effects: tuple[Effect, ...] = ()
    value: int | None = None
    rejection: ErrorKind | None = None
    violations: tuple[str, ...] = ()
