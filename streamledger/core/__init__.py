"""`core`: pure-Python functional core of the streaming ledger.

- deterministic, integer-only transitions,
- immutable records (frozen dataclasses),
- fail-closed guards and invariant checks.

Public API:
- `calculate_claimable(stream, now) -> int`
- `quote_fee(gross, config) -> FeeQuote`
- `plan_*(...) -> StepResult` (one per mutating operation)
- `unwrap(result) -> StepResult` (raises on rejection)
"""

from .engine import (
    plan_cancel_stream,
    plan_create_stream,
    plan_initialize,
    plan_top_up_stream,
    plan_update_fee_config,
    plan_withdraw,
    unwrap,
)
from .errors import (
    AuthenticationError,
    ErrorKind,
    InvariantViolation,
    StreamError,
    TransferError,
)
from .fees import FeeQuote, quote_fee
from .math import MAX_FEE_RATE_BPS, calculate_claimable, cancel_split
from .types import Action, Effect, Event, ProtocolConfig, StepResult, Stream, Transfer

__all__ = [
    "plan_cancel_stream",
    "plan_create_stream",
    "plan_initialize",
    "plan_top_up_stream",
    "plan_update_fee_config",
    "plan_withdraw",
    "unwrap",
    "AuthenticationError",
    "ErrorKind",
    "InvariantViolation",
    "StreamError",
    "TransferError",
    "FeeQuote",
    "quote_fee",
    "MAX_FEE_RATE_BPS",
    "calculate_claimable",
    "cancel_split",
    "Action",
    "Effect",
    "Event",
    "ProtocolConfig",
    "StepResult",
    "Stream",
    "Transfer",
]
