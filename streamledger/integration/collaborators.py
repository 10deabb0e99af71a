"""
Narrow interfaces the engine consumes.

The token service, authentication oracle, clock and event sink are external
collaborators; the engine depends only on these protocols. Reference
implementations live in `token.py`, `auth.py`, `clock.py` and `events.py`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Protocol, runtime_checkable


@dataclass(frozen=True)
class VerifiedCaller:
    """Identity of the party invoking an operation, as established by the host.

    Hosts mint this after checking the caller (see `auth.CallAuthenticator`);
    the engine never derives it from ambient state.
    """

    identity: str

    def __post_init__(self) -> None:
        if not isinstance(self.identity, str) or not self.identity:
            raise ValueError("identity must be a non-empty str")


@runtime_checkable
class TokenService(Protocol):
    def transfer(self, token: str, source: str, dest: str, amount: int) -> None:
        """Move `amount` of `token`; raise `TransferError` on failure."""
        ...

    def probe_capability(self, token: str) -> bool:
        """True if `token` answers the token interface (decimals query)."""
        ...


@runtime_checkable
class AuthOracle(Protocol):
    def require_caller_is(self, caller: VerifiedCaller, identity: str) -> None:
        """Raise `AuthenticationError` unless `caller` is `identity`."""
        ...


@runtime_checkable
class Clock(Protocol):
    def now(self) -> int: ...


@runtime_checkable
class EventSink(Protocol):
    def publish(self, topic: str, payload: Mapping[str, Any]) -> None: ...
