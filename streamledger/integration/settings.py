"""
Deployment settings and wiring.

Settings come from (lowest to highest precedence): dataclass defaults, a YAML
mapping file, then `STREAMLEDGER_*` environment variables.

    chain_id: streamledger-mainnet
    claimable_cache_ttl_ms: 500
    store_path: /var/lib/streamledger/state.json
    event_log_path: /var/lib/streamledger/events.jsonl
    log_level: INFO

The protocol fee cap is a constant of the core, not a setting.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from ..state.store import InMemoryStore, JsonFileStore, KeyValueStore
from .auth import CallAuthenticator, IdentityAuthOracle
from .claimable import ClaimableAmountService
from .clock import SystemClock
from .collaborators import AuthOracle, Clock, EventSink, TokenService
from .engine import DEFAULT_CUSTODY, StreamEngine
from .events import InMemoryEventSink, JsonlEventSink
from .token import BalanceTokenService

ENV_PREFIX = "STREAMLEDGER_"
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class EngineSettings:
    # Signature domain for signed calls; bind signatures to one deployment.
    chain_id: str = "streamledger-local"
    # Read-side claimable cache; 0 disables reuse.
    claimable_cache_ttl_ms: int = 1000
    # Persistence: JSON snapshot file when set, memory otherwise.
    store_path: Optional[str] = None
    # Event log: JSON lines file when set, memory otherwise.
    event_log_path: Optional[str] = None
    custody_address: str = DEFAULT_CUSTODY
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if not isinstance(self.chain_id, str) or not self.chain_id:
            raise ValueError("chain_id must be a non-empty str")
        if not isinstance(self.custody_address, str) or not self.custody_address:
            raise ValueError("custody_address must be a non-empty str")
        ttl = self.claimable_cache_ttl_ms
        if not isinstance(ttl, int) or isinstance(ttl, bool) or ttl < 0:
            raise ValueError(f"claimable_cache_ttl_ms must be a non-negative int: {ttl!r}")
        for name in ("store_path", "event_log_path"):
            v = getattr(self, name)
            if v is not None and (not isinstance(v, str) or not v):
                raise ValueError(f"{name} must be a non-empty str or None")
        if self.log_level not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {_LOG_LEVELS}: {self.log_level!r}")


def _coerce(name: str, raw: str) -> Any:
    if name == "claimable_cache_ttl_ms":
        try:
            return int(raw, 10)
        except ValueError as exc:
            raise ValueError(f"{ENV_PREFIX}{name.upper()} must be an integer: {raw!r}") from exc
    if name == "log_level":
        return raw.upper()
    return raw or None


def load_settings(
    path: str | os.PathLike[str] | None = None,
    env: Optional[Mapping[str, str]] = None,
) -> EngineSettings:
    """Build settings from an optional YAML file and the environment."""
    known = {f.name for f in fields(EngineSettings)}
    values: dict[str, Any] = {}

    if path is not None:
        obj = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
        if obj is None:
            obj = {}
        if not isinstance(obj, Mapping):
            raise TypeError("settings YAML must be a mapping")
        unknown = set(obj) - known
        if unknown:
            raise ValueError(f"unknown settings: {sorted(unknown)}")
        values.update(obj)

    env = os.environ if env is None else env
    for name in known:
        raw = env.get(ENV_PREFIX + name.upper())
        if raw is not None:
            values[name] = _coerce(name, raw)

    return replace(EngineSettings(), **values)


def configure_logging(settings: EngineSettings) -> None:
    """Basic stderr logging for hosts that have no logging setup of their own."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@dataclass
class Deployment:
    """Everything a host needs, wired from one settings object."""

    settings: EngineSettings
    store: KeyValueStore
    engine: StreamEngine
    authenticator: CallAuthenticator
    claimable: ClaimableAmountService


def build_deployment(
    settings: EngineSettings,
    *,
    token: Optional[TokenService] = None,
    auth: Optional[AuthOracle] = None,
    clock: Optional[Clock] = None,
    events: Optional[EventSink] = None,
) -> Deployment:
    store: KeyValueStore = (
        JsonFileStore(settings.store_path) if settings.store_path else InMemoryStore()
    )
    if events is None:
        events = JsonlEventSink(settings.event_log_path) if settings.event_log_path else InMemoryEventSink()
    engine = StreamEngine(
        store,
        token if token is not None else BalanceTokenService(store),
        auth if auth is not None else IdentityAuthOracle(),
        clock if clock is not None else SystemClock(),
        events,
        custody=settings.custody_address,
    )
    return Deployment(
        settings=settings,
        store=store,
        engine=engine,
        authenticator=CallAuthenticator(store, settings.chain_id),
        claimable=ClaimableAmountService(cache_ttl_ms=settings.claimable_cache_ttl_ms),
    )
