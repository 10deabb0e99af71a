"""
Stream engine: the imperative shell around `streamledger.core`.

Every public mutating operation:

1. Authenticates the caller against the identity the operation needs
   (exactly once, before reading or touching state).
2. Loads the records it needs from the store.
3. Asks the core to plan the transition (guards, arithmetic, invariants).
4. Executes the planned token transfers in order, then persists the records.
5. Publishes the planned events once the transaction has committed.

Steps 1-4 run inside one store transaction under the engine lock, so a failure
anywhere (auth, validation, transfer, invariant) leaves no partial write and
publishes nothing. Queries never write and take the same lock, so they never
observe a half-applied operation. Store transactions belong to the calling
thread: writes other threads make meanwhile (nonce bumps, mints) land in the
committed state and survive a rollback here.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Iterator, List, Optional, Tuple

from ..core.engine import (
    plan_cancel_stream,
    plan_create_stream,
    plan_initialize,
    plan_top_up_stream,
    plan_update_fee_config,
    plan_withdraw,
    unwrap,
)
from ..core.errors import StreamError
from ..core.math import calculate_claimable
from ..core.types import Action, Effect, ProtocolConfig, StepResult, Stream, StreamId
from ..state.ledger import ConfigStore, StreamLedger
from ..state.store import KeyValueStore
from .collaborators import AuthOracle, Clock, EventSink, TokenService, VerifiedCaller
from .events import EventRecord, NullEventSink

log = logging.getLogger(__name__)

DEFAULT_CUSTODY = "streamledger:custody"


class StreamEngine:
    def __init__(
        self,
        store: KeyValueStore,
        token: TokenService,
        auth: AuthOracle,
        clock: Clock,
        events: Optional[EventSink] = None,
        *,
        custody: str = DEFAULT_CUSTODY,
    ) -> None:
        self.store = store
        self.ledger = StreamLedger(store)
        self.configs = ConfigStore(store)
        self.token = token
        self.auth = auth
        self.clock = clock
        self.events = events if events is not None else NullEventSink()
        self.custody = custody
        self._lock = threading.RLock()

    # ------------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------------

    @contextmanager
    def _operation(self, action: Action) -> Iterator[List[Effect]]:
        """Serialize, run in a transaction, publish effects after commit."""
        effects: List[Effect] = []
        with self._lock:
            try:
                with self.store.transaction():
                    yield effects
            except StreamError as exc:
                log.info("%s rejected: %s", action.value, exc.kind.name)
                raise
            except Exception:
                log.warning("%s aborted, state rolled back", action.value, exc_info=True)
                raise
        self._publish(effects)

    def _publish(self, effects: List[Effect]) -> None:
        for effect in effects:
            try:
                self.events.publish(effect.event.value, effect.payload)
            except Exception:
                # Observability only; the ledger has already committed.
                log.warning("event sink failed for %s", effect.event.value, exc_info=True)

    def _commit(self, result: StepResult, stream_id: Optional[StreamId], effects: List[Effect]) -> None:
        for t in result.transfers:
            source = self.custody if t.source is None else t.source
            dest = self.custody if t.dest is None else t.dest
            self.token.transfer(t.token, source, dest, t.amount)
        if result.config is not None:
            self.configs.put(result.config)
        if result.stream is not None:
            assert stream_id is not None
            self.ledger.put(stream_id, result.stream)
        effects.extend(result.effects)

    def _probe_token(self, token_address: str) -> bool:
        try:
            return bool(self.token.probe_capability(token_address))
        except Exception as exc:
            log.debug("token probe failed for %s: %s", token_address, exc)
            return False

    # ------------------------------------------------------------------------
    # Protocol configuration
    # ------------------------------------------------------------------------

    def initialize(self, caller: VerifiedCaller, admin: str, treasury: str, fee_rate_bps: int) -> None:
        with self._operation(Action.INITIALIZE) as effects:
            self.auth.require_caller_is(caller, admin)
            result = unwrap(plan_initialize(self.configs.get(), admin, treasury, fee_rate_bps))
            self._commit(result, None, effects)
        log.info("protocol initialized admin=%s treasury=%s fee_rate_bps=%s", admin, treasury, fee_rate_bps)

    def update_fee_config(self, caller: VerifiedCaller, admin: str, treasury: str, fee_rate_bps: int) -> None:
        with self._operation(Action.UPDATE_FEE_CONFIG) as effects:
            self.auth.require_caller_is(caller, admin)
            result = unwrap(plan_update_fee_config(self.configs.get(), admin, treasury, fee_rate_bps))
            self._commit(result, None, effects)
        log.info("fee config updated treasury=%s fee_rate_bps=%s", treasury, fee_rate_bps)

    def get_fee_config(self) -> Optional[ProtocolConfig]:
        with self._lock:
            return self.configs.get()

    # ------------------------------------------------------------------------
    # Streams
    # ------------------------------------------------------------------------

    def create_stream(
        self,
        caller: VerifiedCaller,
        sender: str,
        recipient: str,
        token_address: str,
        amount: int,
        duration: int,
    ) -> StreamId:
        """Lock `amount` (minus fee) streaming to `recipient` over `duration` seconds."""
        with self._operation(Action.CREATE_STREAM) as effects:
            self.auth.require_caller_is(caller, sender)
            stream_id = self.ledger.peek_next_id()
            result = unwrap(plan_create_stream(
                self.configs.get(),
                stream_id,
                sender,
                recipient,
                token_address,
                amount,
                duration,
                self.clock.now(),
                token_supported=self._probe_token(token_address),
            ))
            self._commit(result, self.ledger.allocate_id(), effects)
        assert result.stream is not None
        log.info(
            "stream created id=%s sender=%s recipient=%s deposited=%s rate=%s",
            stream_id, sender, recipient, result.stream.deposited_amount, result.stream.rate_per_second,
        )
        return stream_id

    def top_up_stream(self, caller: VerifiedCaller, sender: str, stream_id: StreamId, amount: int) -> None:
        with self._operation(Action.TOP_UP_STREAM) as effects:
            self.auth.require_caller_is(caller, sender)
            result = unwrap(plan_top_up_stream(
                self.configs.get(), stream_id, self._load(stream_id), sender, amount, self.clock.now(),
            ))
            self._commit(result, stream_id, effects)
        assert result.stream is not None
        log.info("stream topped up id=%s deposited=%s", stream_id, result.stream.deposited_amount)

    def withdraw(self, caller: VerifiedCaller, recipient: str, stream_id: StreamId) -> int:
        """Pay out everything claimable now; returns the amount."""
        with self._operation(Action.WITHDRAW) as effects:
            self.auth.require_caller_is(caller, recipient)
            result = unwrap(plan_withdraw(stream_id, self._load(stream_id), recipient, self.clock.now()))
            self._commit(result, stream_id, effects)
        assert result.value is not None and result.stream is not None
        log.info(
            "withdrawal id=%s amount=%s active=%s", stream_id, result.value, result.stream.is_active,
        )
        return result.value

    def cancel_stream(self, caller: VerifiedCaller, sender: str, stream_id: StreamId) -> None:
        with self._operation(Action.CANCEL_STREAM) as effects:
            self.auth.require_caller_is(caller, sender)
            result = unwrap(plan_cancel_stream(stream_id, self._load(stream_id), sender, self.clock.now()))
            self._commit(result, stream_id, effects)
        log.info("stream cancelled id=%s", stream_id)

    def _load(self, stream_id: StreamId) -> Optional[Stream]:
        if not isinstance(stream_id, int) or isinstance(stream_id, bool) or stream_id <= 0:
            return None
        return self.ledger.get(stream_id)

    # ------------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------------

    def get_stream(self, stream_id: StreamId) -> Optional[Stream]:
        with self._lock:
            return self._load(stream_id)

    def get_claimable_amount(self, stream_id: StreamId) -> Optional[int]:
        """Claimable now; 0 for inactive streams, None for unknown ids."""
        with self._lock:
            stream = self._load(stream_id)
            if stream is None:
                return None
            if not stream.is_active:
                return 0
            return calculate_claimable(stream, self.clock.now())

    def list_streams(
        self, sender: Optional[str] = None, recipient: Optional[str] = None,
    ) -> List[Tuple[StreamId, Stream]]:
        with self._lock:
            return [
                (sid, s)
                for sid, s in self.ledger.iter_streams()
                if (sender is None or s.sender == sender) and (recipient is None or s.recipient == recipient)
            ]

    def get_stream_events(self, stream_id: StreamId) -> List[EventRecord]:
        query = getattr(self.events, "for_stream", None)
        if query is None:
            raise RuntimeError(f"{type(self.events).__name__} does not record events")
        return list(query(stream_id))
