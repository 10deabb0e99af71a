"""
Stream ledger and protocol config repositories.

Both are thin typed views over a `KeyValueStore`:
- `StreamLedger` owns stream records keyed by numeric id and the global id counter.
- `ConfigStore` owns the singleton `ProtocolConfig`.

Neither caches anything; every read goes to the store, so an enclosing
transaction sees its own writes and a reverted one leaves no trace.
"""

from __future__ import annotations

from typing import Iterator, Optional, Tuple

from ..core.types import ProtocolConfig, Stream, StreamId
from .records import config_from_dict, config_to_dict, stream_from_dict, stream_to_dict
from .store import KeyValueStore

CONFIG_KEY = "config"
STREAM_COUNTER_KEY = "stream_counter"
STREAM_KEY_PREFIX = "stream:"


def stream_key(stream_id: StreamId) -> str:
    if not isinstance(stream_id, int) or isinstance(stream_id, bool) or stream_id <= 0:
        raise ValueError(f"stream_id must be a positive int, got {stream_id!r}")
    # Zero-padded so lexical key order equals id order.
    return f"{STREAM_KEY_PREFIX}{stream_id:020d}"


class StreamLedger:
    """Stream records keyed by id; ids start at 1 and are never reused."""

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    def get(self, stream_id: StreamId) -> Optional[Stream]:
        raw = self._store.get(stream_key(stream_id))
        return None if raw is None else stream_from_dict(raw)

    def put(self, stream_id: StreamId, stream: Stream) -> None:
        self._store.set(stream_key(stream_id), stream_to_dict(stream))

    def last_id(self) -> int:
        return int(self._store.get(STREAM_COUNTER_KEY, 0))

    def peek_next_id(self) -> StreamId:
        return self.last_id() + 1

    def allocate_id(self) -> StreamId:
        stream_id = self.peek_next_id()
        self._store.set(STREAM_COUNTER_KEY, stream_id)
        return stream_id

    def iter_streams(self) -> Iterator[Tuple[StreamId, Stream]]:
        """All streams in ascending id order."""
        for key in self._store.keys(STREAM_KEY_PREFIX):
            raw = self._store.get(key)
            if raw is not None:
                yield int(key[len(STREAM_KEY_PREFIX):]), stream_from_dict(raw)

    def __len__(self) -> int:
        return len(self._store.keys(STREAM_KEY_PREFIX))


class ConfigStore:
    """Singleton protocol configuration."""

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    def get(self) -> Optional[ProtocolConfig]:
        raw = self._store.get(CONFIG_KEY)
        return None if raw is None else config_from_dict(raw)

    def put(self, config: ProtocolConfig) -> None:
        self._store.set(CONFIG_KEY, config_to_dict(config))

    def exists(self) -> bool:
        return self._store.get(CONFIG_KEY) is not None
