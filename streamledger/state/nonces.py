"""
Nonce table for signed-call replay protection.

We track, per caller identity, the last accepted call nonce. Policy is defined
by the integration layer (currently: strict sequential nonces starting at 1).
"""

from __future__ import annotations

from typing import Dict

from .store import KeyValueStore

NONCE_KEY_PREFIX = "nonce:"
MAX_NONCE = 0xFFFFFFFFFFFFFFFF  # u64


class NonceTable:
    """
    Mapping: caller identity -> last used nonce, stored in a `KeyValueStore`.

    Similar in spirit to `BalanceTable`: a small, explicit state table.
    """

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    def get_last(self, identity: str) -> int:
        v = self._store.get(NONCE_KEY_PREFIX + identity, 0)
        if not isinstance(v, int) or isinstance(v, bool) or v < 0:
            raise ValueError(f"invalid stored nonce for {identity!r}: {v!r}")
        return int(v)

    def set_last(self, identity: str, last_nonce: int) -> None:
        if not isinstance(last_nonce, int) or isinstance(last_nonce, bool) or last_nonce < 0:
            raise TypeError("last_nonce must be a non-negative int")
        if last_nonce > MAX_NONCE:
            raise TypeError("last_nonce must fit in u64")
        self._store.set(NONCE_KEY_PREFIX + identity, int(last_nonce))

    def get_all(self) -> Dict[str, int]:
        return {
            key[len(NONCE_KEY_PREFIX):]: int(self._store.get(key))
            for key in self._store.keys(NONCE_KEY_PREFIX)
        }
