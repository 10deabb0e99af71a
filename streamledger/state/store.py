"""
Key-value storage with journaled transactions.

The engine persists records through the small `KeyValueStore` interface, so the
accounting logic never depends on a concrete storage engine. Two backends ship:

- InMemoryStore: dict-backed, test/dev friendly.
- JsonFileStore: InMemoryStore that snapshots to a JSON file on every outermost
  commit (canonical JSON to a temp file, then atomic rename).

Transactions are a stack of overlays owned by the thread that opened them.
Writes go to the top overlay; reads consult that thread's overlays from top to
base. `commit()` merges the top overlay into the next layer (or the base when it
is the last one). `revert()` discards it. Other threads only ever see the
committed base, and their writes outside a transaction go straight to it.

    with store.transaction():
        store.set("k", 1)
        raise RuntimeError  # "k" is not written

An outermost commit raises `TransactionConflict` (and writes nothing) when
another thread committed a key this transaction wrote after it was first
touched here.
"""

from __future__ import annotations

import copy
import json
import os
import tempfile
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Protocol, runtime_checkable

from .canonical import canonical_json_bytes


class _Deleted:
    __slots__ = ()

    def __repr__(self) -> str:
        return "<deleted>"


_DELETED = _Deleted()


class TransactionConflict(RuntimeError):
    def __init__(self, keys: List[str]) -> None:
        super().__init__(f"concurrent commit touched {keys}")
        self.keys = keys


@runtime_checkable
class KeyValueStore(Protocol):
    def get(self, key: str, default: Any = None) -> Any: ...

    def set(self, key: str, value: Any) -> None: ...

    def delete(self, key: str) -> None: ...

    def keys(self, prefix: str = "") -> List[str]: ...

    def transaction(self) -> Any: ...


class _Checkpoints(threading.local):
    def __init__(self) -> None:
        self.overlays: List[Dict[str, Any]] = []
        # key -> base version when this transaction first touched it
        self.seen: Dict[str, int] = {}


class InMemoryStore:
    """Dict-backed store with nested, per-thread checkpoints."""

    def __init__(self, initial: Dict[str, Any] | None = None) -> None:
        self._base: Dict[str, Any] = copy.deepcopy(initial) if initial else {}
        self._versions: Dict[str, int] = {}
        self._mutex = threading.RLock()
        self._local = _Checkpoints()

    def _touch(self, key: str) -> None:
        # Caller holds the mutex.
        if self._local.overlays:
            self._local.seen.setdefault(key, self._versions.get(key, 0))

    def _bump(self, key: str) -> None:
        self._versions[key] = self._versions.get(key, 0) + 1

    # -- reads ---------------------------------------------------------------

    def get(self, key: str, default: Any = None) -> Any:
        for overlay in reversed(self._local.overlays):
            if key in overlay:
                val = overlay[key]
                return default if val is _DELETED else copy.deepcopy(val)
        with self._mutex:
            self._touch(key)
            if key in self._base:
                return copy.deepcopy(self._base[key])
        return default

    def keys(self, prefix: str = "") -> List[str]:
        with self._mutex:
            view: Dict[str, Any] = dict(self._base)
        for overlay in self._local.overlays:
            view.update(overlay)
        return sorted(k for k, v in view.items() if v is not _DELETED and k.startswith(prefix))

    # -- writes --------------------------------------------------------------

    def set(self, key: str, value: Any) -> None:
        if not isinstance(key, str) or not key:
            raise TypeError("key must be a non-empty str")
        self._write(key, copy.deepcopy(value))

    def delete(self, key: str) -> None:
        self._write(key, _DELETED)

    def _write(self, key: str, value: Any) -> None:
        overlays = self._local.overlays
        with self._mutex:
            if overlays:
                self._touch(key)
                overlays[-1][key] = value
                return
            self._apply({key: value})

    def _apply(self, changes: Dict[str, Any]) -> None:
        # Caller holds the mutex.
        for key, val in changes.items():
            if val is _DELETED:
                self._base.pop(key, None)
            else:
                self._base[key] = val
            self._bump(key)
        self._on_base_changed()

    # -- checkpoints ---------------------------------------------------------

    @property
    def depth(self) -> int:
        """Open checkpoints on the calling thread."""
        return len(self._local.overlays)

    def begin(self) -> None:
        self._local.overlays.append({})

    def commit(self) -> None:
        local = self._local
        if not local.overlays:
            raise RuntimeError("commit() without begin()")
        top = local.overlays.pop()
        if local.overlays:
            local.overlays[-1].update(top)
            return
        seen, local.seen = local.seen, {}
        with self._mutex:
            stale = sorted(k for k in top if self._versions.get(k, 0) != seen.get(k, 0))
            if stale:
                raise TransactionConflict(stale)
            if top:
                self._apply(top)

    def revert(self) -> None:
        local = self._local
        if not local.overlays:
            raise RuntimeError("revert() without begin()")
        local.overlays.pop()
        if not local.overlays:
            local.seen = {}

    @contextmanager
    def transaction(self) -> Iterator["InMemoryStore"]:
        self.begin()
        try:
            yield self
        except BaseException:
            self.revert()
            raise
        self.commit()

    def snapshot(self) -> Dict[str, Any]:
        """Committed contents only (ignores open overlays)."""
        with self._mutex:
            return copy.deepcopy(self._base)

    def _on_base_changed(self) -> None:
        """Hook for durable subclasses; called with the mutex held."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}({len(self._base)} keys, depth={self.depth})"


class JsonFileStore(InMemoryStore):
    """InMemoryStore persisted as one canonical JSON document."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = Path(path)
        initial: Dict[str, Any] = {}
        if self.path.exists():
            data = json.loads(self.path.read_text(encoding="utf-8"))
            if not isinstance(data, dict):
                raise TypeError(f"store file {self.path} must hold a JSON object")
            initial = data
        super().__init__(initial)

    def _on_base_changed(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(prefix=self.path.name + ".", dir=str(self.path.parent))
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(canonical_json_bytes(self._base))
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp, self.path)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise

    def _apply(self, changes: Dict[str, Any]) -> None:
        # Values with no canonical form are refused before memory or disk changes.
        canonical_json_bytes({k: v for k, v in changes.items() if v is not _DELETED})
        super()._apply(changes)
