"""
Read-side claimable projection with a short-lived cache.

Indexers and API layers poll "how much can the recipient take right now" far
more often than streams change. This service answers from a stream snapshot
(no engine round-trip) using the same overflow-safe formula as the engine,
and memoizes answers per (stream id, state fingerprint, timestamp) for
`cache_ttl_ms` milliseconds.

`actionable` mirrors what a withdraw would do at that instant: true only for an
active stream with a positive claimable amount. Inactive streams report 0.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, replace
from typing import Callable, Dict, Optional, Tuple

from ..core.math import calculate_claimable
from ..core.types import Stream, StreamId

MAX_CACHE_ENTRIES = 10_000


@dataclass(frozen=True)
class ClaimableAmount:
    stream_id: StreamId
    claimable_amount: int
    actionable: bool
    calculated_at: int
    cached: bool = False


def _fingerprint(stream: Stream) -> Tuple[int, int, int, int, bool]:
    return (
        stream.rate_per_second,
        stream.deposited_amount,
        stream.withdrawn_amount,
        stream.last_update_time,
        stream.is_active,
    )


class ClaimableAmountService:
    def __init__(
        self,
        cache_ttl_ms: int = 1000,
        now_ms: Optional[Callable[[], int]] = None,
    ) -> None:
        self.cache_ttl_ms = max(0, int(cache_ttl_ms))
        self._now_ms = now_ms or (lambda: int(time.time() * 1000))
        self._cache: Dict[tuple, Tuple[ClaimableAmount, int]] = {}
        self._lock = threading.Lock()

    def clear_cache(self) -> None:
        with self._lock:
            self._cache.clear()

    def get_claimable_amount(
        self, stream_id: StreamId, stream: Stream, at: Optional[int] = None,
    ) -> ClaimableAmount:
        """Claimable for *stream* at unix second *at* (default: now)."""
        now_ms = self._now_ms()
        calculated_at = max(0, int(at) if at is not None else now_ms // 1000)
        key = (stream_id, _fingerprint(stream), calculated_at)

        with self._lock:
            hit = self._cache.get(key)
            if hit is not None and hit[1] > now_ms:
                return replace(hit[0], cached=True)

        raw = calculate_claimable(stream, calculated_at)
        amount = raw if stream.is_active and raw > 0 else 0
        value = ClaimableAmount(
            stream_id=stream_id,
            claimable_amount=amount,
            actionable=amount > 0,
            calculated_at=calculated_at,
        )
        with self._lock:
            self._cache.pop(key, None)
            self._evict(now_ms)
            self._cache[key] = (value, now_ms + self.cache_ttl_ms)
        return value

    def _evict(self, now_ms: int) -> None:
        # Entries are kept in insertion order, which is expiry order for a fixed
        # TTL, so expired and overflow entries are always at the front.
        while self._cache:
            oldest = next(iter(self._cache))
            if self._cache[oldest][1] > now_ms and len(self._cache) < MAX_CACHE_ENTRIES:
                return
            del self._cache[oldest]
