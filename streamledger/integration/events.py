"""
Pluggable event sinks.

Events are fire-and-forget notifications for external observers; the ledger
never depends on them. Three backends:

- InMemoryEventSink: keeps every record in RAM; queryable by stream/topic.
- JsonlEventSink: append-only JSON lines file; durable and simple to tail.
- NullEventSink: discards everything.

Records get a sink-local sequence number in publish order.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class EventRecord:
    seq: int
    topic: str
    payload: Mapping[str, Any] = field(default_factory=dict)

    @property
    def stream_id(self) -> Optional[int]:
        sid = self.payload.get("stream_id")
        return sid if isinstance(sid, int) else None

    def to_json_dict(self) -> Dict[str, Any]:
        return {"seq": self.seq, "topic": self.topic, "payload": dict(self.payload)}


class InMemoryEventSink:
    def __init__(self) -> None:
        self._records: List[EventRecord] = []
        self._lock = threading.Lock()

    def publish(self, topic: str, payload: Mapping[str, Any]) -> None:
        with self._lock:
            self._records.append(EventRecord(seq=len(self._records), topic=topic, payload=dict(payload)))

    def records(self, topic: Optional[str] = None) -> List[EventRecord]:
        with self._lock:
            return [r for r in self._records if topic is None or r.topic == topic]

    def for_stream(self, stream_id: int) -> List[EventRecord]:
        with self._lock:
            return [r for r in self._records if r.stream_id == stream_id]

    def topics(self) -> List[str]:
        return [r.topic for r in self.records()]

    def clear(self) -> None:
        with self._lock:
            self._records.clear()

    def __len__(self) -> int:
        return len(self._records)


class JsonlEventSink:
    """Appends one JSON object per line; reading back re-parses the file."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = os.fspath(path)
        self._lock = threading.Lock()
        parent = os.path.dirname(self.path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        self._seq = sum(1 for _ in self._iter_lines())

    def _iter_lines(self):
        if not os.path.exists(self.path):
            return
        with open(self.path, "r", encoding="utf-8") as fh:
            for line in fh:
                line = line.strip()
                if line:
                    yield line

    def publish(self, topic: str, payload: Mapping[str, Any]) -> None:
        with self._lock:
            rec = EventRecord(seq=self._seq, topic=topic, payload=dict(payload))
            with open(self.path, "a", encoding="utf-8") as fh:
                fh.write(json.dumps(rec.to_json_dict(), sort_keys=True, separators=(",", ":")) + "\n")
            self._seq += 1

    def records(self, topic: Optional[str] = None) -> List[EventRecord]:
        out: List[EventRecord] = []
        for line in self._iter_lines():
            obj = json.loads(line)
            if topic is None or obj["topic"] == topic:
                out.append(EventRecord(seq=obj["seq"], topic=obj["topic"], payload=obj["payload"]))
        return out

    def for_stream(self, stream_id: int) -> List[EventRecord]:
        return [r for r in self.records() if r.stream_id == stream_id]


class NullEventSink:
    def publish(self, topic: str, payload: Mapping[str, Any]) -> None:
        return None
