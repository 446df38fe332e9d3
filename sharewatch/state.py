"""Aggregation store: per-article tweet history and last notified score."""

from __future__ import annotations

import json
import logging
import threading
from collections import defaultdict
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, Mapping, Optional

from .records import SignalRecord

LOGGER = logging.getLogger(__name__)


@dataclass
class AggregationEntry:
    history: Dict[str, SignalRecord] = field(default_factory=dict)
    last_alerted_score: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "history": [record.to_dict() for record in self.history.values()],
            "last_alerted_score": self.last_alerted_score,
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "AggregationEntry":
        records = [SignalRecord.from_dict(item) for item in payload.get("history", [])]
        score = payload.get("last_alerted_score", 0)
        if isinstance(score, bool) or not isinstance(score, int) or score < 0:
            raise ValueError(f"invalid last_alerted_score {score!r}")
        return cls(history={record.id: record for record in records}, last_alerted_score=score)


@dataclass
class AggregationStore:
    """Owned by the run coordinator; collaborators never see it.

    Kept in memory when ``path`` is None, otherwise persisted as JSON on
    ``save``.
    """

    path: Optional[Path] = None
    entries: Dict[str, AggregationEntry] = field(default_factory=dict)
    _locks: Dict[str, threading.RLock] = field(default_factory=lambda: defaultdict(threading.RLock), repr=False)
    _guard: threading.Lock = field(default_factory=threading.Lock, repr=False)

    @classmethod
    def load(cls, path: Path) -> "AggregationStore":
        if not path.exists():
            return cls(path=path)
        try:
            with path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except (OSError, json.JSONDecodeError) as exc:
            LOGGER.warning("Aggregation state at %s unreadable, starting empty: %s", path, exc)
            return cls(path=path)
        if not isinstance(payload, dict):
            LOGGER.warning("Aggregation state at %s is not an object, starting empty", path)
            return cls(path=path)
        raw_entries = payload.get("entries") or {}
        if not isinstance(raw_entries, dict):
            LOGGER.warning("Aggregation state at %s has malformed entries, starting empty", path)
            return cls(path=path)
        entries: Dict[str, AggregationEntry] = {}
        for key, raw in raw_entries.items():
            try:
                entries[key] = AggregationEntry.from_dict(raw)
            except (KeyError, TypeError, ValueError, AttributeError) as exc:
                LOGGER.warning("Discarding corrupt aggregation entry for %s: %s", key, exc)
                entries[key] = AggregationEntry()
        return cls(path=path, entries=entries)

    def save(self) -> None:
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as handle:
            json.dump(
                {
                    "saved_at": utcnow().isoformat(),
                    "entries": {key: entry.to_dict() for key, entry in self.entries.items()},
                },
                handle,
                indent=2,
                sort_keys=True,
            )

    def entry(self, key: str) -> AggregationEntry:
        existing = self.entries.get(key)
        if not isinstance(existing, AggregationEntry):
            existing = AggregationEntry()
            self.entries[key] = existing
        return existing

    def put_history(self, key: str, history: Mapping[str, SignalRecord]) -> None:
        self.entry(key).history = dict(history)

    @contextmanager
    def lock(self, key: str) -> Iterator[AggregationEntry]:
        """Hold the per-key lock for a whole merge/evaluate/commit sequence."""
        with self._guard:
            key_lock = self._locks[key]
        with key_lock:
            yield self.entry(key)

    def __contains__(self, key: object) -> bool:
        return key in self.entries

    def __len__(self) -> int:
        return len(self.entries)


def utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)
