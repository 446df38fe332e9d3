"""Incremental merge of fetched tweets into an article's stored history."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Mapping

from .records import SignalRecord, SignalValidationError

History = Dict[str, SignalRecord]


@dataclass(frozen=True)
class MergeResult:
    history: History
    score: int


def score_of(history: Mapping[str, SignalRecord]) -> int:
    """Each record counts once, plus once more per retweet."""
    return len(history) + sum(record.weight for record in history.values())


def merge(history: Mapping[str, SignalRecord], fresh_batch: Iterable[SignalRecord]) -> MergeResult:
    """Union ``fresh_batch`` into ``history`` by record id.

    A freshly fetched record replaces the stored record with the same id so
    the retweet count follows the latest fetch. Within one batch the first
    occurrence of an id wins. ``history`` is not mutated.
    """
    merged: History = dict(history)
    seen_in_batch = set()
    for record in fresh_batch:
        if not isinstance(record, SignalRecord):
            raise SignalValidationError(f"expected SignalRecord, got {type(record).__name__}")
        if record.id in seen_in_batch:
            continue
        seen_in_batch.add(record.id)
        merged[record.id] = record
    return MergeResult(history=merged, score=score_of(merged))
