"""Growth rule deciding when an article is worth another notification."""

from __future__ import annotations

from .state import AggregationEntry

DEFAULT_GROWTH_FACTOR = 2


def should_alert(last_alerted_score: int, new_score: int, factor: float = DEFAULT_GROWTH_FACTOR) -> bool:
    # Strict: exactly doubling is not enough.
    return new_score > last_alerted_score * factor


def commit(entry: AggregationEntry, new_score: int) -> None:
    entry.last_alerted_score = new_score


class AlertPolicy:
    def __init__(self, factor: float = DEFAULT_GROWTH_FACTOR) -> None:
        if factor < 1:
            raise ValueError("growth factor must be >= 1")
        self.factor = factor

    def should_alert(self, last_alerted_score: int, new_score: int) -> bool:
        return should_alert(last_alerted_score, new_score, self.factor)

    def commit(self, entry: AggregationEntry, new_score: int) -> None:
        """Record a delivered notification; call only after dispatch succeeded."""
        commit(entry, new_score)
