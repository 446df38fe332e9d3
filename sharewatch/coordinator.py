"""One execution cycle over the tracked articles."""

from __future__ import annotations

import enum
import logging
import threading
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from .merge import merge
from .policy import AlertPolicy
from .records import SignalValidationError
from .sources.base import CycleControl, ItemSource, Notifier, SignalSource, TrackedItem
from .state import AggregationStore

LOGGER = logging.getLogger(__name__)


class CycleState(str, enum.Enum):
    NOT_STARTED = "not_started"
    RUNNING = "running"
    COMPLETED = "completed"
    STOPPED_EARLY = "stopped_early"


@dataclass(frozen=True)
class ItemOutcome:
    key: str
    status: str  # "merged", "empty" or "failed"
    score: int = 0
    alerted: bool = False
    previous_alerted_score: int = 0
    record_count: int = 0
    error: Optional[str] = None


@dataclass(frozen=True)
class RunResult:
    items_examined: int
    total_score: int
    alerts_sent: int
    state: CycleState = CycleState.COMPLETED
    outcomes: Tuple[ItemOutcome, ...] = field(default_factory=tuple)

    def status_message(self) -> str:
        message = (
            f"Found {self.items_examined} articles that were tweeted {self.total_score} times. "
            f"Sent {self.alerts_sent} notifications."
        )
        if self.state is CycleState.STOPPED_EARLY:
            message += " Stopped early."
        return message


class StopFlag:
    def __init__(self) -> None:
        self._event = threading.Event()

    def request_stop(self) -> None:
        self._event.set()

    def is_stop_requested(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float) -> bool:
        """Sleep between cycles, waking early on a stop request."""
        return self._event.wait(timeout)


class RunCoordinator:
    def __init__(
        self,
        store: AggregationStore,
        item_source: ItemSource,
        signal_source: SignalSource,
        notifier: Notifier,
        policy: Optional[AlertPolicy] = None,
        control: Optional[CycleControl] = None,
    ) -> None:
        self.store = store
        self.item_source = item_source
        self.signal_source = signal_source
        self.notifier = notifier
        self.policy = policy or AlertPolicy()
        self.control = control
        self.state = CycleState.NOT_STARTED

    def run(self) -> RunResult:
        try:
            items = self.item_source.list_tracked_items()
        except Exception as exc:
            LOGGER.error("Could not list tracked articles: %s", exc)
            items = []
        return self.run_cycle(items)

    def run_cycle(self, items: Sequence[TrackedItem]) -> RunResult:
        self.state = CycleState.RUNNING
        total_score = 0
        alerts_sent = 0
        outcomes: List[ItemOutcome] = []
        for item in items:
            if self.control is not None and self.control.is_stop_requested():
                LOGGER.info("Stop requested, ending cycle after %d of %d articles", len(outcomes), len(items))
                self.state = CycleState.STOPPED_EARLY
                break
            outcome = self._process(item)
            outcomes.append(outcome)
            if outcome.status == "merged":
                total_score += outcome.score
            if outcome.alerted:
                alerts_sent += 1
        else:
            self.state = CycleState.COMPLETED
        return RunResult(
            items_examined=len(items),
            total_score=total_score,
            alerts_sent=alerts_sent,
            state=self.state,
            outcomes=tuple(outcomes),
        )

    def _process(self, item: TrackedItem) -> ItemOutcome:
        try:
            key = self.item_source.resolve_key(item)
        except Exception as exc:
            LOGGER.warning("Could not resolve key for %s: %s", item.link, exc)
            return ItemOutcome(key=item.link, status="failed", error=str(exc))
        try:
            batch = list(self.signal_source.fetch(key))
        except Exception as exc:
            LOGGER.warning("Fetch failed for %s: %s", key, exc)
            return ItemOutcome(key=key, status="failed", error=str(exc))

        with self.store.lock(key) as entry:
            if not entry.history and not batch:
                return ItemOutcome(key=key, status="empty")
            try:
                result = merge(entry.history, batch)
            except SignalValidationError as exc:
                LOGGER.warning("Rejected batch for %s: %s", key, exc)
                return ItemOutcome(key=key, status="failed", error=str(exc))
            self.store.put_history(key, result.history)

            previous = entry.last_alerted_score
            alerted = False
            if self.policy.should_alert(previous, result.score):
                if self._dispatch(item, key, result.score):
                    self.policy.commit(entry, result.score)
                    alerted = True
            return ItemOutcome(
                key=key,
                status="merged",
                score=result.score,
                alerted=alerted,
                previous_alerted_score=previous,
                record_count=len(result.history),
            )

    def _dispatch(self, item: TrackedItem, key: str, score: int) -> bool:
        try:
            delivered = bool(self.notifier.dispatch(item, score))
        except Exception:
            LOGGER.exception("Notification for %s raised", key)
            return False
        if not delivered:
            LOGGER.error("Notification for %s (score %d) was not delivered", key, score)
        else:
            LOGGER.info("Notified %s about %s at score %d", item.owner or "owner", key, score)
        return delivered
