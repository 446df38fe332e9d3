"""Main orchestration invoked by the CLI: one watch cycle with persistence."""

from __future__ import annotations

import json
import logging
from contextlib import closing
from pathlib import Path
from typing import Optional
from uuid import uuid4

from .alerting import AlertDispatcher
from .config_models import SettingsConfig
from .coordinator import RunCoordinator, RunResult
from .metrics import MetricsStore
from .policy import AlertPolicy
from .sources.articles import FeedItemSource, StaticItemSource
from .sources.base import CycleControl, ItemSource, Notifier, SignalSource
from .sources.twitter import TwitterSearchClient
from .state import AggregationStore, utcnow
from .validate import load_settings

LOGGER = logging.getLogger(__name__)
ROOT = Path(__file__).resolve().parents[1]
DATA_DIR = ROOT / "data"
LATEST_RUN_PATH = DATA_DIR / "latest_run.json"
STATE_PATH = DATA_DIR / "aggregation_state.json"


def write_summary(path: Path, run_id: str, result: RunResult) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = {
        "run_id": run_id,
        "state": result.state.value,
        "items_examined": result.items_examined,
        "total_score": result.total_score,
        "alerts_sent": result.alerts_sent,
        "message": result.status_message(),
        "items": [
            {
                "key": outcome.key,
                "status": outcome.status,
                "score": outcome.score,
                "alerted": outcome.alerted,
                "error": outcome.error or "",
            }
            for outcome in result.outcomes
        ],
    }
    path.write_text(json.dumps(payload, indent=2), encoding="utf-8")


def build_item_source(settings: SettingsConfig) -> ItemSource:
    items = settings.items
    if items.feed_url:
        return FeedItemSource(items.feed_url, items.base_url, items.backlog_days, items.allow_domains)
    return StaticItemSource([item.model_dump() for item in items.static], items.base_url, items.allow_domains)


class ShareWatchRunner:
    """Owns the aggregation store for the process lifetime.

    Reusing one runner across cycles keeps history in memory; the JSON state
    file lets a fresh process pick up where the last one stopped.
    """

    def __init__(
        self,
        dry_run: bool = False,
        settings: Optional[SettingsConfig] = None,
        control: Optional[CycleControl] = None,
        item_source: Optional[ItemSource] = None,
        signal_source: Optional[SignalSource] = None,
        notifier: Optional[Notifier] = None,
    ) -> None:
        self.settings = settings or load_settings()
        self.dry_run = dry_run or self.settings.testing.dry_run
        self.store = AggregationStore.load(STATE_PATH)
        twitter = self.settings.twitter
        self.coordinator = RunCoordinator(
            store=self.store,
            item_source=item_source or build_item_source(self.settings),
            signal_source=signal_source
            or TwitterSearchClient.from_env(
                max_results=twitter.max_results,
                max_pages=twitter.max_pages,
                timeout=twitter.timeout_sec,
            ),
            notifier=notifier or AlertDispatcher(config={"outputs": self.settings.outputs.model_dump()}, dry_run=self.dry_run),
            policy=AlertPolicy(self.settings.thresholds.growth_factor),
            control=control,
        )

    def run(self) -> RunResult:
        run_id = str(uuid4())
        started_at = utcnow()
        LOGGER.info("Starting cycle %s (dry_run=%s)", run_id, self.dry_run)
        with closing(MetricsStore(DATA_DIR / "metrics.db")) as metrics:
            metrics.record_run_start(run_id, started_at, self.dry_run)
            try:
                result = self.coordinator.run()
            finally:
                self.store.save()
            ended_at = utcnow()
            for outcome in result.outcomes:
                metrics.record_outcome(run_id, outcome, ended_at)
            metrics.record_run_end(run_id, ended_at, (ended_at - started_at).total_seconds(), result)
        write_summary(LATEST_RUN_PATH, run_id, result)
        LOGGER.info(result.status_message())
        return result


def run_once(dry_run: bool = False) -> RunResult:
    logging.basicConfig(level=logging.INFO)
    runner = ShareWatchRunner(dry_run=dry_run)
    return runner.run()


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Run one share-watch cycle.")
    parser.add_argument("--dry-run", action="store_true", help="Prevent outbound notifications.")
    args = parser.parse_args()
    run_once(dry_run=args.dry_run)
