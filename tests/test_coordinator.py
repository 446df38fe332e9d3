from sharewatch.coordinator import CycleState, RunCoordinator, StopFlag
from sharewatch.records import SignalRecord
from sharewatch.sources.base import SourceError, TrackedItem
from sharewatch.state import AggregationStore


class _Items:
    def __init__(self, *links):
        self.items = [TrackedItem(title=link, link=link, owner="editor@example.com") for link in links]

    def list_tracked_items(self):
        return list(self.items)

    def resolve_key(self, item):
        return f"https://example.com/{item.link}"


class _Tweets:
    def __init__(self, batches):
        self.batches = batches
        self.calls = []

    def fetch(self, key):
        self.calls.append(key)
        batch = self.batches.get(key, [])
        if isinstance(batch, Exception):
            raise batch
        return batch


class _Notifier:
    def __init__(self, ok=True):
        self.ok = ok
        self.sent = []

    def dispatch(self, item, score):
        self.sent.append((item.link, score))
        return self.ok


def _coordinator(items, tweets, notifier, store=None, control=None):
    return RunCoordinator(
        store=store or AggregationStore(),
        item_source=items,
        signal_source=tweets,
        notifier=notifier,
        control=control,
    )


def test_two_cycles_alert_only_when_score_more_than_doubles():
    key = "https://example.com/A"
    tweets = _Tweets({key: [SignalRecord("1", 0)]})
    notifier = _Notifier()
    items = _Items("A")
    coordinator = _coordinator(items, tweets, notifier)

    first = coordinator.run()
    assert (first.items_examined, first.total_score, first.alerts_sent) == (1, 1, 1)
    assert coordinator.store.entry(key).last_alerted_score == 1

    tweets.batches[key] = [SignalRecord("1", 0), SignalRecord("2", 0)]
    second = coordinator.run()
    assert second.total_score == 2
    assert second.alerts_sent == 0
    assert coordinator.store.entry(key).last_alerted_score == 1
    assert notifier.sent == [("A", 1)]


def test_fetch_failure_skips_item_but_counts_it():
    tweets = _Tweets(
        {
            "https://example.com/A": SourceError("rate limited"),
            "https://example.com/B": [SignalRecord("9", 0)],
        }
    )
    coordinator = _coordinator(_Items("A", "B"), tweets, _Notifier())
    result = coordinator.run()
    assert result.items_examined == 2
    assert result.total_score == 1
    assert [outcome.status for outcome in result.outcomes] == ["failed", "merged"]
    assert "https://example.com/A" not in coordinator.store


def test_failed_dispatch_keeps_baseline_and_retries():
    key = "https://example.com/A"
    tweets = _Tweets({key: [SignalRecord("1", 2)]})
    notifier = _Notifier(ok=False)
    coordinator = _coordinator(_Items("A"), tweets, notifier)

    first = coordinator.run()
    assert first.alerts_sent == 0
    assert coordinator.store.entry(key).last_alerted_score == 0

    notifier.ok = True
    second = coordinator.run()
    assert second.alerts_sent == 1
    assert coordinator.store.entry(key).last_alerted_score == 3
    assert notifier.sent == [("A", 3), ("A", 3)]


def test_raising_notifier_counts_as_failed_dispatch():
    class _Boom:
        def dispatch(self, item, score):
            raise RuntimeError("smtp down")

    key = "https://example.com/A"
    coordinator = _coordinator(_Items("A"), _Tweets({key: [SignalRecord("1", 0)]}), _Boom())
    result = coordinator.run()
    assert result.alerts_sent == 0
    assert result.total_score == 1
    assert coordinator.store.entry(key).last_alerted_score == 0


def test_empty_item_is_skipped_without_alerting():
    notifier = _Notifier()
    coordinator = _coordinator(_Items("A"), _Tweets({}), notifier)
    result = coordinator.run()
    assert result.outcomes[0].status == "empty"
    assert result.total_score == 0
    assert notifier.sent == []


def test_stored_history_still_scored_when_fetch_is_empty():
    key = "https://example.com/A"
    store = AggregationStore()
    store.put_history(key, {"1": SignalRecord("1", 1)})
    store.entry(key).last_alerted_score = 2
    coordinator = _coordinator(_Items("A"), _Tweets({}), _Notifier(), store=store)
    result = coordinator.run()
    assert result.total_score == 2
    assert result.alerts_sent == 0


def test_stop_flag_ends_cycle_at_item_boundary():
    stop = StopFlag()

    class _StoppingTweets(_Tweets):
        def fetch(self, key):
            stop.request_stop()
            return super().fetch(key)

    tweets = _StoppingTweets({"https://example.com/A": [SignalRecord("1", 0)]})
    coordinator = _coordinator(_Items("A", "B", "C"), tweets, _Notifier(), control=stop)
    result = coordinator.run()
    assert result.state is CycleState.STOPPED_EARLY
    assert result.items_examined == 3
    assert len(result.outcomes) == 1
    assert result.alerts_sent == 1
    assert tweets.calls == ["https://example.com/A"]


def test_completed_state_and_status_message():
    coordinator = _coordinator(_Items("A"), _Tweets({"https://example.com/A": [SignalRecord("1", 4)]}), _Notifier())
    assert coordinator.state is CycleState.NOT_STARTED
    result = coordinator.run()
    assert coordinator.state is CycleState.COMPLETED
    assert result.status_message() == "Found 1 articles that were tweeted 5 times. Sent 1 notifications."


def test_listing_failure_yields_empty_result():
    class _BrokenItems(_Items):
        def list_tracked_items(self):
            raise SourceError("feed down")

    result = _coordinator(_BrokenItems(), _Tweets({}), _Notifier()).run()
    assert result.items_examined == 0
    assert result.state is CycleState.COMPLETED


def test_invalid_batch_fails_only_that_item():
    store = AggregationStore()
    tweets = _Tweets(
        {
            "https://example.com/A": [{"id": "1", "weight": 0}],
            "https://example.com/B": [SignalRecord("2", 1)],
        }
    )
    result = _coordinator(_Items("A", "B"), tweets, _Notifier(), store=store).run()
    assert [outcome.status for outcome in result.outcomes] == ["failed", "merged"]
    assert result.outcomes[0].error
    assert result.total_score == 2
    assert result.alerts_sent == 1
    assert store.entry("https://example.com/A").history == {}
    assert store.entry("https://example.com/A").last_alerted_score == 0
