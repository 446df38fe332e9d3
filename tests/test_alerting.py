from sharewatch.alerting import AlertDispatcher, build_payload
from sharewatch.sources.base import TrackedItem


def test_payload_wording():
    payload = build_payload(TrackedItem("Hello", "https://example.com/a", owner="ann@example.com"), 12)
    assert payload.title == 'Your article "Hello" is going viral!'
    assert payload.body == "Your article has 12 tweets and retweets!"
    assert payload.recipient == "ann@example.com"


def test_payload_ignores_non_address_owner():
    payload = build_payload(TrackedItem("Hello", "https://example.com/a", owner="ann"), 1)
    assert payload.recipient is None


def test_dispatch_fails_without_credentials(monkeypatch):
    for var in ("PUSHOVER_USER_KEY", "PUSHOVER_APP_TOKEN", "GMAIL_USER", "GMAIL_APP_PASSWORD", "ALERT_EMAIL_TO"):
        monkeypatch.delenv(var, raising=False)
    dispatcher = AlertDispatcher(config={"outputs": {"use_email": True, "use_pushover": True}}, dry_run=True)
    assert dispatcher.dispatch(TrackedItem("Hello", "https://example.com/a"), 3) is False


def test_dry_run_dispatch_succeeds_with_pushover(monkeypatch):
    monkeypatch.setenv("PUSHOVER_USER_KEY", "u")
    monkeypatch.setenv("PUSHOVER_APP_TOKEN", "t")
    dispatcher = AlertDispatcher(config={"outputs": {"use_email": False, "use_pushover": True}}, dry_run=True)
    assert dispatcher.dispatch(TrackedItem("Hello", "https://example.com/a"), 3) is True
