"""Developer utilities for running the watcher locally."""

from __future__ import annotations

import logging
import signal

import click

from . import share_watch, validate as validate_mod
from .coordinator import CycleState, StopFlag

logging.basicConfig(level=logging.INFO)
LOGGER = logging.getLogger(__name__)


@click.group()
def cli() -> None:
    """Share watch developer CLI."""


@cli.command("run")
@click.option("--dry-run", is_flag=True, help="Do not send notifications; still persists aggregation state.")
def run(dry_run: bool) -> None:
    """Execute one cycle over all tracked articles."""
    result = share_watch.run_once(dry_run=dry_run)
    click.echo(result.status_message())


@cli.command("watch")
@click.option("--interval", type=int, default=None, help="Seconds between cycles (defaults to schedule_seconds)")
@click.option("--dry-run", is_flag=True, help="Do not send notifications.")
@click.option("--max-cycles", type=int, default=None, help="Stop after this many cycles")
def watch(interval: int | None, dry_run: bool, max_cycles: int | None) -> None:
    """Run cycles repeatedly until interrupted; stops between articles."""
    stop = StopFlag()

    def _request_stop(signum, _frame) -> None:
        LOGGER.info("Signal %s received, stopping after the current article", signum)
        stop.request_stop()

    signal.signal(signal.SIGINT, _request_stop)
    signal.signal(signal.SIGTERM, _request_stop)
    runner = share_watch.ShareWatchRunner(dry_run=dry_run, control=stop)
    pause = interval or runner.settings.schedule_seconds
    cycles = 0
    while not stop.is_stop_requested():
        result = runner.run()
        click.echo(result.status_message())
        cycles += 1
        if result.state is CycleState.STOPPED_EARLY:
            break
        if max_cycles is not None and cycles >= max_cycles:
            break
        stop.wait(pause)


@cli.command("validate")
def validate() -> None:
    """Validate config/settings.yaml."""
    validate_mod.main()
    click.echo("settings.yaml is valid")


@cli.command("send-test")
@click.option("--title", default="Share watch end-to-end test", help="Article title")
@click.option("--link", default="https://example.com/articles/test", help="Article URL")
@click.option("--owner", default=None, help="Recipient address (defaults to ALERT_EMAIL_TO)")
@click.option("--score", type=int, default=1, help="Score to report")
def send_test(title: str, link: str, owner: str | None, score: int) -> None:
    """Send a one-off test notification via configured outputs."""
    from .alerting import AlertDispatcher  # lazy import for speed
    from .sources.base import TrackedItem

    settings = validate_mod.load_settings()
    dispatcher = AlertDispatcher(config={"outputs": settings.outputs.model_dump()}, dry_run=False)
    delivered = dispatcher.dispatch(TrackedItem(title=title, link=link, owner=owner), score)
    click.echo(f"Sent test notification: delivered={delivered}")


if __name__ == "__main__":
    cli()
