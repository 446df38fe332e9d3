"""Tracked article discovery from a published-articles feed or static config."""

from __future__ import annotations

import calendar
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import urldefrag, urljoin

import feedparser
import tldextract

from .base import SourceError, TrackedItem

LOGGER = logging.getLogger(__name__)

DEFAULT_BACKLOG_DAYS = 120


class _KeyResolver:
    def __init__(self, base_url: str = "", allow_domains: Iterable[str] = ()) -> None:
        self.base_url = base_url
        self.allow_domains = {domain.lower() for domain in allow_domains}

    def resolve_key(self, item: TrackedItem) -> str:
        """Canonical absolute URL: relative links join onto ``base_url``, fragments drop."""
        absolute = urljoin(self.base_url, item.link) if self.base_url else item.link
        url, _fragment = urldefrag(absolute)
        return url

    def _allowed(self, link: str) -> bool:
        if not self.allow_domains:
            return True
        domain = tldextract.extract(urljoin(self.base_url, link)).registered_domain
        return domain.lower() in self.allow_domains


class StaticItemSource(_KeyResolver):
    def __init__(self, items: Iterable[Dict[str, Any]], base_url: str = "", allow_domains: Iterable[str] = ()) -> None:
        super().__init__(base_url, allow_domains)
        self.items = [TrackedItem(**raw) for raw in items]

    def list_tracked_items(self) -> List[TrackedItem]:
        return [item for item in self.items if self._allowed(item.link)]


class FeedItemSource(_KeyResolver):
    """Articles from an RSS/Atom feed published within the backlog window.

    Entries without an author are ignored since nobody could be notified.
    """

    def __init__(
        self,
        feed_url: str,
        base_url: str = "",
        backlog_days: int = DEFAULT_BACKLOG_DAYS,
        allow_domains: Iterable[str] = (),
    ) -> None:
        super().__init__(base_url, allow_domains)
        self.feed_url = feed_url
        self.backlog_days = backlog_days

    def list_tracked_items(self) -> List[TrackedItem]:
        parsed = feedparser.parse(self.feed_url)
        if parsed.get("bozo") and not parsed.entries:
            raise SourceError(f"feed {self.feed_url} unreadable: {parsed.get('bozo_exception')}")
        cutoff = datetime.now(timezone.utc) - timedelta(days=self.backlog_days)
        items: List[TrackedItem] = []
        for entry in parsed.entries:
            link = entry.get("link") or ""
            owner = (entry.get("author") or "").strip()
            if not link or not owner:
                continue
            published = _entry_time(entry)
            if published is None or published < cutoff:
                continue
            if not self._allowed(link):
                continue
            items.append(
                TrackedItem(
                    title=entry.get("title", "") or link,
                    link=link,
                    owner=owner,
                    published=published.isoformat(),
                )
            )
        LOGGER.info("Feed %s yielded %d tracked articles", self.feed_url, len(items))
        return items


def _entry_time(entry: Dict[str, Any]) -> Optional[datetime]:
    stamp = entry.get("updated_parsed") or entry.get("published_parsed")
    if not stamp:
        return None
    return datetime.fromtimestamp(calendar.timegm(stamp), tz=timezone.utc)
