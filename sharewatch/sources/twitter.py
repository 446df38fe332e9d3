"""Twitter recent-search lookup of tweets linking to an article."""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, List, Optional

import requests

from ..records import SignalRecord
from .base import SourceError

LOGGER = logging.getLogger(__name__)

SEARCH_URL = "https://api.twitter.com/2/tweets/search/recent"
TOKEN_URL = "https://api.twitter.com/oauth2/token"


class TwitterSearchClient:
    def __init__(
        self,
        bearer_token: Optional[str] = None,
        consumer_key: Optional[str] = None,
        consumer_secret: Optional[str] = None,
        max_results: int = 100,
        max_pages: int = 3,
        timeout: int = 20,
    ) -> None:
        self.bearer_token = bearer_token
        self.consumer_key = consumer_key
        self.consumer_secret = consumer_secret
        self.max_results = max_results
        self.max_pages = max_pages
        self.timeout = timeout

    @classmethod
    def from_env(cls, **kwargs: Any) -> "TwitterSearchClient":
        return cls(
            bearer_token=os.getenv("TWITTER_BEARER_TOKEN"),
            consumer_key=os.getenv("TWITTER_CONSUMER_KEY"),
            consumer_secret=os.getenv("TWITTER_CONSUMER_SECRET"),
            **kwargs,
        )

    def _token(self) -> str:
        if self.bearer_token:
            return self.bearer_token
        if not (self.consumer_key and self.consumer_secret):
            raise SourceError("Twitter credentials missing (TWITTER_BEARER_TOKEN or consumer key/secret)")
        # Application-only auth: trade the consumer pair for a bearer token once.
        try:
            resp = requests.post(
                TOKEN_URL,
                auth=(self.consumer_key, self.consumer_secret),
                data={"grant_type": "client_credentials"},
                timeout=self.timeout,
            )
            resp.raise_for_status()
        except requests.RequestException as exc:
            raise SourceError(f"Twitter token request failed: {exc}") from exc
        token = resp.json().get("access_token")
        if not token:
            raise SourceError("Twitter token response had no access_token")
        self.bearer_token = token
        return token

    def fetch(self, key: str) -> List[SignalRecord]:
        headers = {"Authorization": f"Bearer {self._token()}"}
        params: Dict[str, Any] = {
            "query": f'url:"{key}"',
            "max_results": self.max_results,
            "tweet.fields": "public_metrics,created_at,author_id",
        }
        records: List[SignalRecord] = []
        for _page in range(self.max_pages):
            try:
                resp = requests.get(SEARCH_URL, params=params, headers=headers, timeout=self.timeout)
                resp.raise_for_status()
            except requests.RequestException as exc:
                raise SourceError(f"Twitter search failed for {key}: {exc}") from exc
            data = resp.json()
            for tweet in data.get("data") or []:
                metrics = tweet.get("public_metrics") or {}
                records.append(
                    SignalRecord(
                        id=str(tweet["id"]),
                        weight=int(metrics.get("retweet_count") or 0),
                        author=tweet.get("author_id"),
                        text=tweet.get("text"),
                        created_at=tweet.get("created_at"),
                    )
                )
            next_token = (data.get("meta") or {}).get("next_token")
            if not next_token:
                break
            params["next_token"] = next_token
        LOGGER.debug("Twitter search for %s returned %d tweets", key, len(records))
        return records
