"""Email and Pushover delivery of "going viral" notifications."""

from __future__ import annotations

import logging
import os
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Dict, Iterable, Optional

import requests

from .sources.base import TrackedItem

LOGGER = logging.getLogger(__name__)


@dataclass
class AlertPayload:
    title: str
    body: str
    priority: int = 0
    url: Optional[str] = None
    recipient: Optional[str] = None
    channels: Iterable[str] = ("email", "pushover")


def build_payload(item: TrackedItem, score: int) -> AlertPayload:
    recipient = item.owner if item.owner and "@" in item.owner else None
    return AlertPayload(
        title=f'Your article "{item.title}" is going viral!',
        body=f"Your article has {score} tweets and retweets!",
        url=item.link,
        recipient=recipient,
    )


class PushoverClient:
    API_URL = "https://api.pushover.net/1/messages.json"

    def __init__(self, user_key: Optional[str], app_token: Optional[str]) -> None:
        self.user_key = user_key
        self.app_token = app_token

    def send(self, payload: AlertPayload, dry_run: bool) -> bool:
        if not self.user_key or not self.app_token:
            LOGGER.info("Skipping Pushover send, missing credentials")
            return False
        if dry_run:
            LOGGER.info("[DRY] Would send Pushover: %s", payload.title)
            return True
        data: Dict[str, str | int] = {
            "token": self.app_token,
            "user": self.user_key,
            "title": payload.title,
            "message": payload.body,
            "priority": payload.priority,
        }
        if payload.url:
            data["url"] = payload.url
        try:
            resp = requests.post(self.API_URL, data=data, timeout=10)
            resp.raise_for_status()
        except requests.RequestException as err:
            LOGGER.error("Pushover send failed: %s", err)
            return False
        return True


class EmailClient:
    def __init__(
        self,
        username: Optional[str],
        app_password: Optional[str],
        default_to: Optional[str],
        host: str = "smtp.gmail.com",
        port: int = 465,
    ) -> None:
        self.username = username
        self.app_password = app_password
        self.default_to = default_to
        self.host = host
        self.port = port

    def send(self, payload: AlertPayload, dry_run: bool) -> bool:
        to_addr = payload.recipient or self.default_to
        if not (self.username and self.app_password and to_addr):
            LOGGER.info("Skipping email send, missing credentials or recipient")
            return False
        msg = EmailMessage()
        msg["Subject"] = payload.title
        msg["From"] = self.username
        msg["To"] = to_addr
        msg.set_content(payload.body)
        if payload.url:
            msg.add_alternative(f"<p>{payload.body}</p><p><a href='{payload.url}'>Read the article</a></p>", subtype="html")
        if dry_run:
            LOGGER.info("[DRY] Would send email to %s: %s", to_addr, payload.title)
            return True
        try:
            with smtplib.SMTP_SSL(self.host, self.port) as smtp:
                smtp.login(self.username, self.app_password)
                smtp.send_message(msg)
        except (smtplib.SMTPException, OSError) as err:
            LOGGER.error("Email send failed: %s", err)
            return False
        return True


class AlertDispatcher:
    def __init__(self, config: Dict[str, int | bool], dry_run: bool = False) -> None:
        outputs = config.get("outputs", {})
        self.use_email = bool(outputs.get("use_email", True))  # type: ignore[union-attr]
        self.use_pushover = bool(outputs.get("use_pushover", True))  # type: ignore[union-attr]
        self.priority = int(outputs.get("priority", 0))  # type: ignore[union-attr]
        self.dry_run = dry_run
        self.pushover = PushoverClient(os.getenv("PUSHOVER_USER_KEY"), os.getenv("PUSHOVER_APP_TOKEN"))
        self.email = EmailClient(os.getenv("GMAIL_USER"), os.getenv("GMAIL_APP_PASSWORD"), os.getenv("ALERT_EMAIL_TO"))

    def send(self, payload: AlertPayload) -> Dict[str, bool]:
        results = {"pushover": False, "email": False}
        if self.use_pushover and "pushover" in payload.channels:
            results["pushover"] = self.pushover.send(payload, self.dry_run)
        if self.use_email and "email" in payload.channels:
            results["email"] = self.email.send(payload, self.dry_run)
        return results

    def dispatch(self, item: TrackedItem, score: int) -> bool:
        """Notifier entry point: delivered when at least one channel accepted it."""
        payload = build_payload(item, score)
        payload.priority = self.priority
        results = self.send(payload)
        return any(results.values())
