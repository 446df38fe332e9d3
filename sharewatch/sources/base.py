"""Collaborator contracts consumed by the run coordinator."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Protocol, Sequence

from ..records import SignalRecord


@dataclass(frozen=True)
class TrackedItem:
    title: str
    link: str
    owner: Optional[str] = None
    published: Optional[str] = None


class SourceError(RuntimeError):
    pass


class ItemSource(Protocol):
    def list_tracked_items(self) -> List[TrackedItem]:
        ...

    def resolve_key(self, item: TrackedItem) -> str:
        ...


class SignalSource(Protocol):
    def fetch(self, key: str) -> Sequence[SignalRecord]:
        ...


class Notifier(Protocol):
    def dispatch(self, item: TrackedItem, score: int) -> bool:
        ...


class CycleControl(Protocol):
    def is_stop_requested(self) -> bool:
        ...
