"""Sources package exports."""

from .articles import FeedItemSource, StaticItemSource
from .base import CycleControl, ItemSource, Notifier, SignalSource, SourceError, TrackedItem
from .twitter import TwitterSearchClient

__all__ = [
    "CycleControl",
    "FeedItemSource",
    "ItemSource",
    "Notifier",
    "SignalSource",
    "SourceError",
    "StaticItemSource",
    "TrackedItem",
    "TwitterSearchClient",
]
