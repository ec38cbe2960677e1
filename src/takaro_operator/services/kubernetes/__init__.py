"""Kubernetes resource access."""

from .store import ResourceStore
from .watch import EventKind, StaleWatchError, WatchAdapter, WatchEvent, WatchFailedError

__all__ = [
    "EventKind",
    "ResourceStore",
    "StaleWatchError",
    "WatchAdapter",
    "WatchEvent",
    "WatchFailedError",
]
