"""
Recursive Filesystem Watcher Package

Watches files and directory trees and dispatches change events to
callbacks registered per path.

Features:
- One registration per canonical path
- Recursive directory watching, expanded eagerly into per-path watches
- New directories inherit their ancestor's callbacks
- Cascading teardown when a watched path is deleted
- Delete+recreate saves reported as RENAME instead of REMOVE
- Callbacks run off the dispatch thread, in registration order
- A lazily created process-wide default watcher
"""

from .models import (
    Op,
    Event,
    RawFSEvent,
    Callback,
)

from .config import WatcherConfig

from .exceptions import (
    WatcherError,
    PathResolutionError,
    NativeSourceError,
    NativeSubscriptionError,
    WatcherUnavailableError,
    WatcherClosedError,
    QueueError,
)

from .queue import EventQueue
from .registry import PathRegistry
from .fs_watcher import NativeEventSource, WatchdogEventSource, FSEventHandler
from .watcher import Watcher, get_default, add, remove


__all__ = [
    # Models
    "Op",
    "Event",
    "RawFSEvent",
    "Callback",
    # Config
    "WatcherConfig",
    # Exceptions
    "WatcherError",
    "PathResolutionError",
    "NativeSourceError",
    "NativeSubscriptionError",
    "WatcherUnavailableError",
    "WatcherClosedError",
    "QueueError",
    # Components
    "EventQueue",
    "PathRegistry",
    "NativeEventSource",
    "WatchdogEventSource",
    "FSEventHandler",
    # Watcher
    "Watcher",
    "get_default",
    "add",
    "remove",
]

__version__ = "0.1.0"
