"""Shared fixtures: a scriptable native source and an event recorder."""

import threading
import time
from pathlib import Path
from typing import Dict, List, Optional, Set

import pytest

from treewatch.config import WatcherConfig
from treewatch.exceptions import NativeSubscriptionError
from treewatch.fs_watcher import NativeEventSource
from treewatch.models import Event, RawFSEvent
from treewatch.watcher import Watcher


class FakeEventSource(NativeEventSource):
    """Native source that records subscriptions and replays injected events."""

    def __init__(self):
        super().__init__()
        self.subscriptions: Set[Path] = set()
        self.subscribe_counts: Dict[Path, int] = {}
        self.failing: Set[Path] = set()
        self._lock = threading.Lock()

    def subscribe(self, path: Path) -> None:
        with self._lock:
            if path in self.failing:
                raise NativeSubscriptionError(f"Cannot watch {path}")
            if path in self.subscriptions:
                return
            self.subscriptions.add(path)
            self.subscribe_counts[path] = self.subscribe_counts.get(path, 0) + 1

    def unsubscribe(self, path: Path) -> bool:
        with self._lock:
            if path not in self.subscriptions:
                return False
            self.subscriptions.discard(path)
            return True

    def is_subscribed(self, path: Path) -> bool:
        with self._lock:
            return path in self.subscriptions

    def inject(self, path: Path, event_type: str) -> None:
        self.emit(RawFSEvent(event_type=event_type, src_path=Path(path)))


class Recorder:
    """Thread-safe callback that collects events."""

    def __init__(self, name: str = "recorder", log: Optional[List[str]] = None):
        self.name = name
        self.events: List[Event] = []
        self.log = log
        self._lock = threading.Lock()
        self._cond = threading.Condition(self._lock)

    def __call__(self, event: Event) -> None:
        with self._cond:
            self.events.append(event)
            if self.log is not None:
                self.log.append(self.name)
            self._cond.notify_all()

    def wait_for(self, count: int = 1, timeout: float = 5.0) -> bool:
        deadline = time.monotonic() + timeout
        with self._cond:
            while len(self.events) < count:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return False
                self._cond.wait(remaining)
            return True

    def __repr__(self) -> str:
        return f"Recorder({self.name})"


def _wait_until(predicate, timeout: float = 5.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


@pytest.fixture
def root(tmp_path):
    """Canonical temporary directory."""
    return tmp_path.resolve()


@pytest.fixture
def fake_source():
    return FakeEventSource()


@pytest.fixture
def watcher(fake_source):
    config = WatcherConfig(intake_timeout_ms=20, join_timeout_ms=1000)
    w = Watcher(config=config, source=fake_source)
    yield w
    w.close()


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def make_recorder():
    """Factory for named recorders, optionally sharing one call log."""
    return Recorder


@pytest.fixture
def wait_until():
    """Poll a predicate until it holds or the timeout expires."""
    return _wait_until
