"""Native notification sources, backed by the watchdog library."""

import logging
import os
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, Dict, Optional, Union

from watchdog.events import (
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver, ObservedWatch
from watchdog.observers.polling import PollingObserver

from .config import WatcherConfig
from .exceptions import NativeSourceError, NativeSubscriptionError, QueueError
from .models import RawFSEvent
from .queue import EventQueue

logger = logging.getLogger(__name__)

SourceItem = Union[RawFSEvent, Exception]


class NativeEventSource(ABC):
    """
    Abstract base class for native notification sources.

    A source holds one non-recursive subscription per path and delivers raw
    events, and out-of-band errors, through :meth:`read`.
    """

    def __init__(self):
        self._buffer = EventQueue()

    @abstractmethod
    def subscribe(self, path: Path) -> None:
        """
        Start receiving events for ``path``.

        Subscribing an already subscribed path is a no-op.

        Raises:
            NativeSubscriptionError: If the path cannot be watched
        """
        pass

    @abstractmethod
    def unsubscribe(self, path: Path) -> bool:
        """
        Stop receiving events for ``path``.

        Returns:
            True if the path was subscribed

        Raises:
            NativeSubscriptionError: If the native facility rejects the request
        """
        pass

    @abstractmethod
    def is_subscribed(self, path: Path) -> bool:
        pass

    def resubscribe(self, path: Path) -> None:
        """Drop any existing subscription for ``path`` and subscribe again."""
        self.unsubscribe(path)
        self.subscribe(path)

    def read(self, timeout: Optional[float] = None) -> Optional[SourceItem]:
        """
        Wait for the next raw event or error.

        Args:
            timeout: Seconds to wait; None waits until an item arrives or the
                source is closed

        Returns:
            A RawFSEvent, an Exception reported out-of-band, or None
        """
        return self._buffer.dequeue(timeout)

    def emit(self, raw_event: RawFSEvent) -> None:
        """Deliver a raw event to the reader."""
        self._put(raw_event)

    def report_error(self, error: Exception) -> None:
        """Deliver an out-of-band error to the reader."""
        self._put(error)

    def _put(self, item: SourceItem) -> None:
        try:
            self._buffer.enqueue(item)
        except QueueError:
            logger.debug(f"Source closed, dropping {item!r}")

    @property
    def closed(self) -> bool:
        return self._buffer.closed

    def close(self) -> None:
        """Release every subscription and wake the reader."""
        self._buffer.close()


class FSEventHandler(FileSystemEventHandler):
    """Handler that converts watchdog events to RawFSEvent."""

    def __init__(
        self,
        callback: Callable[[RawFSEvent], None],
        config: WatcherConfig,
        on_error: Optional[Callable[[Exception], None]] = None,
    ):
        super().__init__()
        self.callback = callback
        self.config = config
        self.on_error = on_error

    def dispatch(self, event: FileSystemEvent) -> None:
        try:
            super().dispatch(event)
        except Exception as e:
            if self.on_error is None:
                raise
            self.on_error(e)

    def _should_ignore(self, path: Path) -> bool:
        return self.config.should_ignore(path)

    def _emit(
        self,
        event_type: str,
        src_path: Path,
        dest_path: Optional[Path] = None,
        is_directory: bool = False,
    ) -> None:
        """Emit a RawFSEvent to the callback."""
        if self._should_ignore(src_path):
            return

        self.callback(RawFSEvent(
            event_type=event_type,
            src_path=src_path,
            dest_path=dest_path,
            is_directory=is_directory,
        ))

    def on_created(self, event):
        self._emit("created", _as_path(event.src_path), is_directory=event.is_directory)

    def on_deleted(self, event):
        self._emit("deleted", _as_path(event.src_path), is_directory=event.is_directory)

    def on_modified(self, event):
        self._emit("modified", _as_path(event.src_path), is_directory=event.is_directory)

    def on_moved(self, event):
        # The old name is renamed away and the new name appears as a creation.
        src_path = _as_path(event.src_path)
        dest_path = _as_path(event.dest_path)
        self._emit("moved", src_path, dest_path, is_directory=event.is_directory)
        self._emit("created", dest_path, is_directory=event.is_directory)


def _as_path(path: Union[str, bytes]) -> Path:
    return Path(os.fsdecode(path))


class WatchdogEventSource(NativeEventSource):
    """
    Native source running a single watchdog observer.

    Each subscribed path gets its own non-recursive watch; recursion is the
    watcher's job, not the observer's.
    """

    def __init__(self, config: Optional[WatcherConfig] = None):
        """
        Initialize and start the observer.

        Args:
            config: Watcher configuration

        Raises:
            NativeSourceError: If the observer cannot be started
        """
        super().__init__()
        self.config = config or WatcherConfig()
        self._handler = FSEventHandler(self.emit, self.config, self.report_error)
        self._watches: Dict[Path, ObservedWatch] = {}
        self._lock = threading.Lock()

        timeout = self.config.observer_timeout_ms / 1000.0
        observer_class = PollingObserver if self.config.use_polling else Observer
        try:
            self._observer: BaseObserver = observer_class(timeout=timeout)
            self._observer.start()
        except (OSError, RuntimeError) as e:
            raise NativeSourceError(f"Cannot start {observer_class.__name__}: {e}") from e

    def subscribe(self, path: Path) -> None:
        with self._lock:
            if self.closed:
                raise NativeSubscriptionError(f"Source is closed, cannot watch {path}")
            if path in self._watches:
                return
            try:
                watch = self._observer.schedule(self._handler, str(path), recursive=False)
            except OSError as e:
                raise NativeSubscriptionError(f"Cannot watch {path}: {e}") from e
            self._watches[path] = watch

    def unsubscribe(self, path: Path) -> bool:
        with self._lock:
            watch = self._watches.pop(path, None)
            if watch is None:
                return False
            try:
                self._observer.unschedule(watch)
            except KeyError:
                # Already dropped by the observer.
                pass
            except OSError as e:
                raise NativeSubscriptionError(f"Cannot stop watching {path}: {e}") from e
            return True

    def is_subscribed(self, path: Path) -> bool:
        with self._lock:
            return path in self._watches

    def __len__(self) -> int:
        """Return the number of active subscriptions."""
        with self._lock:
            return len(self._watches)

    def close(self) -> None:
        with self._lock:
            if self.closed:
                return
            self._watches.clear()
            super().close()

        self._observer.stop()
        if self._observer.is_alive():
            self._observer.join(timeout=self.config.join_timeout_ms / 1000.0)
