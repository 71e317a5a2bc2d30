"""Recursive watcher façade and the process-wide default instance."""

import logging
import threading
from pathlib import Path
from typing import List, Optional, Sequence

from . import fsutil
from .config import WatcherConfig
from .exceptions import (
    QueueError,
    WatcherClosedError,
    WatcherError,
    WatcherUnavailableError,
)
from .fs_watcher import NativeEventSource, WatchdogEventSource
from .models import Callback, Event, Op
from .queue import EventQueue
from .registry import PathRegistry

logger = logging.getLogger(__name__)


class Watcher:
    """
    Watches files and directory trees and dispatches events to callbacks.

    Raw events flow from the native source through an intake thread onto an
    internal FIFO queue. A dispatch thread drains the queue in order, keeps
    the watched path set in step with the filesystem, and starts one thread
    per event to run its callbacks.

    Example:
        with Watcher() as watcher:
            watcher.add("/tmp/w", lambda event: print(event))
    """

    def __init__(
        self,
        config: Optional[WatcherConfig] = None,
        source: Optional[NativeEventSource] = None,
    ):
        """
        Initialize the watcher and start its threads.

        Args:
            config: Watcher configuration
            source: Native source to read from (defaults to a watchdog source)

        Raises:
            NativeSourceError: If the native source cannot be initialized
        """
        self.config = config or WatcherConfig()
        self._source = source or WatchdogEventSource(self.config)
        self._registry = PathRegistry()
        self._events = EventQueue()

        self._closed = False
        self._stop_event = threading.Event()
        self._lock = threading.Lock()

        self._threads: List[threading.Thread] = [
            threading.Thread(target=self._intake_loop, name="treewatch-intake"),
            threading.Thread(target=self._dispatch_loop, name="treewatch-dispatch"),
        ]
        for thread in self._threads:
            thread.daemon = True
            thread.start()

    def add(
        self,
        path: fsutil.PathLike,
        callback: Callback,
        recursive: bool = True,
    ) -> List[Path]:
        """
        Watch a path and call ``callback`` with each of its events.

        A directory is watched recursively by default: the directory and
        every entry currently inside it are registered individually. If one
        member fails, the error is raised and members already added stay
        added.

        Args:
            path: File or directory to watch
            callback: Callable invoked with an Event
            recursive: Whether to expand a directory into its descendants

        Returns:
            Canonical paths that were added

        Raises:
            PathResolutionError: If a path does not exist
            NativeSubscriptionError: If the native source rejects a path
            WatcherClosedError: If the watcher is closed
        """
        self._ensure_open()

        if recursive and fsutil.is_dir(path):
            members = [Path(path)] + fsutil.scan_dir(
                path,
                follow_symlinks=self.config.follow_symlinks,
                ignore=self.config.should_ignore,
            )
            return [self._add_watch(member, callback) for member in members]

        return [self._add_watch(path, callback)]

    def _add_watch(self, path: fsutil.PathLike, callback: Callback) -> Path:
        """Register a single path and subscribe to it."""
        canonical = self._registry.register(path, callback)
        try:
            self._source.subscribe(canonical)
        except WatcherError:
            self._registry.discard(canonical, callback)
            raise
        logger.debug(f"Watching {canonical}")
        return canonical

    def remove(self, path: fsutil.PathLike) -> int:
        """
        Stop watching a path and everything registered beneath it.

        Works on the registry's last-known state, so a path that no longer
        exists is still removed with its former descendants. Removing a path
        that is not watched is not an error.

        Args:
            path: File or directory to stop watching

        Returns:
            Number of paths removed

        Raises:
            NativeSubscriptionError: If the native source rejects a path
            WatcherClosedError: If the watcher is closed
        """
        self._ensure_open()
        return self._remove_tree(fsutil.canonical_path(path, strict=False))

    def _remove_tree(self, path: Path) -> int:
        count = 0
        for member in self._registry.subtree(path):
            self._registry.unregister(member)
            self._source.unsubscribe(member)
            logger.debug(f"Stopped watching {member}")
            count += 1
        return count

    def paths(self) -> List[Path]:
        """Get every watched path, sorted."""
        return self._registry.paths()

    def callbacks(self, path: fsutil.PathLike) -> Sequence[Callback]:
        """Get the callbacks that would handle an event for ``path``."""
        return self._registry.lookup(Path(path))

    @property
    def closed(self) -> bool:
        """Check if the watcher has been closed."""
        return self._closed

    def close(self) -> None:
        """
        Stop both loops and release the native source.

        Callback threads that are already running finish on their own.
        Calling close() more than once is safe.
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True

        self._stop_event.set()
        self._source.close()
        self._events.close()

        timeout = self.config.join_timeout_ms / 1000.0
        for thread in self._threads:
            if thread.is_alive() and thread is not threading.current_thread():
                thread.join(timeout=timeout)

        self._registry.clear()
        logger.debug("Watcher closed")

    def _ensure_open(self) -> None:
        if self._closed:
            raise WatcherClosedError("Watcher is closed")

    def _intake_loop(self) -> None:
        """Worker loop that moves raw native events onto the event queue."""
        timeout = self.config.intake_timeout_ms / 1000.0
        logger.debug("Intake loop started")

        while not self._stop_event.is_set():
            item = self._source.read(timeout=timeout)
            if item is None:
                if self._source.closed:
                    break
                continue

            if isinstance(item, Exception):
                logger.error(f"Native source error: {item}")
                continue

            op = Op.from_raw(item.event_type)
            if not op:
                logger.debug(f"Ignoring raw event {item.event_type}: {item.src_path}")
                continue

            try:
                self._events.enqueue(Event(path=item.src_path, op=op, watcher=self))
            except QueueError:
                break

        logger.debug("Intake loop stopped")

    def _dispatch_loop(self) -> None:
        """Worker loop that reconciles and dispatches queued events in order."""
        logger.debug("Dispatch loop started")

        while not self._stop_event.is_set():
            event = self._events.dequeue()
            if event is None:
                continue
            try:
                self._process(event)
            except Exception as e:
                logger.error(f"Dispatch loop error for {event}: {e}")

        logger.debug("Dispatch loop stopped")

    def _process(self, event: Event) -> None:
        """Reconcile the watch set with one event, then dispatch it."""
        logger.debug(f"Processing {event}")
        snapshot = self._registry.lookup(event.path)
        deleted = False

        if event.op & Op.REMOVE:
            if fsutil.exists(event.path):
                # Deleted and recreated under the same name, as editors do on
                # save. The native watch died with the old file.
                if event.path in self._registry:
                    try:
                        self._source.resubscribe(event.path)
                    except WatcherError as e:
                        logger.warning(f"Cannot re-watch {event.path}: {e}")
                event = event.with_op(Op.RENAME)
            else:
                deleted = True
                try:
                    self._remove_tree(event.path)
                except WatcherError as e:
                    logger.warning(f"Cannot stop watching {event.path}: {e}")

        if event.op & Op.CREATE and fsutil.is_dir(event.path):
            for callback in self._registry.lookup(event.path):
                try:
                    self.add(event.path, callback)
                except WatcherError as e:
                    logger.warning(f"Cannot watch new directory {event.path}: {e}")

        callbacks = snapshot if deleted else self._registry.lookup(event.path)
        if not callbacks:
            return

        threading.Thread(
            target=self._run_callbacks,
            args=(event, callbacks),
            name="treewatch-callback",
            daemon=True,
        ).start()

    @staticmethod
    def _run_callbacks(event: Event, callbacks: Sequence[Callback]) -> None:
        for callback in callbacks:
            try:
                callback(event)
            except Exception:
                logger.exception(f"Callback {callback!r} failed for {event}")

    def __len__(self) -> int:
        """Return the number of watched paths."""
        return len(self._registry)

    def __contains__(self, path: fsutil.PathLike) -> bool:
        """Check if a path is watched directly."""
        return Path(path) in self._registry

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


_default_watcher: Optional[Watcher] = None
_default_error: Optional[Exception] = None
_default_lock = threading.Lock()


def get_default() -> Watcher:
    """
    Get the process-wide watcher, creating it on first use.

    Creation is attempted once; a failure is remembered and reported on every
    later call.

    Raises:
        WatcherUnavailableError: If the default watcher could not be created
    """
    global _default_watcher, _default_error

    with _default_lock:
        if _default_watcher is None and _default_error is None:
            try:
                _default_watcher = Watcher(WatcherConfig.from_env())
            except (WatcherError, ValueError) as e:
                _default_error = e
                logger.error(f"Default watcher creation failed: {e}")

        if _default_watcher is None:
            raise WatcherUnavailableError(
                f"Default watcher creation failed: {_default_error}"
            ) from _default_error
        return _default_watcher


def add(path: fsutil.PathLike, callback: Callback, recursive: bool = True) -> List[Path]:
    """Watch ``path`` with the process-wide watcher. See :meth:`Watcher.add`."""
    return get_default().add(path, callback, recursive)


def remove(path: fsutil.PathLike) -> int:
    """Stop watching ``path`` with the process-wide watcher. See :meth:`Watcher.remove`."""
    return get_default().remove(path)
