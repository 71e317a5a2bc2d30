"""Thread-safe registry of watched paths and their callbacks."""

import threading
from pathlib import Path
from typing import Dict, List, Tuple

from . import fsutil
from .models import Callback


class PathRegistry:
    """
    Thread-safe map from canonical path to an ordered list of callbacks.

    Insertion order is invocation order. A path whose last callback is
    removed disappears from the map.
    """

    def __init__(self):
        """Initialize an empty registry."""
        self._entries: Dict[Path, List[Callback]] = {}
        self._lock = threading.RLock()

    def register(self, path: fsutil.PathLike, callback: Callback) -> Path:
        """
        Register a callback for a path.

        Registering a callback that is already present for the path is a
        no-op.

        Args:
            path: Path to register; canonicalized first
            callback: Callable invoked with each event for the path

        Returns:
            The canonical path used as key

        Raises:
            PathResolutionError: If the path does not exist
        """
        path = fsutil.canonical_path(path)

        with self._lock:
            callbacks = self._entries.setdefault(path, [])
            if callback not in callbacks:
                callbacks.append(callback)
            return path

    def discard(self, path: Path, callback: Callback) -> bool:
        """
        Remove a single callback from a path.

        Args:
            path: Canonical path
            callback: Callback to remove

        Returns:
            True if the callback was registered for the path
        """
        with self._lock:
            callbacks = self._entries.get(path)
            if not callbacks or callback not in callbacks:
                return False
            callbacks.remove(callback)
            if not callbacks:
                del self._entries[path]
            return True

    def unregister(self, path: Path) -> bool:
        """
        Remove a path and all of its callbacks.

        Args:
            path: Canonical path

        Returns:
            True if the path was registered, False if not found
        """
        with self._lock:
            return self._entries.pop(path, None) is not None

    def get(self, path: Path) -> Tuple[Callback, ...]:
        """Get the callbacks registered directly on ``path``."""
        with self._lock:
            return tuple(self._entries.get(path, ()))

    def lookup(self, path: Path) -> Tuple[Callback, ...]:
        """
        Find the callbacks responsible for a path.

        Walks from ``path`` up through its parents and returns the callbacks
        of the first registered one, so files inside a watched directory
        resolve to the directory's callbacks.

        Args:
            path: Absolute path, which may no longer exist

        Returns:
            Snapshot of the matching callbacks, empty if none match
        """
        current = Path(path)

        with self._lock:
            while True:
                callbacks = self._entries.get(current)
                if callbacks:
                    return tuple(callbacks)
                parent = fsutil.parent_dir(current)
                if parent == current:
                    return ()
                current = parent

    def subtree(self, path: Path) -> List[Path]:
        """
        Get registered paths equal to or beneath ``path``.

        Args:
            path: Canonical path of the subtree root

        Returns:
            Matching paths, deepest first
        """
        path = Path(path)
        found = []

        with self._lock:
            for candidate in self._entries:
                try:
                    candidate.relative_to(path)
                except ValueError:
                    continue
                found.append(candidate)

        return sorted(found, key=lambda p: (len(p.parts), str(p)), reverse=True)

    def paths(self) -> List[Path]:
        """Get every registered path, sorted."""
        with self._lock:
            return sorted(self._entries)

    def clear(self) -> int:
        """
        Remove all entries.

        Returns:
            Number of paths removed
        """
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            return count

    def __len__(self) -> int:
        """Return the number of registered paths."""
        with self._lock:
            return len(self._entries)

    def __contains__(self, path: Path) -> bool:
        """Check if a path has a direct registration."""
        with self._lock:
            return Path(path) in self._entries
