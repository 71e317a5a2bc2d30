"""In-memory FIFO queue shared between the watcher threads."""

import threading
import time
from collections import deque
from typing import Any, Deque, Optional

from .exceptions import QueueError


class EventQueue:
    """
    Unbounded, closable FIFO queue.

    Features:
    - Non-blocking enqueue
    - Blocking dequeue with optional timeout
    - close() wakes every blocked reader
    - Thread-safe operations
    """

    def __init__(self):
        """Initialize an empty, open queue."""
        self._items: Deque[Any] = deque()
        self._cond = threading.Condition(threading.Lock())
        self._closed = False

    def enqueue(self, item: Any) -> None:
        """
        Add an item to the tail of the queue.

        Args:
            item: Item to enqueue

        Raises:
            QueueError: If the queue is closed
        """
        with self._cond:
            if self._closed:
                raise QueueError("Queue is closed")
            self._items.append(item)
            self._cond.notify()

    def dequeue(self, timeout: Optional[float] = None) -> Optional[Any]:
        """
        Remove and return the item at the head of the queue.

        Blocks while the queue is empty.

        Args:
            timeout: Seconds to wait for an item; None waits forever

        Returns:
            The item, or None if the timeout expired or the queue was closed
        """
        deadline = None if timeout is None else time.monotonic() + timeout

        with self._cond:
            while not self._items:
                if self._closed:
                    return None
                if deadline is None:
                    self._cond.wait()
                    continue
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    return None
                self._cond.wait(remaining)
            return self._items.popleft()

    def size(self) -> int:
        """Get the number of queued items."""
        with self._cond:
            return len(self._items)

    @property
    def closed(self) -> bool:
        """Check if the queue has been closed."""
        return self._closed

    def close(self) -> None:
        """Close the queue, discard pending items and wake blocked readers."""
        with self._cond:
            if self._closed:
                return
            self._closed = True
            self._items.clear()
            self._cond.notify_all()

    def __len__(self) -> int:
        return self.size()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
