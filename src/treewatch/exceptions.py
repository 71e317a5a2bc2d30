"""Custom exceptions for the treewatch package."""


class WatcherError(Exception):
    """Base exception for all watcher errors."""
    pass


class PathResolutionError(WatcherError):
    """Path does not exist or cannot be canonicalized."""
    pass


class NativeSourceError(WatcherError):
    """The native notification source failed."""
    pass


class NativeSubscriptionError(NativeSourceError):
    """The native source rejected a subscribe or unsubscribe request."""
    pass


class WatcherUnavailableError(WatcherError):
    """The process-wide default watcher could not be created."""
    pass


class WatcherClosedError(WatcherError):
    """Operation attempted on a closed watcher."""
    pass


class QueueError(WatcherError):
    """Error related to the event queue."""
    pass
