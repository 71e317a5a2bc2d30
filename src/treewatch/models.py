"""Data models for the treewatch package."""

from dataclasses import dataclass, field, replace
from enum import IntFlag
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Optional
import time

if TYPE_CHECKING:
    from .watcher import Watcher


class Op(IntFlag):
    """
    Bitmask of filesystem operations.

    A single notification may carry several bits, so membership must be
    tested with ``op & Op.REMOVE`` rather than equality.
    """
    CREATE = 1
    WRITE = 2
    REMOVE = 4
    RENAME = 8
    CHMOD = 16

    @classmethod
    def from_raw(cls, event_type: str) -> "Op":
        """
        Translate a raw native event kind into an operation mask.

        Args:
            event_type: Raw event kind (created, modified, deleted, moved, attrib)

        Returns:
            The matching mask, or an empty mask for unknown kinds
        """
        return _RAW_OPS.get(event_type, cls(0))


_RAW_OPS = {
    "created": Op.CREATE,
    "modified": Op.WRITE,
    "deleted": Op.REMOVE,
    "moved": Op.RENAME,
    "attrib": Op.CHMOD,
}


@dataclass
class RawFSEvent:
    """
    Raw event from the native source before normalization.

    Attributes:
        event_type: Raw event type string (created, deleted, modified, moved, attrib)
        src_path: Path the native source reported
        dest_path: Destination path (for move events)
        is_directory: Whether this is a directory event
        timestamp: Unix timestamp when the event occurred
    """
    event_type: str
    src_path: Path
    dest_path: Optional[Path] = None
    is_directory: bool = False
    timestamp: float = field(default_factory=time.time)


@dataclass(frozen=True)
class Event:
    """
    A logical filesystem event handed to callbacks.

    Attributes:
        path: Absolute path at time of detection
        op: Operations that occurred on the path
        watcher: The watcher that produced this event
        timestamp: Unix timestamp when the event was normalized
    """
    path: Path
    op: Op
    watcher: Optional["Watcher"] = field(default=None, compare=False, repr=False)
    timestamp: float = field(default_factory=time.time, compare=False)

    def is_create(self) -> bool:
        return bool(self.op & Op.CREATE)

    def is_write(self) -> bool:
        return bool(self.op & Op.WRITE)

    def is_remove(self) -> bool:
        return bool(self.op & Op.REMOVE)

    def is_rename(self) -> bool:
        return bool(self.op & Op.RENAME)

    def is_chmod(self) -> bool:
        return bool(self.op & Op.CHMOD)

    def with_op(self, op: Op) -> "Event":
        """Return a copy of this event carrying ``op`` instead."""
        return replace(self, op=op)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "path": str(self.path),
            "op": [member.name for member in Op if self.op & member],
            "timestamp": self.timestamp,
        }

    def __str__(self) -> str:
        names = "|".join(member.name for member in Op if self.op & member)
        return f"{self.path}: {names or 'NONE'}"


Callback = Callable[[Event], None]
