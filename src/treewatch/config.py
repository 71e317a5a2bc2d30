"""Configuration for the treewatch package."""

import fnmatch
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List


_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass
class WatcherConfig:
    """
    Configuration options for the watcher.

    Attributes:
        use_polling: Use watchdog's PollingObserver instead of the platform observer
        observer_timeout_ms: Observer/emitter timeout (the poll interval when polling)
        intake_timeout_ms: How often the intake loop wakes up to check for close
        join_timeout_ms: How long close() waits for each loop thread
        follow_symlinks: Whether recursive listing descends into symlinked directories
        ignore_patterns: Glob patterns for paths that are never watched
    """
    use_polling: bool = False
    observer_timeout_ms: int = 1000
    intake_timeout_ms: int = 100
    join_timeout_ms: int = 2000
    follow_symlinks: bool = False
    ignore_patterns: List[str] = field(default_factory=list)

    def should_ignore(self, path: Path) -> bool:
        """
        Check if a path should be ignored based on ignore patterns.

        Args:
            path: Path to check

        Returns:
            True if the path should be ignored
        """
        path_str = str(path)
        name = Path(path).name

        for pattern in self.ignore_patterns:
            if fnmatch.fnmatch(name, pattern):
                return True
            if fnmatch.fnmatch(path_str, f"*/{pattern}"):
                return True
            if fnmatch.fnmatch(path_str, pattern):
                return True

        return False

    @classmethod
    def from_env(cls, prefix: str = "TREEWATCH_") -> "WatcherConfig":
        """
        Build a configuration from environment variables.

        Unset variables keep their defaults. ``<prefix>IGNORE`` is a
        comma-separated list of glob patterns.
        """
        config = cls()
        env = os.environ

        if f"{prefix}USE_POLLING" in env:
            config.use_polling = env[f"{prefix}USE_POLLING"].strip().lower() in _TRUE_VALUES
        if f"{prefix}FOLLOW_SYMLINKS" in env:
            config.follow_symlinks = env[f"{prefix}FOLLOW_SYMLINKS"].strip().lower() in _TRUE_VALUES
        if f"{prefix}OBSERVER_TIMEOUT_MS" in env:
            config.observer_timeout_ms = int(env[f"{prefix}OBSERVER_TIMEOUT_MS"])
        if f"{prefix}INTAKE_TIMEOUT_MS" in env:
            config.intake_timeout_ms = int(env[f"{prefix}INTAKE_TIMEOUT_MS"])
        if f"{prefix}JOIN_TIMEOUT_MS" in env:
            config.join_timeout_ms = int(env[f"{prefix}JOIN_TIMEOUT_MS"])
        if f"{prefix}IGNORE" in env:
            config.ignore_patterns = [
                pattern.strip()
                for pattern in env[f"{prefix}IGNORE"].split(",")
                if pattern.strip()
            ]

        return config
