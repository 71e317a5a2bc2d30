#!/usr/bin/env python3
"""
CLI for watching directory trees.

Usage:
    python -m treewatch watch /path/to/folder1 /path/to/folder2
    python -m treewatch watch --polling --ignore "*.swp" /path/to/folder
    python -m treewatch scan /path/to/folder
"""

import argparse
import logging
import signal
import sys
import time
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from . import fsutil
from .config import WatcherConfig
from .exceptions import WatcherError
from .models import Event
from .watcher import Watcher


logger = logging.getLogger("treewatch.cli")


class GracefulShutdown:
    """Handle graceful shutdown on SIGINT/SIGTERM."""

    def __init__(self):
        self.should_exit = False
        signal.signal(signal.SIGINT, self._handler)
        signal.signal(signal.SIGTERM, self._handler)

    def _handler(self, signum, frame):
        logger.info("Received shutdown signal, stopping...")
        self.should_exit = True


def build_config(args) -> WatcherConfig:
    """Build the watcher configuration from the environment and CLI flags."""
    config = WatcherConfig.from_env()
    if args.polling:
        config.use_polling = True
    if args.follow_symlinks:
        config.follow_symlinks = True
    if args.ignore:
        config.ignore_patterns.extend(args.ignore)
    return config


def log_event(event: Event) -> None:
    logger.info(f"{event}")


def cmd_watch(args) -> int:
    """Watch the given paths until interrupted."""
    config = build_config(args)
    paths = [Path(p) for p in args.paths]

    for path in paths:
        if not fsutil.exists(path):
            logger.error(f"Path does not exist: {path}")
            return 1

    shutdown = GracefulShutdown()

    with Watcher(config=config) as watcher:
        for path in paths:
            try:
                added = watcher.add(path, log_event, recursive=not args.no_recursive)
            except WatcherError as e:
                logger.error(f"Cannot watch {path}: {e}")
                return 1
            logger.info(f"Watching {path} ({len(added)} path(s))")

        logger.info("Press Ctrl+C to stop")
        while not shutdown.should_exit:
            time.sleep(0.2)

    logger.info("Watcher stopped")
    return 0


def cmd_scan(args) -> int:
    """Print the paths a recursive watch of each argument would register."""
    config = build_config(args)

    for raw in args.paths:
        try:
            root = fsutil.canonical_path(raw)
        except WatcherError as e:
            logger.error(str(e))
            return 1
        print(root)
        if fsutil.is_dir(root):
            for entry in fsutil.scan_dir(
                root,
                follow_symlinks=config.follow_symlinks,
                ignore=config.should_ignore,
            ):
                print(entry)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="treewatch",
        description="Watch files and directory trees for changes",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("paths", nargs="+", help="Files or directories")
    common.add_argument("--ignore", action="append", default=[], metavar="PATTERN",
                        help="Glob pattern to skip (repeatable)")
    common.add_argument("--follow-symlinks", action="store_true",
                        help="Descend into symlinked directories")
    common.add_argument("--polling", action="store_true",
                        help="Use the polling observer instead of native notifications")

    # Watch command
    watch_parser = subparsers.add_parser("watch", parents=[common], help="Watch paths and log events")
    watch_parser.add_argument("--no-recursive", action="store_true",
                              help="Watch directories without their contents")
    watch_parser.set_defaults(func=cmd_watch)

    # Scan command
    scan_parser = subparsers.add_parser("scan", parents=[common], help="List the paths a watch would register")
    scan_parser.set_defaults(func=cmd_scan)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()

    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
