#!/usr/bin/env python3
"""
Recursive watcher demo.

This example demonstrates:
1. Watching a directory tree with one callback
2. New subdirectories picking up the parent's callback
3. Save-by-replace showing up as RENAME instead of REMOVE
4. Removing a tree and its descendants in one call

Usage:
    python examples/watch_demo.py
"""

import shutil
import tempfile
import time
from pathlib import Path

from treewatch import Event, Watcher, WatcherConfig


ICONS = {
    "CREATE": "+",
    "WRITE": "~",
    "REMOVE": "x",
    "RENAME": ">",
    "CHMOD": "*",
}


def print_event(event: Event) -> None:
    for name in event.to_dict()["op"]:
        print(f"[EVENT] {ICONS.get(name, '?')} {name:<6} {event.path}")


def main():
    demo_dir = Path(tempfile.mkdtemp(prefix="treewatch_demo_")).resolve()
    root = demo_dir / "watched"
    root.mkdir()
    (root / "existing.txt").write_text("already here")

    print("=" * 60)
    print(f"Watching {root}")
    print("=" * 60)

    try:
        with Watcher(WatcherConfig(ignore_patterns=["*.swp"])) as watcher:
            added = watcher.add(root, print_event)
            print(f"[DEMO] Registered {len(added)} path(s)")
            time.sleep(0.5)

            print("\n[DEMO] Creating a file...")
            (root / "hello.txt").write_text("Hello, World!")
            time.sleep(0.5)

            print("\n[DEMO] Creating a subdirectory, then a file inside it...")
            (root / "subdir").mkdir()
            time.sleep(0.5)
            (root / "subdir" / "nested.txt").write_text("nested")
            time.sleep(0.5)

            print("\n[DEMO] Replacing existing.txt the way editors save...")
            target = root / "existing.txt"
            target.unlink()
            target.write_text("saved again")
            time.sleep(0.5)

            print("\n[DEMO] Deleting the subdirectory...")
            shutil.rmtree(root / "subdir")
            time.sleep(0.5)
            print(f"[DEMO] Still watching {len(watcher)} path(s)")

            print("\n[DEMO] Removing the watch...")
            removed = watcher.remove(root)
            print(f"[DEMO] Removed {removed} path(s)")
            (root / "ignored.txt").write_text("no events expected")
            time.sleep(0.5)
    finally:
        shutil.rmtree(demo_dir, ignore_errors=True)

    print("\nDone.")


if __name__ == "__main__":
    main()
