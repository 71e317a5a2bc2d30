"""Tests for native source module."""

import pytest
import time
from pathlib import Path

from watchdog.events import (
    DirCreatedEvent,
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
)

from treewatch.config import WatcherConfig
from treewatch.exceptions import NativeSubscriptionError
from treewatch.fs_watcher import FSEventHandler, WatchdogEventSource
from treewatch.models import RawFSEvent


def read_until(source, predicate, timeout=5.0):
    """Read items from ``source`` until one matches, returning everything read."""
    items = []
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        item = source.read(timeout=0.1)
        if item is None:
            continue
        items.append(item)
        if predicate(item):
            break
    return items


class TestFSEventHandler:
    """Tests for FSEventHandler class."""

    def test_created(self, tmp_path):
        events = []
        handler = FSEventHandler(events.append, WatcherConfig())

        handler.dispatch(FileCreatedEvent(str(tmp_path / "a.txt")))

        assert len(events) == 1
        assert events[0].event_type == "created"
        assert events[0].src_path == tmp_path / "a.txt"
        assert events[0].is_directory is False

    def test_directory_flag(self, tmp_path):
        events = []
        handler = FSEventHandler(events.append, WatcherConfig())

        handler.dispatch(DirCreatedEvent(str(tmp_path / "sub")))

        assert events[0].is_directory is True

    def test_deleted_and_modified(self, tmp_path):
        events = []
        handler = FSEventHandler(events.append, WatcherConfig())

        handler.dispatch(FileModifiedEvent(str(tmp_path / "a.txt")))
        handler.dispatch(FileDeletedEvent(str(tmp_path / "a.txt")))

        assert [e.event_type for e in events] == ["modified", "deleted"]

    def test_moved_emits_rename_and_create(self, tmp_path):
        events = []
        handler = FSEventHandler(events.append, WatcherConfig())

        handler.dispatch(FileMovedEvent(str(tmp_path / "old.txt"), str(tmp_path / "new.txt")))

        assert [(e.event_type, e.src_path) for e in events] == [
            ("moved", tmp_path / "old.txt"),
            ("created", tmp_path / "new.txt"),
        ]
        assert events[0].dest_path == tmp_path / "new.txt"

    def test_bytes_paths(self, tmp_path):
        events = []
        handler = FSEventHandler(events.append, WatcherConfig())

        handler.dispatch(FileCreatedEvent(str(tmp_path / "a.txt").encode()))

        assert events[0].src_path == tmp_path / "a.txt"

    def test_ignore_patterns(self, tmp_path):
        events = []
        config = WatcherConfig(ignore_patterns=["*.swp"])
        handler = FSEventHandler(events.append, config)

        handler.dispatch(FileCreatedEvent(str(tmp_path / ".a.txt.swp")))
        handler.dispatch(FileCreatedEvent(str(tmp_path / "a.txt")))

        assert [e.src_path.name for e in events] == ["a.txt"]

    def test_callback_error_reported(self, tmp_path):
        errors = []

        def failing(raw_event):
            raise RuntimeError("boom")

        handler = FSEventHandler(failing, WatcherConfig(), on_error=errors.append)
        handler.dispatch(FileCreatedEvent(str(tmp_path / "a.txt")))

        assert len(errors) == 1
        assert str(errors[0]) == "boom"

    def test_callback_error_without_reporter(self, tmp_path):
        def failing(raw_event):
            raise RuntimeError("boom")

        handler = FSEventHandler(failing, WatcherConfig())
        with pytest.raises(RuntimeError):
            handler.dispatch(FileCreatedEvent(str(tmp_path / "a.txt")))


class TestWatchdogEventSource:
    """Tests for WatchdogEventSource class."""

    @pytest.fixture
    def source(self):
        source = WatchdogEventSource(WatcherConfig(observer_timeout_ms=100))
        yield source
        source.close()

    def test_subscribe(self, source, tmp_path):
        root = tmp_path.resolve()

        source.subscribe(root)

        assert source.is_subscribed(root)
        assert len(source) == 1

    def test_subscribe_twice(self, source, tmp_path):
        root = tmp_path.resolve()

        source.subscribe(root)
        source.subscribe(root)

        assert len(source) == 1

    def test_subscribe_file(self, source, tmp_path):
        f = tmp_path.resolve() / "a.txt"
        f.write_text("x")

        source.subscribe(f)

        assert source.is_subscribed(f)

    def test_subscribe_missing_path(self, source, tmp_path):
        missing = tmp_path.resolve() / "missing"

        with pytest.raises(NativeSubscriptionError):
            source.subscribe(missing)

        assert not source.is_subscribed(missing)

    def test_unsubscribe(self, source, tmp_path):
        root = tmp_path.resolve()
        source.subscribe(root)

        assert source.unsubscribe(root) is True
        assert not source.is_subscribed(root)
        assert len(source) == 0

    def test_unsubscribe_not_subscribed(self, source, tmp_path):
        assert source.unsubscribe(tmp_path.resolve()) is False

    def test_unsubscribe_after_delete(self, source, tmp_path):
        f = tmp_path.resolve() / "a.txt"
        f.write_text("x")
        source.subscribe(f)
        f.unlink()
        time.sleep(0.2)

        assert source.unsubscribe(f) is True

    def test_resubscribe_recreated_file(self, source, tmp_path):
        f = tmp_path.resolve() / "a.txt"
        f.write_text("x")
        source.subscribe(f)
        f.unlink()
        f.write_text("y")

        source.resubscribe(f)

        assert source.is_subscribed(f)
        assert len(source) == 1

    def test_detects_file_creation(self, source, tmp_path):
        root = tmp_path.resolve()
        source.subscribe(root)
        time.sleep(0.2)

        (root / "test.txt").write_text("hello")

        items = read_until(
            source,
            lambda i: isinstance(i, RawFSEvent) and i.event_type == "created"
            and i.src_path.name == "test.txt",
        )
        created = [i for i in items if isinstance(i, RawFSEvent) and i.event_type == "created"]
        assert any(i.src_path == root / "test.txt" for i in created)

    def test_non_recursive(self, source, tmp_path):
        root = tmp_path.resolve()
        (root / "sub").mkdir()
        source.subscribe(root)
        time.sleep(0.2)

        (root / "sub" / "nested.txt").write_text("x")
        (root / "top.txt").write_text("x")

        items = read_until(
            source,
            lambda i: isinstance(i, RawFSEvent) and i.src_path.name == "top.txt",
        )
        assert not any(
            isinstance(i, RawFSEvent) and i.src_path.name == "nested.txt" for i in items
        )

    def test_report_error(self, source):
        error = RuntimeError("overflow")
        source.report_error(error)

        assert source.read(timeout=1.0) is error

    def test_close(self, tmp_path):
        root = tmp_path.resolve()
        source = WatchdogEventSource(WatcherConfig(observer_timeout_ms=100))
        source.subscribe(root)

        source.close()
        source.close()

        assert source.closed is True
        assert len(source) == 0
        assert source.read(timeout=0.1) is None
        with pytest.raises(NativeSubscriptionError):
            source.subscribe(root)

    def test_polling_observer(self, tmp_path):
        root = tmp_path.resolve()
        source = WatchdogEventSource(WatcherConfig(use_polling=True, observer_timeout_ms=100))
        try:
            source.subscribe(root)
            (root / "polled.txt").write_text("x")

            items = read_until(
                source,
                lambda i: isinstance(i, RawFSEvent) and i.src_path.name == "polled.txt",
            )
            assert any(isinstance(i, RawFSEvent) and i.src_path.name == "polled.txt" for i in items)
        finally:
            source.close()
