# Copyright (c) 2025 Trae AI. All rights reserved.

import time
import pytest
from unittest.mock import MagicMock, call
from watchdog.events import (
    DirCreatedEvent,
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
)
from dropwatch.core.matcher import TransferMatcher
from dropwatch.core.models import EventKind
from dropwatch.server.watcher import FileWatcher, SourceDirHandler
from dropwatch.services.watch_service import WatchService


@pytest.fixture
def watch_service(tracker, inflight, make_entry):
    matcher = TransferMatcher([make_entry(filter=r"\.csv$")])
    return WatchService(tracker, inflight, matcher)


def test_create_of_matching_file_is_tracked(watch_service, tracker, write_file):
    path = str(write_file("a.csv"))
    watch_service.handle_event(path, EventKind.CREATE)
    assert tracker.exists(path)


def test_write_refreshes_timestamp(watch_service, tracker, clock, write_file):
    path = str(write_file("a.csv"))
    watch_service.handle_event(path, EventKind.CREATE)
    clock.advance(5)
    watch_service.handle_event(path, EventKind.WRITE)
    assert tracker.snapshot()[path] == clock.now


def test_filtered_out_file_is_ignored(watch_service, tracker, write_file):
    path = str(write_file("a.txt"))
    watch_service.handle_event(path, EventKind.CREATE)
    assert not tracker.exists(path)


def test_file_outside_sources_is_ignored(watch_service, tracker, tmp_path):
    path = str(tmp_path / "a.csv")
    watch_service.handle_event(path, EventKind.CREATE)
    assert len(tracker) == 0


def test_directory_events_are_ignored(watch_service, tracker, source_dir):
    sub = source_dir / "archive.csv"
    sub.mkdir()
    watch_service.handle_event(str(sub), EventKind.CREATE)
    assert len(tracker) == 0


def test_remove_clears_tracker(watch_service, tracker, write_file):
    path = str(write_file("a.csv"))
    watch_service.handle_event(path, EventKind.CREATE)
    watch_service.handle_event(path, EventKind.REMOVE)
    assert not tracker.exists(path)


def test_remove_does_not_touch_in_flight(watch_service, inflight, source_dir):
    path = str(source_dir / "a.csv")
    inflight.add(path)
    watch_service.handle_event(path, EventKind.REMOVE)
    assert inflight.contains(path)


def test_other_events_are_ignored(watch_service, tracker, write_file):
    path = str(write_file("a.csv"))
    watch_service.handle_event(path, EventKind.OTHER)
    assert len(tracker) == 0


def test_handler_maps_watchdog_events(source_dir):
    service = MagicMock(spec=WatchService)
    handler = SourceDirHandler(service)
    a = str(source_dir / "a.csv")
    b = str(source_dir / "b.csv")

    handler.on_created(FileCreatedEvent(a))
    handler.on_modified(FileModifiedEvent(a))
    handler.on_moved(FileMovedEvent(a, b))
    handler.on_deleted(FileDeletedEvent(b))
    handler.on_created(DirCreatedEvent(str(source_dir / "sub")))

    assert service.handle_event.call_args_list == [
        call(a, EventKind.CREATE),
        call(a, EventKind.WRITE),
        call(a, EventKind.REMOVE),
        call(b, EventKind.CREATE),
        call(b, EventKind.REMOVE),
    ]


def test_handler_survives_service_errors(source_dir):
    service = MagicMock(spec=WatchService)
    service.handle_event.side_effect = RuntimeError("boom")
    handler = SourceDirHandler(service)

    handler.on_created(FileCreatedEvent(str(source_dir / "a.csv")))

    service.handle_event.assert_called_once()


def test_polling_watcher_feeds_tracker(watch_service, tracker, source_dir):
    watcher = FileWatcher([source_dir, source_dir], watch_service, use_polling=True, poll_interval=0.1)
    assert watcher.directories == [source_dir]

    watcher.start()
    try:
        time.sleep(0.3)
        path = source_dir / "new.csv"
        path.write_text("x")
        deadline = time.time() + 5
        while not tracker.exists(str(path)) and time.time() < deadline:
            time.sleep(0.05)
    finally:
        watcher.stop()

    assert tracker.exists(str(path))
