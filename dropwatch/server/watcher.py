# Copyright (c) 2025 Trae AI. All rights reserved.

import logging
from typing import Iterable, List
from pathlib import Path
from watchdog.observers import Observer
from watchdog.observers.polling import PollingObserver
from watchdog.events import FileSystemEventHandler
from dropwatch.core.models import EventKind
from dropwatch.services.watch_service import WatchService

logger = logging.getLogger(__name__)


class SourceDirHandler(FileSystemEventHandler):
    def __init__(self, watch_service: WatchService):
        self.watch_service = watch_service

    def on_created(self, event):
        if not event.is_directory:
            self._dispatch(event.src_path, EventKind.CREATE)

    def on_modified(self, event):
        if not event.is_directory:
            self._dispatch(event.src_path, EventKind.WRITE)

    def on_deleted(self, event):
        if not event.is_directory:
            self._dispatch(event.src_path, EventKind.REMOVE)

    def on_moved(self, event):
        if not event.is_directory:
            self._dispatch(event.src_path, EventKind.REMOVE)
            self._dispatch(event.dest_path, EventKind.CREATE)

    def _dispatch(self, path, kind: EventKind):
        if isinstance(path, bytes):
            path = path.decode()
        try:
            self.watch_service.handle_event(path, kind)
        except Exception as e:
            logger.error(f"Failed to handle {kind.value} event for {path}: {e}")


class FileWatcher:
    """
    Watches the configured source directories (not recursively) and feeds
    their events to the WatchService.
    """

    def __init__(self, directories: Iterable[Path], watch_service: WatchService,
                 use_polling: bool = False, poll_interval: float = 1.0):
        self.directories: List[Path] = list(dict.fromkeys(Path(d) for d in directories))
        self.handler = SourceDirHandler(watch_service)
        self.use_polling = use_polling
        self.poll_interval = poll_interval
        self.observer = None

    def start(self):
        if self.use_polling:
            self.observer = PollingObserver(timeout=self.poll_interval)
        else:
            self.observer = Observer()

        for directory in self.directories:
            try:
                self.observer.schedule(self.handler, str(directory), recursive=False)
                logger.info(f"Added source dir: {directory}")
            except OSError as e:
                logger.error(f"Failed to watch {directory}: {e}")
        self.observer.start()

    def stop(self):
        if self.observer:
            self.observer.stop()
            self.observer.join(timeout=10)
            self.observer = None
