# Copyright (c) 2025 Trae AI. All rights reserved.

import logging
import queue
import threading
import time
from typing import Callable, Optional
from dropwatch.core.event_tracker import EventTracker
from dropwatch.core.inflight import InFlightSet
from dropwatch.core.matcher import TransferMatcher
from dropwatch.core.models import DispatchJob
from dropwatch.core.readiness import check_ready_for_processing


class SelectorService:
    """
    Debounce loop. Every tick it promotes tracked files whose settle delay
    has passed and which are ready into the dispatch queue, once each.
    """

    def __init__(self, tracker: EventTracker, inflight: InFlightSet, dispatch_queue: queue.Queue,
                 matcher: TransferMatcher, tick_interval: float = 0.5,
                 ready_check: Callable[[str], bool] = check_ready_for_processing,
                 clock: Callable[[], float] = time.time):
        self.tracker = tracker
        self.inflight = inflight
        self.dispatch_queue = dispatch_queue
        self.matcher = matcher
        self.tick_interval = tick_interval
        self.ready_check = ready_check
        self.clock = clock
        self.logger = logging.getLogger(__name__)

        self.stop_event = threading.Event()
        self.worker_thread: Optional[threading.Thread] = None

    def start(self):
        if self.worker_thread and self.worker_thread.is_alive():
            self.logger.warning("SelectorService is already running.")
            return

        self.logger.info(f"Starting SelectorService (tick every {self.tick_interval}s)...")
        self.stop_event.clear()
        self.worker_thread = threading.Thread(target=self._tick_loop, name="selector", daemon=True)
        self.worker_thread.start()

    def stop(self):
        self.logger.info("Stopping SelectorService...")
        self.stop_event.set()
        if self.worker_thread:
            self.worker_thread.join()
            self.worker_thread = None

    def _tick_loop(self):
        while not self.stop_event.is_set():
            try:
                self.process_snapshot()
            except Exception as e:
                self.logger.error(f"Error in selector loop: {e}")
            self.stop_event.wait(self.tick_interval)

    def process_snapshot(self) -> int:
        """
        Runs one selection pass and returns how many files were queued.
        """
        now = self.clock()
        queued = 0

        for path, last_changed in self.tracker.snapshot().items():
            delay = self.matcher.delay_for(path)
            if now - last_changed <= delay:
                continue

            if not self.ready_check(path):
                continue

            if not self.inflight.add(path):
                self.logger.debug(f"Skipped enqueue; already processing {path}")
                self.tracker.delete(path)
                continue

            self.tracker.delete(path)
            job = DispatchJob(path=path, entry=self.matcher.match(path), enqueued_at=now)
            if not self._enqueue(job):
                # Stopped while the queue was full.
                self.inflight.remove(path)
                break

            self.logger.info(f"Queued {path} after {delay}s settle delay")
            queued += 1

        return queued

    def _enqueue(self, job: DispatchJob) -> bool:
        while True:
            try:
                self.dispatch_queue.put(job, timeout=self.tick_interval)
                return True
            except queue.Full:
                if self.stop_event.is_set():
                    return False
                self.logger.debug(f"Dispatch queue full, waiting to queue {job.path}")
