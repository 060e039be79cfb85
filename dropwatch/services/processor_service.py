# Copyright (c) 2025 Trae AI. All rights reserved.

import logging
import queue
import threading
from typing import List, Optional
from dropwatch.core import actions
from dropwatch.core.history import TransferHistory
from dropwatch.core.inflight import InFlightSet
from dropwatch.core.matcher import TransferMatcher
from dropwatch.core.models import DispatchJob, JobRecord, TransferStatus
from .transfer_service import TransferExecutor


class ProcessorService:
    """
    Consumes the dispatch queue in FIFO order: transfer, post-action, release.
    """

    def __init__(self, dispatch_queue: queue.Queue, inflight: InFlightSet, matcher: TransferMatcher,
                 executor: TransferExecutor, history: Optional[TransferHistory] = None,
                 workers: int = 1, poll_timeout: float = 0.5):
        self.dispatch_queue = dispatch_queue
        self.inflight = inflight
        self.matcher = matcher
        self.executor = executor
        self.history = history or TransferHistory()
        self.workers = workers
        self.poll_timeout = poll_timeout
        self.logger = logging.getLogger(__name__)

        self.stop_event = threading.Event()
        self.worker_threads: List[threading.Thread] = []

    def start(self):
        if any(t.is_alive() for t in self.worker_threads):
            self.logger.warning("ProcessorService is already running.")
            return

        self.logger.info(f"Starting ProcessorService with {self.workers} worker(s)...")
        self.stop_event.clear()
        self.worker_threads = [
            threading.Thread(target=self._consume_loop, name=f"processor-{i}", daemon=True)
            for i in range(self.workers)
        ]
        for t in self.worker_threads:
            t.start()

    def stop(self):
        """Lets workers finish the job in hand, then releases anything still queued."""
        self.logger.info("Stopping ProcessorService...")
        self.stop_event.set()
        for t in self.worker_threads:
            t.join()
        self.worker_threads = []

        abandoned = 0
        while True:
            try:
                job = self.dispatch_queue.get_nowait()
            except queue.Empty:
                break
            self.inflight.remove(job.path)
            self.dispatch_queue.task_done()
            abandoned += 1
        if abandoned:
            self.logger.warning(f"Abandoned {abandoned} queued file(s) on shutdown")

    def _consume_loop(self):
        while not self.stop_event.is_set():
            try:
                job = self.dispatch_queue.get(timeout=self.poll_timeout)
            except queue.Empty:
                continue

            try:
                self.process_job(job)
            except Exception as e:
                self.logger.error(f"Unexpected error processing {job.path}: {e}")
            finally:
                self.dispatch_queue.task_done()

    def process_job(self, job: DispatchJob) -> JobRecord:
        path = job.path
        self.logger.info(f"Processing file from queue: {path}")
        record = JobRecord(path=path, status="unmatched")

        try:
            entry = job.entry or self.matcher.match(path)
            if entry is None:
                self.logger.warning(f"File did not match any transfer config: {path}")
                return record

            record.entry_name = entry.name
            record.status = TransferStatus.FAILED.value
            try:
                result = self.executor.execute(path, entry)
            except Exception as e:
                record.error = str(e)
                raise
            record.status = result.status.value
            record.label = result.label
            record.error = result.error
            record.attempts = result.attempts

            if result.status is TransferStatus.SUCCESS:
                self.logger.info(f"Upload complete for {path} ({result.label})")
                record.action = entry.action_on_success or "none"
                record.action_error = self._run_action(actions.action_on_success, entry, path)
            elif result.status is TransferStatus.FAILED:
                self.logger.error(f"Upload failed for {path}: {result.error}")
                record.action = entry.action_on_fail or "none"
                record.action_error = self._run_action(actions.action_on_fail, entry, path)
            else:
                self.logger.warning(f"Dropped {path}: {result.error}")
            return record
        finally:
            self.inflight.remove(path)
            self.logger.info(f"Removed from processing set: {path}")
            self.history.add(record)

    def _run_action(self, action, entry, path: str) -> Optional[str]:
        try:
            action(entry, path)
        except (actions.PostActionError, OSError) as e:
            self.logger.warning(f"Post-action for {path} failed: {e}")
            return str(e)
        return None
