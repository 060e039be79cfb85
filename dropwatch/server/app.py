# Copyright (c) 2025 Trae AI. All rights reserved.

import logging
import queue
import signal
import threading
from typing import Optional, Union
from flask import Flask, jsonify, request
from flask_apscheduler import APScheduler
from ..core.config import AgentConfig
from ..core.event_tracker import EventTracker
from ..core.history import TransferHistory
from ..core.inflight import InFlightSet
from ..core.matcher import TransferMatcher
from ..services.processor_service import ProcessorService
from ..services.selector_service import SelectorService
from ..services.transfer_service import TransferExecutor, default_transports
from ..services.watch_service import WatchService
from .watcher import FileWatcher


class Server:
    """
    Wires the pipeline together and owns its lifecycle:
    watcher -> tracker -> selector -> queue -> processor.
    """

    def __init__(self, config: Union[str, AgentConfig] = "config.yaml"):
        self.logger = logging.getLogger("dropwatch.server.app")
        self.config = config if isinstance(config, AgentConfig) else AgentConfig.load(config)
        self.app = Flask(__name__)
        self.scheduler = APScheduler()
        self.running = False
        self._stop_requested = threading.Event()

        # Shared state
        self.tracker = EventTracker()
        self.inflight = InFlightSet()
        self.dispatch_queue: queue.Queue = queue.Queue(maxsize=self.config.queue_size)
        self.history = TransferHistory()
        self.matcher = TransferMatcher(self.config.transfers, default_delay=self.config.delay)

        # Services
        self.executor = TransferExecutor(
            default_transports(timeout=self.config.transfer_timeout),
            max_attempts=self.config.max_attempts,
            retry_delay=self.config.retry_delay,
        )
        self.watch_service = WatchService(self.tracker, self.inflight, self.matcher)
        self.selector = SelectorService(
            self.tracker, self.inflight, self.dispatch_queue, self.matcher,
            tick_interval=self.config.tick_interval,
        )
        self.processor = ProcessorService(
            self.dispatch_queue, self.inflight, self.matcher, self.executor,
            history=self.history, workers=self.config.workers,
        )
        self.file_watcher = FileWatcher(
            [entry.source_directory for entry in self.config.transfers],
            self.watch_service,
            use_polling=self.config.use_polling,
        )

        self._setup_routes()
        self._setup_scheduler()

    def _setup_routes(self):
        @self.app.route("/api/status")
        def get_status():
            return jsonify(self.get_status())

        @self.app.route("/api/tracked")
        def get_tracked():
            return jsonify(self.tracker.snapshot())

        @self.app.route("/api/inflight")
        def get_inflight():
            return jsonify([marker.model_dump() for marker in self.inflight.snapshot()])

        @self.app.route("/api/history")
        def get_history():
            limit = request.args.get("limit", default=50, type=int)
            return jsonify([record.model_dump() for record in self.history.get_recent(limit)])

        @self.app.route("/api/transfers")
        def get_transfers():
            return jsonify([entry.public_dict() for entry in self.config.transfers])

    def _setup_scheduler(self):
        self.scheduler.init_app(self.app)
        if self.config.heartbeat:
            self.scheduler.add_job(
                id="heartbeat",
                func=self.heartbeat,
                trigger="interval",
                seconds=self.config.heartbeat_interval,
            )

    def get_status(self) -> dict:
        return {
            "running": self.running,
            "tracked": len(self.tracker),
            "in_flight": len(self.inflight),
            "queued": self.dispatch_queue.qsize(),
            "queue_size": self.config.queue_size,
            "transfers": len(self.config.transfers),
            "counters": self.history.get_counters(),
        }

    def heartbeat(self):
        status = self.get_status()
        self.logger.info(
            f"Heartbeat: tracked={status['tracked']} in_flight={status['in_flight']} "
            f"queued={status['queued']} counters={status['counters']}"
        )

    def start(self):
        if self.running:
            return
        self.logger.info(f"Starting pipeline for {len(self.config.transfers)} transfer(s)")
        self.processor.start()
        self.selector.start()
        self.file_watcher.start()
        self.scheduler.start()
        self.running = True

    def stop(self):
        if not self.running:
            return
        self.logger.info("Stopping pipeline...")
        self.file_watcher.stop()
        self.selector.stop()
        self.processor.stop()
        self.scheduler.shutdown(wait=False)
        self.running = False
        self.logger.info("Pipeline stopped")

    def request_stop(self, signum: Optional[int] = None, frame=None):
        if signum is not None:
            self.logger.info(f"Program terminated by signal {signal.Signals(signum).name}")
        self._stop_requested.set()

    def run(self, serve_api: bool = True):
        """
        Starts the pipeline and blocks until SIGINT/SIGTERM.
        """
        signal.signal(signal.SIGTERM, self.request_stop)
        signal.signal(signal.SIGINT, self.request_stop)
        self.start()
        try:
            if serve_api:
                api_thread = threading.Thread(
                    target=self.app.run,
                    kwargs={"host": self.config.server_host, "port": self.config.server_port, "use_reloader": False},
                    name="status-api",
                    daemon=True,
                )
                api_thread.start()
                self.logger.info(f"Status API on http://{self.config.server_host}:{self.config.server_port}/api/status")
            while not self._stop_requested.wait(1.0):
                pass
        finally:
            self.stop()
