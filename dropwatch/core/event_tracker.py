# Copyright (c) 2025 Trae AI. All rights reserved.

import logging
import threading
import time
from typing import Callable, Dict

logger = logging.getLogger(__name__)


class EventTracker:
    """
    Records the last time each watched path changed.
    Written by the filesystem event consumer, read by the selector.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._last_events: Dict[str, float] = {}
        self._lock = threading.Lock()

    def record_event(self, path: str):
        with self._lock:
            self._last_events[path] = self._clock()
            stamp = self._last_events[path]
        logger.debug(f"Recorded event for {path} at {stamp:.3f}")

    def delete(self, path: str):
        with self._lock:
            self._last_events.pop(path, None)

    def exists(self, path: str) -> bool:
        with self._lock:
            return path in self._last_events

    def snapshot(self) -> Dict[str, float]:
        """Point-in-time copy that callers may iterate without holding the lock."""
        with self._lock:
            return self._last_events.copy()

    def __len__(self) -> int:
        with self._lock:
            return len(self._last_events)
