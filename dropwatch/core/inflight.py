# Copyright (c) 2025 Trae AI. All rights reserved.

import threading
import time
from typing import Callable, Dict, List
from .models import InFlightMarker


class InFlightSet:
    """
    Paths currently owned by a dispatch. A path holds at most one marker,
    which is what keeps two transfers of the same file from overlapping.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._markers: Dict[str, InFlightMarker] = {}
        self._lock = threading.Lock()

    def add(self, path: str) -> bool:
        """Returns False when the path was already in flight."""
        with self._lock:
            if path in self._markers:
                return False
            self._markers[path] = InFlightMarker(path=path, enqueued_at=self._clock())
            return True

    def remove(self, path: str):
        with self._lock:
            self._markers.pop(path, None)

    def contains(self, path: str) -> bool:
        with self._lock:
            return path in self._markers

    def snapshot(self) -> List[InFlightMarker]:
        with self._lock:
            return list(self._markers.values())

    def __contains__(self, path: str) -> bool:
        return self.contains(path)

    def __len__(self) -> int:
        with self._lock:
            return len(self._markers)
