# Copyright (c) 2025 Trae AI. All rights reserved.

import threading
from collections import deque
from typing import Any, Dict, List
from .models import JobRecord


class TransferHistory:
    """
    Keeps the most recent job outcomes and running totals.
    """

    def __init__(self, max_records: int = 200):
        self._records = deque(maxlen=max_records)
        self._counters: Dict[str, int] = {
            "success": 0,
            "failed": 0,
            "not_implemented": 0,
            "unmatched": 0,
            "action_errors": 0,
        }
        self._lock = threading.Lock()

    def add(self, record: JobRecord):
        with self._lock:
            self._records.append(record)
            self._counters[record.status] = self._counters.get(record.status, 0) + 1
            if record.action_error:
                self._counters["action_errors"] += 1

    def get_recent(self, limit: int = 50) -> List[JobRecord]:
        with self._lock:
            records = list(self._records)
        return list(reversed(records))[:max(limit, 0)]

    def get_counters(self) -> Dict[str, Any]:
        with self._lock:
            return self._counters.copy()
