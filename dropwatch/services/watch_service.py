# Copyright (c) 2025 Trae AI. All rights reserved.

import logging
import os
from dropwatch.core.event_tracker import EventTracker
from dropwatch.core.inflight import InFlightSet
from dropwatch.core.matcher import TransferMatcher
from dropwatch.core.models import EventKind


class WatchService:
    """
    Turns raw filesystem events into tracker updates.
    Only files that qualify for some transfer entry are tracked.
    """

    def __init__(self, tracker: EventTracker, inflight: InFlightSet, matcher: TransferMatcher):
        self.tracker = tracker
        self.inflight = inflight
        self.matcher = matcher
        self.logger = logging.getLogger(__name__)

    def handle_event(self, path: str, kind: EventKind):
        self.logger.debug(f"Filesystem event {kind.value}: {path}")

        if kind is EventKind.REMOVE:
            if self.tracker.exists(path):
                self.tracker.delete(path)
                self.logger.debug(f"Cleared tracker after remove event: {path}")
            if self.inflight.contains(path):
                self.logger.warning(f"{path} was removed while in flight; the running transfer keeps ownership")
            return

        if kind not in (EventKind.CREATE, EventKind.WRITE):
            return

        if os.path.isdir(path):
            return

        entry = self.matcher.match(path)
        if entry is None:
            self.logger.debug(f"No transfer matches {path}, ignoring")
            return

        if not self.tracker.exists(path):
            self.logger.info(f"Matched '{entry.name}' and tracking {path}")
        self.tracker.record_event(path)
