# Copyright (c) 2025 Trae AI. All rights reserved.

import logging
import os
import re
from typing import Dict, List, Optional, Sequence
from .config import TransferConfigEntry

logger = logging.getLogger(__name__)


def is_under(path: str, directory: str) -> bool:
    """True if path is the directory itself or anything below it."""
    path_abs = os.path.abspath(path)
    dir_abs = os.path.abspath(directory)
    if path_abs == dir_abs:
        return True
    prefix = dir_abs if dir_abs.endswith(os.sep) else dir_abs + os.sep
    return path_abs.startswith(prefix)


class TransferMatcher:
    """
    Decides which transfer entry owns a file.

    Both the selector (for the settle delay) and the processor (for the
    transfer itself) go through this class, so they always agree on the owner.
    """

    def __init__(self, entries: Sequence[TransferConfigEntry], default_delay: float = 2.0):
        self.entries: List[TransferConfigEntry] = list(entries)
        self.default_delay = default_delay
        self._patterns: Dict[str, Optional[re.Pattern]] = {}

    def filter_matches(self, path: str, entry: TransferConfigEntry) -> bool:
        """
        The file qualifies for an entry when it lies under the entry's source
        directory and its base name passes the optional regex filter.
        A broken regex never matches.
        """
        if not is_under(path, str(entry.source_directory)):
            return False
        if not entry.filter:
            return True

        pattern = self._compile(entry.filter)
        if pattern is None:
            logger.error(f"Invalid filter {entry.filter!r} on transfer '{entry.name}', treating {path} as no match")
            return False
        return pattern.search(os.path.basename(path)) is not None

    def match(self, path: str) -> Optional[TransferConfigEntry]:
        """
        Longest source_directory prefix wins; equal prefixes go to the entry
        listed first in the configuration.
        """
        best = None
        best_len = -1
        for entry in self.entries:
            if not self.filter_matches(path, entry):
                continue
            length = len(str(entry.source_directory))
            if length > best_len:
                best = entry
                best_len = length
        return best

    def delay_for(self, path: str) -> float:
        entry = self.match(path)
        if entry is None:
            logger.debug(f"No matching source directory for {path}, using default delay")
            return self.default_delay
        if entry.delay is None:
            return self.default_delay
        return entry.delay

    def _compile(self, expression: str) -> Optional[re.Pattern]:
        if expression not in self._patterns:
            try:
                self._patterns[expression] = re.compile(expression)
            except re.error as e:
                logger.error(f"Failed to compile filter {expression!r}: {e}")
                self._patterns[expression] = None
        return self._patterns[expression]
