# Copyright (c) 2025 Trae AI. All rights reserved.

import logging
import sys
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def parse_level(name: Optional[str]) -> int:
    return _LEVELS.get((name or "").strip().lower(), logging.INFO)


def setup_logging(log_file: Optional[Path], level: str = "info", console: bool = False) -> Optional[Path]:
    """
    Configures the root logger. Returns the log file in use, or None when
    logging to stdout.
    """
    if console or not log_file:
        handler = logging.StreamHandler(sys.stdout)
        log_path = None
    else:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")

    logging.basicConfig(
        level=parse_level(level),
        format=LOG_FORMAT,
        handlers=[handler],
        force=True,
    )

    logger = logging.getLogger("dropwatch")
    if log_path:
        logger.info(f"Program started. Log messages are written to {log_path}")
    else:
        logger.info("Program started. Log messages output to stdout.")
    return log_path
