# Copyright (c) 2025 Trae AI. All rights reserved.

import errno
import logging
import os
import shutil
from pathlib import Path
from typing import Optional
from .config import TransferConfigEntry

logger = logging.getLogger(__name__)


class PostActionError(Exception):
    pass


def action_on_success(entry: TransferConfigEntry, file_path: str):
    logger.debug(f"Action on success for '{entry.name}': {entry.action_on_success!r} ({file_path})")
    _apply(entry.action_on_success, entry, file_path, entry.archive_dest, "archive", "successful")


def action_on_fail(entry: TransferConfigEntry, file_path: str):
    logger.debug(f"Action on fail for '{entry.name}': {entry.action_on_fail!r} ({file_path})")
    _apply(entry.action_on_fail, entry, file_path, entry.fail_dest, "fail", "failed")


def _apply(action: str, entry: TransferConfigEntry, file_path: str,
           configured_dest: Optional[Path], fallback_name: str, outcome: str):
    normalized = (action or "").strip().lower()

    if normalized == "archive":
        dest_dir = _ensure_destination(entry, configured_dest, fallback_name)
        dest_path = move_into(file_path, dest_dir)
        logger.info(f"Moved {file_path} to {dest_path} after {outcome} transfer")
    elif normalized == "delete":
        try:
            os.remove(file_path)
        except OSError as e:
            logger.error(f"Failed to remove {file_path} after {outcome} transfer: {e}")
            raise
        logger.info(f"Removed {file_path} after {outcome} transfer")
    elif normalized in ("", "none"):
        logger.info(f"No further action for {file_path} after {outcome} transfer")
    else:
        logger.warning(f"Unknown post-action {action!r} for transfer '{entry.name}', leaving {file_path} in place")


def _ensure_destination(entry: TransferConfigEntry, configured_dest: Optional[Path], fallback_name: str) -> Path:
    fallback = entry.source_directory / fallback_name
    dest_dir = configured_dest if configured_dest else fallback

    try:
        dest_dir.mkdir(parents=True, exist_ok=True)
        return dest_dir
    except OSError as e:
        if dest_dir == fallback:
            raise PostActionError(f"unable to create {fallback_name} directory {dest_dir}: {e}") from e
        logger.warning(f"Failed to create {dest_dir} ({e}), falling back to {fallback}")

    try:
        fallback.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise PostActionError(f"unable to create {fallback_name} directory {fallback}: {e}") from e
    return fallback


def move_into(file_path: str, dest_dir: Path) -> Path:
    """
    Moves a file into dest_dir keeping its base name. A plain rename is used
    when possible; a directory already sitting at the target name is an error
    and the source stays where it is.
    """
    dest_path = dest_dir / os.path.basename(file_path)
    if dest_path.is_dir():
        raise PostActionError(f"cannot move {file_path}: {dest_path} is a directory")

    try:
        os.replace(file_path, dest_path)
    except OSError as e:
        if e.errno != errno.EXDEV:
            logger.error(f"Failed to move {file_path} to {dest_path}: {e}")
            raise
        # Different filesystem: copy then unlink.
        shutil.copy2(file_path, dest_path)
        os.remove(file_path)
    return dest_path
