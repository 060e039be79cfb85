# Copyright (c) 2025 Trae AI. All rights reserved.

import os

if os.name == "nt":
    import msvcrt
else:
    import fcntl


def check_ready_for_processing(path: str) -> bool:
    """
    True if the file exists, has non-zero size, and no other process holds it exclusively.
    """
    try:
        if not os.path.isfile(path) or os.path.getsize(path) == 0:
            return False
    except OSError:
        return False

    # Windows refuses a read/write open (sharing violation) while a writer still has the file.
    mode = "r+b" if os.name == "nt" else "rb"
    try:
        with open(path, mode) as f:
            return not _is_locked(f)
    except OSError:
        return False


def _is_locked(f) -> bool:
    if os.name == "nt":
        try:
            msvcrt.locking(f.fileno(), msvcrt.LK_NBLCK, 1)
        except OSError:
            return True
        msvcrt.locking(f.fileno(), msvcrt.LK_UNLCK, 1)
        return False

    try:
        fcntl.flock(f.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
    except OSError:
        return True
    fcntl.flock(f.fileno(), fcntl.LOCK_UN)
    return False
