# Copyright (c) 2025 Trae AI. All rights reserved.

import os
import pytest
from dropwatch.core.readiness import check_ready_for_processing


def test_non_empty_file_is_ready(write_file):
    path = write_file("ready.txt", "data")
    assert check_ready_for_processing(str(path)) is True


def test_empty_file_is_not_ready(write_file):
    path = write_file("empty.txt", "")
    assert check_ready_for_processing(str(path)) is False


def test_missing_file_is_not_ready(source_dir):
    assert check_ready_for_processing(str(source_dir / "missing.txt")) is False


def test_directory_is_not_ready(source_dir):
    assert check_ready_for_processing(str(source_dir)) is False


@pytest.mark.skipif(os.name == "nt", reason="flock is POSIX only")
def test_exclusively_locked_file_is_not_ready(write_file):
    import fcntl

    path = write_file("locked.txt", "still writing")
    with open(path, "rb") as holder:
        fcntl.flock(holder.fileno(), fcntl.LOCK_EX)
        assert check_ready_for_processing(str(path)) is False
        fcntl.flock(holder.fileno(), fcntl.LOCK_UN)

    assert check_ready_for_processing(str(path)) is True
