# Copyright (c) 2025 Trae AI. All rights reserved.

import pytest
from pathlib import Path
from dropwatch.core.config import TransferConfigEntry
from dropwatch.core.event_tracker import EventTracker
from dropwatch.core.inflight import InFlightSet
from dropwatch.infrastructure.transport import TransferError, Transport


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class FakeTransport(Transport):
    """
    Plays back a list of outcomes: a string is returned as the label, an
    exception instance is raised. The last outcome repeats.
    """

    def __init__(self, outcomes=None):
        self.outcomes = list(outcomes or ["success"])
        self.calls = []

    def push(self, local_path, remote_dir, entry):
        self.calls.append((local_path, remote_dir, entry.name))
        outcome = self.outcomes[min(len(self.calls), len(self.outcomes)) - 1]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def tracker(clock):
    return EventTracker(clock=clock)


@pytest.fixture
def inflight(clock):
    return InFlightSet(clock=clock)


@pytest.fixture
def source_dir(tmp_path):
    source = tmp_path / "source"
    source.mkdir()
    return source


@pytest.fixture
def make_entry(source_dir):
    def _make(**overrides):
        data = {
            "name": "test",
            "source_directory": source_dir,
            "transfer_type": "local",
        }
        data.update(overrides)
        return TransferConfigEntry(**data)
    return _make


@pytest.fixture
def write_file(source_dir):
    def _write(name: str, content: str = "data", directory: Path = None) -> Path:
        target = (directory or source_dir) / name
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content)
        return target
    return _write


@pytest.fixture
def transport_factory():
    return FakeTransport


@pytest.fixture
def failing_transport():
    return FakeTransport([TransferError("connection refused")])
