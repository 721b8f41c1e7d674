"""Shared fakes for blockfetch tests."""

import io
from typing import Dict, List

import pytest


class TrackingStream(io.BytesIO):
    """BytesIO that records whether it was closed."""

    def __init__(self, data: bytes, registry: List["TrackingStream"]):
        super().__init__(data)
        registry.append(self)


class MemoryDriver:
    """In-memory backend: path -> raw bytes, with read counting."""

    def __init__(self, blocks: Dict[str, bytes] = None):
        self.blocks = dict(blocks or {})
        self.reads: List[str] = []
        self.streams: List[TrackingStream] = []

    def read(self, path: str):
        self.reads.append(path)
        if path not in self.blocks:
            raise FileNotFoundError(path)
        return TrackingStream(self.blocks[path], self.streams)

    @property
    def all_closed(self) -> bool:
        return all(s.closed for s in self.streams)


class FlakyDriver(MemoryDriver):
    """Raises ConnectionError for the first ``failures`` reads, then serves blocks."""

    def __init__(self, failures: int, blocks: Dict[str, bytes] = None):
        super().__init__(blocks)
        self.failures = failures
        self.errors: List[Exception] = []

    def read(self, path: str):
        if len(self.reads) < self.failures:
            self.reads.append(path)
            error = ConnectionError(f"transient failure #{len(self.reads)}")
            self.errors.append(error)
            raise error
        return super().read(path)


class SleepRecorder:
    """Stand-in for time.sleep that records requested delays."""

    def __init__(self):
        self.delays: List[float] = []

    def __call__(self, delay: float):
        self.delays.append(delay)


@pytest.fixture
def sleeps():
    return SleepRecorder()


@pytest.fixture
def memory_driver():
    return MemoryDriver()


@pytest.fixture
def flaky_driver():
    return FlakyDriver
