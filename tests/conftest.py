"""
Pytest fixtures for the MGET benchmark.

``MemoryStore`` implements the store interface over a dict so the worker pool,
fixtures and CLI can be driven without a redis server.
"""

import io
import os
import threading
from typing import Dict, Iterator, List, Optional, Sequence

os.environ.setdefault("MPLBACKEND", "Agg")

import pytest

from mgetbench.store import StoreError


class MemoryStore:
    """Thread-safe in-memory store that records the calls made against it."""

    def __init__(self, scan_limit: Optional[int] = None) -> None:
        self.data: Dict[str, bytes] = {}
        self.reads: List[List[str]] = []
        self.set_calls = 0
        self.delete_calls = 0
        self.closed = False
        self._scan_limit = scan_limit
        self._lock = threading.Lock()

    def batch_read(self, keys: Sequence[str]) -> List[Optional[bytes]]:
        with self._lock:
            self.reads.append(list(keys))
            return [self.data.get(key) for key in keys]

    def scan_prefix(self, prefix: str) -> Iterator[str]:
        with self._lock:
            matches = [key for key in self.data if key.startswith(prefix)]
        if self._scan_limit is not None:
            matches = matches[: self._scan_limit]
        yield from matches

    def set(self, key: str, value: bytes) -> None:
        with self._lock:
            self.set_calls += 1
            self.data[key] = value

    def delete(self, *keys: str) -> int:
        with self._lock:
            self.delete_calls += 1
            removed = 0
            for key in keys:
                if self.data.pop(key, None) is not None:
                    removed += 1
            return removed

    def close(self) -> None:
        self.closed = True


class FailingStore(MemoryStore):
    """Raises StoreError on every batched read after the first ``fail_after``."""

    def __init__(self, fail_after: int = 0) -> None:
        super().__init__()
        self._fail_after = fail_after

    def batch_read(self, keys: Sequence[str]) -> List[Optional[bytes]]:
        with self._lock:
            allowed = len(self.reads) < self._fail_after
        if not allowed:
            raise StoreError("connection reset by peer")
        return super().batch_read(keys)


def seed_keys(store: MemoryStore, count: int, prefix: str = "test", size: int = 8) -> List[str]:
    keys = [f"{prefix}_{i:05d}" for i in range(count)]
    for key in keys:
        store.data[key] = b"x" * size
    return keys


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def pool_store() -> MemoryStore:
    """Store pre-seeded with 200 test keys."""
    s = MemoryStore()
    seed_keys(s, 200)
    return s


class BrokenStream(io.StringIO):
    """Text stream whose writes start failing after ``fail_after`` successful ones."""

    def __init__(self, fail_after: int) -> None:
        super().__init__()
        self._fail_after = fail_after
        self.writes = 0

    def write(self, text: str) -> int:
        if self.writes >= self._fail_after:
            raise BrokenPipeError(32, "Broken pipe")
        self.writes += 1
        return super().write(text)
