from __future__ import annotations

import logging
import queue
import threading
from typing import Iterable, Optional, Sequence, TextIO

import numpy as np
import pandas as pd

from .load import BenchmarkAbortedError, Sample

LOGGER = logging.getLogger("mgetbench.benchmarks.collector")

SCATTER_COLUMNS = ["key_count", "duration_ms"]
SWEEP_COLUMNS = ["key_count", "concurrency", "median_ms"]


def median(sorted_values: Sequence[float], conventional: bool = False) -> float:
    """Median of an ascending sequence.

    For even lengths this averages positions ``n/2 - 1`` and ``n/2 + 1``, which
    is how the benchmark has always reported it; ``conventional=True`` gives the
    textbook ``n/2 - 1`` and ``n/2`` average instead. The upper position is
    clamped to the last element, so two values are simply averaged.
    """
    n = len(sorted_values)
    if n == 0:
        raise ValueError("median of an empty sequence")
    if n % 2:
        return float(sorted_values[n // 2])
    low = n // 2 - 1
    high = n // 2 if conventional else min(n // 2 + 1, n - 1)
    return (float(sorted_values[low]) + float(sorted_values[high])) / 2.0


class ResultSet:
    """Fixed-size array of durations, one slot per job index."""

    def __init__(self, cycles: int) -> None:
        if cycles < 1:
            raise ValueError("cycles must be greater than 0")
        self._durations = np.zeros(cycles, dtype=np.int64)
        self._filled = np.zeros(cycles, dtype=bool)

    def __len__(self) -> int:
        return len(self._durations)

    # Workers write disjoint slots, so no lock is needed.
    def record(self, index: int, sample: Sample) -> None:
        self._durations[index] = sample.duration_ns
        self._filled[index] = True

    @property
    def complete(self) -> bool:
        return bool(self._filled.all())

    def sorted_durations(self) -> np.ndarray:
        return np.sort(self._durations)

    def median_ns(self, conventional: bool = False) -> float:
        return median(self.sorted_durations(), conventional=conventional)

    def median_ms(self, conventional: bool = False) -> float:
        return self.median_ns(conventional=conventional) / 1_000_000.0


class ScatterSink:
    """Streams samples to a text stream from a dedicated writer thread.

    Workers call the sink concurrently; lines come out in arrival order, which
    is not job order. ``close`` followed by ``join`` guarantees every sample
    has been written, or raises ``BenchmarkAbortedError`` if the stream failed.
    """

    _DONE = object()

    def __init__(self, stream: TextIO, keep: bool = False) -> None:
        self._stream = stream
        self._keep = keep
        self._queue: queue.Queue = queue.Queue()
        self._samples: list[Sample] = []
        self._written = 0
        self._thread: Optional[threading.Thread] = None
        self._error: Optional[BaseException] = None

    def start(self) -> None:
        thread = threading.Thread(target=self._drain, name="scatter-writer", daemon=True)
        thread.start()
        self._thread = thread

    def __call__(self, index: int, sample: Sample) -> None:
        self._queue.put(sample)

    def close(self) -> None:
        self._queue.put(self._DONE)

    def join(self) -> None:
        if self._thread:
            self._thread.join()
        if self._error is None:
            try:
                self._stream.flush()
            except Exception as exc:  # noqa: BLE001
                self._error = exc
        if self._error is not None:
            raise BenchmarkAbortedError(f"writing samples failed: {self._error}") from self._error

    @property
    def written(self) -> int:
        return self._written

    @property
    def samples(self) -> list[Sample]:
        return list(self._samples)

    def _drain(self) -> None:
        while True:
            item = self._queue.get()
            if item is self._DONE:
                return
            # keep draining after a failure so workers never block on the queue
            if self._error is not None:
                continue
            try:
                self._stream.write(format_sample(item) + "\n")
            except Exception as exc:  # noqa: BLE001
                LOGGER.error("Scatter writer failed: %s", exc)
                self._error = exc
                continue
            self._written += 1
            if self._keep:
                self._samples.append(item)


def format_sample(sample: Sample) -> str:
    return f"{sample.key_count}\t{sample.duration_ms:0.3f}"


def samples_dataframe(samples: Iterable[Sample]) -> pd.DataFrame:
    rows = [{"key_count": s.key_count, "duration_ms": s.duration_ms} for s in samples]
    if not rows:
        return pd.DataFrame(columns=SCATTER_COLUMNS)
    return pd.DataFrame(rows, columns=SCATTER_COLUMNS)


def sweep_dataframe(rows: Iterable[dict]) -> pd.DataFrame:
    rows = list(rows)
    if not rows:
        return pd.DataFrame(columns=SWEEP_COLUMNS)
    return pd.DataFrame(rows, columns=SWEEP_COLUMNS)
