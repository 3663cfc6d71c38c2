from __future__ import annotations

import collections
import logging
import random
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from ..store import Store

LOGGER = logging.getLogger("mgetbench.benchmarks.load")

WARMUP_KEY = "mgetbench:warmup"


@dataclass(frozen=True)
class Sample:
    key_count: int
    duration_ns: int

    @property
    def duration_ms(self) -> float:
        return self.duration_ns / 1_000_000.0


SampleSink = Callable[[int, Sample], None]


class BenchmarkAbortedError(RuntimeError):
    """Raised after the pool has joined when any worker's read failed."""


def partial_shuffle(keys: list[str], count: int, rng: random.Random) -> None:
    """Fisher-Yates over the first ``count`` slots only.

    Afterwards the leading ``count`` keys are a uniform random draw, without
    replacement, from the whole list.
    """
    size = len(keys)
    for i in range(min(count, size - 1)):
        j = rng.randrange(i, size)
        keys[i], keys[j] = keys[j], keys[i]


class JobQueue:
    """Closable stream of job indices with one producer and many consumers.

    ``get`` blocks until a job is available and returns ``None`` once the
    queue has been closed and drained.
    """

    def __init__(self) -> None:
        self._jobs: collections.deque[int] = collections.deque()
        self._cond = threading.Condition()
        self._closed = False

    def put(self, index: int) -> bool:
        with self._cond:
            if self._closed:
                return False
            self._jobs.append(index)
            self._cond.notify()
            return True

    def produce(self, cycles: int) -> int:
        produced = 0
        for index in range(cycles):
            if not self.put(index):
                break
            produced += 1
        self.close()
        return produced

    def close(self) -> None:
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    def abort(self) -> None:
        with self._cond:
            self._closed = True
            self._jobs.clear()
            self._cond.notify_all()

    def get(self) -> Optional[int]:
        with self._cond:
            while not self._jobs and not self._closed:
                self._cond.wait()
            if self._jobs:
                return self._jobs.popleft()
            return None


class WorkerPool:
    """Fixed set of threads issuing timed batched reads, one sample per job.

    Pass ``key_count`` for a fixed batch size or ``key_range`` to draw each
    batch size uniformly from the inclusive range.
    """

    def __init__(
        self,
        store: Store,
        keys: Sequence[str],
        concurrency: int,
        sink: SampleSink,
        key_count: int | None = None,
        key_range: tuple[int, int] | None = None,
        seed: int | None = None,
    ) -> None:
        if (key_count is None) == (key_range is None):
            raise ValueError("exactly one of key_count or key_range is required")
        if concurrency < 1:
            raise ValueError("concurrency must be greater than 0")
        self._store = store
        self._keys = list(keys)
        self._concurrency = concurrency
        self._sink = sink
        self._key_count = key_count
        self._key_range = key_range
        self._seed = seed

        largest = key_count if key_count is not None else key_range[1]
        if largest > len(self._keys):
            raise ValueError(f"batch of {largest} keys exceeds pool of {len(self._keys)}")

        self._errors: list[BaseException] = []
        self._errors_lock = threading.Lock()

    def run(self, cycles: int) -> int:
        """Run ``cycles`` jobs across the pool and block until every worker returns."""
        queue = JobQueue()
        self._errors = []
        threads = [
            threading.Thread(
                target=self._worker,
                args=(queue, self._make_rng(idx)),
                name=f"mget-worker-{idx}",
                daemon=True,
            )
            for idx in range(self._concurrency)
        ]
        for thread in threads:
            thread.start()

        produced = queue.produce(cycles)
        for thread in threads:
            thread.join()

        if self._errors:
            first = self._errors[0]
            raise BenchmarkAbortedError(f"batched read failed: {first}") from first
        return produced

    def _make_rng(self, worker_index: int) -> random.Random:
        if self._seed is None:
            return random.Random()
        return random.Random(self._seed + worker_index)

    def _worker(self, queue: JobQueue, rng: random.Random) -> None:
        try:
            self._store.batch_read([WARMUP_KEY])
            keys = list(self._keys)
            while True:
                index = queue.get()
                if index is None:
                    return
                count = self._pick_count(rng)
                partial_shuffle(keys, count, rng)
                batch = keys[:count]
                start = time.perf_counter_ns()
                self._store.batch_read(batch)
                elapsed = time.perf_counter_ns() - start
                self._sink(index, Sample(count, elapsed))
        except Exception as exc:  # noqa: BLE001
            LOGGER.error("Worker %s failed: %s", threading.current_thread().name, exc)
            with self._errors_lock:
                self._errors.append(exc)
            queue.abort()

    def _pick_count(self, rng: random.Random) -> int:
        if self._key_count is not None:
            return self._key_count
        low, high = self._key_range
        return rng.randint(low, high)
