from __future__ import annotations

import contextlib
import logging
from typing import Sequence, TextIO

import pandas as pd

from ..store import Store
from .collector import ResultSet, ScatterSink, sweep_dataframe
from .config import RunSettings, ScatterSettings, SweepSettings
from .load import BenchmarkAbortedError, Sample, WorkerPool
from .report import ConcurrencyTable, gnuplot_epilogue, gnuplot_preamble

LOGGER = logging.getLogger("mgetbench.benchmarks.sweeps")


def key_count_ladder() -> list[int]:
    """Key counts of the concurrency sweep; the first row of 1 warms the client up."""
    return [1, 1] + list(range(5, 101, 5))


def concurrency_ladder(min_conc: int, max_conc: int) -> list[int]:
    if min_conc < 1:
        raise ValueError("min_conc must be greater than zero")
    levels = []
    conc = min_conc
    while conc <= max_conc:
        levels.append(conc)
        conc *= 2
    return levels


def measure_median(
    store: Store,
    keys: Sequence[str],
    key_count: int,
    concurrency: int,
    run: RunSettings,
    conventional_median: bool = False,
) -> float:
    """One worker-pool lifecycle at a fixed batch size; returns the median in ms."""
    results = ResultSet(run.cycles)
    pool = WorkerPool(
        store,
        keys,
        concurrency,
        sink=results.record,
        key_count=key_count,
        seed=run.seed,
    )
    pool.run(run.cycles)
    if not results.complete:
        LOGGER.debug("keys=%d c=%d finished with unfilled result slots", key_count, concurrency)
    return results.median_ms(conventional=conventional_median)


def run_concurrency_sweep(
    store: Store,
    keys: Sequence[str],
    run: RunSettings,
    sweep: SweepSettings,
    table: ConcurrencyTable,
) -> pd.DataFrame:
    counts = key_count_ladder()
    levels = concurrency_ladder(sweep.min_conc, sweep.max_conc)
    LOGGER.info(
        "Concurrency sweep: %d key counts x %d levels (%s), %d cycles each",
        len(counts),
        len(levels),
        ", ".join(str(level) for level in levels),
        run.cycles,
    )

    table.header(levels)
    rows = []
    for key_count in counts:
        table.start_row(key_count)
        for conc in levels:
            median_ms = measure_median(
                store, keys, key_count, conc, run, sweep.conventional_median
            )
            LOGGER.debug("keys=%d c=%d median=%.3fms", key_count, conc, median_ms)
            table.cell(median_ms)
            rows.append({"key_count": key_count, "concurrency": conc, "median_ms": median_ms})
        table.end_row()
    return sweep_dataframe(rows)


def run_scatter_sweep(
    store: Store,
    keys: Sequence[str],
    run: RunSettings,
    scatter: ScatterSettings,
    stream: TextIO,
    keep_samples: bool = False,
) -> list[Sample]:
    LOGGER.info(
        "Scatter sweep: %d cycles at c=%d, %d-%d keys",
        run.cycles,
        scatter.concurrency,
        scatter.min_keys,
        scatter.max_keys,
    )
    if scatter.gnuplot:
        stream.write(gnuplot_preamble())

    sink = ScatterSink(stream, keep=keep_samples)
    sink.start()
    pool = WorkerPool(
        store,
        keys,
        scatter.concurrency,
        sink=sink,
        key_range=scatter.key_range,
        seed=run.seed,
    )
    try:
        pool.run(run.cycles)
    except BenchmarkAbortedError:
        # a worker failure takes precedence over a writer failure
        sink.close()
        with contextlib.suppress(BenchmarkAbortedError):
            sink.join()
        raise
    sink.close()
    sink.join()

    if scatter.gnuplot:
        stream.write(gnuplot_epilogue(scatter.concurrency, scatter.gnuplot_extra))
        stream.flush()
    LOGGER.debug("Wrote %d scatter samples", sink.written)
    return sink.samples
