from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import TextIO

from .benchmarks.charts import render_scatter_chart, render_sweep_chart
from .benchmarks.collector import samples_dataframe
from .benchmarks.config import (
    DEFAULT_CYCLES,
    DEFAULT_DATA_SIZE,
    DEFAULT_KEY_PREFIX,
    DEFAULT_POOL_SIZE,
    ConfigurationError,
    ConnectionSettings,
    RunSettings,
    ScatterSettings,
    SweepSettings,
)
from .benchmarks.load import BenchmarkAbortedError
from .benchmarks.report import ConcurrencyTable
from .benchmarks.sweeps import run_concurrency_sweep, run_scatter_sweep
from .fixtures import clear, populate
from .store import StoreError, connect_store

LOGGER = logging.getLogger("mgetbench")


def _help(parser: argparse.ArgumentParser) -> None:
    # -h is taken by --host, as in redis-cli
    parser.add_argument("-?", "--help", action="help", help="show this help message and exit")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    env = os.environ
    parser = argparse.ArgumentParser(
        prog="mgetbench",
        description="Multithreaded Redis MGET latency tester",
        add_help=False,
    )
    _help(parser)
    parser.add_argument("-h", "--host", default=env.get("REDIS_HOST", "127.0.0.1"), help="Server hostname")
    parser.add_argument("-p", "--port", type=int, default=env.get("REDIS_PORT", "6379"), help="Server port")
    parser.add_argument(
        "-a",
        "--password",
        default=env.get("REDIS_PASSWORD", ""),
        help="Password to use when connecting to the server",
    )
    parser.add_argument("-n", "--db", type=int, default=env.get("REDIS_DB", "0"), help="Database number")
    parser.add_argument(
        "--cycles",
        type=int,
        default=env.get("MGETBENCH_CYCLES", str(DEFAULT_CYCLES)),
        help="Number of attempts for each key count",
    )
    parser.add_argument(
        "--data-size",
        type=int,
        default=env.get("MGETBENCH_DATA_SIZE", str(DEFAULT_DATA_SIZE)),
        help="Size of test data values, in bytes",
    )
    parser.add_argument(
        "--pool-size",
        type=int,
        default=env.get("MGETBENCH_POOL_SIZE", str(DEFAULT_POOL_SIZE)),
        help="Number of test keys to hold in the store",
    )
    parser.add_argument(
        "--key-prefix",
        default=env.get("MGETBENCH_KEY_PREFIX", DEFAULT_KEY_PREFIX),
        help="Prefix of the test keys (keys are named <prefix>_<n>)",
    )
    parser.add_argument(
        "--reuse-keys",
        action="store_true",
        help="Keep test keys already in the store instead of clearing them first",
    )
    parser.add_argument(
        "--connect-timeout",
        type=float,
        default=env.get("MGETBENCH_CONNECT_TIMEOUT", "10"),
        help="Seconds to keep retrying the initial connection",
    )
    parser.add_argument("--seed", type=int, default=None, help="Seed for the per-worker random generators")
    parser.add_argument(
        "--log-level",
        default=env.get("MGETBENCH_LOG_LEVEL", "INFO"),
        help="Logging level",
    )

    artefacts = argparse.ArgumentParser(add_help=False)
    artefacts.add_argument("--csv", type=Path, help="Also write the results to this CSV file")
    artefacts.add_argument("--chart", type=Path, help="Also render the results to this PNG file")

    subparsers = parser.add_subparsers(dest="command", required=True)

    conc = subparsers.add_parser(
        "concurrency",
        parents=[artefacts],
        add_help=False,
        help="Test various key counts at various levels of concurrency",
    )
    _help(conc)
    conc.add_argument("--min-conc", type=int, default=1, help="Minimum concurrency")
    conc.add_argument("--max-conc", type=int, default=16, help="Maximum concurrency")
    conc.add_argument(
        "--conventional-median",
        action="store_true",
        help="Average the two central samples for even cycle counts",
    )

    scatter = subparsers.add_parser(
        "scatter",
        parents=[artefacts],
        add_help=False,
        help="Output key-count vs. time points, optionally plotting",
    )
    _help(scatter)
    scatter.add_argument("--concurrency", type=int, default=1, help="Concurrency")
    scatter.add_argument("--min-keys", type=int, default=1, help="Minimum number of keys to fetch in a cycle")
    scatter.add_argument("--max-keys", type=int, default=100, help="Maximum number of keys to fetch in a cycle")
    scatter.add_argument("--gnuplot", action="store_true", help="Output GnuPlot script for scatter")
    scatter.add_argument(
        "--gnuplot-extra",
        action="append",
        default=[],
        help="Inject additional commands into the gnuplot render",
    )
    return parser.parse_args(argv)


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def build_settings(args: argparse.Namespace):
    connection = ConnectionSettings(
        host=args.host,
        port=args.port,
        password=args.password,
        db=args.db,
        connect_timeout=args.connect_timeout,
    )
    run = RunSettings(
        cycles=args.cycles,
        data_size=args.data_size,
        pool_size=args.pool_size,
        key_prefix=args.key_prefix,
        reuse_keys=args.reuse_keys,
        seed=args.seed,
    )
    if args.command == "concurrency":
        mode = SweepSettings(
            min_conc=args.min_conc,
            max_conc=args.max_conc,
            conventional_median=args.conventional_median,
        )
    else:
        mode = ScatterSettings(
            concurrency=args.concurrency,
            min_keys=args.min_keys,
            max_keys=args.max_keys,
            gnuplot=args.gnuplot,
            gnuplot_extra=tuple(args.gnuplot_extra),
        )
    connection.validate()
    mode.validate(run)
    return connection, run, mode


def execute(args: argparse.Namespace, connection, run, mode, stdout: TextIO) -> None:
    store = connect_store(connection)
    try:
        if not run.reuse_keys:
            clear(store, run.key_prefix)
        keys = populate(store, run.pool_size, run.data_size, run.key_prefix)
        LOGGER.info("Holding %d keys", len(keys))

        if isinstance(mode, SweepSettings):
            df = run_concurrency_sweep(store, keys, run, mode, ConcurrencyTable(stdout))
            if args.chart:
                render_sweep_chart(df, args.chart)
        else:
            wants_df = bool(args.csv or args.chart)
            samples = run_scatter_sweep(store, keys, run, mode, stdout, keep_samples=wants_df)
            df = samples_dataframe(samples)
            if args.chart:
                render_scatter_chart(df, mode.concurrency, args.chart)

        if args.csv:
            df.to_csv(args.csv, index=False)
            LOGGER.info("Saved %d rows to %s", len(df), args.csv)

        deleted = clear(store, run.key_prefix)
        LOGGER.info("Deleted %d test keys", deleted)
    finally:
        store.close()


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_level)

    try:
        connection, run, mode = build_settings(args)
    except ConfigurationError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    try:
        execute(args, connection, run, mode, sys.stdout)
    except (StoreError, BenchmarkAbortedError):
        LOGGER.exception("Benchmark aborted; test keys may be left in the store")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
