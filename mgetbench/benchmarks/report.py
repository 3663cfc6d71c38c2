"""Tab-delimited and gnuplot text output written to stdout."""

from __future__ import annotations

from typing import Sequence, TextIO


class ConcurrencyTable:
    """Writes the sweep table row by row as medians become available."""

    def __init__(self, stream: TextIO) -> None:
        self._stream = stream

    def header(self, concurrencies: Sequence[int]) -> None:
        labels = "".join(f"\tc={conc}" for conc in concurrencies)
        self._stream.write(f"keys{labels}\n")
        self._stream.flush()

    def start_row(self, key_count: int) -> None:
        self._stream.write(str(key_count))

    def cell(self, median_ms: float) -> None:
        self._stream.write(f"\t{median_ms:0.3f}")
        self._stream.flush()

    def end_row(self) -> None:
        self._stream.write("\n")
        self._stream.flush()


def gnuplot_preamble() -> str:
    return "$DATABLOCK << EOD\n"


def gnuplot_epilogue(concurrency: int, extra: Sequence[str] = ()) -> str:
    """Everything after the data block: labels, user lines, the linear fit and the plot."""
    lines = [
        "EOD",
        "set fit nolog",
        "set fit quiet",
        'set term pngcairo size 1280, 1024 font "sans,16"',
        'set xlabel "key count"',
        'set ylabel "time (ms)"',
    ]
    lines.extend(extra)
    lines.append("f(x) = a*x+b")
    lines.append("fit f(x) $DATABLOCK via a,b")
    lines.append(
        f'plot $DATABLOCK title "mget (c={concurrency})", '
        'f(x) with lines lw 3 title sprintf("y = %0.6fx + %0.6f", a, b)'
    )
    return "\n".join(lines) + "\n"
