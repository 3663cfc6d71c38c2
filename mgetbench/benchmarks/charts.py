from __future__ import annotations

import logging
from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns

LOGGER = logging.getLogger("mgetbench.benchmarks.charts")

sns.set_style("whitegrid")
plt.rcParams["figure.dpi"] = 100
plt.rcParams["savefig.dpi"] = 150
plt.rcParams["font.size"] = 10
plt.rcParams["axes.labelsize"] = 11
plt.rcParams["axes.titlesize"] = 13
plt.rcParams["legend.fontsize"] = 9

LINE_COLOR = "#2E86AB"
FIT_COLOR = "#C73E1D"


def render_sweep_chart(df: pd.DataFrame, chart_path: Path) -> Path:
    """Median latency vs key count, one line per concurrency level."""
    chart_path = Path(chart_path)
    if df.empty:
        LOGGER.warning("No sweep results to chart")
        return chart_path

    # The repeated key count 1 is a client warm-up row.
    data = df.drop_duplicates(subset=["key_count", "concurrency"], keep="last").copy()
    data["concurrency"] = data["concurrency"].map(lambda c: f"c={c}")

    fig, ax = plt.subplots(figsize=(10, 6))
    sns.lineplot(
        data=data,
        x="key_count",
        y="median_ms",
        hue="concurrency",
        marker="o",
        linewidth=2,
        ax=ax,
    )
    ax.set_xlabel("Key count", fontweight="semibold")
    ax.set_ylabel("Median MGET time (ms)", fontweight="semibold")
    ax.set_title("MGET Latency by Key Count and Concurrency", fontweight="bold", pad=15)
    ax.set_ylim(bottom=0)
    ax.grid(True, alpha=0.3, linestyle="--")
    ax.legend(title="Concurrency", frameon=True)

    plt.tight_layout()
    fig.savefig(chart_path, bbox_inches="tight", facecolor="white")
    plt.close(fig)
    LOGGER.info("Rendered chart %s", chart_path)
    return chart_path


def render_scatter_chart(df: pd.DataFrame, concurrency: int, chart_path: Path) -> Path:
    """Per-sample scatter with a least-squares line, the same fit the gnuplot script does."""
    chart_path = Path(chart_path)
    if df.empty:
        LOGGER.warning("No scatter samples to chart")
        return chart_path

    fig, ax = plt.subplots(figsize=(12.8, 10.24))
    sns.scatterplot(data=df, x="key_count", y="duration_ms", color=LINE_COLOR, alpha=0.6, ax=ax)

    title = f"mget (c={concurrency})"
    if df["key_count"].nunique() > 1:
        slope, intercept = np.polyfit(
            df["key_count"].astype(float), df["duration_ms"].astype(float), 1
        )
        xs = np.linspace(df["key_count"].min(), df["key_count"].max(), 100)
        ax.plot(
            xs,
            slope * xs + intercept,
            color=FIT_COLOR,
            linewidth=3,
            label=f"y = {slope:0.6f}x + {intercept:0.6f}",
        )
        ax.legend(frameon=True)

    ax.set_xlabel("key count", fontweight="semibold")
    ax.set_ylabel("time (ms)", fontweight="semibold")
    ax.set_title(title, fontweight="bold", pad=15)
    ax.grid(True, alpha=0.3, linestyle="--")

    plt.tight_layout()
    fig.savefig(chart_path, bbox_inches="tight", facecolor="white")
    plt.close(fig)
    LOGGER.info("Rendered chart %s", chart_path)
    return chart_path
