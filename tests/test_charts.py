import pandas as pd

from mgetbench.benchmarks.charts import render_scatter_chart, render_sweep_chart
from mgetbench.benchmarks.collector import samples_dataframe, sweep_dataframe
from mgetbench.benchmarks.load import Sample


def test_sweep_chart_is_written(tmp_path):
    rows = [
        {"key_count": count, "concurrency": conc, "median_ms": 0.1 * count * conc}
        for count in (1, 1, 5, 10)
        for conc in (1, 2)
    ]
    path = render_sweep_chart(sweep_dataframe(rows), tmp_path / "sweep.png")
    assert path.exists()
    assert path.stat().st_size > 0


def test_scatter_chart_with_fit(tmp_path):
    df = samples_dataframe(Sample(count, count * 10_000 + 50_000) for count in range(1, 40))
    path = render_scatter_chart(df, 4, tmp_path / "scatter.png")
    assert path.exists()


def test_scatter_chart_single_key_count(tmp_path):
    df = samples_dataframe([Sample(10, 1_000_000), Sample(10, 1_200_000)])
    assert render_scatter_chart(df, 1, tmp_path / "flat.png").exists()


def test_empty_results_render_nothing(tmp_path):
    assert not render_sweep_chart(pd.DataFrame(columns=["key_count", "concurrency", "median_ms"]), tmp_path / "a.png").exists()
    assert not render_scatter_chart(samples_dataframe([]), 1, tmp_path / "b.png").exists()
