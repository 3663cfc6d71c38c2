import pytest

from mgetbench.benchmarks.config import (
    ConfigurationError,
    ConnectionSettings,
    RunSettings,
    ScatterSettings,
    SweepSettings,
)


def test_defaults_are_valid():
    ConnectionSettings().validate()
    SweepSettings().validate(RunSettings())
    ScatterSettings().validate(RunSettings())


@pytest.mark.parametrize(
    "run, message",
    [
        (RunSettings(cycles=0), "cycles"),
        (RunSettings(data_size=0), "data-size"),
        (RunSettings(pool_size=0), "pool-size"),
        (RunSettings(key_prefix=""), "key-prefix"),
    ],
)
def test_run_settings_rejected(run, message):
    with pytest.raises(ConfigurationError, match=message):
        run.validate()


@pytest.mark.parametrize(
    "sweep, message",
    [
        (SweepSettings(min_conc=0), "min-conc must be greater than zero"),
        (SweepSettings(min_conc=4, max_conc=2), "min-conc cannot exceed max-conc"),
    ],
)
def test_sweep_settings_rejected(sweep, message):
    with pytest.raises(ConfigurationError, match=message):
        sweep.validate(RunSettings())


def test_sweep_needs_room_for_largest_key_count():
    with pytest.raises(ConfigurationError, match="pool-size"):
        SweepSettings().validate(RunSettings(pool_size=99))


@pytest.mark.parametrize(
    "scatter, message",
    [
        (ScatterSettings(min_keys=0), "min-keys must be greater than zero"),
        (ScatterSettings(min_keys=5, max_keys=4), "min-keys cannot exceed max-keys"),
        (ScatterSettings(concurrency=0), "concurrency must be greater than 0"),
        (ScatterSettings(max_keys=60_000), "max-keys cannot exceed pool-size"),
    ],
)
def test_scatter_settings_rejected(scatter, message):
    with pytest.raises(ConfigurationError, match=message):
        scatter.validate(RunSettings())


def test_connection_settings_rejected():
    with pytest.raises(ConfigurationError):
        ConnectionSettings(port=0).validate()
    with pytest.raises(ConfigurationError):
        ConnectionSettings(db=-1).validate()


def test_configuration_error_is_a_value_error():
    assert issubclass(ConfigurationError, ValueError)


def test_key_range():
    assert ScatterSettings(min_keys=3, max_keys=9).key_range == (3, 9)
