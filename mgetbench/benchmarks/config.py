from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

DEFAULT_POOL_SIZE = 50_000
DEFAULT_DATA_SIZE = 2048
DEFAULT_CYCLES = 100
DEFAULT_KEY_PREFIX = "test"


class ConfigurationError(ValueError):
    """Raised for invalid benchmark settings, before any store I/O happens."""


@dataclass(frozen=True)
class ConnectionSettings:
    host: str = "127.0.0.1"
    port: int = 6379
    password: str = ""
    db: int = 0
    connect_timeout: float = 10.0

    def validate(self) -> None:
        if not 0 < self.port < 65536:
            raise ConfigurationError(f"port must be between 1 and 65535, got {self.port}")
        if self.db < 0:
            raise ConfigurationError("db must not be negative")
        if self.connect_timeout < 0:
            raise ConfigurationError("connect-timeout must not be negative")


@dataclass(frozen=True)
class RunSettings:
    """Settings shared by both sweeps: how many samples and what the key pool looks like."""

    cycles: int = DEFAULT_CYCLES
    data_size: int = DEFAULT_DATA_SIZE
    pool_size: int = DEFAULT_POOL_SIZE
    key_prefix: str = DEFAULT_KEY_PREFIX
    reuse_keys: bool = False
    seed: int | None = None

    def validate(self) -> None:
        if self.cycles < 1:
            raise ConfigurationError("cycles must be greater than 0")
        if self.data_size < 1:
            raise ConfigurationError("data-size must be greater than 0")
        if self.pool_size < 1:
            raise ConfigurationError("pool-size must be greater than 0")
        if not self.key_prefix:
            raise ConfigurationError("key-prefix must not be empty")


@dataclass(frozen=True)
class SweepSettings:
    """Concurrency sweep: every key count of the ladder at every concurrency level."""

    min_conc: int = 1
    max_conc: int = 16
    conventional_median: bool = False

    def validate(self, run: RunSettings) -> None:
        run.validate()
        if self.min_conc < 1:
            raise ConfigurationError("min-conc must be greater than zero")
        if self.min_conc > self.max_conc:
            raise ConfigurationError("min-conc cannot exceed max-conc")
        if run.pool_size < 100:
            raise ConfigurationError("pool-size must be at least 100 for the concurrency sweep")


@dataclass(frozen=True)
class ScatterSettings:
    """Scatter sweep: random key counts at one fixed concurrency."""

    concurrency: int = 1
    min_keys: int = 1
    max_keys: int = 100
    gnuplot: bool = False
    gnuplot_extra: Sequence[str] = field(default_factory=tuple)

    def validate(self, run: RunSettings) -> None:
        run.validate()
        if self.min_keys < 1:
            raise ConfigurationError("min-keys must be greater than zero")
        if self.min_keys > self.max_keys:
            raise ConfigurationError("min-keys cannot exceed max-keys")
        if self.concurrency < 1:
            raise ConfigurationError("concurrency must be greater than 0")
        if self.max_keys > run.pool_size:
            raise ConfigurationError("max-keys cannot exceed pool-size")

    @property
    def key_range(self) -> tuple[int, int]:
        return self.min_keys, self.max_keys
