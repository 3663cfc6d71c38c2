from __future__ import annotations

import logging
import time
from typing import Iterator, Optional, Protocol, Sequence

import redis

from .benchmarks.config import ConnectionSettings

LOGGER = logging.getLogger("mgetbench.store")

SCAN_COUNT = 5_000


class StoreError(Exception):
    """Raised when the backing key-value store rejects or fails an operation."""


class Store(Protocol):
    def batch_read(self, keys: Sequence[str]) -> list[Optional[bytes]]: ...

    def scan_prefix(self, prefix: str) -> Iterator[str]: ...

    def set(self, key: str, value: bytes) -> None: ...

    def delete(self, *keys: str) -> int: ...


class RedisStore:
    """Store backed by a single shared redis client.

    The client's connection pool hands each calling thread its own socket, so
    one instance is safe to share between all workers of a run.
    """

    def __init__(self, client: redis.Redis) -> None:
        self._client = client

    def batch_read(self, keys: Sequence[str]) -> list[Optional[bytes]]:
        try:
            return self._client.mget(keys)
        except redis.RedisError as exc:
            raise StoreError(f"MGET of {len(keys)} keys failed: {exc}") from exc

    def scan_prefix(self, prefix: str) -> Iterator[str]:
        try:
            for key in self._client.scan_iter(match=f"{prefix}*", count=SCAN_COUNT):
                yield key.decode("utf-8") if isinstance(key, bytes) else key
        except redis.RedisError as exc:
            raise StoreError(f"SCAN for {prefix!r} failed: {exc}") from exc

    def set(self, key: str, value: bytes) -> None:
        try:
            self._client.set(key, value)
        except redis.RedisError as exc:
            raise StoreError(f"SET {key!r} failed: {exc}") from exc

    def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        try:
            return int(self._client.delete(*keys))
        except redis.RedisError as exc:
            raise StoreError(f"DEL of {len(keys)} keys failed: {exc}") from exc

    def close(self) -> None:
        self._client.close()


def create_client(settings: ConnectionSettings) -> redis.Redis:
    return redis.Redis(
        host=settings.host,
        port=settings.port,
        password=settings.password or None,
        db=settings.db,
    )


def connect_store(settings: ConnectionSettings) -> RedisStore:
    """Connect to redis, retrying PING with backoff until connect_timeout."""
    client = create_client(settings)
    backoff = 0.5
    max_backoff = 5.0
    deadline = time.time() + settings.connect_timeout

    while True:
        try:
            client.ping()
            LOGGER.info("Connected to redis at %s:%d/%d", settings.host, settings.port, settings.db)
            return RedisStore(client)
        except redis.AuthenticationError as exc:
            client.close()
            raise StoreError(f"redis authentication failed: {exc}") from exc
        except (redis.ConnectionError, redis.TimeoutError) as exc:
            if time.time() >= deadline:
                client.close()
                raise StoreError(
                    f"failed to connect to redis at {settings.host}:{settings.port} "
                    f"within {settings.connect_timeout:g} seconds"
                ) from exc
            LOGGER.warning("Redis not reachable yet (%s); retrying in %.1fs", exc, backoff)
            time.sleep(backoff)
            backoff = min(backoff * 1.5, max_backoff)
        except redis.RedisError as exc:
            client.close()
            raise StoreError(f"redis rejected the connection: {exc}") from exc


__all__ = [
    "SCAN_COUNT",
    "RedisStore",
    "Store",
    "StoreError",
    "connect_store",
    "create_client",
]
