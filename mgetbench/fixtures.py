"""Provisioning and teardown of the shared test key pool."""

from __future__ import annotations

import logging
import os

from .benchmarks.config import DEFAULT_DATA_SIZE, DEFAULT_KEY_PREFIX, DEFAULT_POOL_SIZE
from .store import SCAN_COUNT, Store

LOGGER = logging.getLogger("mgetbench.fixtures")


def key_name(prefix: str, index: int) -> str:
    return f"{prefix}_{index:05d}"


def scan_pattern(prefix: str) -> str:
    return f"{prefix}_"


def populate(
    store: Store,
    target_count: int = DEFAULT_POOL_SIZE,
    value_size: int = DEFAULT_DATA_SIZE,
    prefix: str = DEFAULT_KEY_PREFIX,
) -> list[str]:
    """Return a pool of exactly ``target_count`` keys, creating whatever is missing.

    Keys already present under the prefix are reused; new keys take the lowest
    free sequence numbers and hold ``value_size`` random bytes with no expiry.
    """
    existing = sorted(set(store.scan_prefix(scan_pattern(prefix))))
    keys = existing[:target_count]
    if len(keys) == target_count:
        LOGGER.debug("Reusing %d existing keys under %r", len(keys), prefix)
        return keys

    taken = set(keys)
    created = 0
    index = 0
    while len(keys) < target_count:
        key = key_name(prefix, index)
        index += 1
        if key in taken:
            continue
        store.set(key, os.urandom(value_size))
        keys.append(key)
        created += 1

    LOGGER.debug("Created %d keys of %d bytes under %r", created, value_size, prefix)
    return keys


def clear(store: Store, prefix: str = DEFAULT_KEY_PREFIX) -> int:
    """Delete every key under the prefix, rescanning until a scan comes back empty."""
    total = 0
    while True:
        found = list(store.scan_prefix(scan_pattern(prefix)))
        if not found:
            return total
        for start in range(0, len(found), SCAN_COUNT):
            total += store.delete(*found[start : start + SCAN_COUNT])
