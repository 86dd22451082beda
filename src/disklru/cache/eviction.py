"""
LRU eviction against a file-count or byte-total bound.
"""

from __future__ import annotations

from typing import Mapping

from disklru.types import RegistryEntry, SizeUnit


def lru_order(entries: Mapping[str, RegistryEntry]) -> list[str]:
    """Keys ordered least recently used first.

    Entries with equal last_access are ordered by key.
    """
    return sorted(entries, key=lambda k: (entries[k].last_access, k))


def select_evictions(
    entries: Mapping[str, RegistryEntry],
    max_size: float,
    unit: SizeUnit,
) -> list[str]:
    """Pick the keys to evict so the cache fits within max_size again.

    Args:
        entries: Current registry contents.
        max_size: Capacity bound, in files or bytes depending on unit.
        unit: What max_size counts.

    Returns:
        Keys to evict, oldest first. Empty when already within bounds.
    """
    if unit == SizeUnit.BYTE:
        total = sum(entry.size for entry in entries.values())
        if total <= max_size:
            return []

        over = total - max_size
        freed = 0
        doomed: list[str] = []
        for key in lru_order(entries):
            doomed.append(key)
            freed += entries[key].size
            if freed >= over:
                break
        return doomed

    count = len(entries)
    if count <= max_size:
        return []
    excess = count - int(max_size)
    return lru_order(entries)[:excess]
