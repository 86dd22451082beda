"""
TTL expiry: entries whose age since last access exceeds the TTL.
"""

from __future__ import annotations

from typing import Iterable, Mapping

from disklru.types import RegistryEntry


def select_expired(
    entries: Mapping[str, RegistryEntry],
    ttl: float | None,
    now_ms: int,
    keys: Iterable[str] | None = None,
) -> list[str]:
    """Return the expired keys.

    Args:
        entries: Current registry contents.
        ttl: Time-to-live in seconds. None or <= 0 disables expiry.
        now_ms: Current time, ms since epoch.
        keys: Restrict the check to these keys. Keys absent from entries
            are ignored. None checks every entry.

    Returns:
        Keys whose age in seconds is strictly greater than ttl.
    """
    if not ttl or ttl <= 0:
        return []

    candidates = entries.keys() if keys is None else keys
    expired: list[str] = []
    for key in candidates:
        entry = entries.get(key)
        if entry is None:
            continue
        if (now_ms - entry.last_access) / 1000 > ttl:
            expired.append(key)
    return expired
