"""
File-based LRU cache engine.

FileLRUCache keeps a content store and a registry in lockstep:
- Values live in one file per key, named by a digest of the key
- The registry (key -> size, last access) is rewritten after every mutation
- Capacity is bounded by file count or total bytes, evicting least recently used first
- An optional TTL expires entries by age since last access
- Orphaned content files and dangling registry entries are reconciled on open

Concurrency model: all disk I/O runs in worker threads and one instance
shares a single initialization task between callers. Nothing else is
serialized; concurrent writes to the same key are last-completion-wins, and
instances sharing a directory only see each other's writes after reopening.
"""

from __future__ import annotations

import asyncio
import math
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable

from disklru.cache.base import CacheProtocol
from disklru.cache.content_store import ContentStore, Digest
from disklru.cache.eviction import lru_order, select_evictions
from disklru.cache.expiry import select_expired
from disklru.cache.registry import REGISTRY_FILENAME, Registry
from disklru.config import Settings, get_settings
from disklru.exceptions import (
    EvictionError,
    InvalidDirError,
    InvalidMaxSizeError,
    InvalidTTLError,
)
from disklru.logging import get_logger, log_context
from disklru.types import SizeUnit, now_ms

logger = get_logger(__name__)

UNBOUNDED = sys.maxsize


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _validate_dir(value: Any) -> Path:
    if value is None:
        raise InvalidDirError("option 'dir' is required")
    if not isinstance(value, (str, os.PathLike)):
        raise InvalidDirError(
            "option 'dir' must be a path", context={"type": type(value).__name__}
        )
    path = os.fspath(value)
    if not path:
        raise InvalidDirError("option 'dir' must not be empty")
    return Path(path)


def _validate_max_size(value: Any) -> float:
    if value is None:
        raise InvalidMaxSizeError("option 'max_size' is required")
    if not _is_number(value) or not math.isfinite(value):
        raise InvalidMaxSizeError(
            "option 'max_size' has to be a finite number", context={"value": value}
        )
    return UNBOUNDED if value <= 0 else value


def _validate_ttl(value: Any) -> float | None:
    if value is None:
        return None
    if not _is_number(value) or not math.isfinite(value):
        raise InvalidTTLError(
            "option 'ttl' has to be a finite number", context={"value": value}
        )
    return value if value > 0 else None


@dataclass(frozen=True)
class CacheStats:
    """Point-in-time summary of a cache instance."""

    directory: Path
    entries: int
    bytes: int
    max_size: float | None
    max_size_unit: SizeUnit
    ttl: float | None


class FileLRUCache(CacheProtocol):
    """Disk-resident key/value cache with LRU eviction and optional TTL.

    Example:
        cache = FileLRUCache(dir=".cache/pages", max_size=100 * 2**20, max_size_unit="byte")
        await cache.set("https://example.com", html)
        body = await cache.get("https://example.com")
    """

    def __init__(
        self,
        dir: str | os.PathLike[str],
        max_size: float,
        max_size_unit: SizeUnit | str = SizeUnit.FILE,
        ttl: float | None = None,
        clear: bool = False,
        digest: Digest | None = None,
        content_name_pattern: str | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        """Validate options. No disk access happens until the first operation.

        Args:
            dir: Cache directory; created on first use.
            max_size: Capacity bound. Zero or negative means unbounded.
            max_size_unit: "file" to count entries, "byte" to sum value sizes.
            ttl: Seconds since last access after which an entry expires.
                None or <= 0 disables expiry.
            clear: Evict every entry when the cache is opened.
            digest: Key -> content file name function. Defaults to SHA-1 hex.
            content_name_pattern: Regex for the file names digest produces.
                Inferred from the digest when omitted.
            clock: Time source in ms since epoch. Defaults to wall-clock time.

        Raises:
            InvalidDirError, InvalidMaxSizeError, InvalidTTLError,
            InvalidSizeUnitError: On the corresponding invalid option.
        """
        self.directory = _validate_dir(dir)
        self.max_size = _validate_max_size(max_size)
        self.ttl = _validate_ttl(ttl)
        self.max_size_unit = SizeUnit.parse(max_size_unit)
        self.clear_on_open = bool(clear)

        self._clock = clock or now_ms
        self._last_stamp = 0
        self._content = ContentStore(self.directory, digest, content_name_pattern)
        self._registry = Registry(self.directory)
        self._init_task: asyncio.Task[None] | None = None

    @classmethod
    def from_settings(
        cls, settings: Settings | None = None, **overrides: Any
    ) -> FileLRUCache:
        """Build a cache from Settings, with keyword overrides.

        Overrides set to None fall back to the settings value.
        """
        settings = settings or get_settings()
        options: dict[str, Any] = {
            "dir": settings.DIR,
            "max_size": settings.MAX_SIZE,
            "max_size_unit": settings.MAX_SIZE_UNIT,
            "ttl": settings.TTL,
            "clear": settings.CLEAR,
        }
        options.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**options)

    def __repr__(self) -> str:
        return (
            f"FileLRUCache(dir={str(self.directory)!r}, max_size={self.max_size!r}, "
            f"max_size_unit={self.max_size_unit.value!r}, ttl={self.ttl!r})"
        )

    # ------------------------------------------------------------------
    # Initialization
    # ------------------------------------------------------------------

    async def ready(self) -> None:
        """Wait for initialization, starting it on first call.

        Every caller awaits the same task, so a failed initialization is
        re-raised to all later callers and the instance stays unusable.
        """
        if self._init_task is None:
            self._init_task = asyncio.ensure_future(self._initialize())
        await asyncio.shield(self._init_task)

    async def _initialize(self) -> None:
        with log_context(cache_dir=str(self.directory), operation="init"):
            await asyncio.to_thread(self.directory.mkdir, parents=True, exist_ok=True)
            await self._registry.load()
            self._last_stamp = self._registry.latest_access()
            await self._reconcile()

            if self.clear_on_open:
                await self._clear()
            else:
                await self._remove_too_much()
                await self._remove_outdated()

            logger.info(
                "Cache ready",
                entries=len(self._registry),
                bytes=self._registry.total_size(),
            )

    async def _reconcile(self) -> None:
        """Bring the registry and the content files back into agreement."""
        await self._content.remove_stale_temp_files()

        listing = set(await self._content.list_files())
        known = {self._content.digest(key): key for key in self._registry}

        orphans = [
            name
            for name in listing
            if name != REGISTRY_FILENAME
            and self._content.is_content_name(name)
            and name not in known
        ]
        for name in orphans:
            await self._content.remove_name(name)

        dangling = [key for name, key in known.items() if name not in listing]
        for key in dangling:
            self._registry.delete(key)

        if dangling:
            await self._registry.save()
        if orphans or dangling:
            logger.info(
                "Reconciled registry with disk",
                orphaned_files=len(orphans),
                dangling_entries=len(dangling),
            )

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def get(self, key: str) -> bytes | None:
        """Return the value for key and mark it as most recently used."""
        return await self._read(key, touch=True)

    async def peek(self, key: str) -> bytes | None:
        """Return the value for key without changing eviction order."""
        return await self._read(key, touch=False)

    async def has(self, key: str) -> bool:
        await self.ready()
        await self._remove_outdated([key])
        return key in self._registry

    async def set(self, key: str, value: bytes | bytearray | memoryview | str) -> None:
        """Store value under key, then enforce TTL and capacity.

        Text is stored as UTF-8. Overwriting a key replaces its size and
        refreshes its recency.
        """
        await self.ready()
        data = value.encode("utf-8") if isinstance(value, str) else bytes(value)

        await self._content.put(key, data)
        self._registry.set(key, len(data), self._stamp())
        await self._registry.save()

        await self._remove_outdated()
        await self._remove_too_much()

    async def delete(self, key: str) -> None:
        """Remove key. Removing an absent key is a no-op."""
        await self.ready()
        await self._content.remove(key)
        self._registry.delete(key)
        await self._registry.save()

    async def size(self, unit: SizeUnit | str = SizeUnit.FILE) -> int:
        """Return the entry count ("file") or the stored byte total ("byte")."""
        unit = SizeUnit.parse(unit)
        await self.ready()
        await self._remove_outdated()
        if unit == SizeUnit.BYTE:
            return self._registry.total_size()
        return len(self._registry)

    async def keys(self) -> list[str]:
        """Return all keys, least recently used first."""
        await self.ready()
        await self._remove_outdated()
        return lru_order(self._registry.entries())

    async def clear(self) -> None:
        await self.ready()
        await self._clear()

    async def stats(self) -> CacheStats:
        await self.ready()
        await self._remove_outdated()
        return CacheStats(
            directory=self.directory,
            entries=len(self._registry),
            bytes=self._registry.total_size(),
            max_size=None if self.max_size == UNBOUNDED else self.max_size,
            max_size_unit=self.max_size_unit,
            ttl=self.ttl,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _stamp(self) -> int:
        """Next last-access timestamp, strictly after the previous one."""
        stamp = max(int(self._clock()), self._last_stamp + 1)
        self._last_stamp = stamp
        return stamp

    async def _read(self, key: str, touch: bool) -> bytes | None:
        await self.ready()
        await self._remove_outdated([key])
        if key not in self._registry:
            return None

        data = await self._content.get(key)
        if data is None:
            logger.warning("Content file missing, dropping registry entry", key=key)
            self._registry.delete(key)
            await self._registry.save()
            return None

        if touch:
            self._registry.touch(key, self._stamp())
            await self._registry.save()
        return data

    async def _remove_outdated(self, keys: list[str] | None = None) -> None:
        expired = select_expired(
            self._registry.entries(), self.ttl, int(self._clock()), keys
        )
        await self._evict(expired, reason="expired")

    async def _remove_too_much(self) -> None:
        doomed = select_evictions(
            self._registry.entries(), self.max_size, self.max_size_unit
        )
        await self._evict(doomed, reason="capacity")

    async def _clear(self) -> None:
        keys = self._registry.keys()
        if keys:
            await self._evict(keys, reason="clear")
        else:
            await self._registry.save()

    async def _evict(self, keys: list[str], reason: str) -> None:
        """Remove keys best-effort, then persist the registry once.

        Keys whose content file could not be removed keep their registry
        entry.

        Raises:
            EvictionError: After persisting, if any removal failed.
        """
        if not keys:
            return

        results = await asyncio.gather(
            *(self._content.remove(key) for key in keys), return_exceptions=True
        )

        failed: dict[str, Exception] = {}
        interrupted: BaseException | None = None
        for key, result in zip(keys, results):
            if isinstance(result, Exception):
                failed[key] = result
                logger.warning(
                    "Failed to evict entry", key=key, reason=reason, error=str(result)
                )
            elif isinstance(result, BaseException):
                interrupted = interrupted or result
            else:
                self._registry.delete(key)

        await self._registry.save()
        if interrupted is not None:
            raise interrupted
        logger.debug("Evicted entries", reason=reason, count=len(keys) - len(failed))

        if failed:
            raise EvictionError(
                f"failed to remove {len(failed)} of {len(keys)} entries",
                context={"reason": reason, "failed_keys": list(failed)},
                errors=list(failed.values()),
            )


async def open_cache(
    dir: str | os.PathLike[str],
    max_size: float,
    max_size_unit: SizeUnit | str = SizeUnit.FILE,
    ttl: float | None = None,
    clear: bool = False,
    **kwargs: Any,
) -> FileLRUCache:
    """Create a FileLRUCache and wait until it is initialized."""
    cache = FileLRUCache(
        dir=dir,
        max_size=max_size,
        max_size_unit=max_size_unit,
        ttl=ttl,
        clear=clear,
        **kwargs,
    )
    await cache.ready()
    return cache
