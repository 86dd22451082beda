"""
Registry: in-memory key -> RegistryEntry mapping mirrored to one snapshot file.

The snapshot lives under a reserved name that no key digest can produce
(uppercase letters and a dot are outside lowercase hex). Every save
rewrites the whole snapshot through a temporary file and an atomic rename.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Iterator

import orjson

from disklru.cache.content_store import write_atomic
from disklru.exceptions import RegistryCorruptError
from disklru.logging import get_logger
from disklru.types import RegistryEntry

logger = get_logger(__name__)

REGISTRY_FILENAME = "SSOT.json"


class Registry:
    """Durable mapping from cache key to size and last-access time."""

    def __init__(self, directory: Path) -> None:
        self.path = Path(directory) / REGISTRY_FILENAME
        self._entries: dict[str, RegistryEntry] = {}
        self._save_lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def get(self, key: str) -> RegistryEntry | None:
        return self._entries.get(key)

    def entries(self) -> dict[str, RegistryEntry]:
        """Return a shallow copy of the mapping."""
        return dict(self._entries)

    def keys(self) -> list[str]:
        return list(self._entries)

    def total_size(self) -> int:
        return sum(entry.size for entry in self._entries.values())

    def latest_access(self) -> int:
        """Most recent last_access in the registry, 0 when empty."""
        return max((entry.last_access for entry in self._entries.values()), default=0)

    def set(self, key: str, size: int, last_access: int) -> None:
        self._entries[key] = RegistryEntry(size=size, last_access=last_access)

    def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def touch(self, key: str, last_access: int) -> None:
        entry = self._entries.get(key)
        if entry is not None:
            entry.last_access = last_access

    async def load(self) -> None:
        """Load the persisted snapshot.

        A missing snapshot yields an empty registry.

        Raises:
            RegistryCorruptError: If the snapshot cannot be parsed.
            OSError: On any other read failure.
        """
        try:
            raw = await asyncio.to_thread(self.path.read_bytes)
        except FileNotFoundError:
            self._entries = {}
            logger.debug("No registry snapshot, starting empty", path=str(self.path))
            return

        try:
            data = orjson.loads(raw)
        except orjson.JSONDecodeError as e:
            raise RegistryCorruptError(
                "registry snapshot is not valid JSON",
                context={"path": str(self.path), "error": str(e)},
            ) from e

        if not isinstance(data, dict):
            raise RegistryCorruptError(
                "registry snapshot is not an object", context={"path": str(self.path)}
            )

        self._entries = {
            key: RegistryEntry.from_dict(key, value) for key, value in data.items()
        }
        logger.debug("Loaded registry", path=str(self.path), entries=len(self._entries))

    async def save(self) -> None:
        """Persist the full mapping, replacing the previous snapshot.

        Saves are queued so the snapshot that lands last on disk is always
        the newest one. The dump happens on the loop thread, after the lock
        is taken, so it reflects every mutation made before the write starts.
        """
        async with self._save_lock:
            payload = orjson.dumps(
                {key: entry.to_dict() for key, entry in self._entries.items()}
            )
            await asyncio.to_thread(write_atomic, self.path, payload)
