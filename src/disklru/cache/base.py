"""
Base classes for caching.

CacheProtocol is the abstract async surface every cache implementation
exposes. Misses are reported as None, never as errors.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class CacheProtocol(ABC):
    """Abstract interface for cache implementations."""

    @abstractmethod
    async def get(self, key: str) -> bytes | None:
        """Get a value from the cache and mark it as recently used."""
        ...

    @abstractmethod
    async def peek(self, key: str) -> bytes | None:
        """Get a value from the cache without touching its recency."""
        ...

    @abstractmethod
    async def has(self, key: str) -> bool:
        """Check if a key exists in the cache."""
        ...

    @abstractmethod
    async def set(self, key: str, value: bytes | str) -> None:
        """Set a value in the cache."""
        ...

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Delete a value from the cache."""
        ...

    @abstractmethod
    async def size(self, unit: str = "file") -> int:
        """Count entries ("file") or stored bytes ("byte")."""
        ...

    @abstractmethod
    async def keys(self) -> list[str]:
        """List keys, least recently used first."""
        ...

    @abstractmethod
    async def clear(self) -> None:
        """Remove every entry."""
        ...
