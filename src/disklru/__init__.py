"""
disklru - disk-resident LRU cache with TTL expiry and a persistent key registry.
"""

from __future__ import annotations

__version__ = "0.1.0"

from disklru.cache.file_cache import CacheStats, FileLRUCache, open_cache
from disklru.types import SizeUnit

__all__ = [
    "CacheStats",
    "FileLRUCache",
    "SizeUnit",
    "__version__",
    "open_cache",
]
