"""
Cache package for the disk LRU cache.

This package provides:
- Content store (content_store.py): one file per key, named by a digest of the key
- Registry (registry.py): key -> size/last-access metadata, persisted as one snapshot
- Eviction (eviction.py): LRU selection against a file-count or byte bound
- Expiry (expiry.py): TTL selection by age since last access
- File cache (file_cache.py): the engine tying the above together
"""

from disklru.cache.base import CacheProtocol
from disklru.cache.file_cache import CacheStats, FileLRUCache, open_cache

__all__ = ["CacheProtocol", "CacheStats", "FileLRUCache", "open_cache"]
