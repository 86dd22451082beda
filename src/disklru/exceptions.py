"""
Custom exception hierarchy for the disk LRU cache.

All exceptions inherit from DiskLRUError, which provides optional context
for structured error handling and logging. Filesystem failures on single
reads, writes and deletes are not wrapped: they propagate as OSError.
"""

from __future__ import annotations

from typing import Any


class DiskLRUError(Exception):
    """Base exception for all cache errors.

    Attributes:
        message: Human-readable error message.
        context: Optional structured context for logging/debugging.
    """

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({ctx_str})"
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, context={self.context!r})"


class ConfigurationError(DiskLRUError):
    """Raised when cache options are invalid or missing.

    Raised synchronously from the constructor, before any disk access.
    """

    pass


class InvalidDirError(ConfigurationError):
    """Raised when 'dir' is missing, empty or not path-like."""

    pass


class InvalidMaxSizeError(ConfigurationError):
    """Raised when 'max_size' is missing or not a finite number."""

    pass


class InvalidTTLError(ConfigurationError):
    """Raised when 'ttl' is given but is not a finite number."""

    pass


class InvalidSizeUnitError(ConfigurationError):
    """Raised when 'max_size_unit' is neither 'file' nor 'byte'."""

    pass


class RegistryCorruptError(DiskLRUError):
    """Raised when the registry snapshot exists but cannot be read back.

    Context should include:
        - path: The snapshot file
        - key: The offending entry, when a single record is malformed
    """

    pass


class EvictionError(DiskLRUError):
    """Raised when deletes inside an eviction, expiry or clear batch failed.

    The batch still runs to completion and the surviving registry is
    persisted before this is raised.

    Context should include:
        - failed_keys: Keys whose content file could not be removed
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        errors: list[BaseException] | None = None,
    ) -> None:
        super().__init__(message, context)
        self.errors = errors or []
