"""
Core types for the disk LRU cache.

- SizeUnit: unit the capacity bound is expressed in
- RegistryEntry: per-key metadata mirrored into the registry snapshot
- now_ms(): wall-clock timestamp helper
"""

from __future__ import annotations

import math
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any

from disklru.exceptions import InvalidSizeUnitError, RegistryCorruptError


def now_ms() -> int:
    """Get current wall-clock time in milliseconds since epoch."""
    return time.time_ns() // 1_000_000


class SizeUnit(str, Enum):
    """Unit of the capacity bound."""

    FILE = "file"
    BYTE = "byte"

    @classmethod
    def parse(cls, value: SizeUnit | str | None) -> SizeUnit:
        """Parse a unit name, defaulting to FILE when absent.

        Raises:
            InvalidSizeUnitError: If the name is not a known unit.
        """
        if value is None:
            return cls.FILE
        try:
            return cls(value)
        except ValueError:
            raise InvalidSizeUnitError(
                "option 'max_size_unit' must be 'file' or 'byte'",
                context={"value": value},
            ) from None


@dataclass
class RegistryEntry:
    """Metadata for one cached key.

    Attributes:
        size: Byte length of the stored value.
        last_access: Last access time, ms since epoch.
    """

    size: int
    last_access: int

    def to_dict(self) -> dict[str, int]:
        return {"size": self.size, "lastAccess": self.last_access}

    @classmethod
    def from_dict(cls, key: str, data: Any) -> RegistryEntry:
        """Build an entry from its snapshot form.

        Raises:
            RegistryCorruptError: If the record does not have the expected shape.
        """
        if not isinstance(data, dict):
            raise RegistryCorruptError("registry entry is not an object", context={"key": key})

        size = data.get("size")
        last_access = data.get("lastAccess")
        if isinstance(size, bool) or not isinstance(size, int) or size < 0:
            raise RegistryCorruptError(
                "registry entry has invalid size", context={"key": key, "size": size}
            )
        if (
            isinstance(last_access, bool)
            or not isinstance(last_access, (int, float))
            or not math.isfinite(last_access)
        ):
            raise RegistryCorruptError(
                "registry entry has invalid lastAccess",
                context={"key": key, "lastAccess": last_access},
            )
        return cls(size=size, last_access=int(last_access))
