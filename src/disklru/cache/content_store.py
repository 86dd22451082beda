"""
Content store: raw value bytes, one file per key.

Files are named by a fixed-width digest of the key (lowercase hex SHA-1 by
default). Writes go through a temporary file in the same directory and are
renamed into place, so readers never observe a half-written value.
"""

from __future__ import annotations

import asyncio
import hashlib
import os
import re
import tempfile
from pathlib import Path
from typing import Callable

from disklru.logging import get_logger

logger = get_logger(__name__)

TEMP_PREFIX = ".tmp-"

Digest = Callable[[str], str]


def sha1_digest(key: str) -> str:
    """Default key digest: lowercase hex SHA-1 of the UTF-8 key."""
    return hashlib.sha1(key.encode("utf-8")).hexdigest()


def infer_name_pattern(digest: Digest) -> str | None:
    """Regex for the names digest produces, if it emits fixed-width lowercase hex."""
    sample = digest("")
    if re.fullmatch(r"[0-9a-f]+", sample):
        return rf"[0-9a-f]{{{len(sample)}}}"
    logger.warning(
        "Digest output is not lowercase hex, orphan cleanup disabled", sample=sample
    )
    return None


def write_atomic(path: Path, data: bytes) -> None:
    """Write data to path via a temporary sibling and an atomic rename."""
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=TEMP_PREFIX)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


class ContentStore:
    """Maps cache keys to content files inside one directory."""

    def __init__(
        self,
        directory: Path,
        digest: Digest | None = None,
        name_pattern: str | None = None,
    ) -> None:
        """Initialize content store.

        Args:
            directory: Cache directory holding the content files.
            digest: Key -> file name function. Defaults to SHA-1 hex.
            name_pattern: Regex matching every name the digest can produce,
                used to recognise content files when reconciling. When
                omitted it is inferred from the digest: fixed-width
                lowercase hex of the same length as digest(""). A digest
                with any other output shape gets no pattern, and no file
                is ever treated as an orphan.
        """
        self.directory = Path(directory)
        self.digest = digest or sha1_digest
        if name_pattern is None:
            name_pattern = infer_name_pattern(self.digest)
        self._name_re = re.compile(name_pattern) if name_pattern else None

    def path_for(self, key: str) -> Path:
        return self.directory / self.digest(key)

    def is_content_name(self, name: str) -> bool:
        return self._name_re is not None and self._name_re.fullmatch(name) is not None

    async def put(self, key: str, data: bytes) -> None:
        """Store data for key, replacing any previous content."""
        await asyncio.to_thread(write_atomic, self.path_for(key), data)

    async def get(self, key: str) -> bytes | None:
        """Read the content for key.

        Returns:
            The stored bytes, or None if there is no content file.
        """
        try:
            return await asyncio.to_thread(self.path_for(key).read_bytes)
        except FileNotFoundError:
            return None

    async def remove(self, key: str) -> None:
        """Delete the content for key. Missing files are not an error."""
        await asyncio.to_thread(self.path_for(key).unlink, missing_ok=True)

    async def exists(self, key: str) -> bool:
        return await asyncio.to_thread(self.path_for(key).is_file)

    async def list_files(self) -> list[str]:
        """List every file name currently in the directory."""
        return await asyncio.to_thread(os.listdir, self.directory)

    async def remove_name(self, name: str) -> None:
        await asyncio.to_thread((self.directory / name).unlink, missing_ok=True)

    async def remove_stale_temp_files(self) -> int:
        """Delete temporaries left behind by interrupted writes.

        Returns:
            Number of files removed.
        """
        names = await asyncio.to_thread(os.listdir, self.directory)
        stale = [name for name in names if name.startswith(TEMP_PREFIX)]
        for name in stale:
            await asyncio.to_thread((self.directory / name).unlink, missing_ok=True)
        if stale:
            logger.info("Removed stale temp files", count=len(stale))
        return len(stale)
